from pydantic import BaseModel


class EnvConfig(BaseModel):
    """
    Describes one environment setting a client needs before it can talk to its backend.

    Attributes:
        env_key (str): The raw key, without the "<TYPE>_<ENGINE>_" prefix (e.g. "BASE_URL").
        val_type (str): How the value is parsed: "string", "number", "bool" or "list".
        default (str | int | float | bool | list | None): Value used when the variable is unset.
            None marks the setting as mandatory.
    """

    env_key: str
    val_type: str = "string"
    default: str | int | float | bool | list | None = None
