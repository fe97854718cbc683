"""Generic search hit model — engine-independent."""

from typing import Any

from pydantic import BaseModel


class DocumentRecord(BaseModel):
    """A single matching document as handed to callers of a scroll.

    Attributes:
        id:     Document id assigned by the engine.
        index:  Index the document was found in.
        score:  Relevance score, None when the engine did not score (e.g. sorted by _doc).
        fields: Source fields, restricted to the requested projection.
    """

    id: str
    index: str
    score: float | None = None
    fields: dict[str, Any] = {}

    def get_field(self, name: str, default: Any = None) -> Any:
        return self.fields.get(name, default)
