from shared.helper.HelperConfig import HelperConfig
from shared.clients.search.opensearch.SearchClientOpensearch import SearchClientOpensearch
from shared.models.config import EnvConfig


class SearchClientElasticsearch(SearchClientOpensearch):
    """Elasticsearch shares the scroll REST API with OpenSearch; only auth differs."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._api_key = self.get_config_val("API_KEY", default="", val_type="string")

    def _get_engine_name(self) -> str:
        return "Elasticsearch"

    def _get_required_config(self) -> list[EnvConfig]:
        return super()._get_required_config() + [
            EnvConfig(env_key="API_KEY", val_type="string", default=""),
        ]

    def _get_auth_header(self) -> dict:
        if self._api_key:
            return {"Authorization": f"ApiKey {self._api_key}"}
        return super()._get_auth_header()
