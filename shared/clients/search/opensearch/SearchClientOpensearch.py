import base64
from urllib.parse import quote

from shared.helper.HelperConfig import HelperConfig
from shared.clients.exceptions import TransportError
from shared.clients.search.SearchClientInterface import SearchClientInterface
from shared.models.config import EnvConfig

SCROLL_CONTEXT_MISSING = "search_context_missing_exception"


class SearchClientOpensearch(SearchClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default=None, val_type="string")
        self._username = self.get_config_val("USERNAME", default="", val_type="string")
        self._password = self.get_config_val("PASSWORD", default="", val_type="string")

    ##########################################
    ############### CHECKER ##################
    ##########################################

    def is_scroll_expired(self, error: TransportError) -> bool:
        if error.status_code == 404:
            return True
        return SCROLL_CONTEXT_MISSING in (error.body or "")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "OpenSearch"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default=None),
            EnvConfig(env_key="USERNAME", val_type="string", default=""),
            EnvConfig(env_key="PASSWORD", val_type="string", default=""),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        if self._username:
            credentials = base64.b64encode(f"{self._username}:{self._password}".encode()).decode()
            return {"Authorization": f"Basic {credentials}"}
        else:
            return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/_cluster/health"

    def _get_index_path(self, indices: list[str]) -> str:
        return ",".join(quote(index, safe="*") for index in indices)

    def _get_endpoint_scroll_start(self, indices: list[str]) -> str:
        return f"/{self._get_index_path(indices)}/_search"

    def _get_endpoint_scroll(self) -> str:
        return "/_search/scroll"

    def _get_endpoint_count(self, indices: list[str]) -> str:
        return f"/{self._get_index_path(indices)}/_count"

    ##########################################
    ########### PAYLOAD BUILDER ##############
    ##########################################

    def get_scroll_start_params(self, ttl: str) -> dict:
        return {"scroll": ttl, "rest_total_hits_as_int": "true"}

    def get_scroll_continue_payload(self, scroll_id: str, ttl: str) -> dict:
        return {"scroll": ttl, "scroll_id": scroll_id}

    def get_clear_scroll_payload(self, scroll_id: str) -> dict:
        return {"scroll_id": [scroll_id]}

    def get_count_payload(self, query: dict) -> dict:
        if "query" in query:
            return {"query": query["query"]}
        return {}

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def extract_scroll_content(self, raw_response: dict) -> dict:
        hits = raw_response.get("hits", {})
        total = hits.get("total")
        # rest_total_hits_as_int is not honoured by every version
        if isinstance(total, dict):
            total = total.get("value")
        return {
            "hits": hits.get("hits", []),
            "scroll_id": raw_response.get("_scroll_id"),
            "total_hits": total,
            "took_ms": raw_response.get("took", 0),
            "timed_out": raw_response.get("timed_out", False),
        }
