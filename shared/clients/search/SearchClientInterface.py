from abc import abstractmethod
import json

import httpx

from shared.clients.ClientInterface import ClientInterface
from shared.clients.exceptions import TransportError
from shared.helper.HelperConfig import HelperConfig


class SearchClientInterface(ClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ############### CHECKER ##################
    ##########################################

    @abstractmethod
    def is_scroll_expired(self, error: TransportError) -> bool:
        """
        Tells whether a failed continuation was rejected because the scroll cursor no longer exists.

        Args:
            error (TransportError): The error raised by the continuation request.

        Returns:
            bool: True if the cursor expired or was already released, False for any other failure.
        """
        pass

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "search"

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_scroll_start(self, indices: list[str]) -> str:
        """
        Returns the endpoint path that runs a search over the given indices and opens a scroll.

        Returns:
            str: The endpoint path (e.g. "/logs-1,logs-2/_search")
        """
        pass

    @abstractmethod
    def _get_endpoint_scroll(self) -> str:
        """
        Returns the endpoint path used to continue and to clear a scroll (e.g. "/_search/scroll").
        """
        pass

    @abstractmethod
    def _get_endpoint_count(self, indices: list[str]) -> str:
        """
        Returns the endpoint path for counting the documents matching a query.
        """
        pass

    ################ PAYLOADS ##################
    @abstractmethod
    def get_scroll_start_params(self, ttl: str) -> dict:
        """
        Returns the URL query parameters of the request that opens a scroll.

        Args:
            ttl (str): Time-to-live of the cursor (e.g. "1m").
        """
        pass

    @abstractmethod
    def get_scroll_continue_payload(self, scroll_id: str, ttl: str) -> dict:
        """
        Returns the body of a continuation request. It carries the cursor only, never the query.

        Args:
            scroll_id (str): The cursor token returned by the previous response, passed unchanged.
            ttl (str): Time-to-live that keeps the cursor alive until the next call.
        """
        pass

    @abstractmethod
    def get_clear_scroll_payload(self, scroll_id: str) -> dict:
        """
        Returns the body of the request that releases a cursor on the server.
        """
        pass

    @abstractmethod
    def get_count_payload(self, query: dict) -> dict:
        """
        Returns the body of a count request for the given search source.
        """
        pass

    ################ RESPONSES ##################
    @abstractmethod
    def extract_scroll_content(self, raw_response: dict) -> dict:
        """
        Extracts the relevant content from a raw search or scroll response.

        Args:
            raw_response (dict): The decoded JSON response.

        Returns:
            dict: A dict with the keys "hits", "scroll_id", "total_hits", "took_ms", "timed_out".
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    def do_scroll_start(self, indices: list[str], query: dict, ttl: str) -> dict:
        """Run the initial search and open a scroll cursor on the server.

        Args:
            indices (list[str]): Indices to search.
            query (dict): The complete search source (query, size, sort, _source...).
            ttl (str): Time-to-live of the cursor.

        Returns:
            dict: The raw JSON response.

        Raises:
            TransportError: If the request fails or returns a non-2xx status.
        """
        resp = self.do_request(
            method="POST",
            content=json.dumps(query),
            params=self.get_scroll_start_params(ttl),
            endpoint=self._get_endpoint_scroll_start(indices),
            additional_headers={"Content-Type": "application/json"},
            raise_on_error=True,
        )
        return self._decode_json(resp)

    def do_scroll_continue(self, scroll_id: str, ttl: str) -> dict:
        """Fetch the next page of an open scroll.

        Raises:
            TransportError: If the request fails or returns a non-2xx status.
        """
        resp = self.do_request(
            method="POST",
            content=json.dumps(self.get_scroll_continue_payload(scroll_id, ttl)),
            endpoint=self._get_endpoint_scroll(),
            additional_headers={"Content-Type": "application/json"},
            raise_on_error=True,
        )
        return self._decode_json(resp)

    def do_clear_scroll(self, scroll_id: str) -> None:
        """Release a scroll cursor on the server.

        Raises:
            TransportError: If the request fails or returns a non-2xx status.
        """
        self.do_request(
            method="DELETE",
            content=json.dumps(self.get_clear_scroll_payload(scroll_id)),
            endpoint=self._get_endpoint_scroll(),
            additional_headers={"Content-Type": "application/json"},
            raise_on_error=True,
        )

    def do_count(self, indices: list[str], query: dict) -> int:
        """Count the documents matching the query of a search source.

        Returns:
            int: Number of matching documents.
        """
        resp = self.do_request(
            method="POST",
            content=json.dumps(self.get_count_payload(query)),
            endpoint=self._get_endpoint_count(indices),
            additional_headers={"Content-Type": "application/json"},
            raise_on_error=True,
        )
        return self._decode_json(resp).get("count", 0)

    def _decode_json(self, resp: httpx.Response) -> dict:
        try:
            return resp.json()
        except ValueError as e:
            raise TransportError(
                f"Response from {resp.request.url} is not valid JSON",
                status_code=resp.status_code,
                body=resp.text,
            ) from e
