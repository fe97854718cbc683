"""Seam between a scroll session and the search client.

Each method sends exactly one request. Transport failures are wrapped into
SearchExecutionError (or ScrollExpiredError) with the failing phase attached.
Nothing is retried here.
"""

from shared.clients.exceptions import TransportError
from shared.clients.search.SearchClientInterface import SearchClientInterface
from shared.clients.search.models.Scroll import RawEngineResponse
from shared.scroll.exceptions import ScrollExpiredError, SearchExecutionError


class SearchExecutor:
    def __init__(self, client: SearchClientInterface):
        self._client = client

    def execute_initial(self, indices: list[str], query: dict, ttl: str) -> RawEngineResponse:
        """Run the initial search of a scroll and return the first page.

        Raises:
            SearchExecutionError: With phase "initial" if the request fails.
        """
        try:
            raw_response = self._client.do_scroll_start(indices=indices, query=query, ttl=ttl)
        except TransportError as e:
            raise SearchExecutionError(
                f"Unable to perform scroll search on {', '.join(indices)}: {e}", phase="initial", cause=e
            ) from e
        return self._normalize(raw_response, phase="initial")

    def execute_continuation(self, scroll_id: str, ttl: str) -> RawEngineResponse:
        """Fetch the next page for a cursor.

        Raises:
            ScrollExpiredError: If the engine no longer knows the cursor.
            SearchExecutionError: With phase "continuation" for any other failure.
        """
        try:
            raw_response = self._client.do_scroll_continue(scroll_id=scroll_id, ttl=ttl)
        except TransportError as e:
            if self._client.is_scroll_expired(e):
                raise ScrollExpiredError(f"Scroll cursor expired or unknown to the engine: {e}", cause=e) from e
            raise SearchExecutionError(f"Unable to continue scroll: {e}", phase="continuation", cause=e) from e
        return self._normalize(raw_response, phase="continuation")

    def release(self, scroll_id: str) -> None:
        """Release a cursor on the server.

        Raises:
            SearchExecutionError: With phase "release" if the request fails.
        """
        try:
            self._client.do_clear_scroll(scroll_id=scroll_id)
        except TransportError as e:
            raise SearchExecutionError(f"Unable to clear scroll: {e}", phase="release", cause=e) from e

    def _normalize(self, raw_response: dict, phase: str) -> RawEngineResponse:
        try:
            content = self._client.extract_scroll_content(raw_response)
            scroll_id = content.get("scroll_id") or None
            return RawEngineResponse(
                hits=content.get("hits") or [],
                scroll_id=scroll_id,
                total_hits=content.get("total_hits"),
                took_ms=content.get("took_ms") or 0,
                timed_out=bool(content.get("timed_out", False)),
                exhausted=scroll_id is None,
            )
        except (AttributeError, TypeError, ValueError) as e:
            raise SearchExecutionError(f"Malformed engine response: {e}", phase=phase, cause=e) from e
