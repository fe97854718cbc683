"""Shared fixtures: a scripted executor for session tests and a fake OpenSearch
backend served through httpx.MockTransport for client level tests."""

import json
import logging
from typing import Any, Callable

import httpx
import pytest

from shared.clients.search.models.Scroll import RawEngineResponse
from shared.clients.search.opensearch.SearchClientOpensearch import SearchClientOpensearch
from shared.helper.HelperConfig import HelperConfig
from shared.scroll.exceptions import SearchExecutionError


def make_hit(doc_id: int | str, index: str = "logs-1", **source: Any) -> dict:
    return {"_id": str(doc_id), "_index": index, "_score": None, "_source": {"message": f"doc {doc_id}", **source}}


class FakeExecutor:
    """Stands in for SearchExecutor. Responses and errors are consumed in order."""

    def __init__(self, initial: RawEngineResponse | Exception, continuations: list[RawEngineResponse | Exception] | None = None):
        self.initial = initial
        self.continuations = list(continuations or [])
        self.initial_calls: list[dict] = []
        self.continuation_calls: list[dict] = []
        self.released: list[str] = []
        self.release_error: Exception | None = None

    def execute_initial(self, indices: list[str], query: dict, ttl: str) -> RawEngineResponse:
        self.initial_calls.append({"indices": indices, "query": query, "ttl": ttl})
        if isinstance(self.initial, Exception):
            raise self.initial
        return self.initial

    def execute_continuation(self, scroll_id: str, ttl: str) -> RawEngineResponse:
        self.continuation_calls.append({"scroll_id": scroll_id, "ttl": ttl})
        if not self.continuations:
            return RawEngineResponse(hits=[], scroll_id=scroll_id)
        result = self.continuations.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    def release(self, scroll_id: str) -> None:
        self.released.append(scroll_id)
        if self.release_error is not None:
            raise self.release_error


def paged_responses(total: int, page_size: int, index: str = "logs-1") -> list[RawEngineResponse]:
    """All pages of a scroll over `total` documents, followed by the empty closing page."""
    pages = []
    for page_number, start in enumerate(range(0, total, page_size)):
        hits = [make_hit(i, index=index) for i in range(start, min(start + page_size, total))]
        pages.append(RawEngineResponse(hits=hits, scroll_id=f"scroll-{page_number}", total_hits=total))
    pages.append(RawEngineResponse(hits=[], scroll_id=f"scroll-{len(pages)}", total_hits=total))
    return pages


class FakeOpensearch:
    """Minimal OpenSearch scroll API. Every response hands out a fresh scroll id."""

    def __init__(self, documents: list[dict], page_size: int = 2):
        self.documents = documents
        self.page_size = page_size
        self.requests: list[httpx.Request] = []
        self.live_scrolls: dict[str, int] = {}
        self.cleared: list[str] = []
        self.fail_with: dict[str, httpx.Response] = {}
        self._counter = 0

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        body = json.loads(request.content) if request.content else {}

        if path == "/_cluster/health":
            return httpx.Response(200, json={"status": "green"})
        if path.endswith("/_count"):
            return self.fail_with.get("count") or httpx.Response(200, json={"count": len(self.documents)})
        if path.endswith("/_search") and request.method == "POST":
            if "initial" in self.fail_with:
                return self.fail_with["initial"]
            size = body.get("size", self.page_size)
            return self._page(0, size)
        if path == "/_search/scroll" and request.method == "POST":
            if "continuation" in self.fail_with:
                return self.fail_with["continuation"]
            scroll_id = body["scroll_id"]
            if scroll_id not in self.live_scrolls:
                return httpx.Response(404, json={"error": {"type": "search_context_missing_exception"}, "status": 404})
            position = self.live_scrolls.pop(scroll_id)
            return self._page(position, self.page_size)
        if path == "/_search/scroll" and request.method == "DELETE":
            if "release" in self.fail_with:
                return self.fail_with["release"]
            for scroll_id in body["scroll_id"]:
                self.live_scrolls.pop(scroll_id, None)
                self.cleared.append(scroll_id)
            return httpx.Response(200, json={"succeeded": True, "num_freed": len(body["scroll_id"])})
        return httpx.Response(400, json={"error": f"unexpected {request.method} {path}"})

    def _page(self, position: int, size: int) -> httpx.Response:
        self._counter += 1
        scroll_id = f"scroll-{self._counter}"
        hits = self.documents[position:position + size]
        self.live_scrolls[scroll_id] = position + len(hits)
        return httpx.Response(200, json={
            "_scroll_id": scroll_id,
            "took": 3,
            "timed_out": False,
            "hits": {"total": len(self.documents), "hits": hits},
        })


@pytest.fixture
def logger() -> logging.Logger:
    return logging.getLogger("tests")


@pytest.fixture
def helper_config(logger: logging.Logger, monkeypatch: pytest.MonkeyPatch) -> HelperConfig:
    for key in ("SCROLL_TTL", "SCROLL_BATCH_SIZE", "SEARCH_TIMEOUT", "SEARCH_ENGINE"):
        monkeypatch.delenv(key, raising=False)
    return HelperConfig(logger=logger)


@pytest.fixture
def opensearch_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SEARCH_OPENSEARCH_BASE_URL", "http://opensearch:9200")
    monkeypatch.delenv("SEARCH_OPENSEARCH_USERNAME", raising=False)
    monkeypatch.delenv("SEARCH_OPENSEARCH_PASSWORD", raising=False)


@pytest.fixture
def make_client(helper_config: HelperConfig, opensearch_env: None) -> Callable[[FakeOpensearch], SearchClientOpensearch]:
    clients: list[SearchClientOpensearch] = []

    def _make(backend: FakeOpensearch) -> SearchClientOpensearch:
        client = SearchClientOpensearch(helper_config=helper_config)
        client.boot(transport=backend.transport())
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.close()


@pytest.fixture
def release_failure() -> SearchExecutionError:
    return SearchExecutionError("cluster unavailable", phase="release")
