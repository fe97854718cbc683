import json

import httpx
import pytest

from conftest import FakeOpensearch, make_hit
from shared.clients.exceptions import TransportError
from shared.scroll.SearchExecutor import SearchExecutor
from shared.scroll.exceptions import ScrollExpiredError, SearchExecutionError


@pytest.fixture
def backend() -> FakeOpensearch:
    return FakeOpensearch([make_hit(i) for i in range(5)], page_size=2)


@pytest.fixture
def executor(backend: FakeOpensearch, make_client) -> SearchExecutor:
    return SearchExecutor(make_client(backend))


def test_initial_request_targets_indices_and_opens_scroll(backend: FakeOpensearch, executor: SearchExecutor) -> None:
    response = executor.execute_initial(["logs-1", "logs-2"], {"query": {"match_all": {}}, "size": 2}, "1m")

    request = backend.requests[-1]
    assert request.method == "POST"
    assert request.url.path == "/logs-1,logs-2/_search"
    assert request.url.params["scroll"] == "1m"
    assert json.loads(request.content) == {"query": {"match_all": {}}, "size": 2}
    assert response.scroll_id == "scroll-1"
    assert response.total_hits == 5
    assert response.took_ms == 3
    assert [hit["_id"] for hit in response.hits] == ["0", "1"]
    assert response.has_more is True


def test_continuation_sends_only_cursor_and_ttl(backend: FakeOpensearch, executor: SearchExecutor) -> None:
    first = executor.execute_initial(["logs-1"], {"query": {"match_all": {}}, "size": 2}, "1m")

    second = executor.execute_continuation(first.scroll_id, "1m")

    request = backend.requests[-1]
    assert request.url.path == "/_search/scroll"
    assert json.loads(request.content) == {"scroll": "1m", "scroll_id": "scroll-1"}
    assert second.scroll_id == "scroll-2"
    assert [hit["_id"] for hit in second.hits] == ["2", "3"]


def test_last_page_has_no_more(backend: FakeOpensearch, executor: SearchExecutor) -> None:
    response = executor.execute_initial(["logs-1"], {"size": 5}, "1m")
    response = executor.execute_continuation(response.scroll_id, "1m")

    assert response.hits == []
    assert response.has_more is False


def test_unknown_cursor_is_reported_as_expired(executor: SearchExecutor) -> None:
    with pytest.raises(ScrollExpiredError) as excinfo:
        executor.execute_continuation("long-gone", "1m")

    assert excinfo.value.phase == "continuation"
    assert isinstance(excinfo.value.cause, TransportError)
    assert excinfo.value.cause.status_code == 404


def test_expiry_detected_from_error_body(backend: FakeOpensearch, executor: SearchExecutor) -> None:
    backend.fail_with["continuation"] = httpx.Response(
        500, json={"error": {"root_cause": [{"type": "search_context_missing_exception"}]}}
    )

    with pytest.raises(ScrollExpiredError):
        executor.execute_continuation("scroll-1", "1m")


def test_engine_error_on_continuation(backend: FakeOpensearch, executor: SearchExecutor) -> None:
    backend.fail_with["continuation"] = httpx.Response(503, json={"error": "cluster_block_exception"})

    with pytest.raises(SearchExecutionError) as excinfo:
        executor.execute_continuation("scroll-1", "1m")

    assert not isinstance(excinfo.value, ScrollExpiredError)
    assert excinfo.value.phase == "continuation"
    assert excinfo.value.cause.status_code == 503


def test_engine_error_on_initial(backend: FakeOpensearch, executor: SearchExecutor) -> None:
    backend.fail_with["initial"] = httpx.Response(400, json={"error": "index_not_found_exception"})

    with pytest.raises(SearchExecutionError) as excinfo:
        executor.execute_initial(["missing"], {"size": 2}, "1m")

    assert excinfo.value.phase == "initial"
    assert "missing" in str(excinfo.value)


def test_network_error_is_wrapped(helper_config, opensearch_env) -> None:
    from shared.clients.search.opensearch.SearchClientOpensearch import SearchClientOpensearch

    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = SearchClientOpensearch(helper_config=helper_config)
    client.boot(transport=httpx.MockTransport(refuse))
    try:
        with pytest.raises(SearchExecutionError) as excinfo:
            SearchExecutor(client).execute_initial(["logs-1"], {"size": 2}, "1m")
    finally:
        client.close()

    assert excinfo.value.phase == "initial"
    assert isinstance(excinfo.value.cause, TransportError)
    assert excinfo.value.cause.status_code is None


def test_invalid_json_is_an_execution_error(backend: FakeOpensearch, executor: SearchExecutor) -> None:
    backend.fail_with["initial"] = httpx.Response(200, content=b"<html>proxy error</html>")

    with pytest.raises(SearchExecutionError) as excinfo:
        executor.execute_initial(["logs-1"], {"size": 2}, "1m")

    assert excinfo.value.phase == "initial"


def test_total_hits_object_form(backend: FakeOpensearch, executor: SearchExecutor) -> None:
    backend.fail_with["initial"] = httpx.Response(200, json={
        "_scroll_id": "abc",
        "hits": {"total": {"value": 42, "relation": "eq"}, "hits": [make_hit(1)]},
    })

    response = executor.execute_initial(["logs-1"], {"size": 2}, "1m")

    assert response.total_hits == 42
    assert response.scroll_id == "abc"


def test_missing_scroll_id_marks_exhaustion(backend: FakeOpensearch, executor: SearchExecutor) -> None:
    backend.fail_with["continuation"] = httpx.Response(200, json={"hits": {"hits": [make_hit(9)]}})

    response = executor.execute_continuation("scroll-1", "1m")

    assert response.exhausted is True
    assert response.has_more is False
    assert len(response.hits) == 1


def test_release_clears_cursor(backend: FakeOpensearch, executor: SearchExecutor) -> None:
    response = executor.execute_initial(["logs-1"], {"size": 2}, "1m")

    executor.release(response.scroll_id)

    request = backend.requests[-1]
    assert request.method == "DELETE"
    assert request.url.path == "/_search/scroll"
    assert json.loads(request.content) == {"scroll_id": ["scroll-1"]}
    assert backend.cleared == ["scroll-1"]
    assert backend.live_scrolls == {}


def test_release_failure_is_wrapped(backend: FakeOpensearch, executor: SearchExecutor) -> None:
    backend.fail_with["release"] = httpx.Response(500, json={"error": "boom"})

    with pytest.raises(SearchExecutionError) as excinfo:
        executor.release("scroll-1")

    assert excinfo.value.phase == "release"
