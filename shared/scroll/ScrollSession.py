"""Scroll session.

Owns one server-side scroll cursor from the initial search to its release.
A session moves from UNOPENED to ACTIVE on a successful open() and ends in
CLOSED, either through close() or after a failed continuation. CLOSED is final.

Sessions are not thread-safe; every call blocks for one round trip. Always
release the cursor, preferably with a ``with`` block::

    with ScrollSession(helper_config, executor, query_builder) as session:
        page = session.open(command)
        while page.has_more:
            page = session.next()
"""

from collections.abc import Iterator
from enum import Enum
import hashlib
import json

from shared.clients.search.models.DocumentRecord import DocumentRecord
from shared.clients.search.models.Scroll import DEFAULT_SCROLL_TTL, RawEngineResponse, ScrollCommand, ScrollCursor, ScrollPage
from shared.helper.HelperConfig import HelperConfig
from shared.scroll.QueryBuilder import QueryBuilderInterface
from shared.scroll.ResultDeserializer import DocumentDeserializer
from shared.scroll.SearchExecutor import SearchExecutor
from shared.scroll.exceptions import InvalidCommandError, ScrollStateError, SearchExecutionError


class ScrollState(str, Enum):
    UNOPENED = "unopened"
    ACTIVE = "active"
    CLOSED = "closed"


class ScrollSession:
    def __init__(
        self,
        helper_config: HelperConfig,
        executor: SearchExecutor,
        query_builder: QueryBuilderInterface,
        deserializer: DocumentDeserializer | None = None,
        ttl: str | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._executor = executor
        self._query_builder = query_builder
        self._deserializer = deserializer or DocumentDeserializer()
        self._ttl = ttl or helper_config.get_string_val("SCROLL_TTL", default=DEFAULT_SCROLL_TTL)

        self._state = ScrollState.UNOPENED
        self._command: ScrollCommand | None = None
        self._cursor: ScrollCursor | None = None
        self._query_hash: str | None = None
        self._total_hits: int | None = None
        self._returned_count = 0
        self._chunk_number = 0
        self._has_more = False

    ##########################################
    ################ GETTER ##################
    ##########################################

    @property
    def state(self) -> ScrollState:
        return self._state

    @property
    def cursor(self) -> ScrollCursor | None:
        return self._cursor

    @property
    def query_hash(self) -> str | None:
        """md5 of the search source sent with the initial request."""
        return self._query_hash

    @property
    def total_hits(self) -> int | None:
        return self._total_hits

    @property
    def returned_count(self) -> int:
        """Number of hits handed out so far."""
        return self._returned_count

    ##########################################
    ############### LIFECYCLE ################
    ##########################################

    def open(self, command: ScrollCommand) -> ScrollPage:
        """Run the initial search, open the cursor and return the first page.

        A query that matches nothing is not an error: the page is empty and has_more is False.
        The caller still has to close() the session.

        Args:
            command (ScrollCommand): What to search.

        Returns:
            ScrollPage: The first page, carrying the cursor.

        Raises:
            ScrollStateError: If the session was already opened or closed.
            InvalidCommandError: If the command is invalid. No request is sent.
            SearchExecutionError: If the initial request fails. The session stays unopened.
        """
        if self._state is not ScrollState.UNOPENED:
            raise ScrollStateError(f"Cannot open a scroll session that is {self._state.value}.")
        self._validate_command(command)

        query = self._query_builder.build_query(command)
        query_hash = hashlib.md5(json.dumps(query, sort_keys=True).encode("utf-8")).hexdigest()
        self.logging.debug("Opening scroll on %s with query hash %s", ",".join(command.indices), query_hash)

        response = self._executor.execute_initial(indices=list(command.indices), query=query, ttl=self._ttl)
        if not response.scroll_id:
            raise SearchExecutionError("Engine response carries no scroll id.", phase="initial")

        self._command = command
        self._query_hash = query_hash
        self._cursor = ScrollCursor(token=response.scroll_id, ttl=self._ttl)
        self._total_hits = response.total_hits
        self._state = ScrollState.ACTIVE
        self.logging.info(
            "Scroll opened on %s: %s total hits, first page with %d hits",
            ",".join(command.indices), response.total_hits, len(response.hits),
        )
        return self._to_page(response)

    def next(self) -> ScrollPage:
        """Fetch the next page using the stored cursor.

        Once the scroll is exhausted or the limit is reached, an empty page with
        has_more=False is returned without contacting the engine.

        Raises:
            ScrollStateError: If the session is not active.
            ScrollExpiredError: If the cursor expired. The session is closed.
            SearchExecutionError: If the request fails. The session is closed.
        """
        if self._state is not ScrollState.ACTIVE:
            raise ScrollStateError(f"Cannot fetch the next page of a scroll session that is {self._state.value}.")
        if not self._has_more:
            return ScrollPage(cursor=self._cursor, has_more=False, chunk_number=self._chunk_number, total_hits=self._total_hits)

        try:
            response = self._executor.execute_continuation(scroll_id=self._cursor.token, ttl=self._ttl)
        except SearchExecutionError:
            # cursor is presumed lost, nothing left to release
            self._state = ScrollState.CLOSED
            self._cursor = None
            self._has_more = False
            raise

        if response.scroll_id:
            self._cursor = ScrollCursor(token=response.scroll_id, ttl=self._ttl)
        self._chunk_number += 1
        return self._to_page(response)

    def close(self) -> None:
        """Release the cursor and close the session. Safe to call any number of times.

        A failing release is logged and swallowed; the cursor expires on its own after its ttl.
        """
        try:
            if self._state is ScrollState.ACTIVE and self._cursor is not None:
                self._executor.release(self._cursor.token)
                self.logging.debug("Released scroll cursor with query hash %s", self._query_hash)
        except Exception as e:
            self.logging.warning("Unable to release scroll cursor, it will expire after %s: %s", self._ttl, e)
        finally:
            self._state = ScrollState.CLOSED
            self._cursor = None
            self._has_more = False

    def __enter__(self) -> "ScrollSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    ##########################################
    ############### ITERATION ################
    ##########################################

    def iter_pages(self, command: ScrollCommand) -> Iterator[ScrollPage]:
        """Open the session and yield every page that carries hits. Closes the session when done or abandoned."""
        try:
            page = self.open(command)
            if page.hits:
                yield page
            while page.has_more:
                page = self.next()
                if page.hits:
                    yield page
        finally:
            self.close()

    def iter_documents(self, command: ScrollCommand) -> Iterator[DocumentRecord]:
        for page in self.iter_pages(command):
            yield from page.documents

    ##########################################
    ############### HELPERS ##################
    ##########################################

    def _to_page(self, response: RawEngineResponse) -> ScrollPage:
        hits = response.hits
        has_more = response.has_more
        limit = self._command.limit

        if limit is not None:
            remaining = limit - self._returned_count
            if len(hits) >= remaining:
                hits = hits[:remaining]
                has_more = False

        documents = self._deserializer.deserialize_many(hits, list(self._command.fields))

        self._returned_count += len(hits)
        self._has_more = has_more
        if not has_more:
            self.logging.debug("Scroll finished after %d hits", self._returned_count)

        return ScrollPage(
            hits=hits,
            documents=documents,
            cursor=self._cursor,
            has_more=has_more,
            chunk_number=self._chunk_number,
            total_hits=self._total_hits,
        )

    def _validate_command(self, command: ScrollCommand) -> None:
        if not command.indices:
            raise InvalidCommandError("A scroll needs at least one index.")
        if any(not index or not index.strip() for index in command.indices):
            raise InvalidCommandError(f"Index names must not be blank: {command.indices}")
        if any(not field or not field.strip() for field in command.fields):
            raise InvalidCommandError(f"Projected field names must not be blank: {command.fields}")
        if len(set(command.fields)) != len(command.fields):
            raise InvalidCommandError(f"Projected fields contain duplicates: {command.fields}")
        if command.limit is not None and command.limit <= 0:
            raise InvalidCommandError(f"Limit must be positive, got {command.limit}.")
        if command.batch_size is not None and command.batch_size <= 0:
            raise InvalidCommandError(f"Batch size must be positive, got {command.batch_size}.")
