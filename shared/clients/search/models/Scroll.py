"""Scroll models shared by the search clients and the scroll session."""

from pydantic import BaseModel, ConfigDict, computed_field

from shared.clients.search.models.DocumentRecord import DocumentRecord

DEFAULT_SCROLL_TTL = "1m"


class ScrollCommand(BaseModel):
    """Everything needed to start one scroll. Immutable for the life of a session;
    lists passed for indices and fields are stored as tuples.

    Attributes:
        indices:     Indices the search is scoped to. Must not be empty.
        fields:      Field projection applied to every hit. Empty means all fields.
        limit:       Maximum number of hits returned over the whole scroll, None for no limit.
        query:       Query string in the engine's query_string syntax. "*" matches everything.
        filter:      Optional query_string applied as a non-scoring filter.
        range_field: Field the time range applies to.
        range_from:  Inclusive lower bound of the time range (ISO-8601), if any.
        range_to:    Inclusive upper bound of the time range (ISO-8601), if any.
        batch_size:  Hits per page. None lets the query builder decide.
    """

    model_config = ConfigDict(frozen=True)

    indices: tuple[str, ...]
    fields: tuple[str, ...] = ()
    limit: int | None = None

    # constraints handed to the query builder
    query: str = "*"
    filter: str | None = None
    range_field: str = "timestamp"
    range_from: str | None = None
    range_to: str | None = None
    batch_size: int | None = None


class ScrollCursor(BaseModel):
    """Opaque scroll token plus the time-to-live sent with every use of it."""

    model_config = ConfigDict(frozen=True)

    token: str
    ttl: str = DEFAULT_SCROLL_TTL


class RawEngineResponse(BaseModel):
    """One scroll response, normalized across engines.

    Attributes:
        hits:       Raw hit dicts in engine order.
        scroll_id:  Cursor token returned by the engine, None if it sent none.
        total_hits: Total number of documents matching the query, if reported.
        took_ms:    Server side execution time.
        timed_out:  Whether the engine reported a (partial) timeout.
        exhausted:  The engine signalled that no further pages exist.
    """

    hits: list[dict] = []
    scroll_id: str | None = None
    total_hits: int | None = None
    took_ms: int = 0
    timed_out: bool = False
    exhausted: bool = False

    @computed_field
    @property
    def has_more(self) -> bool:
        return bool(self.hits) and not self.exhausted


class ScrollPage(BaseModel):
    """One page handed to the caller of a scroll session.

    Attributes:
        hits:         Raw hits of this page, already cut to the command's limit.
        documents:    The same hits converted by the result deserializer.
        cursor:       Cursor held by the session after this page, None once the session is closed.
        has_more:     Whether another call to next() may return hits.
        chunk_number: Zero-based position of the page within the scroll.
        total_hits:   Total matches reported by the engine, if known.
    """

    hits: list[dict] = []
    documents: list[DocumentRecord] = []
    cursor: ScrollCursor | None = None
    has_more: bool = False
    chunk_number: int = 0
    total_hits: int | None = None

    @property
    def is_first_chunk(self) -> bool:
        return self.chunk_number == 0
