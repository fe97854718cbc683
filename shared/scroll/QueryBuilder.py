"""Query builder collaborator.

Turns a ScrollCommand into the search source sent with the initial scroll
request. Builders must be pure: the same command always yields the same source.
"""

from abc import ABC, abstractmethod

from shared.clients.search.models.Scroll import ScrollCommand
from shared.helper.HelperConfig import HelperConfig

DEFAULT_BATCH_SIZE = 500


class QueryBuilderInterface(ABC):
    @abstractmethod
    def build_query(self, command: ScrollCommand) -> dict:
        """
        Builds the search source for a scroll command.

        Args:
            command (ScrollCommand): The command to translate.

        Returns:
            dict: The search source, ready to be serialised as request body.
        """
        pass


class QueryBuilderOpensearch(QueryBuilderInterface):
    """Builds OpenSearch / Elasticsearch query DSL."""

    def __init__(self, helper_config: HelperConfig):
        self._batch_size = int(helper_config.get_number_val("SCROLL_BATCH_SIZE", default=DEFAULT_BATCH_SIZE))

    def build_query(self, command: ScrollCommand) -> dict:
        source = {
            "query": self._build_bool_query(command),
            "size": self._get_page_size(command),
            # _doc order is the cheapest sort for scrolling
            "sort": ["_doc"],
            "track_total_hits": True,
        }
        if command.fields:
            source["_source"] = list(command.fields)
        return source

    def _get_page_size(self, command: ScrollCommand) -> int:
        size = command.batch_size or self._batch_size
        if command.limit is not None:
            size = min(size, command.limit)
        return size

    def _build_bool_query(self, command: ScrollCommand) -> dict:
        query = command.query.strip() if command.query else ""
        if not query or query == "*":
            must = {"match_all": {}}
        else:
            must = {"query_string": {"query": query, "allow_leading_wildcard": True}}

        filters = []
        if command.filter:
            filters.append({"query_string": {"query": command.filter}})
        if command.range_from or command.range_to:
            bounds = {}
            if command.range_from:
                bounds["gte"] = command.range_from
            if command.range_to:
                bounds["lte"] = command.range_to
            filters.append({"range": {command.range_field: bounds}})

        return {"bool": {"must": [must], "filter": filters}}
