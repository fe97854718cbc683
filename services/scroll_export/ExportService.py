"""Export service.

Streams every document matching a scroll command out of the search engine and
writes it as one JSON object per line. One scroll session per export; the
cursor is always released, also when writing fails or the export is aborted.
"""

from typing import TextIO

from shared.clients.exceptions import TransportError
from shared.clients.search.SearchClientInterface import SearchClientInterface
from shared.clients.search.models.Scroll import ScrollCommand
from shared.helper.HelperConfig import HelperConfig
from shared.scroll.QueryBuilder import QueryBuilderInterface
from shared.scroll.ResultDeserializer import DocumentDeserializer
from shared.scroll.ScrollSession import ScrollSession
from shared.scroll.SearchExecutor import SearchExecutor


class ExportService:
    """Exports search results page by page into a text stream."""

    def __init__(
        self,
        helper_config: HelperConfig,
        search_client: SearchClientInterface,
        query_builder: QueryBuilderInterface,
        deserializer: DocumentDeserializer | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config
        self._search_client = search_client
        self._query_builder = query_builder
        self._deserializer = deserializer or DocumentDeserializer()

    ##########################################
    ############### CORE EXPORT ##############
    ##########################################

    def do_export(self, command: ScrollCommand, output: TextIO) -> int:
        """Scroll through all documents matching the command and write them to output.

        Args:
            command (ScrollCommand): What to export.
            output (TextIO): Stream that receives one JSON document per line.

        Returns:
            int: Number of documents written.

        Raises:
            ScrollError: If the command is invalid or the scroll fails. Already written lines stay in output.
        """
        expected = self._count_expected(command)
        self.logging.info("Starting export from %s, %s documents expected", ",".join(command.indices), expected if expected is not None else "unknown")

        session = self.create_session()
        written = 0
        for page in session.iter_pages(command):
            for document in page.documents:
                output.write(document.model_dump_json())
                output.write("\n")
            written += len(page.documents)
            self.logging.info(
                "Exported page %d with %d documents, total so far: %d",
                page.chunk_number + 1, len(page.documents), written,
            )

        self.logging.info("Export complete. Documents written: %d", written)
        return written

    def create_session(self) -> ScrollSession:
        return ScrollSession(
            helper_config=self._helper_config,
            executor=SearchExecutor(self._search_client),
            query_builder=self._query_builder,
            deserializer=self._deserializer,
        )

    ##########################################
    ############### HELPERS ##################
    ##########################################

    def _count_expected(self, command: ScrollCommand) -> int | None:
        """Count matches up front for progress logging only; a failing count does not stop the export."""
        if not command.indices:
            return None
        try:
            total = self._search_client.do_count(list(command.indices), self._query_builder.build_query(command))
        except TransportError as e:
            self.logging.warning("Unable to count documents before export: %s", e)
            return None
        if command.limit is not None:
            return min(total, command.limit)
        return total
