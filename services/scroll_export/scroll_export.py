"""Scroll export entry point.

Exports all documents matching the configured query from OpenSearch or
Elasticsearch as JSON lines, without loading the full result set at once.

Configuration (environment):
    SEARCH_ENGINE          opensearch (default) or elasticsearch
    SEARCH_<ENGINE>_*      BASE_URL, USERNAME, PASSWORD (API_KEY for elasticsearch)
    EXPORT_INDICES         e.g. "[logs-1,logs-2]"
    EXPORT_QUERY           query_string query, default "*"
    EXPORT_FILTER          optional query_string filter
    EXPORT_FIELDS          optional field projection, e.g. "[message,source]"
    EXPORT_LIMIT           optional maximum number of documents
    EXPORT_FROM/EXPORT_TO  optional ISO-8601 time range on EXPORT_RANGE_FIELD
    EXPORT_BATCH_SIZE      optional hits per page, SCROLL_BATCH_SIZE if unset
    EXPORT_OUTPUT          output file, stdout if unset

Usage:
    python -m services.scroll_export.scroll_export
"""

import sys

from shared.clients.search.SearchClientManager import SearchClientManager
from shared.clients.search.models.Scroll import ScrollCommand
from shared.clients.exceptions import TransportError
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import setup_logging
from shared.scroll.QueryBuilder import QueryBuilderOpensearch
from shared.scroll.exceptions import ScrollError
from services.scroll_export.ExportService import ExportService


def build_command(config: HelperConfig) -> ScrollCommand:
    """Read the scroll command of an export from the environment."""
    limit = config.get_number_val("EXPORT_LIMIT", default=0)
    batch_size = config.get_number_val("EXPORT_BATCH_SIZE", default=0)
    return ScrollCommand(
        indices=config.get_list_val("EXPORT_INDICES"),
        fields=config.get_list_val("EXPORT_FIELDS", default=[]),
        limit=int(limit) if limit else None,
        query=config.get_string_val("EXPORT_QUERY", default="*"),
        filter=config.get_string_val("EXPORT_FILTER", default="") or None,
        range_field=config.get_string_val("EXPORT_RANGE_FIELD", default="timestamp"),
        range_from=config.get_string_val("EXPORT_FROM", default="") or None,
        range_to=config.get_string_val("EXPORT_TO", default="") or None,
        batch_size=int(batch_size) if batch_size else None,
    )


def main() -> int:
    """Run one export. Returns the process exit code."""
    logger = setup_logging()
    config = HelperConfig(logger=logger)

    try:
        command = build_command(config)
        search_client = SearchClientManager(helper_config=config).get_client()
    except ValueError as e:
        logger.error("Invalid configuration: %s", e)
        return 2

    output_path = config.get_string_val("EXPORT_OUTPUT", default="")
    export_service = ExportService(
        helper_config=config,
        search_client=search_client,
        query_builder=QueryBuilderOpensearch(helper_config=config),
    )

    try:
        search_client.boot()
        search_client.do_healthcheck()
        if output_path:
            with open(output_path, "w", encoding="utf-8") as output:
                export_service.do_export(command, output)
        else:
            export_service.do_export(command, sys.stdout)
    except (ScrollError, TransportError) as e:
        logger.error("Export failed: %s", e)
        return 1
    finally:
        search_client.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
