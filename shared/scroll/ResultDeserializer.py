"""Result deserialization collaborator: raw engine hits to DocumentRecord."""

from shared.clients.search.models.DocumentRecord import DocumentRecord


class DocumentDeserializer:
    def deserialize(self, raw_hit: dict, fields: list[str] | None = None) -> DocumentRecord:
        """Convert one raw hit into a DocumentRecord.

        Args:
            raw_hit (dict): A hit as returned by the engine ("_id", "_index", "_score", "_source").
            fields (list[str] | None): Projection to apply. Empty or None keeps every source field.

        Returns:
            DocumentRecord: The converted hit.
        """
        source = raw_hit.get("_source") or {}
        if fields:
            source = {name: source[name] for name in fields if name in source}
        return DocumentRecord(
            id=str(raw_hit.get("_id", "")),
            index=raw_hit.get("_index", ""),
            score=raw_hit.get("_score"),
            fields=source,
        )

    def deserialize_many(self, raw_hits: list[dict], fields: list[str] | None = None) -> list[DocumentRecord]:
        return [self.deserialize(raw_hit, fields) for raw_hit in raw_hits]
