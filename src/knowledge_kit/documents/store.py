import json
import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from .types import Document, DocumentType, StoredDocument, metadata_tags

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DocumentStore:
    """In-memory, identity-keyed catalog of raw documents.

    Separate from the search index. Used for retrieve-by-id.
    """

    def __init__(self, clock: Clock = utc_now) -> None:
        self._documents: dict[str, StoredDocument] = {}
        self._clock = clock

    def add(self, document: Document) -> StoredDocument:
        now = self._clock().isoformat()
        existing = self._documents.get(document.id)

        stored = StoredDocument(
            document=document,
            stored_at=existing.stored_at if existing else now,
            updated_at=now,
        )
        self._documents[document.id] = stored
        logger.debug(
            "%s document: %s", "Updated" if existing else "Stored", document.id
        )
        return stored

    def get(self, document_id: str) -> StoredDocument | None:
        return self._documents.get(document_id)

    def has(self, document_id: str) -> bool:
        return document_id in self._documents

    def delete(self, document_id: str) -> bool:
        return self._documents.pop(document_id, None) is not None

    def all(self) -> list[StoredDocument]:
        return list(self._documents.values())

    def count(self) -> int:
        return len(self._documents)

    def get_by_source(self, source: str) -> list[StoredDocument]:
        return [
            doc
            for doc in self._documents.values()
            if doc.document.metadata.get("source") == source
        ]

    def get_by_type(self, document_type: DocumentType | str) -> list[StoredDocument]:
        wanted = DocumentType(document_type)
        return [doc for doc in self._documents.values() if doc.document.type == wanted]

    def get_by_tag(self, tag: str) -> list[StoredDocument]:
        return [
            doc
            for doc in self._documents.values()
            if tag in metadata_tags(doc.document.metadata)
        ]

    def clear(self) -> None:
        self._documents.clear()

    def export_json(self) -> str:
        """Serialize the catalog as a JSON list of ``[id, record]`` pairs."""
        entries = [
            [
                doc_id,
                {
                    "id": stored.document.id,
                    "type": stored.document.type.value,
                    "content": stored.document.content,
                    "title": stored.document.title,
                    "metadata": dict(stored.document.metadata),
                    "stored_at": stored.stored_at,
                    "updated_at": stored.updated_at,
                },
            ]
            for doc_id, stored in self._documents.items()
        ]
        return json.dumps(entries, default=_json_default)

    def import_json(self, payload: str) -> None:
        """Replace the catalog with the contents of an ``export_json`` payload."""
        documents: dict[str, StoredDocument] = {}
        for doc_id, record in json.loads(payload):
            documents[doc_id] = StoredDocument(
                document=Document(
                    id=record["id"],
                    type=DocumentType(record["type"]),
                    content=record["content"],
                    title=record.get("title"),
                    metadata=record.get("metadata") or {},
                ),
                stored_at=record["stored_at"],
                updated_at=record["updated_at"],
            )
        self._documents = documents
        logger.info("Imported %d documents", len(documents))


def _json_default(value: Any) -> Any:
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
