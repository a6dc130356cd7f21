from .store import DocumentStore
from .types import (
    Chunk,
    Document,
    DocumentType,
    Metadata,
    SearchResult,
    StoredDocument,
)

__all__ = [
    "Chunk",
    "Document",
    "DocumentStore",
    "DocumentType",
    "Metadata",
    "SearchResult",
    "StoredDocument",
]
