# src/knowledge_kit/documents/types.py

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

Metadata = Mapping[str, Any]


class DocumentType(str, Enum):
    """Declared content type of a document. Drives section splitting."""

    TEXT = "text"
    MARKDOWN = "markdown"
    CODE = "code"
    JSON = "json"
    HTML = "html"
    PRACTICE = "practice"
    STYLE_GUIDE = "style-guide"


@dataclass(frozen=True)
class Document:
    """A fetched document, as delivered by a source.

    Immutable. Metadata is shared with every chunk derived from it and is
    never mutated in place.
    """

    id: str
    type: DocumentType
    content: str
    title: str | None = None
    metadata: Metadata = field(default_factory=dict)


@dataclass(frozen=True)
class StoredDocument:
    """A document plus catalog bookkeeping."""

    document: Document
    stored_at: str
    updated_at: str

    @property
    def id(self) -> str:
        return self.document.id


@dataclass(frozen=True)
class Chunk:
    """A bounded excerpt of a document, the unit that gets indexed.

    Offsets point into the source document content. After overlap seeding
    they are approximate.
    """

    id: str
    document_id: str
    content: str
    start_offset: int
    end_offset: int
    metadata: Metadata
    title: str | None = None


@dataclass(frozen=True)
class SearchResult:
    chunk: Chunk
    score: float
    highlights: list[str]


def chunk_id(document_id: str, index: int) -> str:
    return f"{document_id}-chunk-{index}"


def metadata_tags(metadata: Metadata) -> list[str]:
    tags = metadata.get("tags")
    if not tags:
        return []
    if isinstance(tags, str):
        return [tags]
    return list(tags)
