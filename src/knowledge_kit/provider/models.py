from typing import Any

from pydantic import BaseModel

from knowledge_kit.documents.types import Chunk
from knowledge_kit.search.filters import SearchFilters


class KnowledgeQuery(BaseModel):
    query: str
    filters: SearchFilters | None = None
    limit: int | None = None
    threshold: float | None = None

    class Config:
        extra = "forbid"


class ScoredChunk(BaseModel):
    chunk: Chunk
    score: float
    highlights: list[str] = []


class KnowledgeResult(BaseModel):
    chunks: list[ScoredChunk]
    total_count: int
    query_time_ms: int


class SourceStatus(BaseModel):
    name: str
    connected: bool
    document_count: int
    last_sync: str | None = None
    error: str | None = None


class ProcessRequest(BaseModel):
    """A request routed to the provider: ``search`` or any tool name."""

    type: str
    content: str = ""
    options: dict[str, Any] = {}
    request_id: str | None = None


class RetrieveInput(BaseModel):
    id: str

    class Config:
        extra = "forbid"


class SyncInput(BaseModel):
    source: str | None = None

    class Config:
        extra = "forbid"


class NoInput(BaseModel):
    class Config:
        extra = "forbid"
