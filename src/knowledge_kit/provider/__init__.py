from .config import ProviderConfig
from .models import (
    KnowledgeQuery,
    KnowledgeResult,
    ProcessRequest,
    ScoredChunk,
    SourceStatus,
)
from .provider import KnowledgeProvider

__all__ = [
    "KnowledgeProvider",
    "KnowledgeQuery",
    "KnowledgeResult",
    "ProcessRequest",
    "ProviderConfig",
    "ScoredChunk",
    "SourceStatus",
]
