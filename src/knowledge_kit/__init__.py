# Chunking
from .chunking import DocumentChunker, chunk_document

# Documents
from .documents import (
    Chunk,
    Document,
    DocumentStore,
    DocumentType,
    SearchResult,
    StoredDocument,
)

# Observability
from .observability import MetricsHook, NoOpMetricsHook, RecordingMetricsHook

# Parsers
from .parsers import ParsedDocument, PdfParser

# Provider
from .provider import (
    KnowledgeProvider,
    KnowledgeQuery,
    KnowledgeResult,
    ProcessRequest,
    ProviderConfig,
    SourceStatus,
)

# Search
from .search import SearchFilters, SearchIndex, tokenize

# Sources
from .sources import (
    ApiSource,
    BaseSource,
    FileSource,
    PostgresSource,
    Source,
    SourceContext,
    SourceResult,
    SQLiteSource,
)

# Tools
from .tools import Tool, ToolCall, ToolEngine, ToolRegistry

__all__ = [
    # Chunking
    "DocumentChunker",
    "chunk_document",
    # Documents
    "Chunk",
    "Document",
    "DocumentStore",
    "DocumentType",
    "SearchResult",
    "StoredDocument",
    # Observability
    "MetricsHook",
    "NoOpMetricsHook",
    "RecordingMetricsHook",
    # Parsers
    "ParsedDocument",
    "PdfParser",
    # Provider
    "KnowledgeProvider",
    "KnowledgeQuery",
    "KnowledgeResult",
    "ProcessRequest",
    "ProviderConfig",
    "SourceStatus",
    # Search
    "SearchFilters",
    "SearchIndex",
    "tokenize",
    # Sources
    "ApiSource",
    "BaseSource",
    "FileSource",
    "PostgresSource",
    "SQLiteSource",
    "Source",
    "SourceContext",
    "SourceResult",
    # Tools
    "Tool",
    "ToolCall",
    "ToolEngine",
    "ToolRegistry",
]
