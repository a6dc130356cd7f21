# src/knowledge_kit/provider/provider.py

import logging
from time import monotonic
from typing import Any

from knowledge_kit.chunking.chunking import DocumentChunker
from knowledge_kit.documents.store import Clock, DocumentStore, utc_now
from knowledge_kit.documents.types import Chunk, Document, StoredDocument
from knowledge_kit.observability import names
from knowledge_kit.observability.base import MetricsHook, NoOpMetricsHook
from knowledge_kit.search.index import SearchIndex
from knowledge_kit.sources.base import IdGenerator, Source, SourceContext, uuid_id
from knowledge_kit.tools.tool import Tool, ToolCall
from knowledge_kit.tools.tool_engine import ToolEngine
from knowledge_kit.tools.tool_registry import ToolRegistry

from .config import ProviderConfig
from .models import (
    KnowledgeQuery,
    KnowledgeResult,
    NoInput,
    ProcessRequest,
    RetrieveInput,
    ScoredChunk,
    SourceStatus,
    SyncInput,
)

logger = logging.getLogger(__name__)


class KnowledgeProvider:
    """Ties sources, document store, chunker and search index together.

    Responsibilities:
    - Source registration, connection and sync
    - Chunking and indexing of fetched documents
    - Threshold-filtered search and retrieve-by-id
    - The standard tools: search, retrieve, list-sources, sync, stats

    Per-source failures are logged and skipped; one broken source never
    stops the others. Not safe for concurrent writers.

    Example:
        >>> provider = KnowledgeProvider("docs")
        >>> provider.register_source(FileSource("handbook", "./handbook"))
        >>> await provider.initialize()
        >>> result = await provider.search(KnowledgeQuery(query="on-call rotation"))
    """

    def __init__(
        self,
        name: str,
        version: str = "0.1.0",
        config: ProviderConfig | None = None,
        metrics_hook: MetricsHook = NoOpMetricsHook(),
        id_generator: IdGenerator = uuid_id,
        clock: Clock = utc_now,
    ) -> None:
        self.name = name
        self.version = version
        self.config = config or ProviderConfig()
        self.metrics_hook = metrics_hook
        self._id_generator = id_generator
        self._clock = clock

        self.store = DocumentStore(clock=clock)
        self.index = SearchIndex(metrics_hook=metrics_hook)
        self.chunker = DocumentChunker(
            chunk_size=self.config.chunk_size,
            overlap=self.config.chunk_overlap,
            metrics_hook=metrics_hook,
        )
        self.tools = ToolRegistry()
        self.tool_engine = ToolEngine(self.tools, metrics_hook=metrics_hook)

        self._sources: dict[str, Source] = {}
        self._last_sync: dict[str, str] = {}

        self._register_standard_tools()
        logger.info(
            "Initialized KnowledgeProvider %s v%s with chunk_size=%d, overlap=%d",
            name,
            version,
            self.config.chunk_size,
            self.config.chunk_overlap,
        )

    # ------------------------------------------------------------------
    # Sources
    # ------------------------------------------------------------------

    def register_source(self, source: Source) -> None:
        if source.name in self._sources:
            logger.warning("Overwriting existing source: %s", source.name)
        self._sources[source.name] = source
        logger.debug("Registered source: %s", source.name)

    @property
    def sources(self) -> dict[str, Source]:
        return dict(self._sources)

    async def initialize_sources(self) -> None:
        context = self._new_context()
        for name, source in self._sources.items():
            start = monotonic()
            try:
                await source.connect(context)
            except Exception as exc:
                self._record_source_error(name, "connect")
                logger.error("Failed to connect source %s: %s", name, exc)
                continue

            self.metrics_hook.record_latency(
                names.SOURCE_CONNECT_DURATION,
                1000 * (monotonic() - start),
                labels={"source": name},
            )
            logger.info("Source connected: %s", name)

    async def sync_sources(self) -> int:
        """Fetch and index documents from every connected source.

        Returns:
            Total number of documents indexed.
        """
        start = monotonic()
        context = self._new_context()
        total = 0

        for name, source in self._sources.items():
            if not source.is_connected():
                logger.warning("Source not connected, skipping sync: %s", name)
                continue
            try:
                total += await self._sync(source, context)
            except Exception as exc:
                self._record_source_error(name, "sync")
                logger.error("Failed to sync source %s: %s", name, exc)

        self.metrics_hook.record_latency(
            names.PROVIDER_SYNC_DURATION, 1000 * (monotonic() - start)
        )
        return total

    async def sync_source(self, name: str) -> int:
        """Sync one source by name. Errors propagate to the caller."""
        try:
            source = self._sources[name]
        except KeyError:
            logger.error("Source not found: %s", name)
            raise KeyError(f"Source '{name}' not found")
        return await self._sync(source, self._new_context())

    async def get_source_status(self) -> list[SourceStatus]:
        statuses: list[SourceStatus] = []
        for name, source in self._sources.items():
            try:
                count = await source.get_document_count()
                error = None
            except Exception as exc:
                count = 0
                error = str(exc)
            statuses.append(
                SourceStatus(
                    name=name,
                    connected=source.is_connected(),
                    document_count=count,
                    last_sync=self._last_sync.get(name),
                    error=error,
                )
            )
        return statuses

    async def initialize(self) -> None:
        await self.initialize_sources()
        await self.sync_sources()

    async def shutdown(self) -> None:
        for name, source in self._sources.items():
            try:
                await source.disconnect()
                logger.debug("Source disconnected: %s", name)
            except Exception as exc:
                logger.warning("Error disconnecting source %s: %s", name, exc)

    # ------------------------------------------------------------------
    # Documents and search
    # ------------------------------------------------------------------

    def index_document(self, document: Document) -> list[Chunk]:
        """Store, chunk and index a document, replacing any earlier version."""
        self.store.add(document)
        self.index.remove_document(document.id)

        chunks = self.chunker.chunk(document)
        if self.config.min_chunk_size:
            chunks = self.chunker.merge_small_chunks(chunks, self.config.min_chunk_size)

        for chunk in chunks:
            self.index.add(chunk)

        self.metrics_hook.increment(names.PROVIDER_DOCUMENTS_INDEXED)
        self.metrics_hook.record_gauge(names.INDEX_CHUNK_COUNT, self.index.count())
        logger.debug("Indexed document %s (%d chunks)", document.id, len(chunks))
        return chunks

    def remove_document(self, document_id: str) -> bool:
        removed = self.store.delete(document_id)
        removed_chunks = self.index.remove_document(document_id)
        return removed or removed_chunks > 0

    def search(self, query: KnowledgeQuery) -> KnowledgeResult:
        start = monotonic()

        limit = query.limit or self.config.max_results
        threshold = (
            query.threshold if query.threshold is not None else self.config.min_score
        )
        results = self.index.search(query.query, limit, query.filters)
        kept = [r for r in results if r.score >= threshold]

        elapsed_ms = 1000 * (monotonic() - start)
        self.metrics_hook.record_latency(names.PROVIDER_QUERY_DURATION, elapsed_ms)
        logger.debug(
            "Query %r: %d results, %d above threshold %.2f",
            query.query,
            len(results),
            len(kept),
            threshold,
        )

        return KnowledgeResult(
            chunks=[
                ScoredChunk(chunk=r.chunk, score=r.score, highlights=r.highlights)
                for r in kept
            ],
            total_count=len(kept),
            query_time_ms=int(elapsed_ms),
        )

    def get_document(self, document_id: str) -> StoredDocument | None:
        return self.store.get(document_id)

    def stats(self) -> dict[str, int]:
        return {
            "document_count": self.store.count(),
            "chunk_count": self.index.count(),
            "source_count": len(self._sources),
        }

    # ------------------------------------------------------------------
    # Request dispatch
    # ------------------------------------------------------------------

    async def handle_request(self, request: ProcessRequest) -> Any:
        if request.type == "search":
            return self.search(
                KnowledgeQuery(**{**request.options, "query": request.content})
            )

        return await self.tool_engine.call_tool(
            ToolCall(
                tool_name=request.type,
                arguments=request.options,
                request_id=request.request_id or self._id_generator(),
            )
        )

    def get_tools(self) -> list[Tool]:
        return list(self.tools.list().values())

    def _register_standard_tools(self) -> None:
        async def search(args: KnowledgeQuery) -> KnowledgeResult:
            return self.search(args)

        async def retrieve(args: RetrieveInput) -> StoredDocument | dict[str, str]:
            return self.get_document(args.id) or {"error": "Document not found"}

        async def list_sources(args: NoInput) -> dict[str, Any]:
            return {"sources": await self.get_source_status()}

        async def sync(args: SyncInput) -> dict[str, Any]:
            if args.source is None:
                return {"synced": await self.sync_sources()}
            if args.source not in self._sources:
                return {"error": f"Source '{args.source}' not found"}
            return {"synced": await self.sync_source(args.source), "source": args.source}

        async def stats(args: NoInput) -> dict[str, Any]:
            return {**self.stats(), "sources": await self.get_source_status()}

        for tool in (
            Tool(
                name="search",
                description="Search the knowledge base",
                input_schema=KnowledgeQuery,
                handler=search,
            ),
            Tool(
                name="retrieve",
                description="Retrieve a specific document by ID",
                input_schema=RetrieveInput,
                handler=retrieve,
            ),
            Tool(
                name="list-sources",
                description="List all knowledge sources",
                input_schema=NoInput,
                handler=list_sources,
            ),
            Tool(
                name="sync",
                description="Sync documents from all sources or a single one",
                input_schema=SyncInput,
                handler=sync,
            ),
            Tool(
                name="stats",
                description="Get knowledge base statistics",
                input_schema=NoInput,
                handler=stats,
            ),
        ):
            self.tools.register(tool)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _sync(self, source: Source, context: SourceContext) -> int:
        result = await source.fetch_documents(context)
        for document in result.documents:
            self.index_document(document)

        self._last_sync[source.name] = self._clock().isoformat()
        logger.info(
            "Source synced: %s (%d documents)", source.name, len(result.documents)
        )
        return len(result.documents)

    def _new_context(self) -> SourceContext:
        return SourceContext(request_id=self._id_generator(), logger=logger)

    def _record_source_error(self, name: str, operation: str) -> None:
        self.metrics_hook.increment(
            names.SOURCE_ERRORS_TOTAL,
            labels={"source": name, "operation": operation},
        )
