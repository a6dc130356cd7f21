"""Keyword search over chunks using an in-memory inverted index."""

import logging
import re
from time import monotonic

from knowledge_kit.documents.types import Chunk, SearchResult
from knowledge_kit.observability import names
from knowledge_kit.observability.base import MetricsHook, NoOpMetricsHook

from .filters import SearchFilters

logger = logging.getLogger(__name__)

_NON_WORD = re.compile(r"[^\w\s]")

MIN_TOKEN_LENGTH = 3
HIGHLIGHT_WINDOW = 50
MAX_HIGHLIGHTS = 3


def tokenize(text: str) -> list[str]:
    """Lowercase, drop punctuation, split on whitespace, keep tokens of 3+ chars.

    Indexing, querying and highlighting all go through this function.
    """
    cleaned = _NON_WORD.sub(" ", text.lower())
    return [token for token in cleaned.split() if len(token) >= MIN_TOKEN_LENGTH]


def extract_highlights(
    content: str,
    tokens: list[str],
    window: int = HIGHLIGHT_WINDOW,
    max_highlights: int = MAX_HIGHLIGHTS,
) -> list[str]:
    """Collect up to ``max_highlights`` snippets around token occurrences.

    Tokens are scanned in order; every occurrence counts, overlapping
    snippets are not deduplicated.
    """
    highlights: list[str] = []

    for token in tokens:
        # match on the original text; lowercasing can change its length
        pattern = re.compile(re.escape(token), re.IGNORECASE)
        match = pattern.search(content)
        while match is not None and len(highlights) < max_highlights:
            start = max(0, match.start() - window)
            end = min(len(content), match.end() + window)

            snippet = content[start:end]
            if start > 0:
                snippet = "..." + snippet
            if end < len(content):
                snippet = snippet + "..."

            highlights.append(snippet)
            match = pattern.search(content, match.start() + 1)

        if len(highlights) >= max_highlights:
            break

    return highlights


class SearchIndex:
    """Inverted index from token to chunk ids, plus the chunks themselves.

    Scores are the number of query tokens a chunk matches, divided by the
    best score of the query. No relevance threshold is applied here.

    Not thread-safe. Callers that share an index across tasks must
    serialize access themselves.

    Example:
        >>> index = SearchIndex()
        >>> index.add(chunk)
        >>> results = index.search("cache eviction", limit=5)
    """

    def __init__(self, metrics_hook: MetricsHook = NoOpMetricsHook()) -> None:
        self.metrics_hook = metrics_hook
        self._chunks: dict[str, Chunk] = {}
        # token -> chunk ids, dict used as an insertion-ordered set
        self._postings: dict[str, dict[str, None]] = {}

    def add(self, chunk: Chunk) -> None:
        """Index a chunk. A chunk with the same id is replaced, postings included."""
        if chunk.id in self._chunks:
            self._unindex(self._chunks[chunk.id])

        self._chunks[chunk.id] = chunk
        for token in set(tokenize(chunk.content)):
            self._postings.setdefault(token, {})[chunk.id] = None

        self.metrics_hook.increment(names.INDEX_CHUNKS_ADDED)
        logger.debug("Indexed chunk: %s", chunk.id)

    def remove(self, chunk_id: str) -> bool:
        chunk = self._chunks.pop(chunk_id, None)
        if chunk is None:
            return False

        self._unindex(chunk)
        self.metrics_hook.increment(names.INDEX_CHUNKS_REMOVED)
        logger.debug("Removed chunk: %s", chunk_id)
        return True

    def remove_document(self, document_id: str) -> int:
        """Remove every chunk derived from ``document_id``."""
        chunk_ids = [
            chunk.id for chunk in self._chunks.values() if chunk.document_id == document_id
        ]
        for chunk_id in chunk_ids:
            self.remove(chunk_id)
        return len(chunk_ids)

    def get(self, chunk_id: str) -> Chunk | None:
        return self._chunks.get(chunk_id)

    def search(
        self,
        query: str,
        limit: int = 10,
        filters: SearchFilters | None = None,
    ) -> list[SearchResult]:
        """
        Rank chunks by how many query tokens they contain.

        Args:
            query: Free-text query, tokenized like indexed content.
            limit: Maximum number of results.
            filters: Optional metadata filters (source, language, type, tags).

        Returns:
            Results sorted by normalized score (highest first). Ties keep
            the order in which chunks were first matched.
        """
        start = monotonic()
        if limit < 1:
            raise ValueError("limit must be at least 1")

        query_tokens = tokenize(query)
        scores: dict[str, int] = {}

        for token in query_tokens:
            for chunk_id in self._postings.get(token, ()):
                scores[chunk_id] = scores.get(chunk_id, 0) + 1

        max_score = max(max(scores.values(), default=0), 1)
        results: list[SearchResult] = []

        for chunk_id, raw_score in scores.items():
            chunk = self._chunks.get(chunk_id)
            if chunk is None:
                continue
            if filters and not filters.matches(chunk.metadata):
                continue

            results.append(
                SearchResult(
                    chunk=chunk,
                    score=raw_score / max_score,
                    highlights=extract_highlights(chunk.content, query_tokens),
                )
            )

        results.sort(key=lambda r: r.score, reverse=True)
        results = results[:limit]

        elapsed_ms = 1000 * (monotonic() - start)
        self.metrics_hook.record_latency(names.SEARCH_DURATION, elapsed_ms)
        self.metrics_hook.increment(names.SEARCH_QUERIES_TOTAL)
        self.metrics_hook.record_gauge(names.SEARCH_RESULTS_COUNT, len(results))
        logger.debug(
            "Search matched %d chunks, returning %d (tokens=%d)",
            len(scores),
            len(results),
            len(query_tokens),
        )
        return results

    def count(self) -> int:
        return len(self._chunks)

    def clear(self) -> None:
        self._chunks.clear()
        self._postings.clear()

    def __len__(self) -> int:
        return len(self._chunks)

    def __contains__(self, chunk_id: object) -> bool:
        return chunk_id in self._chunks

    def _unindex(self, chunk: Chunk) -> None:
        for token in set(tokenize(chunk.content)):
            posting = self._postings.get(token)
            if posting is None:
                continue
            posting.pop(chunk.id, None)
            if not posting:
                del self._postings[token]
