import logging
import re
from dataclasses import replace
from time import monotonic

from knowledge_kit.documents.types import Chunk, Document, DocumentType, chunk_id
from knowledge_kit.observability import names
from knowledge_kit.observability.base import MetricsHook, NoOpMetricsHook

logger = logging.getLogger(__name__)

_MARKDOWN_HEADER = re.compile(r"#{1,6}\s")
_PARAGRAPH_BREAK = re.compile(r"\n\n+")


class DocumentChunker:
    """Splits documents into overlapping, structure-aware chunks.

    - Documents that fit in ``chunk_size`` become a single chunk
    - Larger documents are split into sections by type (markdown headers,
      top-level code blocks, paragraphs) and packed into chunks
    - Consecutive chunks share roughly ``overlap`` trailing characters

    Stateless between calls: same document and settings, same output.
    """

    def __init__(
        self,
        chunk_size: int = 1000,
        overlap: int = 200,
        metrics_hook: MetricsHook = NoOpMetricsHook(),
    ) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be > 0")
        if overlap < 0:
            raise ValueError("overlap must be >= 0")
        if overlap >= chunk_size:
            raise ValueError("overlap must be < chunk_size")

        self.chunk_size = chunk_size
        self.overlap = overlap
        self.metrics_hook = metrics_hook

    def chunk(self, document: Document) -> list[Chunk]:
        start = monotonic()
        content = document.content

        if len(content) <= self.chunk_size:
            chunks = [
                Chunk(
                    id=chunk_id(document.id, 0),
                    document_id=document.id,
                    content=content,
                    start_offset=0,
                    end_offset=len(content),
                    metadata=document.metadata,
                    title=document.title,
                )
            ]
        else:
            chunks = self._pack(document, self._split_sections(content, document.type))

        elapsed_ms = 1000 * (monotonic() - start)
        self.metrics_hook.record_latency(names.CHUNKING_DURATION, elapsed_ms)
        self.metrics_hook.increment(names.CHUNKING_CHUNKS_CREATED, len(chunks))
        logger.debug("Chunked document %s into %d chunks", document.id, len(chunks))
        return chunks

    def merge_small_chunks(self, chunks: list[Chunk], min_size: int = 100) -> list[Chunk]:
        """Fold chunks shorter than ``min_size`` into the chunk that follows.

        The last chunk is kept even when it is still undersized.
        """
        merged: list[Chunk] = []
        current: Chunk | None = None
        folded = 0

        for chunk in chunks:
            if current is None:
                current = chunk
                continue

            if len(current.content) < min_size:
                current = replace(
                    current,
                    content=current.content + "\n" + chunk.content,
                    end_offset=chunk.end_offset,
                )
                folded += 1
            else:
                merged.append(current)
                current = chunk

        if current is not None:
            merged.append(current)

        if folded:
            self.metrics_hook.increment(names.CHUNKING_CHUNKS_MERGED, folded)
        return merged

    def _pack(self, document: Document, sections: list[str]) -> list[Chunk]:
        # offsets drift after overlap seeding since sections were stripped/re-joined
        content_len = len(document.content)
        chunks: list[Chunk] = []
        buffer = ""
        start_offset = 0

        for section in sections:
            if len(buffer) + len(section) > self.chunk_size and buffer:
                chunks.append(
                    self._make_chunk(document, len(chunks), buffer, start_offset, content_len)
                )
                start_offset = max(0, start_offset + len(buffer) - self.overlap)
                buffer = buffer[-self.overlap :] if self.overlap else ""

            buffer += section

        if buffer.strip():
            chunks.append(
                self._make_chunk(document, len(chunks), buffer, start_offset, content_len)
            )

        return chunks

    @staticmethod
    def _make_chunk(
        document: Document, index: int, buffer: str, start_offset: int, content_len: int
    ) -> Chunk:
        start_offset = min(start_offset, content_len)
        return Chunk(
            id=chunk_id(document.id, index),
            document_id=document.id,
            content=buffer.strip(),
            start_offset=start_offset,
            end_offset=min(start_offset + len(buffer), content_len),
            metadata=document.metadata,
            title=document.title,
        )

    def _split_sections(self, content: str, document_type: DocumentType) -> list[str]:
        if document_type == DocumentType.MARKDOWN:
            sections = split_markdown(content)
        elif document_type == DocumentType.CODE:
            sections = split_code(content)
        else:
            sections = split_paragraphs(content)

        # Hard-split anything that can never fit on its own
        pieces: list[str] = []
        for section in sections:
            if len(section) <= self.chunk_size:
                pieces.append(section)
                continue
            for i in range(0, len(section), self.chunk_size):
                pieces.append(section[i : i + self.chunk_size])
        return pieces


def split_markdown(content: str) -> list[str]:
    """Header lines start a section; a blank line after content ends one."""
    sections: list[str] = []
    current = ""

    for line in content.split("\n"):
        if _MARKDOWN_HEADER.match(line):
            if current.strip():
                sections.append(current)
            current = line + "\n"
        elif not line.strip() and current.strip():
            current += "\n"
            sections.append(current)
            current = ""
        else:
            current += line + "\n"

    if current.strip():
        sections.append(current)
    return sections


def split_code(content: str) -> list[str]:
    """Blank lines outside any ``{ ... }`` block end a section."""
    sections: list[str] = []
    current = ""
    depth = 0

    for line in content.split("\n"):
        depth += line.count("{") - line.count("}")
        current += line + "\n"

        if depth == 0 and not line.strip() and current.strip():
            sections.append(current)
            current = ""

    if current.strip():
        sections.append(current)
    return sections


def split_paragraphs(content: str) -> list[str]:
    return [
        paragraph.strip() + "\n\n"
        for paragraph in _PARAGRAPH_BREAK.split(content)
        if paragraph.strip()
    ]


def chunk_document(
    document: Document,
    *,
    chunk_size: int = 1000,
    overlap: int = 200,
    metrics_hook: MetricsHook = NoOpMetricsHook(),
) -> list[Chunk]:
    return DocumentChunker(chunk_size, overlap, metrics_hook).chunk(document)
