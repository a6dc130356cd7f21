from .chunking import (
    DocumentChunker,
    chunk_document,
    split_code,
    split_markdown,
    split_paragraphs,
)

__all__ = [
    "DocumentChunker",
    "chunk_document",
    "split_code",
    "split_markdown",
    "split_paragraphs",
]
