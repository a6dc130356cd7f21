"""Source that reads documents from a local directory tree."""

import asyncio
import logging
import os
import re
from pathlib import Path
from time import monotonic

from knowledge_kit.documents.types import Document, DocumentType
from knowledge_kit.observability import names
from knowledge_kit.parsers.pdf_parser import PdfParser

from .base import BaseSource, SourceContext, SourceResult

logger = logging.getLogger(__name__)

CODE_LANGUAGES = {
    ".c": "c",
    ".cpp": "cpp",
    ".cs": "csharp",
    ".go": "go",
    ".h": "c",
    ".java": "java",
    ".js": "javascript",
    ".jsx": "javascript",
    ".kt": "kotlin",
    ".php": "php",
    ".py": "python",
    ".rb": "ruby",
    ".rs": "rust",
    ".scala": "scala",
    ".sh": "shell",
    ".swift": "swift",
    ".ts": "typescript",
    ".tsx": "typescript",
}

TYPE_BY_EXTENSION = {
    ".md": DocumentType.MARKDOWN,
    ".markdown": DocumentType.MARKDOWN,
    ".json": DocumentType.JSON,
    ".html": DocumentType.HTML,
    ".htm": DocumentType.HTML,
    ".pdf": DocumentType.MARKDOWN,
}

SKIP_DIRS = {"__pycache__", "node_modules", ".git", ".venv"}


def detect_type(path: Path) -> tuple[DocumentType, str | None]:
    """Map a file extension to a document type and, for code, a language."""
    suffix = path.suffix.lower()
    if suffix in CODE_LANGUAGES:
        return DocumentType.CODE, CODE_LANGUAGES[suffix]
    return TYPE_BY_EXTENSION.get(suffix, DocumentType.TEXT), None


class FileSource(BaseSource):
    """Documents from files under ``base_path``.

    Document ids are paths relative to ``base_path``. PDFs are converted to
    markdown with :class:`PdfParser`; everything else is read as UTF-8.

    Example:
        >>> source = FileSource("docs", "./docs", pattern=r"\\.md$")
        >>> await source.connect(context)
        >>> result = await source.fetch_documents(context)
    """

    def __init__(
        self,
        name: str,
        base_path: str | Path,
        pattern: str | None = None,
        description: str = "",
        pdf_parser: PdfParser | None = None,
        **kwargs,
    ) -> None:
        super().__init__(name, description or f"Files under {base_path}", **kwargs)
        self.base_path = Path(base_path)
        self._pattern = re.compile(pattern) if pattern else None
        self._pdf_parser = pdf_parser or PdfParser()

    async def connect(self, context: SourceContext) -> None:
        if not self.base_path.is_dir():
            raise FileNotFoundError(f"Not a directory: {self.base_path}")
        self._connected = True
        context.logger.debug("File source %s rooted at %s", self.name, self.base_path)

    async def disconnect(self) -> None:
        self._connected = False

    async def fetch_documents(self, context: SourceContext) -> SourceResult:
        self._require_connected()
        start = monotonic()

        files = await asyncio.to_thread(self.list_files)
        documents: list[Document] = []
        skipped = 0

        for path in files:
            try:
                documents.append(await asyncio.to_thread(self._read_document, path))
            except Exception as exc:
                skipped += 1
                context.logger.warning("Skipping unreadable file %s: %s", path, exc)

        elapsed_ms = 1000 * (monotonic() - start)
        self.metrics_hook.record_latency(
            names.SOURCE_FETCH_DURATION, elapsed_ms, labels={"source": self.name}
        )
        self.metrics_hook.increment(
            names.SOURCE_DOCUMENTS_FETCHED, len(documents), labels={"source": self.name}
        )
        return SourceResult(
            documents=documents,
            metadata={"base_path": str(self.base_path), "skipped": skipped},
        )

    async def fetch_document(
        self, document_id: str, context: SourceContext
    ) -> Document | None:
        self._require_connected()
        path = (self.base_path / document_id).resolve()
        if not path.is_file() or self.base_path.resolve() not in path.parents:
            return None
        return await asyncio.to_thread(self._read_document, path)

    async def get_document_count(self) -> int:
        return len(await asyncio.to_thread(self.list_files))

    def list_files(self) -> list[Path]:
        """Matching files, sorted, hidden files and vendored dirs skipped."""
        files: list[Path] = []
        for root, dirs, filenames in os.walk(self.base_path):
            dirs[:] = [d for d in dirs if not d.startswith(".") and d not in SKIP_DIRS]
            for filename in filenames:
                if filename.startswith("."):
                    continue
                if self._pattern and not self._pattern.search(filename):
                    continue
                files.append(Path(root) / filename)
        return sorted(files)

    def _read_document(self, path: Path) -> Document:
        relative = path.resolve().relative_to(self.base_path.resolve()).as_posix()
        document_type, language = detect_type(path)
        title = path.stem

        if path.suffix.lower() == ".pdf":
            parsed = self._pdf_parser.parse(path)
            content = parsed.to_markdown()
            title = parsed.title
        else:
            content = path.read_bytes().decode("utf-8", errors="replace")

        extra = {"path": relative, "type": document_type.value}
        if language:
            extra["language"] = language

        return Document(
            id=relative,
            type=document_type,
            content=content,
            title=title,
            metadata=self.create_metadata(**extra),
        )
