# src/knowledge_kit/parsers/pdf_parser.py

import logging
from pathlib import Path
from typing import Any, BinaryIO, cast

import pdfplumber

from .models import ParsedDocument, ParsedLine, ParsedSection

logger = logging.getLogger(__name__)

DEFAULT_HEADING = "Document"


class PdfParser:
    """
    Deterministic PDF text extraction.
    - Uses page order
    - Groups lines under the nearest heading
    - Blank lines are dropped
    """

    def parse(self, source: str | Path | BinaryIO) -> ParsedDocument:
        sections: list[ParsedSection] = []
        heading = DEFAULT_HEADING
        lines: list[ParsedLine] = []

        # pdfplumber.open accepts path-like or buffer objects; cast to Any
        with pdfplumber.open(cast(Any, source)) as pdf:
            title = self._extract_title(pdf)
            page_count = len(pdf.pages)

            for page_number, page in enumerate(pdf.pages, start=1):
                text = page.extract_text() or ""

                for raw in text.splitlines():
                    clean = raw.strip()
                    if not clean:
                        continue

                    if self._is_heading(clean):
                        if lines:
                            sections.append(ParsedSection(heading=heading, lines=lines))
                            lines = []
                        heading = clean.rstrip(":")
                        continue

                    lines.append(ParsedLine(text=clean, page=page_number))

        if lines:
            sections.append(ParsedSection(heading=heading, lines=lines))

        logger.debug(
            "Parsed PDF: title=%s, pages=%d, sections=%d",
            title,
            page_count,
            len(sections),
        )
        return ParsedDocument(title=title, page_count=page_count, sections=sections)

    def _extract_title(self, pdf: Any) -> str:
        """First non-empty line of the first page."""
        if not pdf.pages:
            return "Untitled Document"
        text = pdf.pages[0].extract_text() or ""
        for line in text.splitlines():
            if line.strip():
                return line.strip()
        return "Untitled Document"

    def _is_heading(self, line: str) -> bool:
        if len(line) > 120:
            return False
        if line.isupper():
            return True
        return line.endswith(":")
