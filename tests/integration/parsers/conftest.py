from pathlib import Path

import pytest
from reportlab.lib.pagesizes import LETTER
from reportlab.pdfgen import canvas

from knowledge_kit.parsers.models import ParsedDocument
from knowledge_kit.parsers.pdf_parser import PdfParser


def _write_pages(path: Path, pages: list[list[str]]) -> None:
    """Writes one PDF page per list of lines."""
    c = canvas.Canvas(str(path), pagesize=LETTER)
    _, height = LETTER

    for lines in pages:
        text = c.beginText(40, height - 50)
        for line in lines:
            text.textLine(line)
        c.drawText(text)
        c.showPage()

    c.save()


def _create_sample_pdf(path: Path) -> None:
    _write_pages(
        path,
        [
            [
                "SAMPLE DOCUMENT TITLE",
                "",
                "INTRODUCTION:",
                "This is the first paragraph of the introduction.",
                "This is the second paragraph of the introduction.",
                "",
                "DETAILS:",
                "Here we describe details.",
                "Some identifiers like user_id and order_id appear here.",
                "",
                "CONCLUSION:",
                "This is the final section.",
            ]
        ],
    )


def _create_multipage_pdf(path: Path) -> None:
    _write_pages(
        path,
        [
            [
                "MULTIPAGE DOCUMENT",
                "",
                "PAGE ONE CONTENT:",
                "This content is on page one.",
            ],
            [
                "This section continues on page two.",
                "PAGE TWO CONTENT:",
                "This content is on page two.",
            ],
        ],
    )


def _create_edge_case_pdf(path: Path) -> None:
    """
    Heading heuristic edge cases.
    - Long line (>120 chars) is NOT a heading
    - All caps line IS a heading
    - Line ending with colon IS a heading
    """
    _write_pages(
        path,
        [
            [
                "EDGE CASE DOCUMENT",
                "",
                "ALL CAPS HEADING",
                "Normal paragraph text here.",
                "",
                "Heading with colon:",
                "More normal text.",
                "",
                "A" * 130,
                "Text after long line.",
            ]
        ],
    )


@pytest.fixture(scope="module")
def pdf_dir(tmp_path_factory: pytest.TempPathFactory) -> Path:
    """Create all test PDFs once per module."""
    dir_path: Path = tmp_path_factory.mktemp("pdfs")

    _create_sample_pdf(dir_path / "sample.pdf")
    _create_multipage_pdf(dir_path / "multipage.pdf")
    _create_edge_case_pdf(dir_path / "edge_case.pdf")

    return dir_path


@pytest.fixture(scope="module")
def parsed_sample(pdf_dir: Path) -> ParsedDocument:
    with open(pdf_dir / "sample.pdf", "rb") as f:
        return PdfParser().parse(f)


@pytest.fixture(scope="module")
def parsed_multipage(pdf_dir: Path) -> ParsedDocument:
    return PdfParser().parse(pdf_dir / "multipage.pdf")


@pytest.fixture(scope="module")
def parsed_edge_case(pdf_dir: Path) -> ParsedDocument:
    return PdfParser().parse(pdf_dir / "edge_case.pdf")
