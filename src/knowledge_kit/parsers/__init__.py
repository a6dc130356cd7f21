from .models import ParsedDocument, ParsedLine, ParsedSection
from .pdf_parser import PdfParser

__all__ = [
    "ParsedDocument",
    "ParsedLine",
    "ParsedSection",
    "PdfParser",
]
