from .filters import SearchFilters
from .index import SearchIndex, extract_highlights, tokenize

__all__ = [
    "SearchFilters",
    "SearchIndex",
    "extract_highlights",
    "tokenize",
]
