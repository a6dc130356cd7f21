from .api_source import ApiSource
from .base import (
    BaseSource,
    IdGenerator,
    Source,
    SourceContext,
    SourceNotConnectedError,
    SourceResult,
)
from .database_source import PostgresSource, SQLiteSource
from .file_source import FileSource

__all__ = [
    "ApiSource",
    "BaseSource",
    "FileSource",
    "IdGenerator",
    "PostgresSource",
    "SQLiteSource",
    "Source",
    "SourceContext",
    "SourceNotConnectedError",
    "SourceResult",
]
