# src/knowledge_kit/sources/base.py

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from knowledge_kit.documents.store import Clock, utc_now
from knowledge_kit.documents.types import Document
from knowledge_kit.observability.base import MetricsHook, NoOpMetricsHook

IdGenerator = Callable[[], str]


def uuid_id() -> str:
    return str(uuid.uuid4())


class SourceNotConnectedError(RuntimeError):
    """Raised when a source is used before ``connect``."""


@dataclass(frozen=True)
class SourceContext:
    """Per-operation context handed to a source by the provider."""

    request_id: str
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger(__name__))


@dataclass(frozen=True)
class SourceResult:
    documents: list[Document]
    metadata: dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class Source(Protocol):
    """Protocol for document sources (files, HTTP APIs, databases).

    Sources own all I/O. The provider only ever sees fully fetched
    Document values.
    """

    name: str
    description: str

    async def connect(self, context: SourceContext) -> None: ...

    async def disconnect(self) -> None: ...

    def is_connected(self) -> bool: ...

    async def fetch_documents(self, context: SourceContext) -> SourceResult: ...

    async def fetch_document(
        self, document_id: str, context: SourceContext
    ) -> Document | None: ...

    async def get_document_count(self) -> int: ...


class BaseSource:
    """Shared bookkeeping for concrete sources: connected flag, ids, metadata."""

    def __init__(
        self,
        name: str,
        description: str = "",
        id_generator: IdGenerator = uuid_id,
        clock: Clock = utc_now,
        metrics_hook: MetricsHook = NoOpMetricsHook(),
    ) -> None:
        self.name = name
        self.description = description
        self.metrics_hook = metrics_hook
        self._connected = False
        self._id_generator = id_generator
        self._clock = clock

    def is_connected(self) -> bool:
        return self._connected

    def create_metadata(self, **extra: Any) -> dict[str, Any]:
        return {
            "source": self.name,
            "created_at": self._clock().isoformat(),
            **extra,
        }

    def generate_id(self, prefix: str | None = None) -> str:
        generated = self._id_generator()
        return f"{prefix}-{generated}" if prefix else generated

    def _require_connected(self) -> None:
        if not self._connected:
            raise SourceNotConnectedError(f"Source '{self.name}' is not connected")
