import asyncio
import logging
from time import monotonic
from typing import Any

import requests
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from knowledge_kit.documents.types import Document, DocumentType
from knowledge_kit.observability import names

from .base import BaseSource, SourceContext, SourceNotConnectedError, SourceResult

logger = logging.getLogger(__name__)

TRANSPORT_ERRORS = (requests.ConnectionError, requests.Timeout)


class ApiSource(BaseSource):
    """Documents served as JSON over HTTP.

    Transport-only retries. Non-2xx responses raise ``requests.HTTPError``
    without retrying, except 404 on a single document which maps to None.

    Expects ``GET {base_url}{documents_endpoint}`` to return a list of
    records shaped ``{id, type?, content, title?, metadata?}``. Override
    ``to_document`` for other payloads.
    """

    documents_endpoint = "/documents"

    def __init__(
        self,
        name: str,
        base_url: str,
        headers: dict[str, str] | None = None,
        description: str = "",
        timeout: float = 30.0,
        max_retries: int = 3,
        **kwargs,
    ) -> None:
        super().__init__(name, description or f"HTTP API at {base_url}", **kwargs)
        self.base_url = base_url.rstrip("/")
        self.headers = dict(headers or {})
        self._timeout = timeout
        self._max_retries = max_retries
        self._session: requests.Session | None = None

    async def connect(self, context: SourceContext) -> None:
        session = requests.Session()
        session.headers.update(self.headers)
        session.headers["X-Request-ID"] = context.request_id
        self._session = session
        self._connected = True
        logger.info("Initialized ApiSource %s with base_url=%s", self.name, self.base_url)

    async def disconnect(self) -> None:
        if self._session is not None:
            await asyncio.to_thread(self._session.close)
            self._session = None
        self._connected = False

    async def fetch_documents(self, context: SourceContext) -> SourceResult:
        self._require_connected()
        start = monotonic()

        payload = await self._request("GET", self.documents_endpoint)
        records = payload if isinstance(payload, list) else payload.get("documents", [])
        documents = [self.to_document(record) for record in records]

        elapsed_ms = 1000 * (monotonic() - start)
        self.metrics_hook.record_latency(
            names.SOURCE_FETCH_DURATION, elapsed_ms, labels={"source": self.name}
        )
        self.metrics_hook.increment(
            names.SOURCE_DOCUMENTS_FETCHED, len(documents), labels={"source": self.name}
        )
        context.logger.debug("Fetched %d documents from %s", len(documents), self.base_url)
        return SourceResult(documents=documents, metadata={"base_url": self.base_url})

    async def fetch_document(
        self, document_id: str, context: SourceContext
    ) -> Document | None:
        self._require_connected()
        try:
            record = await self._request("GET", f"{self.documents_endpoint}/{document_id}")
        except requests.HTTPError as exc:
            if exc.response is not None and exc.response.status_code == 404:
                return None
            raise
        return self.to_document(record)

    async def get_document_count(self) -> int:
        self._require_connected()
        payload = await self._request("GET", self.documents_endpoint)
        records = payload if isinstance(payload, list) else payload.get("documents", [])
        return len(records)

    def to_document(self, record: dict[str, Any]) -> Document:
        document_type = DocumentType(record.get("type", DocumentType.TEXT.value))
        return Document(
            id=str(record["id"]),
            type=document_type,
            content=record["content"],
            title=record.get("title"),
            metadata=self.create_metadata(
                **{**(record.get("metadata") or {}), "type": document_type.value}
            ),
        )

    async def _request(self, method: str, endpoint: str, **kwargs: Any) -> Any:
        """Call the API with transport-only retries and return decoded JSON."""
        session = self._session
        if session is None:
            raise SourceNotConnectedError(f"Source '{self.name}' is not connected")

        url = f"{self.base_url}{endpoint}"
        logger.debug("Calling %s %s", method, url)

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._max_retries),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=10),
            retry=retry_if_exception_type(TRANSPORT_ERRORS),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        ):
            with attempt:
                response = await asyncio.to_thread(
                    session.request, method, url, timeout=self._timeout, **kwargs
                )
                response.raise_for_status()
                return response.json()
