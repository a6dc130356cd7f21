from collections.abc import Generator
from unittest.mock import Mock, patch

import pytest
import requests

from knowledge_kit.documents.types import DocumentType
from knowledge_kit.sources import ApiSource, SourceContext, SourceNotConnectedError

RECORDS = [
    {
        "id": 1,
        "type": "markdown",
        "content": "# Runbook\n\nRestart the service.",
        "title": "Runbook",
        "metadata": {"tags": ["ops"], "type": "ignored"},
    },
    {"id": "faq", "content": "Frequently asked questions."},
]


def _response(payload: object, status: int = 200) -> Mock:
    response = Mock(status_code=status)
    response.json.return_value = payload
    if status >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(response=response)
    return response


@pytest.fixture
def mock_session() -> Generator[Mock, None, None]:
    session = Mock()
    session.headers = {}
    with patch("knowledge_kit.sources.api_source.requests.Session", return_value=session):
        yield session


@pytest.fixture
def context() -> SourceContext:
    return SourceContext(request_id="req-42")


class TestApiSource:
    @pytest.mark.asyncio
    async def test_fetch_documents_maps_records(
        self, mock_session: Mock, context: SourceContext
    ) -> None:
        mock_session.request.return_value = _response(RECORDS)
        source = ApiSource("kb", "https://kb.example.com/", headers={"Authorization": "t"})
        await source.connect(context)

        result = await source.fetch_documents(context)

        mock_session.request.assert_called_once_with(
            "GET", "https://kb.example.com/documents", timeout=30.0
        )
        assert mock_session.headers["Authorization"] == "t"
        assert mock_session.headers["X-Request-ID"] == "req-42"

        runbook, faq = result.documents
        assert runbook.id == "1"
        assert runbook.type == DocumentType.MARKDOWN
        assert runbook.metadata["source"] == "kb"
        assert runbook.metadata["tags"] == ["ops"]
        assert runbook.metadata["type"] == "markdown"
        assert faq.type == DocumentType.TEXT
        assert faq.title is None

    @pytest.mark.asyncio
    async def test_accepts_wrapped_payload(
        self, mock_session: Mock, context: SourceContext
    ) -> None:
        mock_session.request.return_value = _response({"documents": RECORDS})
        source = ApiSource("kb", "https://kb.example.com")
        await source.connect(context)

        assert await source.get_document_count() == 2

    @pytest.mark.asyncio
    async def test_fetch_document_404_returns_none(
        self, mock_session: Mock, context: SourceContext
    ) -> None:
        mock_session.request.return_value = _response({}, status=404)
        source = ApiSource("kb", "https://kb.example.com")
        await source.connect(context)

        assert await source.fetch_document("missing", context) is None

    @pytest.mark.asyncio
    async def test_server_error_is_raised(
        self, mock_session: Mock, context: SourceContext
    ) -> None:
        mock_session.request.return_value = _response({}, status=500)
        source = ApiSource("kb", "https://kb.example.com")
        await source.connect(context)

        with pytest.raises(requests.HTTPError):
            await source.fetch_document("boom", context)
        assert mock_session.request.call_count == 1

    @pytest.mark.asyncio
    async def test_transport_errors_are_retried(
        self, mock_session: Mock, context: SourceContext
    ) -> None:
        mock_session.request.side_effect = [
            requests.ConnectionError("reset"),
            _response(RECORDS[:1]),
        ]
        source = ApiSource("kb", "https://kb.example.com")
        await source.connect(context)

        result = await source.fetch_documents(context)

        assert len(result.documents) == 1
        assert mock_session.request.call_count == 2

    @pytest.mark.asyncio
    async def test_requires_connection(self, mock_session: Mock, context: SourceContext) -> None:
        source = ApiSource("kb", "https://kb.example.com")

        with pytest.raises(SourceNotConnectedError):
            await source.fetch_documents(context)

    @pytest.mark.asyncio
    async def test_disconnect_closes_session(
        self, mock_session: Mock, context: SourceContext
    ) -> None:
        source = ApiSource("kb", "https://kb.example.com")
        await source.connect(context)
        await source.disconnect()

        mock_session.close.assert_called_once()
        assert source.is_connected() is False
