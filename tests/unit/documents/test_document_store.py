from collections.abc import Callable
from datetime import datetime, timedelta, timezone

import pytest

from knowledge_kit.documents import Document, DocumentStore, DocumentType


def _clock() -> Callable[[], datetime]:
    """Clock that advances one minute per call."""
    current = [datetime(2024, 1, 1, tzinfo=timezone.utc)]

    def tick() -> datetime:
        value = current[0]
        current[0] = value + timedelta(minutes=1)
        return value

    return tick


def _doc(doc_id: str, source: str = "wiki", **kwargs) -> Document:
    metadata = {"source": source, **kwargs.pop("metadata", {})}
    return Document(
        id=doc_id,
        type=kwargs.pop("type", DocumentType.TEXT),
        content=kwargs.pop("content", f"content of {doc_id}"),
        metadata=metadata,
        **kwargs,
    )


@pytest.fixture
def store() -> DocumentStore:
    return DocumentStore(clock=_clock())


class TestDocumentStore:
    def test_add_and_get(self, store: DocumentStore) -> None:
        document = _doc("a")
        store.add(document)

        stored = store.get("a")
        assert stored is not None
        assert stored.document is document
        assert stored.id == "a"
        assert stored.stored_at == "2024-01-01T00:00:00+00:00"

    def test_get_missing_returns_none(self, store: DocumentStore) -> None:
        assert store.get("missing") is None
        assert store.has("missing") is False

    def test_update_preserves_stored_at(self, store: DocumentStore) -> None:
        store.add(_doc("a"))
        store.add(_doc("a", content="revised"))

        stored = store.get("a")
        assert stored is not None
        assert stored.document.content == "revised"
        assert stored.stored_at == "2024-01-01T00:00:00+00:00"
        assert stored.updated_at == "2024-01-01T00:01:00+00:00"
        assert store.count() == 1

    def test_delete(self, store: DocumentStore) -> None:
        store.add(_doc("a"))

        assert store.delete("a") is True
        assert store.delete("a") is False
        assert store.count() == 0

    def test_get_by_source(self, store: DocumentStore) -> None:
        store.add(_doc("a", source="wiki"))
        store.add(_doc("b", source="repo"))

        assert [d.id for d in store.get_by_source("repo")] == ["b"]

    def test_get_by_type(self, store: DocumentStore) -> None:
        store.add(_doc("a", type=DocumentType.MARKDOWN))
        store.add(_doc("b", type=DocumentType.CODE))

        assert [d.id for d in store.get_by_type("markdown")] == ["a"]
        assert [d.id for d in store.get_by_type(DocumentType.CODE)] == ["b"]

    def test_get_by_tag(self, store: DocumentStore) -> None:
        store.add(_doc("a", metadata={"tags": ["ops", "oncall"]}))
        store.add(_doc("b"))

        assert [d.id for d in store.get_by_tag("oncall")] == ["a"]
        assert store.get_by_tag("missing") == []

    def test_all_and_clear(self, store: DocumentStore) -> None:
        store.add(_doc("a"))
        store.add(_doc("b"))

        assert [d.id for d in store.all()] == ["a", "b"]
        store.clear()
        assert store.all() == []

    def test_export_then_import_restores_catalog(self, store: DocumentStore) -> None:
        store.add(_doc("a", title="Alpha", metadata={"tags": ["x"]}))
        payload = store.export_json()

        restored = DocumentStore()
        restored.add(_doc("stale"))
        restored.import_json(payload)

        assert restored.has("stale") is False
        stored = restored.get("a")
        assert stored is not None
        assert stored.document.title == "Alpha"
        assert stored.document.metadata == {"source": "wiki", "tags": ["x"]}
        assert stored.stored_at == store.get("a").stored_at  # type: ignore[union-attr]

    def test_export_serializes_tag_sets_as_sorted_lists(self, store: DocumentStore) -> None:
        store.add(_doc("a", metadata={"tags": {"ops", "api"}}))

        restored = DocumentStore()
        restored.import_json(store.export_json())

        stored = restored.get("a")
        assert stored is not None
        assert stored.document.metadata["tags"] == ["api", "ops"]
        assert [d.id for d in restored.get_by_tag("ops")] == ["a"]

    def test_string_tag_is_a_single_tag(self, store: DocumentStore) -> None:
        store.add(_doc("a", metadata={"tags": "ops"}))

        assert [d.id for d in store.get_by_tag("ops")] == ["a"]
        assert store.get_by_tag("o") == []
