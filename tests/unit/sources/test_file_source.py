import itertools
from datetime import datetime, timezone
from pathlib import Path

import pytest

from knowledge_kit.documents.types import DocumentType
from knowledge_kit.sources import FileSource, SourceContext, SourceNotConnectedError
from knowledge_kit.sources.file_source import detect_type


@pytest.fixture
def docs_dir(tmp_path: Path) -> Path:
    (tmp_path / "README.md").write_text("# Readme\n\nProject overview.\n")
    (tmp_path / "notes.txt").write_text("Plain notes.")
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "app.py").write_text("def main():\n    return 1\n")
    (tmp_path / ".hidden").write_text("secret")
    (tmp_path / ".git").mkdir()
    (tmp_path / ".git" / "config").write_text("[core]")
    return tmp_path


@pytest.fixture
def context() -> SourceContext:
    return SourceContext(request_id="req-1")


def _fixed_clock() -> datetime:
    return datetime(2024, 5, 1, tzinfo=timezone.utc)


class TestFileSource:
    @pytest.mark.asyncio
    async def test_fetch_documents_walks_tree(
        self, docs_dir: Path, context: SourceContext
    ) -> None:
        source = FileSource("docs", docs_dir, clock=_fixed_clock)
        await source.connect(context)

        result = await source.fetch_documents(context)

        assert [d.id for d in result.documents] == ["README.md", "notes.txt", "src/app.py"]
        readme, notes, app = result.documents
        assert readme.type == DocumentType.MARKDOWN
        assert readme.title == "README"
        assert notes.type == DocumentType.TEXT
        assert app.type == DocumentType.CODE
        assert app.metadata["language"] == "python"
        assert app.metadata["source"] == "docs"
        assert app.metadata["path"] == "src/app.py"
        assert app.metadata["created_at"] == "2024-05-01T00:00:00+00:00"

    @pytest.mark.asyncio
    async def test_pattern_limits_files(self, docs_dir: Path, context: SourceContext) -> None:
        source = FileSource("docs", docs_dir, pattern=r"\.md$")
        await source.connect(context)

        result = await source.fetch_documents(context)

        assert [d.id for d in result.documents] == ["README.md"]
        assert await source.get_document_count() == 1

    @pytest.mark.asyncio
    async def test_fetch_document_by_id(self, docs_dir: Path, context: SourceContext) -> None:
        source = FileSource("docs", docs_dir)
        await source.connect(context)

        document = await source.fetch_document("notes.txt", context)

        assert document is not None
        assert document.content == "Plain notes."
        assert await source.fetch_document("missing.txt", context) is None
        assert await source.fetch_document("../outside.txt", context) is None

    @pytest.mark.asyncio
    async def test_connect_requires_directory(self, tmp_path: Path, context: SourceContext) -> None:
        source = FileSource("docs", tmp_path / "nope")

        with pytest.raises(FileNotFoundError):
            await source.connect(context)
        assert source.is_connected() is False

    @pytest.mark.asyncio
    async def test_fetch_before_connect_raises(
        self, docs_dir: Path, context: SourceContext
    ) -> None:
        source = FileSource("docs", docs_dir)

        with pytest.raises(SourceNotConnectedError):
            await source.fetch_documents(context)

    @pytest.mark.asyncio
    async def test_disconnect(self, docs_dir: Path, context: SourceContext) -> None:
        source = FileSource("docs", docs_dir)
        await source.connect(context)
        await source.disconnect()

        assert source.is_connected() is False


def test_generate_id_uses_injected_generator(tmp_path: Path) -> None:
    counter = itertools.count(1)
    source = FileSource("docs", tmp_path, id_generator=lambda: str(next(counter)))

    assert source.generate_id() == "1"
    assert source.generate_id("doc") == "doc-2"


@pytest.mark.parametrize(
    ("filename", "expected"),
    [
        ("guide.md", (DocumentType.MARKDOWN, None)),
        ("index.HTML", (DocumentType.HTML, None)),
        ("data.json", (DocumentType.JSON, None)),
        ("main.go", (DocumentType.CODE, "go")),
        ("notes", (DocumentType.TEXT, None)),
    ],
)
def test_detect_type(filename: str, expected: tuple) -> None:
    assert detect_type(Path(filename)) == expected
