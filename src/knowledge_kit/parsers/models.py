# src/knowledge_kit/parsers/models.py

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ParsedLine:
    text: str
    page: int


@dataclass(frozen=True)
class ParsedSection:
    heading: str
    lines: list[ParsedLine] = field(default_factory=list)


@dataclass(frozen=True)
class ParsedDocument:
    title: str
    page_count: int
    sections: list[ParsedSection]

    def to_markdown(self) -> str:
        """Render as markdown: one ``##`` header per section, one paragraph per page."""
        blocks: list[str] = []
        for section in self.sections:
            blocks.append(f"## {section.heading}")
            page_lines: dict[int, list[str]] = {}
            for line in section.lines:
                page_lines.setdefault(line.page, []).append(line.text)
            blocks.extend("\n".join(lines) for lines in page_lines.values())
        return "\n\n".join(blocks) + "\n" if blocks else ""
