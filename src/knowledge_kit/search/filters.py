from pydantic import BaseModel

from knowledge_kit.documents.types import DocumentType, Metadata, metadata_tags


class SearchFilters(BaseModel):
    """Metadata constraints for a search. All set fields must pass."""

    source: str | None = None
    type: DocumentType | None = None
    tags: list[str] | None = None
    language: str | None = None

    class Config:
        extra = "forbid"

    def matches(self, metadata: Metadata) -> bool:
        if self.source and metadata.get("source") != self.source:
            return False
        if self.language and metadata.get("language") != self.language:
            return False
        if self.type and metadata.get("type") != self.type.value:
            return False
        if self.tags:
            present = metadata_tags(metadata)
            if not any(tag in present for tag in self.tags):
                return False
        return True
