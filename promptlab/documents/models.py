"""Domain models for uploaded documents and retrieval results."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum


class FileType(StrEnum):
    TEXT = "text"
    PDF = "pdf"
    IMAGE = "image"
    AUDIO = "audio"
    VIDEO = "video"
    DOCUMENT = "document"


@dataclass(frozen=True)
class UploadedDocument:
    """A document held in the in-memory store."""

    id: str
    filename: str
    content: str
    size: int
    mime_type: str
    file_type: FileType
    uploaded_at: datetime
    original_path: str | None = None

    @property
    def is_pdf(self) -> bool:
        return self.filename.lower().endswith(".pdf")

    def to_dict(self, *, include_content: bool = True) -> dict:
        data = {
            "id": self.id,
            "filename": self.filename,
            "size": self.size,
            "mime_type": self.mime_type,
            "file_type": self.file_type.value,
            "uploaded_at": self.uploaded_at.isoformat(),
        }
        if include_content:
            data["content"] = self.content
        return data


@dataclass(frozen=True)
class SearchHit:
    """A document with its lexical relevance score."""

    document: UploadedDocument
    relevance_score: float


@dataclass(frozen=True)
class RetrievedDocument:
    """A passage handed to the retrieval-augmented prompt."""

    content: str
    source: str
    relevance_score: float
