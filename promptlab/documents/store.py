"""In-memory document store.

Uploaded documents live in a dict keyed by ID for the lifetime of the process;
the original bytes are written to ``uploads_dir`` so the model can analyse
binary files directly.

Concurrency contract: one store-wide ``threading.RLock`` guards the map.
Writers hold it only for the mutation itself; readers copy a snapshot under
the lock and do any scoring outside it. File I/O never happens under the
lock, and no lock is held across an ``await``.
"""

from __future__ import annotations

import asyncio
import itertools
import json
import re
import threading
import uuid
from datetime import UTC, datetime
from pathlib import Path

import structlog

from promptlab.documents.models import FileType, SearchHit, UploadedDocument
from promptlab.documents.scoring import rank_documents
from promptlab.llm.types import FileAttachment

log = structlog.get_logger(__name__)

ALLOWED_EXTENSIONS = re.compile(
    r"\.(txt|md|json|pdf|doc|docx|jpg|jpeg|png|gif|bmp|svg|webp|"
    r"mp3|wav|ogg|m4a|aac|flac|mp4|avi|mov|wmv|flv|webm|mkv)$",
    re.IGNORECASE,
)

MAX_TEXT_CONTENT_CHARS = 50_000
MAX_RICH_CONTENT_CHARS = 500_000

_MIME_BY_EXTENSION = {
    "txt": "text/plain",
    "md": "text/markdown",
    "json": "application/json",
    "pdf": "application/pdf",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "bmp": "image/bmp",
    "svg": "image/svg+xml",
    "webp": "image/webp",
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
    "ogg": "audio/ogg",
    "m4a": "audio/m4a",
    "aac": "audio/aac",
    "flac": "audio/flac",
    "mp4": "video/mp4",
    "avi": "video/avi",
    "mov": "video/quicktime",
    "wmv": "video/x-ms-wmv",
    "flv": "video/x-flv",
    "webm": "video/webm",
    "mkv": "video/x-matroska",
}

_PLACEHOLDER_PURPOSE = {
    FileType.PDF: "content analysis, summarization, and question answering",
    FileType.DOCUMENT: "content analysis, summarization, and question answering",
    FileType.IMAGE: "visual content analysis, text extraction (OCR), and image-based question answering",
    FileType.AUDIO: "speech recognition, transcription, and audio-based question answering",
    FileType.VIDEO: "video content analysis and video-based question answering",
}


class DocumentValidationError(ValueError):
    """Raised when an upload is rejected (type, size, or empty content)."""


def determine_file_type(mime_type: str | None, filename: str) -> FileType:
    lower = filename.lower()
    mime = mime_type or ""
    if mime.startswith("image/") or re.search(r"\.(jpg|jpeg|png|gif|bmp|svg|webp)$", lower):
        return FileType.IMAGE
    if mime.startswith("audio/") or re.search(r"\.(mp3|wav|ogg|m4a|aac|flac)$", lower):
        return FileType.AUDIO
    if mime.startswith("video/") or re.search(r"\.(mp4|avi|mov|wmv|flv|webm|mkv)$", lower):
        return FileType.VIDEO
    if mime == "application/pdf" or lower.endswith(".pdf"):
        return FileType.PDF
    if re.search(r"\.(doc|docx)$", lower):
        return FileType.DOCUMENT
    return FileType.TEXT


def mime_type_from_extension(filename: str) -> str:
    extension = filename.lower().rsplit(".", 1)[-1] if "." in filename else ""
    return _MIME_BY_EXTENSION.get(extension, "application/octet-stream")


def extract_content(filename: str, data: bytes, file_type: FileType) -> str:
    """Return the searchable text body for an upload.

    Plain text, Markdown and JSON are decoded; binary formats get a
    descriptive placeholder and are analysed by the model from the original.
    """
    if file_type is FileType.TEXT:
        text = data.decode("utf-8", errors="replace")
        if filename.lower().endswith(".json"):
            try:
                parsed = json.loads(text)
            except json.JSONDecodeError as exc:
                raise DocumentValidationError(f"Could not process file {filename}: {exc}") from exc
            text = parsed if isinstance(parsed, str) else json.dumps(parsed, indent=2)
        return text

    label = "PDF Document" if file_type is FileType.PDF else file_type.value.capitalize()
    return (
        f"[{label}: {filename}]\n\n"
        f"This file has been uploaded and can be processed by the model for "
        f"{_PLACEHOLDER_PURPOSE[file_type]}.\n\nFile ready for AI processing."
    )


class DocumentStore:
    """Keyed in-memory store of uploaded documents.

    Args:
        uploads_dir: Directory for the original files. Created on first save.
    """

    def __init__(self, uploads_dir: str | Path) -> None:
        self._uploads_dir = Path(uploads_dir)
        self._docs: dict[str, UploadedDocument] = {}
        self._order: dict[str, int] = {}
        self._sequence = itertools.count()
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def save_document(
        self,
        filename: str,
        data: bytes,
        mime_type: str | None = None,
    ) -> UploadedDocument:
        """Validate, extract and store an upload; keep the original on disk."""
        safe_name = Path(filename or "").name
        if not safe_name or not ALLOWED_EXTENSIONS.search(safe_name):
            raise DocumentValidationError(
                "Invalid file type. Supported formats: text files (.txt, .md, .json), "
                "documents (.pdf, .doc, .docx), images, audio, and video files."
            )

        file_type = determine_file_type(mime_type, safe_name)
        content = extract_content(safe_name, data, file_type).strip()

        max_chars = (
            MAX_RICH_CONTENT_CHARS
            if file_type in (FileType.PDF, FileType.DOCUMENT)
            else MAX_TEXT_CONTENT_CHARS
        )
        if len(content) > max_chars:
            raise DocumentValidationError(
                f"File content too large. Please upload files with less than {max_chars // 1000}KB of text content."
            )
        if not content:
            raise DocumentValidationError("File appears to be empty or unreadable.")

        doc_id = uuid.uuid4().hex
        original_path = self._uploads_dir / f"{doc_id}_original_{safe_name}"
        await asyncio.to_thread(self._write_original, original_path, data)

        document = UploadedDocument(
            id=doc_id,
            filename=safe_name,
            content=content,
            size=len(data),
            mime_type=mime_type or mime_type_from_extension(safe_name),
            file_type=file_type,
            uploaded_at=datetime.now(UTC),
            original_path=str(original_path),
        )
        with self._lock:
            self._docs[doc_id] = document
            self._order[doc_id] = next(self._sequence)

        log.info(
            "documents.saved",
            document_id=doc_id,
            filename=safe_name,
            file_type=file_type.value,
            content_chars=len(content),
        )
        return document

    def delete_document(self, doc_id: str) -> bool:
        """Remove a document and its original file. Returns False if unknown."""
        with self._lock:
            document = self._docs.pop(doc_id, None)
            self._order.pop(doc_id, None)
        if document is None:
            return False

        if document.original_path:
            try:
                Path(document.original_path).unlink(missing_ok=True)
            except OSError as exc:
                log.warning("documents.delete_file_failed", document_id=doc_id, error=str(exc))
        log.info("documents.deleted", document_id=doc_id)
        return True

    def _write_original(self, path: Path, data: bytes) -> None:
        self._uploads_dir.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_document(self, doc_id: str) -> UploadedDocument | None:
        with self._lock:
            return self._docs.get(doc_id)

    def get_all_documents(self) -> list[UploadedDocument]:
        """All documents, newest upload first."""
        with self._lock:
            snapshot = [(self._order[d.id], d) for d in self._docs.values()]
        return [doc for _, doc in sorted(snapshot, key=lambda item: item[0], reverse=True)]

    def search_documents(self, query: str) -> list[SearchHit]:
        """Lexically ranked documents with a positive score, best first."""
        with self._lock:
            snapshot = list(self._docs.values())
        if not snapshot:
            return []
        hits = rank_documents(query, snapshot)
        log.debug(
            "documents.searched",
            document_count=len(snapshot),
            matches=len(hits),
            top_score=hits[0].relevance_score if hits else 0,
        )
        return hits

    def get_file_for_ai(self, doc_id: str) -> FileAttachment | None:
        """Path and media type of the stored original, if it still exists."""
        document = self.get_document(doc_id)
        if document is None or not document.original_path:
            return None
        if not Path(document.original_path).exists():
            return None
        return FileAttachment(
            path=document.original_path,
            mime_type=document.mime_type or mime_type_from_extension(document.filename),
        )

    def __len__(self) -> int:
        with self._lock:
            return len(self._docs)
