"""Uploaded documents, lexical scoring and retrieval."""

from __future__ import annotations

from promptlab.documents.models import FileType, RetrievedDocument, SearchHit, UploadedDocument
from promptlab.documents.retrieval import retrieve, select_files_for_query
from promptlab.documents.store import DocumentStore, DocumentValidationError

__all__ = [
    "DocumentStore",
    "DocumentValidationError",
    "FileType",
    "RetrievedDocument",
    "SearchHit",
    "UploadedDocument",
    "retrieve",
    "select_files_for_query",
]
