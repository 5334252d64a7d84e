"""Document management endpoints.

POST   /documents/upload       - Upload a document (multipart form field ``file``)
GET    /documents              - List documents, newest first
GET    /documents/{id}         - Get one document with its content
GET    /documents/{id}/ai-info - Whether the original can be sent to the model
DELETE /documents/{id}         - Delete a document and its stored original
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from pydantic import BaseModel

from promptlab.api.dependencies import get_app_settings, get_document_store
from promptlab.config import Settings
from promptlab.documents.store import ALLOWED_EXTENSIONS, DocumentStore, DocumentValidationError

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/documents", tags=["documents"])


class DocumentListResponse(BaseModel):
    documents: list[dict[str, Any]]
    count: int


class DocumentAIInfo(BaseModel):
    id: str
    filename: str
    file_type: str
    mime_type: str
    can_process_directly: bool


def _not_found(document_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Document with id {document_id} not found",
    )


@router.post("/upload", status_code=status.HTTP_201_CREATED, summary="Upload a document")
async def upload_document(
    file: UploadFile | None = File(None),
    store: DocumentStore = Depends(get_document_store),
    settings: Settings = Depends(get_app_settings),
) -> dict[str, Any]:
    """Store an upload; text formats become searchable, binaries get a placeholder body."""
    if file is None or not file.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file uploaded")

    if not ALLOWED_EXTENSIONS.search(file.filename):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=(
                "Invalid file type. Supported formats: text files (.txt, .md, .json), documents "
                "(.pdf, .doc, .docx), images, audio, and video files."
            ),
        )

    data = await file.read()
    if len(data) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File too large. Max size: {settings.max_upload_bytes // 1_000_000} MB",
        )

    try:
        document = await store.save_document(file.filename, data, file.content_type)
    except DocumentValidationError as exc:
        log.info("documents.upload_rejected", filename=file.filename, reason=str(exc))
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    return {
        "success": True,
        "document": document.to_dict(),
        "message": "File uploaded successfully",
    }


@router.get("", response_model=DocumentListResponse)
async def list_documents(store: DocumentStore = Depends(get_document_store)) -> DocumentListResponse:
    documents = store.get_all_documents()
    return DocumentListResponse(
        documents=[d.to_dict(include_content=False) for d in documents],
        count=len(documents),
    )


@router.get("/{document_id}")
async def get_document(
    document_id: str, store: DocumentStore = Depends(get_document_store)
) -> dict[str, Any]:
    document = store.get_document(document_id)
    if document is None:
        raise _not_found(document_id)
    return document.to_dict()


@router.get("/{document_id}/ai-info", response_model=DocumentAIInfo)
async def get_document_ai_info(
    document_id: str, store: DocumentStore = Depends(get_document_store)
) -> DocumentAIInfo:
    document = store.get_document(document_id)
    if document is None:
        raise _not_found(document_id)
    return DocumentAIInfo(
        id=document.id,
        filename=document.filename,
        file_type=document.file_type.value,
        mime_type=document.mime_type,
        can_process_directly=store.get_file_for_ai(document_id) is not None,
    )


@router.delete("/{document_id}")
async def delete_document(
    document_id: str, store: DocumentStore = Depends(get_document_store)
) -> dict[str, Any]:
    if not store.delete_document(document_id):
        raise _not_found(document_id)
    return {"success": True, "message": "Document deleted successfully"}
