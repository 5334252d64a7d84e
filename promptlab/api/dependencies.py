"""Request-scoped access to the components wired in the application lifespan."""

from __future__ import annotations

from fastapi import Request

from promptlab.config import Settings
from promptlab.documents.store import DocumentStore
from promptlab.techniques.dispatcher import TechniqueDispatcher


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_dispatcher(request: Request) -> TechniqueDispatcher:
    return request.app.state.dispatcher


def get_document_store(request: Request) -> DocumentStore:
    return request.app.state.document_store
