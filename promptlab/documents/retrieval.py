"""Retrieval over uploaded documents and the built-in knowledge base.

Uploaded hits get a +1 boost so that, on equal lexical evidence, a user's own
files outrank the generic passages.
"""

from __future__ import annotations

import structlog

from promptlab.documents.knowledge_base import fallback_passages, score_knowledge_base
from promptlab.documents.models import FileType, RetrievedDocument
from promptlab.documents.store import DocumentStore
from promptlab.llm.types import FileAttachment

log = structlog.get_logger(__name__)

UPLOADED_BOOST = 1
UPLOADED_SOURCE_PREFIX = "📎 "
MAX_DIRECT_FILES = 3

_GENERIC_FILENAME_TERMS = ("definition", "guide", "manual", "tutorial", "reference", "doc", "info")
_HELP_QUERY_WORDS = frozenset({"what", "how", "define", "explain", "guide", "help"})


def retrieve(
    query: str,
    store: DocumentStore | None,
    *,
    max_documents: int = 5,
    use_uploaded: bool = True,
) -> list[RetrievedDocument]:
    """Return up to ``max_documents`` passages sorted by descending relevance.

    Falls back to the first ``min(3, max_documents)`` knowledge-base passages
    at score 0.1 when nothing scores.
    """
    candidates: list[RetrievedDocument] = []

    if use_uploaded and store is not None:
        try:
            hits = store.search_documents(query)
        except Exception as exc:
            log.warning("retrieval.uploaded_search_failed", error=str(exc))
            hits = []
        candidates.extend(
            RetrievedDocument(
                content=hit.document.content,
                source=f"{UPLOADED_SOURCE_PREFIX}{hit.document.filename}",
                relevance_score=hit.relevance_score + UPLOADED_BOOST,
            )
            for hit in hits
        )

    uploaded_count = len(candidates)
    candidates.extend(score_knowledge_base(query))

    ranked = sorted(candidates, key=lambda doc: doc.relevance_score, reverse=True)[: max(0, max_documents)]
    log.debug(
        "retrieval.ranked",
        uploaded_hits=uploaded_count,
        knowledge_base_hits=len(candidates) - uploaded_count,
        returned=len(ranked),
    )
    if not ranked:
        return fallback_passages(max_documents)
    return ranked


def is_file_relevant_to_query(filename: str, query: str) -> bool:
    filename_lower = filename.lower()
    words = [w for w in query.lower().split() if len(w) > 2]
    if any(word in filename_lower for word in words):
        return True
    asks_for_help = any(word in _HELP_QUERY_WORDS for word in words)
    return asks_for_help and any(term in filename_lower for term in _GENERIC_FILENAME_TERMS)


def select_files_for_query(
    store: DocumentStore | None, query: str
) -> tuple[list[FileAttachment], list[str]]:
    """Pick up to three stored originals to send to the model alongside the prompt.

    Non-text uploads always qualify; text uploads only when the filename looks
    relevant to the query. Returns the attachments and their filenames.
    """
    if store is None:
        return [], []

    candidates = [
        doc
        for doc in store.get_all_documents()
        if doc.file_type is not FileType.TEXT or is_file_relevant_to_query(doc.filename, query)
    ][:MAX_DIRECT_FILES]

    attachments: list[FileAttachment] = []
    filenames: list[str] = []
    for doc in candidates:
        attachment = store.get_file_for_ai(doc.id)
        if attachment is not None:
            attachments.append(attachment)
            filenames.append(doc.filename)
    return attachments, filenames
