"""Lexical relevance scoring for uploaded documents.

No embeddings: the score is a weighted count of literal matches between the
query and a document's content and filename. PDFs are stored with a
placeholder body, so their filename carries more weight.

Scoring table:

    whole query found in content                  +10
    per query word (len > 1):
        occurrence in content                     +3 each
        found in filename                         +5   (+8 for PDFs)
    per query word (len >= 3):
        characters in order within a content line +2
        characters in order within the filename   +3
    per relevance term in content or filename     +1   (+4 for PDFs, filename hit)
    per AI term in a PDF filename                 +5
"""

from __future__ import annotations

from collections.abc import Iterable

from promptlab.documents.models import SearchHit, UploadedDocument

EXACT_PHRASE_BONUS = 10
CONTENT_WORD_POINTS = 3
FILENAME_WORD_POINTS = 5
PDF_FILENAME_WORD_POINTS = 8
CONTENT_WILDCARD_POINTS = 2
FILENAME_WILDCARD_POINTS = 3
RELEVANCE_TERM_POINTS = 1
PDF_RELEVANCE_TERM_POINTS = 4
PDF_AI_TERM_POINTS = 5

RELEVANCE_TERMS = (
    "definition",
    "define",
    "meaning",
    "concept",
    "explanation",
    "what is",
    "prompt",
    "engineering",
    "guide",
)
AI_TERMS = ("prompt", "ai", "engineering", "rag", "llm", "nlp", "machine", "learning")


def query_words(query: str) -> list[str]:
    """Lower-cased query words longer than one character."""
    return [w for w in query.lower().split() if len(w) > 1]


def wildcard_match(word: str, text: str) -> bool:
    """True when the characters of ``word`` appear in order within one line of ``text``.

    Equivalent to searching ``w.*o.*r.*d`` without DOTALL, in linear time.
    Lets acronyms like ``rag`` match "retrieval augmented generation".
    """
    for line in text.split("\n"):
        remaining = iter(line)
        if all(ch in remaining for ch in word):
            return True
    return False


def score_document(query: str, document: UploadedDocument) -> float:
    """Return the lexical relevance of ``document`` for ``query`` (0 = no match)."""
    query_lower = query.lower().strip()
    content = document.content.lower()
    filename = document.filename.lower()
    is_pdf = document.is_pdf
    score = 0

    if query_lower and query_lower in content:
        score += EXACT_PHRASE_BONUS

    for word in query_words(query_lower):
        score += content.count(word) * CONTENT_WORD_POINTS

        if word in filename:
            score += PDF_FILENAME_WORD_POINTS if is_pdf else FILENAME_WORD_POINTS

        if len(word) >= 3:
            if wildcard_match(word, content):
                score += CONTENT_WILDCARD_POINTS
            if wildcard_match(word, filename):
                score += FILENAME_WILDCARD_POINTS

    for term in RELEVANCE_TERMS:
        in_filename = term in filename
        if in_filename or term in content:
            score += PDF_RELEVANCE_TERM_POINTS if is_pdf and in_filename else RELEVANCE_TERM_POINTS

    if is_pdf:
        score += sum(PDF_AI_TERM_POINTS for term in AI_TERMS if term in filename)

    return score


def rank_documents(query: str, documents: Iterable[UploadedDocument]) -> list[SearchHit]:
    """Score documents, drop zero scores and sort descending.

    ``sorted`` is stable, so ties keep the iteration order of ``documents``.
    """
    hits = [
        SearchHit(document=doc, relevance_score=score)
        for doc in documents
        if (score := score_document(query, doc)) > 0
    ]
    return sorted(hits, key=lambda hit: hit.relevance_score, reverse=True)
