"""Tests for lexical document scoring and the built-in knowledge base."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from promptlab.documents.knowledge_base import (
    FALLBACK_SCORE,
    KNOWLEDGE_BASE,
    fallback_passages,
    score_knowledge_base,
    score_passage,
)
from promptlab.documents.models import FileType, UploadedDocument
from promptlab.documents.scoring import query_words, rank_documents, score_document, wildcard_match


def _doc(filename: str, content: str, doc_id: str = "d1") -> UploadedDocument:
    return UploadedDocument(
        id=doc_id,
        filename=filename,
        content=content,
        size=len(content),
        mime_type="text/plain",
        file_type=FileType.PDF if filename.endswith(".pdf") else FileType.TEXT,
        uploaded_at=datetime.now(UTC),
    )


class TestWildcardMatch:
    def test_characters_in_order(self):
        assert wildcard_match("rag", "retrieval augmented generation")

    def test_order_matters(self):
        assert not wildcard_match("rag", "gar")

    def test_does_not_cross_lines(self):
        assert not wildcard_match("ab", "a\nb")


class TestScoreDocument:
    def test_query_words_drop_single_characters(self):
        assert query_words("A big Cat") == ["big", "cat"]

    def test_exact_scoring_table(self):
        # phrase +10, one occurrence +3, in-order characters in content +2
        assert score_document("cat", _doc("notes.txt", "the cat sat")) == 15

    def test_unrelated_document_scores_zero(self):
        assert score_document("quantum", _doc("cats.txt", "The cat sat on the mat.")) == 0

    def test_filename_match_adds_points(self):
        plain = score_document("budget", _doc("notes.txt", "numbers"))
        named = score_document("budget", _doc("budget.txt", "numbers"))
        assert named > plain

    def test_pdf_filename_weighs_more(self):
        text = score_document("budget", _doc("budget.txt", "[placeholder]"))
        pdf = score_document("budget", _doc("budget.pdf", "[placeholder]"))
        assert pdf > text

    @pytest.mark.parametrize(
        "filename,content,query",
        [
            ("notes.txt", "the cat sat", "cat"),
            ("notes.txt", "numbers only", "cat mat"),
            ("guide.pdf", "prompt engineering basics", "prompt tuning"),
            ("report.pdf", "", "budget"),
        ],
    )
    def test_extra_occurrence_never_lowers_score(self, filename, content, query):
        base = _doc(filename, content)
        word = query_words(query)[0]
        more = _doc(filename, f"{content} {word}")

        assert score_document(query, more) >= score_document(query, base)
        assert score_document(query, more) > 0


class TestRankDocuments:
    def test_sorted_descending_without_zero_scores(self):
        docs = [
            _doc("a.txt", "cat", "a"),
            _doc("b.txt", "cat cat cat", "b"),
            _doc("c.txt", "unrelated", "c"),
        ]
        hits = rank_documents("cat", docs)

        assert [h.document.id for h in hits] == ["b", "a"]
        assert hits[0].relevance_score > hits[1].relevance_score

    def test_ties_keep_input_order(self):
        docs = [_doc("x.txt", "cat", "first"), _doc("y.txt", "cat", "second")]
        assert [h.document.id for h in rank_documents("cat", docs)] == ["first", "second"]


class TestKnowledgeBase:
    def test_topic_matches_score_one_each(self):
        ml = next(p for p in KNOWLEDGE_BASE if p.source == "Machine Learning Textbook")
        assert score_passage("tell me about machine learning", ml) == 1.0

    def test_partial_prefix_bonus(self):
        passage = KNOWLEDGE_BASE[0]
        query = passage.content[:10]
        assert score_passage(query, passage) >= 0.5

    def test_score_knowledge_base_keeps_base_order(self):
        sources = [d.source for d in score_knowledge_base("What is machine learning?")]
        assert sources == ["AI Fundamentals Encyclopedia", "Machine Learning Textbook"]

    @pytest.mark.parametrize("limit, expected", [(5, 3), (2, 2), (0, 0)])
    def test_fallback_passages(self, limit, expected):
        passages = fallback_passages(limit)
        assert len(passages) == expected
        assert all(p.relevance_score == FALLBACK_SCORE for p in passages)
