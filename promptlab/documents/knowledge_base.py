"""Built-in knowledge base used by retrieval when uploads don't cover a query."""

from __future__ import annotations

from dataclasses import dataclass

from promptlab.documents.models import RetrievedDocument

PARTIAL_MATCH_PREFIX_CHARS = 10
PARTIAL_MATCH_POINTS = 0.5
FALLBACK_SCORE = 0.1


@dataclass(frozen=True)
class KnowledgePassage:
    content: str
    source: str
    topics: tuple[str, ...]


KNOWLEDGE_BASE: tuple[KnowledgePassage, ...] = (
    KnowledgePassage(
        content=(
            "Artificial Intelligence (AI) is the simulation of human intelligence in machines "
            "that are programmed to think and learn like humans. AI systems can perform tasks "
            "that typically require human intelligence, such as visual perception, speech "
            "recognition, decision-making, and language translation."
        ),
        source="AI Fundamentals Encyclopedia",
        topics=("artificial intelligence", "AI", "machine learning", "technology", "automation"),
    ),
    KnowledgePassage(
        content=(
            "Climate change refers to long-term shifts and alterations in global or regional "
            "climate patterns. Since the mid-20th century, climate change has been largely "
            "attributed to increased levels of atmospheric carbon dioxide produced by the use "
            "of fossil fuels."
        ),
        source="Environmental Science Handbook",
        topics=("climate change", "environment", "global warming", "carbon dioxide", "fossil fuels"),
    ),
    KnowledgePassage(
        content=(
            "Renewable energy comes from natural sources that are constantly replenished, such "
            "as sunlight, wind, rain, tides, waves, and geothermal heat. These energy sources "
            "are sustainable and have a much lower environmental impact compared to fossil fuels."
        ),
        source="Renewable Energy Guide",
        topics=("renewable energy", "solar", "wind", "environment", "sustainability", "green energy"),
    ),
    KnowledgePassage(
        content=(
            "Machine learning is a subset of artificial intelligence that enables computers to "
            "learn and improve from experience without being explicitly programmed. It focuses "
            "on developing algorithms that can access data and use it to learn for themselves."
        ),
        source="Machine Learning Textbook",
        topics=("machine learning", "AI", "algorithms", "data science", "programming"),
    ),
    KnowledgePassage(
        content=(
            "Quantum computing uses quantum-mechanical phenomena, such as superposition and "
            "entanglement, to perform operations on data. Quantum computers have the potential "
            "to solve certain computational problems much faster than classical computers."
        ),
        source="Quantum Physics Journal",
        topics=("quantum computing", "quantum mechanics", "superposition", "technology", "computing"),
    ),
    KnowledgePassage(
        content=(
            "Sustainable transportation includes walking, cycling, public transit, electric "
            "vehicles, and other low-carbon modes of transport. These alternatives help reduce "
            "greenhouse gas emissions and air pollution while promoting healthier communities."
        ),
        source="Urban Planning Manual",
        topics=("transportation", "sustainability", "electric vehicles", "public transit", "environment"),
    ),
    KnowledgePassage(
        content=(
            "Data science combines domain expertise, programming skills, and knowledge of "
            "mathematics and statistics to extract meaningful insights from data. It uses "
            "techniques from statistics, machine learning, and computer science."
        ),
        source="Data Science Fundamentals",
        topics=("data science", "statistics", "programming", "analysis", "big data"),
    ),
)


def score_passage(query: str, passage: KnowledgePassage) -> float:
    """One point per topic contained in the query, plus a partial-match bonus."""
    query_lower = query.lower()
    score = float(sum(1 for topic in passage.topics if topic.lower() in query_lower))
    if query_lower[:PARTIAL_MATCH_PREFIX_CHARS] in passage.content.lower():
        score += PARTIAL_MATCH_POINTS
    return score


def score_knowledge_base(query: str) -> list[RetrievedDocument]:
    """Passages with a positive score, in knowledge-base order (unsorted)."""
    return [
        RetrievedDocument(content=p.content, source=p.source, relevance_score=score)
        for p in KNOWLEDGE_BASE
        if (score := score_passage(query, p)) > 0
    ]


def fallback_passages(limit: int) -> list[RetrievedDocument]:
    return [
        RetrievedDocument(content=p.content, source=p.source, relevance_score=FALLBACK_SCORE)
        for p in KNOWLEDGE_BASE[: max(0, min(3, limit))]
    ]
