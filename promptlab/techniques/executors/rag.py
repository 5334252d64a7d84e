"""Retrieval-augmented executor.

Flow:
  1. Retrieve passages from uploaded documents and the knowledge base
  2. Optionally select up to three stored originals to send with the prompt
  3. One generation call (with files when any were selected)
  4. Split the response into retrieval / reasoning / generation steps
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import StrEnum

import structlog

from promptlab.documents.models import RetrievedDocument
from promptlab.documents.retrieval import retrieve, select_files_for_query
from promptlab.documents.store import DocumentStore
from promptlab.llm.gateway import ModelGateway
from promptlab.llm.types import GenerationOptions
from promptlab.parsing import first_present, last_paragraph, regex_group, whole_text
from promptlab.prompts.templates import build_rag_prompt
from promptlab.techniques.executors.base import TechniqueExecutor, TechniqueOutput, TechniqueResult
from promptlab.techniques.params import TechniqueParams

log = structlog.get_logger(__name__)

TEMPERATURE = 0.1
MAX_TOKENS = 1200
MAX_TOKENS_WITH_FILES = 1500

_REASONING_PATTERNS = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"Based on the retrieved information[^.]*\.",
        r"According to the documents[^.]*\.",
        r"The sources indicate[^.]*\.",
        r"From the context provided[^.]*\.",
        r"DOCUMENT ANALYSIS:?[\s\S]*?(?=REASONING|ANSWER|\Z)",
        r"REASONING:?[\s\S]*?(?=ANSWER|\Z)",
    )
)

FINAL_ANSWER_CHAIN = (
    regex_group(r"(?:Final Answer|Conclusion|Summary):\s*([\s\S]*?)(?:\n\n|\Z)"),
    regex_group(r"(?:In conclusion|To summarize)[\s,]*([\s\S]*?)(?:\n\n|\Z)"),
    last_paragraph,
    whole_text,
)


class RAGStepKind(StrEnum):
    RETRIEVAL = "retrieval"
    REASONING = "reasoning"
    GENERATION = "generation"


@dataclass(frozen=True)
class RAGStep:
    kind: RAGStepKind
    content: str
    sources: list[str] = field(default_factory=list)


@dataclass(kw_only=True)
class RAGOutput(TechniqueOutput):
    steps: list[RAGStep] = field(default_factory=list)
    retrieved_documents: list[RetrievedDocument] = field(default_factory=list)
    processed_files: list[str] = field(default_factory=list)
    reasoning: str = ""


def parse_rag_steps(
    text: str, documents: list[RetrievedDocument], processed_files: list[str]
) -> list[RAGStep]:
    retrieval = f"Retrieved {len(documents)} relevant documents from knowledge base"
    if processed_files:
        retrieval += (
            f" and processed {len(processed_files)} uploaded files: {', '.join(processed_files)}"
        )
    steps = [
        RAGStep(
            RAGStepKind.RETRIEVAL,
            retrieval,
            [doc.source for doc in documents] + list(processed_files),
        )
    ]

    matches = [m.strip() for pattern in _REASONING_PATTERNS for m in pattern.findall(text)]
    reasoning = " ".join(m for m in matches if m)
    if reasoning:
        steps.append(RAGStep(RAGStepKind.REASONING, reasoning))

    steps.append(RAGStep(RAGStepKind.GENERATION, text))
    return steps


def format_rag(steps: list[RAGStep]) -> str:
    titles = {
        RAGStepKind.RETRIEVAL: "Document Retrieval",
        RAGStepKind.REASONING: "Reasoning",
        RAGStepKind.GENERATION: "Generated Response",
    }
    return "\n\n".join(f"{titles[s.kind]}:\n{s.content}" for s in steps)


class RAGExecutor(TechniqueExecutor):
    technique = "rag"

    def __init__(self, gateway: ModelGateway, store: DocumentStore | None) -> None:
        super().__init__(gateway)
        self._store = store

    async def _execute(self, input_text: str, params: TechniqueParams) -> TechniqueResult:
        documents = retrieve(
            input_text,
            self._store,
            max_documents=params.max_documents,
            use_uploaded=params.use_uploaded_docs,
        )

        attachments, filenames = [], []
        if params.use_files_directly:
            attachments, filenames = select_files_for_query(self._store, input_text)

        prompt = build_rag_prompt(
            input_text,
            documents,
            reasoning_style=params.reasoning_style,
            include_retrieval_steps=True,
            attached_files=filenames,
        )
        log.debug(
            "rag.retrieved",
            documents=len(documents),
            files=len(attachments),
            method=params.retrieval_method,
        )

        temperature = params.temperature_or(TEMPERATURE)
        if attachments:
            out = await self._gateway.generate_with_files(
                prompt,
                attachments,
                GenerationOptions(
                    temperature=temperature,
                    max_output_tokens=params.max_tokens_or(MAX_TOKENS_WITH_FILES),
                ),
            )
        else:
            out = await self._generate(
                prompt, temperature=temperature, max_tokens=params.max_tokens_or(MAX_TOKENS)
            )

        text = out.text.strip()
        steps = parse_rag_steps(text, documents, filenames)

        return self._result(
            prompt,
            RAGOutput(
                steps=steps,
                retrieved_documents=documents,
                processed_files=filenames,
                reasoning=format_rag(steps),
                final_answer=first_present(text, FINAL_ANSWER_CHAIN) or text,
                raw_text=text,
                raw=out.raw,
                usage=out.usage,
            ),
        )
