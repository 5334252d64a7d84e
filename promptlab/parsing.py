"""Section parsing for free-form model output.

Models are asked to label their output with upper-case headers such as
``REASONING:`` or ``FINAL_ANSWER:``. ``parse_section`` pulls the body of one
header out of the text; a missing header is reported as ``None``, never as an
exception, so callers fall through to their next extraction strategy.

Field extraction is expressed as ordered tuples of ``Extractor`` callables
composed with ``first_present``: the first extractor returning a value wins.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable

Extractor = Callable[[str], "str | None"]

# Headers that terminate a section in the primary pattern
_KNOWN_HEADERS = r"(?:INITIAL_ATTEMPT|REFLECTION_\d+|REVISED_SOLUTION_\d+|FINAL_ANSWER)"

_PARAGRAPH_SPLIT = re.compile(r"\n\s*\n")


def _primary_pattern(header: str) -> re.Pattern[str]:
    return re.compile(
        rf"(?<!\w){re.escape(header)}:[ \t]*\n?([\s\S]*?)(?=\n[ \t]*{_KNOWN_HEADERS}:|\Z)",
        re.IGNORECASE,
    )


def _generic_pattern(header: str) -> re.Pattern[str]:
    # Only the header is case-insensitive; the terminator must be UPPER_CASE.
    return re.compile(
        rf"(?<!\w)(?i:{re.escape(header)}):\s*([\s\S]*?)(?=\n[ \t]*[A-Z][A-Z_ ]*[A-Z_]:|\Z)"
    )


def _match_body(pattern: re.Pattern[str], text: str) -> str | None:
    match = pattern.search(text)
    if match and match.group(1).strip():
        return match.group(1).strip()
    return None


def parse_section(text: str | None, header: str) -> str | None:
    """Return the trimmed body of ``HEADER:`` or ``None`` when absent.

    The primary pattern stops at the next known reflexion/answer header; when
    it yields nothing the generic pattern, which stops at any upper-case
    ``WORD:`` line, is tried instead.
    """
    if not text:
        return None
    return _match_body(_primary_pattern(header), text) or _match_body(
        _generic_pattern(header), text
    )


def parse_generic_section(text: str | None, header: str) -> str | None:
    """Return the body of ``HEADER:`` up to the next upper-case header line."""
    if not text:
        return None
    return _match_body(_generic_pattern(header), text)


# ---------------------------------------------------------------------------
# Extraction chains
# ---------------------------------------------------------------------------


def first_present(text: str, extractors: Iterable[Extractor]) -> str | None:
    """Apply extractors left to right and return the first present result."""
    for extractor in extractors:
        value = extractor(text)
        if value:
            return value
    return None


def section(header: str) -> Extractor:
    """Extractor for ``parse_section(text, header)``."""

    def extract(text: str) -> str | None:
        return parse_section(text, header)

    extract.__name__ = f"section_{header.lower()}"
    return extract


def generic_section(header: str) -> Extractor:
    """Extractor for ``parse_generic_section(text, header)``."""

    def extract(text: str) -> str | None:
        return parse_generic_section(text, header)

    extract.__name__ = f"generic_section_{header.lower()}"
    return extract


def regex_group(pattern: str, flags: int = re.IGNORECASE) -> Extractor:
    """Extractor returning the trimmed first group of ``pattern``."""
    compiled = re.compile(pattern, flags)

    def extract(text: str) -> str | None:
        match = compiled.search(text)
        if match and match.group(1) and match.group(1).strip():
            return match.group(1).strip()
        return None

    extract.__name__ = f"regex_{pattern[:24]}"
    return extract


def paragraphs(text: str) -> list[str]:
    """Split text on blank lines, dropping empty paragraphs."""
    return [p.strip() for p in _PARAGRAPH_SPLIT.split(text) if p.strip()]


def last_paragraph(text: str) -> str | None:
    """Extractor returning the last blank-line-delimited paragraph."""
    parts = paragraphs(text)
    return parts[-1] if parts else None


def whole_text(text: str) -> str | None:
    """Extractor returning the trimmed text itself."""
    return text.strip() or None
