"""Label normalisation shared by the zero-shot and few-shot executors."""

from __future__ import annotations

import re
from collections.abc import Sequence

_LEADING_BULLET = re.compile(r"^[*\-•]\s*")
_LEADING_BULLET_PER_LINE = re.compile(r"^[*\-•]\s*", re.MULTILINE)
_BULLET_CHARS = re.compile(r"[*\-•]")
_QUOTES = re.compile(r"[`\"']")
_NON_WORD = re.compile(r"[^\w\s]|_")
_SENTIMENT = re.compile(r"^(positive|neutral|negative)$", re.IGNORECASE)


def strip_markup(text: str, *, all_bullets: bool) -> str:
    """Remove bullet markers and quotes.

    With ``all_bullets`` every bullet character is removed (zero-shot);
    otherwise only a leading bullet on each line (few-shot).
    """
    if all_bullets:
        cleaned = _BULLET_CHARS.sub("", _LEADING_BULLET.sub("", text))
    else:
        cleaned = _LEADING_BULLET_PER_LINE.sub("", text)
    return _QUOTES.sub("", cleaned).strip()


def clean_labels(labels: Sequence[str] | None) -> list[str]:
    return [label.strip() for label in labels or () if label and label.strip()]


def match_allowed_label(text: str, allowed_labels: Sequence[str]) -> str | None:
    """Return the canonical allowed label found in ``text`` on a word boundary."""
    if not allowed_labels:
        return None
    alternatives = "|".join(re.escape(label) for label in allowed_labels)
    match = re.search(rf"\b({alternatives})\b", text, re.IGNORECASE)
    if not match:
        return None
    found = match.group(1).lower()
    return next((label for label in allowed_labels if label.lower() == found), match.group(1))


def last_line_words(text: str) -> list[str]:
    """Words of the last non-empty line, punctuation removed."""
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    candidate = lines[-1] if lines else text
    return _NON_WORD.sub("", candidate).split()


def pick_label_word(words: Sequence[str]) -> str | None:
    """One word wins outright; among several prefer a sentiment word, else the last."""
    if not words:
        return None
    if len(words) == 1:
        return words[0]
    return next((w for w in words if _SENTIMENT.match(w)), words[-1])


def capitalize_label(label: str) -> str:
    label = label.strip()
    return label[:1].upper() + label[1:].lower()
