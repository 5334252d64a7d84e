"""Demonstration inputs offered by the presets endpoint."""

from __future__ import annotations

PRESETS: dict[str, str] = {
    "summarization": (
        "Climate tech startups are developing technologies to reduce greenhouse gas emissions. "
        "They range from battery innovations to carbon capture systems. Investment has "
        "increased, but scaling remains a challenge."
    ),
    "codeExample": (
        "public int sumPositive(int[] arr) { int sum = 0; for (int v : arr) "
        "{ if (v > 0) sum += v; } return sum; }"
    ),
    "emailExample": (
        "Hi - I'm Alex Tran. Please contact me at alex.tran@example.com or call "
        "+84 912 345 678 to discuss the project. Regards, Alex."
    ),
    "sentiment": "I love this product!",
    "arithmetic": "What is 7 * 6?",
}
