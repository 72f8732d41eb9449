# src/pipeline/agents/content_safety.py — v1
"""Content safety stage: term screening per harm category.

Each category has a list of indicative phrases; severity grows with the
number of distinct phrases found. Any flag makes the document unsafe.
"""

from __future__ import annotations

import logging
import re

from amrsp.core.models import ContentSafetyResult, SafetyCategory, SafetyFlag, StepOutcome
from amrsp.pipeline.plugin_kit.base_agent import BaseContentSafetyAgent, Stopwatch

logger = logging.getLogger(__name__)

HIGH_RISK_SEVERITY = 0.5
_SEVERITY_PER_HIT = 0.25

DEFAULT_TERMS: dict[SafetyCategory, list[str]] = {
    "HateSpeech": ["ethnic cleansing", "subhuman", "inferior race", "racial purity"],
    "Violence": ["bomb making", "kill them all", "mass shooting", "build a weapon"],
    "SexualContent": ["sexually explicit", "pornographic", "explicit sexual"],
    "SelfHarm": ["suicide method", "kill myself", "how to self-harm"],
}


def parse_extra_terms(entries: list[str]) -> dict[SafetyCategory, list[str]]:
    """Parse ``Category:term`` entries. Bare terms count as HateSpeech."""
    extra: dict[SafetyCategory, list[str]] = {}
    categories = {c.lower(): c for c in DEFAULT_TERMS}
    for entry in entries:
        prefix, sep, term = entry.partition(":")
        category = categories.get(prefix.strip().lower()) if sep else None
        if category is None:
            category, term = "HateSpeech", entry
        extra.setdefault(category, []).append(term.strip().lower())
    return extra


class ContentSafetyAgent(BaseContentSafetyAgent):
    def __init__(self, extra_terms: list[str] | None = None) -> None:
        self._terms: dict[SafetyCategory, list[str]] = {
            category: list(terms) for category, terms in DEFAULT_TERMS.items()
        }
        for category, terms in parse_extra_terms(extra_terms or []).items():
            self._terms[category].extend(terms)

    async def check(self, text: str) -> StepOutcome[ContentSafetyResult]:
        watch = Stopwatch()
        haystack = " ".join(text.lower().split())

        flags: list[SafetyFlag] = []
        for category, terms in self._terms.items():
            hits = [t for t in terms if re.search(rf"\b{re.escape(t)}\b", haystack)]
            if hits:
                flags.append(SafetyFlag(
                    category=category,
                    severity=min(1.0, _SEVERITY_PER_HIT * len(hits)),
                    detail=f"Matched: {', '.join(hits)}",
                ))

        if not flags:
            rating = "Safe"
        elif max(f.severity for f in flags) >= HIGH_RISK_SEVERITY:
            rating = "High risk"
        else:
            rating = "Low risk"

        result = ContentSafetyResult(is_safe=not flags, flags=flags, overall_rating=rating)
        logger.info("Content safety: %s (%d flag(s), %d chars)", rating, len(flags), len(text))
        return StepOutcome.ok(result, watch.elapsed_ms)
