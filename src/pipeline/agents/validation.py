# src/pipeline/agents/validation.py — v1
"""Validation stage: submission business rules.

Rules: page count within [min, max]; required sections present.
Title, Abstract, Keywords and Authors are checked on the extracted
metadata, any other section by its heading appearing in the text.
"""

from __future__ import annotations

import logging

from amrsp.core.models import DocumentMetadata, StepOutcome, ValidationResult
from amrsp.pipeline.plugin_kit.base_agent import BaseValidationAgent, Stopwatch

logger = logging.getLogger(__name__)


def _has_section(section: str, metadata: DocumentMetadata, text: str) -> bool:
    key = section.lower()
    if key == "title":
        return bool(metadata.title.strip())
    if key == "abstract":
        return bool(metadata.abstract.strip())
    if key == "keywords":
        return bool(metadata.keywords)
    if key == "authors":
        return bool(metadata.authors)
    return key in text.lower()


class ValidationAgent(BaseValidationAgent):
    def __init__(
        self,
        min_pages: int = 8,
        max_pages: int = 25,
        required_sections: list[str] | None = None,
    ) -> None:
        self._min_pages = min_pages
        self._max_pages = max_pages
        self._required_sections = required_sections or [
            "Title", "Abstract", "Keywords", "Authors", "References",
        ]

    async def validate(
        self, metadata: DocumentMetadata, text: str,
    ) -> StepOutcome[ValidationResult]:
        """Check the rules; fails with the full report when any rule is broken."""
        watch = Stopwatch()
        issues: list[str] = []
        missing: list[str] = []

        page_count_ok = self._min_pages <= metadata.page_count <= self._max_pages
        if not page_count_ok:
            issues.append(
                f"Page count {metadata.page_count} is outside the allowed range "
                f"({self._min_pages}-{self._max_pages})."
            )

        for section in self._required_sections:
            if not _has_section(section, metadata, text):
                missing.append(section)
                issues.append(f"{section} section is missing.")

        result = ValidationResult(
            is_valid=not issues,
            page_count=metadata.page_count,
            is_page_count_compliant=page_count_ok,
            missing_sections=missing,
            validation_issues=issues,
        )
        logger.info(
            "Validation '%s': valid=%s, issues=%d, missing=%s",
            metadata.title, result.is_valid, len(issues), missing,
        )
        if issues:
            return StepOutcome.fail(
                f"{len(issues)} validation issue(s)", watch.elapsed_ms, payload=result,
            )
        return StepOutcome.ok(result, watch.elapsed_ms)
