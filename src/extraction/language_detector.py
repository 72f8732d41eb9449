# src/extraction/language_detector.py — v3
"""Document-level language detection.

Stop-word and diacritic heuristic over the first few thousand characters.
Good enough to decide whether a submission needs translation; the
pre-process stage accepts any BaseLanguageDetector for something better.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass

_SAMPLE_CHARS = 3000

LANGUAGE_NAMES: dict[str, str] = {
    "en": "English",
    "fr": "French",
    "de": "German",
    "es": "Spanish",
}

_MARKERS: dict[str, list[str]] = {
    "en": ["the", "and", "is", "for", "that", "with", "this", "are", "from", "of"],
    "fr": ["les", "des", "une", "dans", "pour", "avec", "est", "sont", "cette",
           "par", "qui", "sur", "pas", "aux", "entre"],
    "de": ["der", "die", "und", "ist", "ein", "den", "das", "nicht", "sich", "mit"],
    "es": ["el", "los", "las", "una", "para", "con", "por", "que", "del", "como"],
}


@dataclass
class LanguageResult:
    """Result of language detection."""

    code: str
    name: str
    confidence: float


class BaseLanguageDetector(ABC):
    """Narrow interface: text in, primary language out."""

    @abstractmethod
    def detect(self, text: str) -> LanguageResult:
        """Detect the primary language of a text."""


class HeuristicLanguageDetector(BaseLanguageDetector):
    """Marker-word scoring across English, French, German and Spanish."""

    def __init__(self, default: str = "en") -> None:
        self._default = default

    def detect(self, text: str) -> LanguageResult:
        sample = text[:_SAMPLE_CHARS].lower()
        scores = {
            code: sum(1 for m in markers if re.search(rf"\b{m}\b", sample))
            for code, markers in _MARKERS.items()
        }

        # Diacritics and elisions are strong signals
        scores["fr"] += 2 * sum(1 for c in sample if c in "àâéèêëîïôœùûç")
        scores["fr"] += 3 * len(re.findall(r"\b[ldns]'|qu'|j'", sample))
        scores["de"] += 2 * sum(1 for c in sample if c in "äöüß")
        scores["es"] += 2 * sum(1 for c in sample if c in "ñ¿¡")

        total = sum(scores.values())
        if total == 0:
            return LanguageResult(self._default, LANGUAGE_NAMES[self._default], 0.0)

        code = max(scores, key=scores.get)  # type: ignore[arg-type]
        return LanguageResult(
            code=code,
            name=LANGUAGE_NAMES[code],
            confidence=round(scores[code] / total, 2),
        )
