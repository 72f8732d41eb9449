# src/core/errors.py — v1
"""Input and processing errors surfaced to callers of the pipeline.

Stage failures are never raised; they are recorded as failed outcomes.
These errors cover what happens before a run starts or at the admin
boundary, and the HTTP layer maps them to status codes.
"""

from __future__ import annotations


class DocumentInputError(ValueError):
    """Caller supplied an unusable document (maps to HTTP 400)."""


class EmptyDocumentError(DocumentInputError):
    """Upload or source contains no bytes."""


class UnsupportedDocumentError(DocumentInputError):
    """Upload is not an accepted document type or exceeds the size limit."""


class InvalidCorrectionError(ValueError):
    """Admin correction with a blank field or blank correction text."""


class InvalidReviewDecisionError(ValueError):
    """Rejection submitted without a reason."""


class DocumentBufferingError(Exception):
    """Source stream could not be read into memory (maps to HTTP 500)."""


class InvalidQuestionError(ValueError):
    """Q&A request with a blank question."""


class DocumentNotFoundError(LookupError):
    """No report exists for the requested document (maps to HTTP 404)."""
