# src/api/routers/documents.py — v1
"""Document endpoints: upload/process, queries, Q&A, corrections, review.

Routes (prefix /api/documents):
    POST /process, GET /pipeline-steps, GET "", GET /{id},
    GET /{id}/audit, GET /{id}/corrections, GET|POST /{id}/review,
    POST /{id}/ask, POST /{id}/correct
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, UploadFile

from amrsp.api.dependencies import get_service
from amrsp.api.facade import AmrspService
from amrsp.api.models import (
    AskRequest,
    CorrectionRequest,
    CorrectionResponse,
    DocumentSummary,
    ReviewRequest,
)
from amrsp.config.stages import StageDescriptor
from amrsp.core.errors import (
    DocumentBufferingError,
    DocumentInputError,
    DocumentNotFoundError,
    EmptyDocumentError,
    UnsupportedDocumentError,
)
from amrsp.core.models import AuditEntry, FlaggedItem, PipelineReport, QnAResponse, ReviewDecision

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["documents"])

PDF_CONTENT_TYPE = "application/pdf"


def _is_pdf(upload: UploadFile) -> bool:
    return upload.content_type == PDF_CONTENT_TYPE or (
        (upload.filename or "").lower().endswith(".pdf")
    )


@router.post("/process", response_model=PipelineReport)
async def process_document(
    file: UploadFile | None = File(default=None),
    service: AmrspService = Depends(get_service),
) -> PipelineReport:
    """Run the full pipeline on an uploaded PDF.

    Returns 200 with the report even when stages failed.
    """
    if file is None or not file.filename:
        raise DocumentInputError("No file uploaded")
    if not _is_pdf(file):
        raise UnsupportedDocumentError("Only PDF files are accepted")

    try:
        data = await file.read()
    except Exception as exc:
        raise DocumentBufferingError(f"Failed to read upload: {exc}") from exc

    if not data:
        raise EmptyDocumentError("Uploaded file is empty")
    if len(data) > service.settings.upload_max_size_bytes:
        raise UnsupportedDocumentError(
            f"File exceeds the {service.settings.upload_max_size_mb} MB upload limit"
        )

    logger.info("Upload received: '%s' (%d bytes)", file.filename, len(data))
    return await service.process(file.filename, data)


@router.get("/pipeline-steps", response_model=list[StageDescriptor])
async def pipeline_steps() -> list[StageDescriptor]:
    return AmrspService.pipeline_steps()


@router.get("", response_model=list[DocumentSummary])
async def list_documents(
    service: AmrspService = Depends(get_service),
) -> list[DocumentSummary]:
    return service.list_summaries()


@router.get("/{document_id}", response_model=PipelineReport)
async def get_document(
    document_id: str, service: AmrspService = Depends(get_service),
) -> PipelineReport:
    return service.require_report(document_id)


@router.get("/{document_id}/audit", response_model=list[AuditEntry])
async def get_document_audit(
    document_id: str, service: AmrspService = Depends(get_service),
) -> list[AuditEntry]:
    return service.get_audit_log(document_id)


@router.get("/{document_id}/corrections", response_model=list[FlaggedItem])
async def get_corrections(
    document_id: str, service: AmrspService = Depends(get_service),
) -> list[FlaggedItem]:
    return service.get_corrections(document_id)


@router.get("/{document_id}/review", response_model=ReviewDecision)
async def get_review(
    document_id: str, service: AmrspService = Depends(get_service),
) -> ReviewDecision:
    decision = service.get_review_decision(document_id)
    if decision is None:
        raise DocumentNotFoundError(f"No review decision for '{document_id}'")
    return decision


@router.post("/{document_id}/ask", response_model=QnAResponse)
async def ask_question(
    document_id: str,
    body: AskRequest,
    service: AmrspService = Depends(get_service),
) -> QnAResponse:
    return await service.ask(document_id, body.question, body.session_id)


@router.post("/{document_id}/correct", response_model=CorrectionResponse)
async def apply_correction(
    document_id: str,
    body: CorrectionRequest,
    service: AmrspService = Depends(get_service),
) -> CorrectionResponse:
    item = service.apply_correction(document_id, body.field, body.correction)
    return CorrectionResponse(
        document_id=document_id,
        field=item.field,
        correction=item.human_correction or "",
    )


@router.post("/{document_id}/review", response_model=ReviewDecision)
async def submit_review(
    document_id: str,
    body: ReviewRequest,
    service: AmrspService = Depends(get_service),
) -> ReviewDecision:
    return service.record_decision(
        document_id, body.approved, body.rejection_reason, body.reviewed_by,
    )
