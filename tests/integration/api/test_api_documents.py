# tests/integration/api/test_api_documents.py — v2
"""HTTP API integration tests: real agents behind the FastAPI app."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from amrsp.api.app import create_app
from amrsp.api.facade import AmrspService
from amrsp.llm.base_client import BaseLLMClient


@pytest.fixture
def service(settings) -> AmrspService:
    return AmrspService(settings)


@pytest.fixture
def client(service):
    with TestClient(create_app(service=service)) as test_client:
        yield test_client


def _upload(client, data: bytes, name: str = "paper.pdf", content_type: str = "application/pdf"):
    return client.post("/api/documents/process", files={"file": (name, data, content_type)})


@pytest.fixture
def processed(client, paper_pdf) -> dict:
    response = _upload(client, paper_pdf)
    assert response.status_code == 200
    return response.json()


class TestHealth:
    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["version"] == "1.0.0"
        assert "timestamp" in body

    def test_lifespan_audit(self, service, settings):
        with TestClient(create_app(service=service)) as test_client:
            actions = [e["action"] for e in test_client.get("/api/audit").json()]
            assert "Service started" in actions
        assert service.get_audit_log()[0].action == "Service stopped"

    def test_cors_preflight(self, client):
        response = client.options(
            "/api/health",
            headers={
                "Origin": "http://localhost:4200",
                "Access-Control-Request-Method": "GET",
            },
        )
        assert response.headers["access-control-allow-origin"] == "http://localhost:4200"


class TestProcess:
    def test_process_paper(self, processed):
        assert processed["overallSucceeded"] is True
        assert len(processed["steps"]) == 11
        assert processed["steps"][0]["name"] == "Ingestion Agent"
        extraction = processed["steps"][3]["payload"]
        assert extraction["title"] == "Deep Learning for Coral Reef Monitoring"
        assert extraction["pageCount"] == 10

    def test_pipeline_steps(self, client):
        steps = client.get("/api/documents/pipeline-steps").json()
        assert [s["id"] for s in steps] == list(range(1, 12))
        assert steps[-1]["name"] == "Human Feedback Agent"

    def test_non_pdf_rejected(self, client):
        response = _upload(client, b"hello", name="notes.txt", content_type="text/plain")
        assert response.status_code == 400
        assert response.json() == {"error": "Only PDF files are accepted"}

    def test_pdf_suffix_accepted_without_content_type(self, client, paper_pdf):
        response = _upload(client, paper_pdf, content_type="application/octet-stream")
        assert response.status_code == 200

    def test_empty_upload(self, client):
        response = _upload(client, b"")
        assert response.status_code == 400
        assert response.json()["error"] == "Uploaded file is empty"

    def test_missing_file(self, client):
        response = client.post("/api/documents/process")
        assert response.status_code == 400
        assert response.json()["error"] == "No file uploaded"

    def test_upload_limit(self, settings, paper_pdf):
        tiny = AmrspService(settings.model_copy(update={"upload_max_size_mb": 0}))
        with TestClient(create_app(service=tiny)) as test_client:
            response = _upload(test_client, paper_pdf)
        assert response.status_code == 400
        assert "upload limit" in response.json()["error"]

    def test_duplicate_submission_flagged(self, client, paper_pdf, processed):
        second = _upload(client, paper_pdf).json()
        plagiarism = second["steps"][6]["payload"]
        assert plagiarism["similarityPercent"] == 100.0
        assert plagiarism["plagiarismDetected"] is True
        review = second["steps"][10]["payload"]
        assert review["requiresHumanReview"] is True
        assert review["flaggedItems"][0]["field"] == "Plagiarism"


class TestQueries:
    def test_list_documents(self, client, processed):
        documents = client.get("/api/documents").json()
        assert len(documents) == 1
        assert documents[0]["documentId"] == processed["documentId"]
        assert documents[0]["requiresReview"] is False
        assert documents[0]["overallSuccess"] is True

    def test_get_document(self, client, processed):
        response = client.get(f"/api/documents/{processed['documentId']}")
        assert response.status_code == 200
        assert response.json()["runId"] == processed["runId"]

    def test_unknown_document(self, client):
        response = client.get("/api/documents/missing")
        assert response.status_code == 404
        assert "missing" in response.json()["error"]

    def test_document_audit(self, client, processed):
        entries = client.get(f"/api/documents/{processed['documentId']}/audit").json()
        assert len(entries) == 12
        assert entries[0]["action"] == "Pipeline completed"

    def test_global_audit(self, client, processed):
        actions = [e["action"] for e in client.get("/api/audit").json()]
        assert "Pipeline completed" in actions
        assert "Service started" in actions


class TestAsk:
    def test_ask(self, client, processed):
        doc_id = processed["documentId"]
        response = client.post(
            f"/api/documents/{doc_id}/ask",
            json={"question": "How are coral reefs monitored?", "sessionId": "s1"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["sessionId"] == "s1"
        assert body["sources"]
        assert body["sources"][0].startswith(f"Document: {doc_id}, Chunk")
        assert body["answer"]

    def test_blank_question(self, client, processed):
        response = client.post(
            f"/api/documents/{processed['documentId']}/ask", json={"question": "  "},
        )
        assert response.status_code == 400

    def test_unknown_document(self, client):
        response = client.post("/api/documents/missing/ask", json={"question": "Why?"})
        assert response.status_code == 404


class TestCorrectionsAndReview:
    def test_correct(self, client, processed):
        doc_id = processed["documentId"]
        response = client.post(
            f"/api/documents/{doc_id}/correct",
            json={"field": "Extraction", "correction": "Title confirmed"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["documentId"] == doc_id
        assert body["correction"] == "Title confirmed"
        assert "appliedAt" in body
        corrections = client.get(f"/api/documents/{doc_id}/corrections").json()
        assert corrections[0]["humanCorrection"] == "Title confirmed"
        assert corrections[0]["confidence"] == 1.0

    def test_blank_correction(self, client, processed):
        response = client.post(
            f"/api/documents/{processed['documentId']}/correct",
            json={"field": "Extraction", "correction": ""},
        )
        assert response.status_code == 400
        assert "error" in response.json()

    def test_correct_unknown_document(self, client):
        response = client.post(
            "/api/documents/missing/correct", json={"field": "X", "correction": "y"},
        )
        assert response.status_code == 404

    def test_review_flow(self, client, processed):
        doc_id = processed["documentId"]
        assert client.get(f"/api/documents/{doc_id}/review").status_code == 404

        rejected = client.post(f"/api/documents/{doc_id}/review", json={"approved": False})
        assert rejected.status_code == 400

        response = client.post(
            f"/api/documents/{doc_id}/review",
            json={"approved": False, "rejectionReason": "Out of scope", "reviewedBy": "chair"},
        )
        assert response.status_code == 200
        decision = client.get(f"/api/documents/{doc_id}/review").json()
        assert decision["approved"] is False
        assert decision["rejectionReason"] == "Out of scope"
        assert decision["reviewedBy"] == "chair"

        listed = client.get("/api/documents").json()[0]
        assert listed["reviewDecision"]["approved"] is False

        actions = [e["action"] for e in client.get(f"/api/documents/{doc_id}/audit").json()]
        assert actions[0] == "Document rejected"

    def test_review_body_validation(self, client, processed):
        response = client.post(
            f"/api/documents/{processed['documentId']}/review", json={"reviewedBy": "x"},
        )
        assert response.status_code == 400
        assert "approved" in response.json()["error"]


class TestFailingLLM:
    """A provider that always rejects the call must not break the API."""

    @pytest.fixture
    def broken_client(self, settings):
        llm = MagicMock(spec=BaseLLMClient)
        llm.provider_name = "openai"
        llm.complete = AsyncMock(side_effect=ValueError("invalid api key"))
        with TestClient(create_app(service=AmrspService(settings, llm=llm))) as test_client:
            yield test_client

    def test_summary_falls_back(self, broken_client, paper_pdf):
        report = _upload(broken_client, paper_pdf).json()
        summary = next(s for s in report["steps"] if s["name"] == "Summary Agent")
        assert summary["succeeded"] is True
        assert summary["payload"]["summary"]

    def test_ask_answers_extractively(self, broken_client, paper_pdf):
        doc_id = _upload(broken_client, paper_pdf).json()["documentId"]
        response = broken_client.post(
            f"/api/documents/{doc_id}/ask", json={"question": "How are coral reefs monitored?"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["answer"]
        assert body["sources"]
