"""
Tests for the REST API endpoints
"""
import io
import json
import pytest
from fastapi.testclient import TestClient
from PyPDF2 import PdfReader
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas
from unittest.mock import Mock, patch

from main import app
from api.dependencies import (
    get_app_store, get_chat_service, get_document_service, get_question_service,
    get_upload_service, get_simulation_service
)
from services.app_store import AppStore
from services.chat_service import ChatResult, ChatService, PROVIDER_PRIMARY
from services.document_service import DocumentService
from services.pdf_processor import PDFProcessor
from services.question_service import QuestionService
from services.simulation_service import SimulationService
from services.upload_service import UploadService


SAFE_VALUES = {
    "companyName": "Acme Robotics Inc.",
    "investorName": "Jane Investor",
    "purchaseAmount": "100000",
    "valuationCap": "10000000",
    "date": "2024-01-15"
}


def completion(content="Hello from the assistant"):
    return ChatResult(
        payload={
            "id": "chatcmpl-1",
            "object": "chat.completion",
            "choices": [{"index": 0, "message": {"role": "assistant", "content": content}, "finish_reason": "stop"}]
        },
        provider=PROVIDER_PRIMARY
    )


def build_form_pdf(field_name="companyName") -> bytes:
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=letter)
    pdf.drawString(72, 740, "SAFE template")
    pdf.acroForm.textfield(name=field_name, x=72, y=700, width=250, height=20)
    pdf.showPage()
    pdf.save()
    return buffer.getvalue()


@pytest.fixture
def mock_chat_service():
    mock_service = Mock(spec=ChatService)
    mock_service.complete.return_value = completion()
    mock_service.ask.return_value = completion("A SAFE between Acme Robotics Inc. and Jane Investor.")
    return mock_service


@pytest.fixture
def store():
    return AppStore()


@pytest.fixture
def client(store, mock_chat_service):
    """Test client with fresh services behind every dependency"""
    processor = PDFProcessor()
    simulation_service = SimulationService(duration_seconds=3600)

    app.dependency_overrides[get_app_store] = lambda: store
    app.dependency_overrides[get_chat_service] = lambda: mock_chat_service
    app.dependency_overrides[get_upload_service] = lambda: UploadService(processor)
    app.dependency_overrides[get_document_service] = lambda: DocumentService(store, mock_chat_service, processor)
    app.dependency_overrides[get_question_service] = lambda: QuestionService(store, mock_chat_service)
    app.dependency_overrides[get_simulation_service] = lambda: simulation_service

    yield TestClient(app)

    app.dependency_overrides.clear()


class TestHealthEndpoints:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_root_lists_endpoints(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["endpoints"]["chat"] == "POST /api/chat"

    def test_response_time_header(self, client):
        response = client.get("/health/live")
        assert response.headers["X-Response-Time"].endswith("ms")


class TestChatEndpoint:
    """Test the chat proxy"""

    def test_completion_passed_through(self, client, mock_chat_service):
        response = client.post("/api/chat", json={
            "messages": [{"role": "user", "content": "Hi"}],
            "temperature": 0.2,
            "max_tokens": 100
        })

        assert response.status_code == 200
        assert response.json() == completion().payload
        assert response.headers["X-Chat-Provider"] == PROVIDER_PRIMARY
        mock_chat_service.complete.assert_called_once_with(
            [{"role": "user", "content": "Hi"}], 0.2, 100
        )

    @pytest.mark.parametrize("messages", [
        [{"role": "user", "content": [{"type": "text", "text": "hi"}]}],
        [
            {"role": "user", "content": "What is a SAFE?"},
            {"role": "assistant", "content": None},
            {"role": "user", "content": "And a valuation cap?"},
        ],
    ])
    def test_standard_message_shapes_forwarded_unchanged(self, client, mock_chat_service, messages):
        response = client.post("/api/chat", json={"messages": messages})

        assert response.status_code == 200
        assert mock_chat_service.complete.call_args.args[0] == messages

    def test_defaults_left_to_service(self, client, mock_chat_service):
        client.post("/api/chat", json={"messages": [{"role": "user", "content": "Hi"}]})

        _, temperature, max_tokens = mock_chat_service.complete.call_args.args
        assert temperature is None
        assert max_tokens is None

    @pytest.mark.parametrize("body", [
        {},
        {"messages": []},
        {"messages": "hello"},
        [{"role": "user", "content": "Hi"}],
    ])
    def test_missing_messages_rejected(self, client, mock_chat_service, body):
        response = client.post("/api/chat", json=body)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"
        mock_chat_service.complete.assert_not_called()

    def test_malformed_json_rejected(self, client):
        response = client.post("/api/chat", content=b"{not json", headers={"Content-Type": "application/json"})
        assert response.status_code == 400


class TestUploadEndpoint:
    """Test the upload proxy"""

    def test_one_entry_per_file_in_order(self, client, sample_pdf):
        response = client.post("/api/upload", files=[
            ("files", ("notes.txt", b"Meeting notes", "text/plain")),
            ("files", ("safe.pdf", sample_pdf, "application/pdf")),
            ("files", ("logo.png", b"\x89PNG", "image/png")),
            ("files", ("broken.pdf", b"%PDF-broken", "application/pdf")),
        ])

        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 4
        contents = body["fileContents"]
        assert contents[0] == "[Text File: notes.txt]\nMeeting notes"
        assert contents[1].startswith("[PDF: safe.pdf]\n")
        assert "Acme Robotics Inc." in contents[1]
        assert contents[2] == "[File: logo.png - Unsupported file type]"
        assert contents[3] == "[PDF: broken.pdf - Error parsing file]"
        assert [r["success"] for r in body["results"]] == [True, True, False, False]

    def test_no_files(self, client):
        response = client.post("/api/upload")
        assert response.status_code == 400


class TestDocumentEndpoints:
    """Test the document panel"""

    def test_register_and_process(self, client, store, sample_pdf):
        response = client.post("/documents", files=[
            ("files", ("safe.pdf", sample_pdf, "application/pdf")),
            ("files", ("notes.txt", b"notes", "text/plain")),
        ])

        assert response.status_code == 201
        body = response.json()
        assert [d["name"] for d in body["documents"]] == ["safe.pdf"]
        assert body["documents"][0]["status"] == "processing"
        assert body["skipped"] == ["notes.txt"]

        # Background processing has run by the time the client returns
        documents = client.get("/documents").json()
        assert documents[0]["status"] == "completed"
        assert documents[0]["summary"] == "A SAFE between Acme Robotics Inc. and Jane Investor."

        document_id = documents[0]["id"]
        assert client.get(f"/documents/{document_id}").json()["id"] == document_id

    def test_unknown_document(self, client):
        response = client.get("/documents/missing")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"


class TestTemplateEndpoints:

    def test_search_templates(self, client):
        response = client.get("/documents/templates", params={"search": "disclosure"})

        assert response.status_code == 200
        templates = response.json()
        assert [t["id"] for t in templates] == ["nda"]
        assert "estimatedTime" in templates[0]

    def test_categories(self, client):
        response = client.get("/documents/templates/categories")
        assert response.json()[0] == "all"

    def test_unavailable_template(self, client):
        response = client.post("/documents/templates/nda/generate", json=SAFE_VALUES)

        assert response.status_code == 501
        assert response.json()["error"]["code"] == "TEMPLATE_NOT_AVAILABLE"

    def test_unknown_template(self, client):
        response = client.post("/documents/templates/missing/generate", json=SAFE_VALUES)
        assert response.status_code == 404

    def test_generate_available_template(self, client):
        response = client.post("/documents/templates/yc-safe/generate", json=SAFE_VALUES)
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"


class TestSafeEndpoints:
    """Test SAFE generation and filling"""

    def test_generate_safe(self, client):
        response = client.post("/documents/safe", json=SAFE_VALUES)

        assert response.status_code == 200
        assert response.content.startswith(b"%PDF")
        assert len(PdfReader(io.BytesIO(response.content)).pages) == 4
        assert response.headers["content-disposition"] == \
            'attachment; filename="YC-SAFE-Acme-Robotics-Inc.-2024-01-15.pdf"'

    @pytest.mark.parametrize("overrides", [
        {"companyName": ""},
        {"purchaseAmount": "0"},
        {"valuationCap": "ten million"},
    ])
    def test_generate_safe_rejects_incomplete_values(self, client, overrides):
        response = client.post("/documents/safe", json={**SAFE_VALUES, **overrides})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_preview(self, client):
        response = client.get("/documents/safe/preview")

        assert response.status_code == 200
        assert 'filename="YC-SAFE-Preview-' in response.headers["content-disposition"]

    def test_live_preview_accepts_blank_values(self, client):
        response = client.post("/documents/safe/live-preview", json={})

        assert response.status_code == 200
        assert response.headers["content-disposition"].startswith("inline")
        assert len(PdfReader(io.BytesIO(response.content)).pages) == 1

    def test_validate_step(self, client):
        response = client.post("/documents/safe/steps/1/validate", json={"purchaseAmount": "100000"})

        body = response.json()
        assert body["step_id"] == "investment-terms"
        assert body["valid"] is False
        assert body["invalid_fields"] == ["valuation_cap"]

    def test_validate_unknown_step(self, client):
        response = client.post("/documents/safe/steps/9/validate", json={})
        assert response.status_code == 404

    def test_fill_form_template(self, client):
        response = client.post(
            "/documents/safe/fill",
            data={"form_data": json.dumps(SAFE_VALUES)},
            files={"template": ("safe-template.pdf", build_form_pdf(), "application/pdf")}
        )

        assert response.status_code == 200
        assert 'filename="YC-SAFE-Filled-Acme-Robotics-Inc.-2024-01-15.pdf"' in response.headers["content-disposition"]
        fields = PdfReader(io.BytesIO(response.content)).get_fields()
        assert fields["companyName"]["/V"] == "Acme Robotics Inc."

    def test_fill_requires_template(self, client):
        response = client.post("/documents/safe/fill", data={"form_data": json.dumps(SAFE_VALUES)})
        assert response.status_code == 400

    @pytest.mark.parametrize("template_url", [
        "http://169.254.169.254/latest/meta-data/",
        "http://127.0.0.1:8000/health",
        "https://attacker.example/safe.pdf",
    ])
    def test_fill_refuses_template_url_off_allowlist(self, client, template_url):
        with patch("services.pdf_form_filler.requests.get") as get:
            response = client.post(
                "/documents/safe/fill",
                data={"form_data": json.dumps(SAFE_VALUES), "template_url": template_url}
            )

        assert response.status_code == 400
        body = response.json()
        assert body["error"]["code"] == "VALIDATION_ERROR"
        assert body["error"]["details"]["field_name"] == "template_url"
        get.assert_not_called()

    def test_fill_rejects_bad_form_data(self, client):
        response = client.post(
            "/documents/safe/fill",
            data={"form_data": "{broken"},
            files={"template": ("safe-template.pdf", build_form_pdf(), "application/pdf")}
        )
        assert response.status_code == 400

    def test_fill_template_layout_mismatch(self, client, sample_pdf):
        response = client.post(
            "/documents/safe/fill",
            data={"form_data": json.dumps(SAFE_VALUES)},
            files={"template": ("plain.pdf", sample_pdf, "application/pdf")}
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "TEMPLATE_MISMATCH"

    def test_inspect(self, client):
        response = client.post(
            "/documents/inspect",
            files={"template": ("safe-template.pdf", build_form_pdf(), "application/pdf")}
        )

        assert response.status_code == 200
        assert response.json()["fieldCount"] == 1

    def test_inspect_rejects_non_pdf(self, client):
        response = client.post("/documents/inspect", files={"template": ("notes.txt", b"notes", "text/plain")})
        assert response.status_code == 400


class TestQuestionEndpoints:
    """Test the legal Q&A endpoints"""

    def test_ask_and_delete(self, client, mock_chat_service):
        mock_chat_service.ask.return_value = completion("Pro rata rights let an investor keep their percentage.")

        response = client.post("/qa", json={"question": "What does pro rata mean in a SAFE?"})

        assert response.status_code == 200
        session = response.json()
        assert session["category"] == "General Legal"
        assert [s["id"] for s in client.get("/qa").json()] == [session["id"]]

        response = client.delete(f"/qa/{session['id']}")
        assert response.status_code == 200
        assert client.get("/qa").json() == []

    def test_blank_question(self, client):
        response = client.post("/qa", json={"question": "   "})
        assert response.status_code == 400

    def test_delete_unknown_session(self, client):
        assert client.delete("/qa/missing").status_code == 404

    def test_examples(self, client):
        assert len(client.get("/qa/examples").json()) == 6


class TestStateEndpoints:
    """Test the application state endpoints"""

    def test_dispatch_action(self, client):
        response = client.post("/state/actions", json={"type": "SET_LOADING", "payload": True})

        assert response.status_code == 200
        assert response.json()["is_loading"] is True
        assert client.get("/state").json()["is_loading"] is True

    @pytest.mark.parametrize("action", [
        {"type": "EXPLODE"},
        {"type": "SET_ACTIVE_TAB", "payload": "settings"},
    ])
    def test_invalid_action(self, client, action):
        response = client.post("/state/actions", json=action)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_ACTION"

    def test_set_tab(self, client):
        assert client.put("/state/tab", json={"tab": "generator"}).json()["active_tab"] == "generator"
        assert client.put("/state/tab", json={"tab": "settings"}).status_code == 400

    def test_search(self, client):
        client.post("/state/actions", json={
            "type": "ADD_QA_SESSION",
            "payload": {"question": "What should I include in an NDA?", "answer": "Terms", "category": "Contracts"}
        })

        result = client.get("/state/search", params={"q": "nda"}).json()

        assert len(result["qa_sessions"]) == 1
        assert result["documents"] == []

    def test_reset(self, client):
        client.post("/state/actions", json={"type": "SET_LOADING", "payload": True})
        assert client.post("/state/reset").json()["is_loading"] is False


class TestSimulationEndpoints:

    def test_list_and_start(self, client):
        scenarios = client.get("/simulations").json()
        assert len(scenarios) == 4

        response = client.post(f"/simulations/{scenarios[0]['id']}/runs")
        assert response.status_code == 201
        run = response.json()
        assert run["status"] == "running"

        assert client.get(f"/simulations/runs/{run['id']}").json()["status"] == "running"
        assert client.delete(f"/simulations/runs/{run['id']}").status_code == 200
        assert client.get(f"/simulations/runs/{run['id']}").status_code == 404

    def test_unknown_scenario(self, client):
        assert client.post("/simulations/alien-invasion/runs").status_code == 404
