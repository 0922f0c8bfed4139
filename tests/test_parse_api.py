"""HTTP tests for /parse, /parse/text and /dedupe."""

from io import BytesIO

import pytest
from docx import Document
from fastapi.testclient import TestClient

from resume_ingest.core.llm_client import CompletionClient, get_completion_client
from resume_ingest.main import app

client = TestClient(app)

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

RESUME_LINES = [
    "EXPERIENCE",
    "Acme Corp - Software Intern Jun 2024 - Aug 2024 New York,NY",
    "• Built the billing dashboard",
    "• Cut page load time by 40%, measured in production",
]


class CannedClient(CompletionClient):
    def complete(self, system_prompt, user_prompt):
        return '{"experiences": [{"organization": "Globex", "role_title": "Engineer"}], "skills": ["Python, SQL"]}'


@pytest.fixture(autouse=True)
def no_ai():
    """Deterministic path unless a test installs its own client."""
    app.dependency_overrides[get_completion_client] = lambda: None
    yield
    app.dependency_overrides.clear()


def test_health():
    assert client.get("/").json()["status"] == "running"
    assert client.get("/health").json()["status"] == "ok"


def test_openapi_lists_routes():
    schema = client.get("/openapi.json").json()
    assert schema["info"]["title"] == "Resume Ingest"
    assert {"/parse", "/parse/text", "/dedupe"} <= set(schema["paths"])


def test_parse_text_upload():
    files = {"file": ("resume.txt", "\n".join(RESUME_LINES).encode("utf-8"), "text/plain")}
    r = client.post("/parse", files=files)
    assert r.status_code == 200
    data = r.json()

    exp = data["batch"]["experiences"][0]
    assert exp["organization"] == "Acme Corp"
    assert exp["start_date"] == "2024-06-01"
    assert exp["end_date"] == "2024-08-01"
    assert len(exp["achievements"]) == 2
    assert data["sources"]["experiences"] == "fallback"
    assert data["mime_type"] == "text/plain"
    assert data["original_filename"] == "resume.txt"


def test_parse_docx_upload():
    doc = Document()
    for line in RESUME_LINES:
        doc.add_paragraph(line)
    buf = BytesIO()
    doc.save(buf)

    files = {"file": ("resume.docx", buf.getvalue(), DOCX_MIME)}
    r = client.post("/parse", files=files)
    assert r.status_code == 200
    data = r.json()
    assert data["mime_type"] == DOCX_MIME
    assert data["batch"]["experiences"][0]["role_title"] == "Software Intern"


def test_docx_detected_by_extension():
    doc = Document()
    doc.add_paragraph("EXPERIENCE")
    doc.add_paragraph(RESUME_LINES[1])
    buf = BytesIO()
    doc.save(buf)

    files = {"file": ("resume.docx", buf.getvalue(), "application/octet-stream")}
    r = client.post("/parse", files=files)
    assert r.status_code == 200
    assert r.json()["batch"]["experiences"][0]["organization"] == "Acme Corp"


def test_parse_uses_completion_client_dependency():
    app.dependency_overrides[get_completion_client] = lambda: CannedClient()
    files = {"file": ("resume.txt", "\n".join(RESUME_LINES).encode("utf-8"), "text/plain")}
    data = client.post("/parse", files=files).json()
    assert [e["organization"] for e in data["batch"]["experiences"]] == ["Globex"]
    assert data["batch"]["skills"][0]["skills"] == ["Python", "SQL"]
    assert data["sources"]["experiences"] == "ai"


def test_empty_upload_is_400():
    r = client.post("/parse", files={"file": ("resume.txt", b"", "text/plain")})
    assert r.status_code == 400


def test_unsupported_type_is_415():
    r = client.post("/parse", files={"file": ("photo.png", b"\x89PNG\r\n", "image/png")})
    assert r.status_code == 415


def test_unreadable_pdf_is_422():
    r = client.post("/parse", files={"file": ("resume.pdf", b"%PDF-1.4 not really a pdf", "application/pdf")})
    assert r.status_code == 422


def test_whitespace_only_text_file_is_422():
    r = client.post("/parse", files={"file": ("resume.txt", b"   \n\n  ", "text/plain")})
    assert r.status_code == 422


# ===== /parse/text =====

def test_parse_pasted_text():
    r = client.post("/parse/text", json={"text": "\n".join(RESUME_LINES)})
    assert r.status_code == 200
    data = r.json()
    assert data["batch"]["experiences"][0]["location"] == "New York,NY"
    assert data["diagnostics"][0]["phase"] == "ai"


@pytest.mark.parametrize("text", ["", "   ", "x" * 50001])
def test_parse_pasted_text_validation(text):
    assert client.post("/parse/text", json={"text": text}).status_code == 422


# ===== /dedupe =====

def test_dedupe_filters_against_existing():
    payload = {
        "batch": {
            "experiences": [
                {"organization": "Acme Corp", "role_title": "Intern", "achievements": ["Did X"]},
                {"organization": "Globex", "role_title": "Analyst"},
            ],
            "education": [{"institution": "MIT"}],
            "skills": [{"category": "Languages", "skills": ["Python"]}],
        },
        "existing_experiences": [{"organization": "Acme", "role_title": "Intern"}],
        "existing_education": [{"institution": "Stanford University"}],
    }
    r = client.post("/dedupe", json=payload)
    assert r.status_code == 200
    data = r.json()
    assert [e["organization"] for e in data["batch"]["experiences"]] == ["Globex"]
    assert [e["institution"] for e in data["batch"]["education"]] == ["MIT"]
    assert data["dropped"] == {"experiences": 1, "education": 0, "skills": 0}
