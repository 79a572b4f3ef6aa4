"""
Tests for the FastAPI application.

The orchestrator is built around a fake language model client and injected
into the app factory.
"""

import pytest
from fastapi.testclient import TestClient

from api.main import create_app
from api.security import validate_api_key_format, validate_configuration
from docinsight.config import AppConfig
from docinsight.error_handling import RequestFailed

from conftest import FakeClient


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def api(config, make_orchestrator, fake_client):
    orchestrator = make_orchestrator(fake_client)
    app = create_app(config=config, orchestrator=orchestrator, configure_logging=False)
    return TestClient(app)


class TestServiceEndpoints:

    def test_health(self, api):
        response = api.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_security_headers(self, api):
        response = api.get("/")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"

    def test_missing_api_key(self):
        app = create_app(config=AppConfig(log_dir=None), configure_logging=False)

        response = TestClient(app).get("/session")

        assert response.status_code == 503
        assert "GOOGLE_API_KEY" in response.json()["detail"]

    def test_empty_session(self, api):
        session = api.get("/session").json()
        assert session["summary"] == ""
        assert session["chat_history"] == []
        assert session["active_definition"] is None


class TestSessionFlow:

    def test_summarize_render_ask(self, api, fake_client):
        fake_client.replies.extend([
            "Plants use [COMPLEX:photosynthesis] to make food.",
            "It's how plants make energy.",
        ])

        assert api.put("/session/input", json={"text": "Photosynthesis is complex."}).status_code == 200

        response = api.post("/session/summarize")
        assert response.status_code == 200
        assert response.json()["outcome"]["status"] == "ok"

        document = api.get("/session/summary").json()["document"]
        spans = document["blocks"][0]["spans"]
        assert [span["treatment"] for span in spans] == ["plain", "complex-term", "plain"]
        assert spans[1]["span_id"] == "term-1"

        response = api.post("/session/ask", json={"question": "What is it?"})
        history = response.json()["session"]["chat_history"]
        assert [(m["role"], m["text"]) for m in history] == [
            ("user", "What is it?"),
            ("assistant", "It's how plants make energy."),
        ]

    def test_summarize_without_input(self, api):
        response = api.post("/session/summarize")

        assert response.status_code == 400
        assert response.json()["session"]["last_error"]

    def test_summarize_failure(self, api, fake_client):
        fake_client.replies.append(RequestFailed("API key not valid", status_code=400))
        api.put("/session/input", json={"text": "text"})

        response = api.post("/session/summarize")

        assert response.status_code == 502
        assert response.json()["outcome"]["message"] == "API key not valid"

    def test_blank_question(self, api, fake_client):
        fake_client.replies.append("A summary.")
        api.put("/session/input", json={"text": "text"})
        api.post("/session/summarize")

        assert api.post("/session/ask", json={"question": "  "}).status_code == 400

    def test_reset(self, api):
        api.put("/session/input", json={"text": "text"})
        old_id = api.get("/session").json()["session_id"]

        fresh = api.delete("/session").json()

        assert fresh["session_id"] != old_id
        assert fresh["input_text"] == ""


class TestDefinitions:

    def test_activate_term_and_dismiss(self, api, fake_client):
        fake_client.replies.extend(["Cells use [COMPLEX:ATP].", "The energy currency of cells."])
        api.put("/session/input", json={"text": "text"})
        api.post("/session/summarize")
        api.get("/session/summary")

        response = api.post("/session/terms/term-1/activate", json={"x": 4.0, "y": 8.0})

        active = response.json()["session"]["active_definition"]
        assert active["term"] == "ATP"
        assert active["definition_text"] == "The energy currency of cells."
        assert active["anchor"] == {"x": 4.0, "y": 8.0}

        response = api.post("/session/dismiss", json={"inside_popover": False, "on_term": False})
        assert response.json()["session"]["active_definition"] is None

    def test_unknown_term(self, api):
        api.get("/session/summary")
        assert api.post("/session/terms/term-3/activate").status_code == 400

    def test_define_toggle(self, api, fake_client):
        fake_client.replies.append("A definition.")

        first = api.post("/session/define", json={"term": "osmosis"})
        second = api.post("/session/define", json={"term": "osmosis"})

        assert first.json()["outcome"]["status"] == "ok"
        assert second.json()["outcome"]["status"] == "closed"
        assert second.json()["session"]["active_definition"] is None

    def test_close_definition(self, api, fake_client):
        fake_client.replies.append("A definition.")
        api.post("/session/define", json={"term": "osmosis"})

        response = api.delete("/session/definition")

        assert response.status_code == 200
        assert response.json()["session"]["active_definition"] is None


class TestFileUpload:

    def test_text_file(self, api):
        response = api.post(
            "/session/file",
            files={"file": ("notes.txt", b"Cells divide.\r\n", "text/plain")},
        )

        assert response.status_code == 200
        assert response.json()["session"]["input_text"] == "Cells divide.\n"

    def test_unsupported_file(self, api):
        response = api.post(
            "/session/file",
            files={"file": ("photo.png", b"\x89PNG\r\n", "image/png")},
        )

        assert response.status_code == 400
        session = response.json()["session"]
        assert session["selected_attachment"] is None
        assert "Please select a text file" in session["last_error"]

    def test_clear_file(self, api):
        api.post("/session/file", files={"file": ("notes.txt", b"Cells divide.", "text/plain")})

        response = api.delete("/session/file")

        assert response.json()["session"]["input_text"] == ""


class TestSecurity:

    @pytest.mark.parametrize("key,valid", [
        ("AIza" + "x" * 35, True),
        ("your_api_key_here", False),
        ("", False),
        ("short", False),
    ])
    def test_api_key_format(self, key, valid):
        assert validate_api_key_format(key) is valid

    def test_wildcard_cors_warns(self, config):
        config.cors_origins = ["*"]
        result = validate_configuration(config)
        assert any("wildcard" in warning for warning in result["warnings"])
