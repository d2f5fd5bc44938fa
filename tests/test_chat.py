# tests/test_chat.py
import io
import json

import pytest
import requests
from rich.console import Console

from aichat.chat import ChatInterface, ChatSession, GeminiClient
from aichat.errors import GenerationError, ProviderErrorKind, classify_provider_error, user_message
from aichat.settings import AppSettings


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self.ok = 200 <= status_code < 300
        self._payload = payload
        self.text = text if text is not None else json.dumps(payload)

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


class FakeSession:
    """Stands in for requests.Session; replays queued responses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def reply(text):
    return FakeResponse(payload={"candidates": [{"content": {"parts": [{"text": text}], "role": "model"}, "finishReason": "STOP"}]})


QUOTA_BODY = {"error": {"code": 429, "message": "Resource has been exhausted (e.g. check quota).", "status": "RESOURCE_EXHAUSTED"}}
BAD_KEY_BODY = {
    "error": {
        "code": 400,
        "message": "API key not valid. Please pass a valid API key.",
        "status": "INVALID_ARGUMENT",
        "details": [{"reason": "API_KEY_INVALID"}],
    }
}


# --- Test 1: Provider error classification ---

@pytest.mark.parametrize("text,status,kind", [
    ("API_KEY_INVALID", 400, ProviderErrorKind.INVALID_CREDENTIAL),
    ("QUOTA_EXCEEDED for project", None, ProviderErrorKind.QUOTA_EXCEEDED),
    ("slow down", 429, ProviderErrorKind.QUOTA_EXCEEDED),
    ("Candidate was blocked due to SAFETY", None, ProviderErrorKind.CONTENT_FILTERED),
    ("Permission denied", 403, ProviderErrorKind.INVALID_CREDENTIAL),
    ("Internal error", 500, ProviderErrorKind.TRANSPORT),
])
def test_classify_provider_error(text, status, kind):
    assert classify_provider_error(text, status) is kind


def test_user_message_names_the_category():
    assert "quota exceeded" in user_message(ProviderErrorKind.QUOTA_EXCEEDED).lower()
    assert user_message(ProviderErrorKind.TRANSPORT, "boom") == "API Error: boom"


# --- Test 2: Gemini client ---

def test_generate_returns_text_and_sends_history():
    session = FakeSession(reply("Hello!"))
    client = GeminiClient("key-123", "gemini-test", session=session)
    history = [{"role": "user", "parts": [{"text": "hi"}]}, {"role": "model", "parts": [{"text": "hey"}]}]

    assert client.generate("How are you?", history) == "Hello!"

    url, kwargs = session.calls[0]
    assert url.endswith("/models/gemini-test:generateContent")
    assert kwargs["params"] == {"key": "key-123"}
    assert kwargs["json"]["contents"][-1] == {"role": "user", "parts": [{"text": "How are you?"}]}
    assert kwargs["json"]["contents"][:2] == history


def test_blank_key_is_invalid_credential():
    with pytest.raises(GenerationError) as exc:
        GeminiClient("   ", "gemini-test", session=FakeSession())
    assert exc.value.kind is ProviderErrorKind.INVALID_CREDENTIAL


@pytest.mark.parametrize("response,kind", [
    (FakeResponse(429, QUOTA_BODY), ProviderErrorKind.QUOTA_EXCEEDED),
    (FakeResponse(400, BAD_KEY_BODY), ProviderErrorKind.INVALID_CREDENTIAL),
    (FakeResponse(200, {"promptFeedback": {"blockReason": "SAFETY"}}), ProviderErrorKind.CONTENT_FILTERED),
    (FakeResponse(200, {"candidates": [{"finishReason": "SAFETY"}]}), ProviderErrorKind.CONTENT_FILTERED),
    (FakeResponse(200, {"candidates": []}), ProviderErrorKind.TRANSPORT),
    (FakeResponse(502, None, text="Bad Gateway"), ProviderErrorKind.TRANSPORT),
    (requests.ConnectionError("connection refused"), ProviderErrorKind.TRANSPORT),
])
def test_generate_failures_are_classified(response, kind):
    client = GeminiClient("key", "gemini-test", session=FakeSession(response))
    with pytest.raises(GenerationError) as exc:
        client.generate("hello")
    assert exc.value.kind is kind


def test_transport_error_keeps_provider_detail():
    client = GeminiClient("key", "gemini-test", session=FakeSession(FakeResponse(502, None, text="Bad Gateway")))
    with pytest.raises(GenerationError) as exc:
        client.generate("hello")
    assert str(exc.value) == "API Error: Bad Gateway"


def test_session_records_only_successful_turns():
    session = FakeSession(FakeResponse(429, QUOTA_BODY), reply("ok"))
    chat = ChatSession(GeminiClient("key", "m", session=session))

    with pytest.raises(GenerationError):
        chat.send_message("first")
    assert chat.history == []

    assert chat.send_message("second") == "ok"
    assert [turn["role"] for turn in chat.history] == ["user", "model"]


# --- Test 3: Chat interface ---

@pytest.fixture
def settings(tmp_path, monkeypatch):
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    s = AppSettings(tmp_path / "config" / "config.json")
    s.set_api_key("test-key-0000")
    return s


@pytest.fixture
def project(tmp_path):
    root = tmp_path / "project"
    root.mkdir()
    (root / "package.json").write_text('{"name": "demo"}', encoding="utf-8")
    (root / "README.md").write_text("# Demo", encoding="utf-8")
    (root / "index.js").write_text("console.log('hi');", encoding="utf-8")
    return root


def make_chat(settings, project, *responses):
    session = FakeSession(*responses)
    output = io.StringIO()
    chat = ChatInterface(
        settings,
        working_dir=project,
        console=Console(file=output, width=120),
        client_factory=lambda key, model: GeminiClient(key, model, session=session),
    )
    return chat, session, output


def test_general_question_passes_through(settings, project):
    chat, _, _ = make_chat(settings, project)
    message = "What is artificial intelligence?"
    assert chat.process_message(message) == message


def test_project_question_gets_context(settings, project):
    chat, _, output = make_chat(settings, project)
    message = "Explain this project's architecture"
    prompt = chat.process_message(message)

    assert prompt.startswith("\n=== PROJECT CONTEXT ===\n")
    assert prompt.index("=== FILE: package.json ===") < prompt.index("=== FILE: README.md ===") < prompt.index("=== FILE: index.js ===")
    assert message in prompt
    assert "Including project context" in output.getvalue()


def test_send_single_success(settings, project):
    chat, session, output = make_chat(settings, project, reply("Forty-two."))

    assert chat.send_single("What is the answer?") == 0
    assert "Forty-two." in output.getvalue()
    _, kwargs = session.calls[0]
    assert kwargs["params"] == {"key": "test-key-0000"}


def test_send_single_quota_failure(settings, project):
    chat, _, output = make_chat(settings, project, FakeResponse(429, QUOTA_BODY))

    assert chat.send_single("hello") == 1
    text = output.getvalue()
    assert "API quota exceeded" in text
    assert "RESOURCE_EXHAUSTED" not in text


def test_interactive_loop_survives_errors(settings, project, monkeypatch):
    chat, session, output = make_chat(settings, project, FakeResponse(429, QUOTA_BODY), reply("Hi there"))
    inputs = iter(["", "hello", "hello again", "quit"])
    monkeypatch.setattr("builtins.input", lambda *args: next(inputs))

    assert chat.start_interactive() == 0

    text = output.getvalue()
    assert "Please enter a message" in text
    assert "API quota exceeded" in text
    assert "Hi there" in text
    assert "Goodbye!" in text
    assert len(session.calls) == 2


def test_interactive_eof_says_goodbye(settings, project, monkeypatch):
    chat, _, output = make_chat(settings, project)

    def raise_eof(*args):
        raise EOFError

    monkeypatch.setattr("builtins.input", raise_eof)
    assert chat.start_interactive() == 0
    assert "Goodbye!" in output.getvalue()
