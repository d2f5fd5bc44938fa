"""
Chat layer: the Gemini REST client and the interactive / one-shot front ends.

A user turn always runs to completion before the next one is read:
classify -> optionally build context -> send -> print.
"""

import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import requests
from rich.console import Console
from rich.markup import escape

from aichat.config import (
    API_BASE_URL,
    MAX_OUTPUT_TOKENS,
    REQUEST_TIMEOUT_S,
    TEMPERATURE,
)
from aichat.core.builder import ContextBuilder
from aichat.core.classifier import RelevanceClassifier
from aichat.core.formatter import build_augmented_prompt, summarize
from aichat.errors import (
    GenerationError,
    NotConfigured,
    ProviderErrorKind,
    classify_provider_error,
)
from aichat.settings import AppSettings

logger = logging.getLogger(__name__)

BANNER = r"""
 ██████╗ ██╗         ██████╗██╗     ██╗
██╔══██╗██║        ██╔════╝██║     ██║
██████╔╝██║        ██║     ██║     ██║
██╔══██╗██║        ██║     ██║     ██║
██║  ██║██║        ╚██████╗███████╗██║
╚═╝  ╚═╝╚═╝         ╚═════╝╚══════╝╚═╝
"""

EXIT_WORDS = ("exit", "quit")
BLOCKED_FINISH_REASONS = ("SAFETY", "BLOCKLIST", "PROHIBITED_CONTENT", "SPII")

Message = Dict[str, Any]


def display_banner(console: Console, subtitle: str) -> None:
    console.print(BANNER, style="cyan", highlight=False)
    console.print(f"         {subtitle}", style="yellow")
    console.print("━" * 50, style="bright_black")


class GeminiClient:
    """Minimal client for the Generative Language `generateContent` endpoint."""

    def __init__(
        self,
        api_key: str,
        model: str,
        session: Optional[requests.Session] = None,
        base_url: str = API_BASE_URL,
        timeout: float = REQUEST_TIMEOUT_S,
    ):
        if not api_key or not api_key.strip():
            raise GenerationError(ProviderErrorKind.INVALID_CREDENTIAL, "API key is empty")
        self.api_key = api_key.strip()
        self.model = model
        self.session = session or requests.Session()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @property
    def url(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def _raise_for_response(self, response: requests.Response) -> None:
        detail = response.text
        try:
            error = response.json().get("error", {})
            detail = error.get("message") or detail
        except (ValueError, AttributeError):
            pass
        kind = classify_provider_error(response.text, response.status_code)
        logger.debug("Provider returned %s (%s): %s", response.status_code, kind.value, detail)
        raise GenerationError(kind, detail)

    @staticmethod
    def _extract_text(data: Dict[str, Any]) -> str:
        block_reason = (data.get("promptFeedback") or {}).get("blockReason")
        if block_reason:
            raise GenerationError(ProviderErrorKind.CONTENT_FILTERED, f"Prompt blocked: {block_reason}")

        candidates = data.get("candidates") or []
        if not candidates:
            raise GenerationError(ProviderErrorKind.TRANSPORT, "Empty response from model")

        candidate = candidates[0]
        parts = (candidate.get("content") or {}).get("parts") or []
        text = "".join(part.get("text", "") for part in parts)
        finish_reason = candidate.get("finishReason", "")
        if not text and finish_reason in BLOCKED_FINISH_REASONS:
            raise GenerationError(ProviderErrorKind.CONTENT_FILTERED, f"Response blocked: {finish_reason}")
        return text

    def generate(self, message: str, history: Optional[List[Message]] = None) -> str:
        contents = list(history or []) + [{"role": "user", "parts": [{"text": message}]}]
        payload = {
            "contents": contents,
            "generationConfig": {
                "maxOutputTokens": MAX_OUTPUT_TOKENS,
                "temperature": TEMPERATURE,
            },
        }

        try:
            response = self.session.post(
                self.url,
                params={"key": self.api_key},
                json=payload,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise GenerationError(ProviderErrorKind.TRANSPORT, str(e)) from e

        if not response.ok:
            self._raise_for_response(response)

        try:
            data = response.json()
        except ValueError as e:
            raise GenerationError(ProviderErrorKind.TRANSPORT, f"Invalid JSON response: {e}") from e
        return self._extract_text(data)


class ChatSession:
    """In-memory conversation for one run. Failed turns are not recorded."""

    def __init__(self, client: GeminiClient):
        self.client = client
        self.history: List[Message] = []

    def send_message(self, text: str) -> str:
        reply = self.client.generate(text, self.history)
        self.history.append({"role": "user", "parts": [{"text": text}]})
        self.history.append({"role": "model", "parts": [{"text": reply}]})
        return reply


ClientFactory = Callable[[str, str], GeminiClient]


class ChatInterface:
    def __init__(
        self,
        settings: AppSettings,
        working_dir: Optional[Path] = None,
        console: Optional[Console] = None,
        classifier: Optional[RelevanceClassifier] = None,
        builder: Optional[ContextBuilder] = None,
        client_factory: ClientFactory = GeminiClient,
    ):
        self.settings = settings
        self.working_dir = Path(working_dir) if working_dir else Path.cwd()
        self.console = console or Console()
        self.classifier = classifier or RelevanceClassifier()
        self.builder = builder or ContextBuilder()
        self.client_factory = client_factory
        self.session: Optional[ChatSession] = None

    def initialize(self) -> None:
        """Raises NotConfigured or GenerationError(INVALID_CREDENTIAL)."""
        client = self.client_factory(self.settings.get_api_key(), self.settings.get_model())
        self.session = ChatSession(client)

    def has_project_files(self) -> bool:
        return self.builder.has_eligible_files(self.working_dir, shallow=True)

    def process_message(self, message: str) -> str:
        """The prompt to send: `message` itself, or `message` with project context."""
        if not self.classifier.is_project_related(message, self.has_project_files):
            return message

        self.console.print("\n📁 Including project context for better assistance...", style="bright_black")
        snapshot = self.builder.build(self.working_dir)
        self.console.print(f"[green]✓[/green] {escape(summarize(snapshot))}", highlight=False)
        return build_augmented_prompt(message, snapshot)

    def send(self, message: str) -> str:
        if self.session is None:
            raise RuntimeError("Chat not initialized. Please run initialize() first.")
        return self.session.send_message(self.process_message(message))

    def _print_reply(self, reply: str) -> None:
        self.console.print("[green]AI:[/green] ", end="")
        self.console.print(reply, markup=False, highlight=False)
        self.console.print()

    def start_interactive(self) -> int:
        display_banner(self.console, "AI Chat CLI - Powered by Gemini")
        self.console.print("🤖 Interactive Mode", style="green")
        self.console.print('Type "exit" or "quit" to end the conversation', style="bright_black")

        has_files = self.has_project_files()
        if has_files:
            self.console.print("📁 Project files detected! I can help with project-specific questions.", style="blue")
        self.console.print()

        try:
            self.initialize()
        except (GenerationError, NotConfigured) as e:
            self.console.print(f"[red]✗ Failed to initialize:[/red] {escape(str(e))}")
            return 1

        self.console.print(f"✓ Connected to Google Gemini API ({self.settings.get_model()})\n", style="green")
        if has_files:
            self.console.print("I can analyze your project files and answer questions about your code!", style="blue")
        else:
            self.console.print("I can help with coding, writing, analysis, creative tasks, and much more!", style="blue")
        self.console.print("What would you like to talk about today?\n", style="bright_black")

        while True:
            try:
                message = self.console.input("[blue]You:[/blue] ")
            except (KeyboardInterrupt, EOFError):
                self.console.print("\nGoodbye! 👋", style="yellow")
                return 0

            if not message.strip():
                self.console.print("Please enter a message", style="red")
                continue

            if message.strip().lower() in EXIT_WORDS:
                self.console.print("Goodbye! 👋", style="yellow")
                return 0

            try:
                with self.console.status("🤔 Thinking..."):
                    reply = self.send(message)
            except GenerationError as e:
                self.console.print(f"[red]✗ Error:[/red] {escape(str(e))}\n", highlight=False)
                continue
            self._print_reply(reply)

    def send_single(self, message: str) -> int:
        try:
            self.initialize()
            self.console.print("[blue]You:[/blue] ", end="")
            self.console.print(message, markup=False, highlight=False)
            with self.console.status("🤔 Thinking..."):
                reply = self.send(message)
        except (GenerationError, NotConfigured) as e:
            self.console.print(f"[red]✗ Error:[/red] {escape(str(e))}", highlight=False)
            return 1
        self._print_reply(reply)
        return 0
