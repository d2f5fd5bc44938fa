"""
Exceptions shared by the CLI and the chat layer.
"""

import enum
from typing import Optional

from aichat.config import API_KEY_ENV_VAR


class CLIError(Exception):
    """Base exception for all CLI errors."""
    exit_code: int = 1

    def __init__(self, message: str, exit_code: Optional[int] = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class NotConfigured(CLIError):
    """No API key has been stored."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(
            message
            or "No API key found. Please set your Google API key first using: "
            f"ai-chat config --key YOUR_API_KEY (or export {API_KEY_ENV_VAR})"
        )


class InvalidSetting(CLIError):
    """A configuration value was rejected."""


class ProviderErrorKind(enum.Enum):
    INVALID_CREDENTIAL = "invalid_credential"
    QUOTA_EXCEEDED = "quota_exceeded"
    CONTENT_FILTERED = "content_filtered"
    TRANSPORT = "transport"


_MESSAGES = {
    ProviderErrorKind.INVALID_CREDENTIAL: "Invalid API key. Please check your Google API key and try again.",
    ProviderErrorKind.QUOTA_EXCEEDED: "API quota exceeded. Please check your Google Cloud billing and quotas.",
    ProviderErrorKind.CONTENT_FILTERED: "Message blocked by safety filters. Please try rephrasing your question.",
}


def user_message(kind: ProviderErrorKind, detail: str = "") -> str:
    if kind is ProviderErrorKind.TRANSPORT:
        return f"API Error: {detail}" if detail else "API Error"
    return _MESSAGES[kind]


def classify_provider_error(text: str, status_code: Optional[int] = None) -> ProviderErrorKind:
    """Maps a provider error text (and HTTP status, if any) to an error kind."""
    upper = (text or "").upper()
    if "API_KEY_INVALID" in upper or "API KEY NOT VALID" in upper:
        return ProviderErrorKind.INVALID_CREDENTIAL
    if "QUOTA_EXCEEDED" in upper or "RESOURCE_EXHAUSTED" in upper or status_code == 429:
        return ProviderErrorKind.QUOTA_EXCEEDED
    if "SAFETY" in upper or "BLOCKLIST" in upper or "PROHIBITED_CONTENT" in upper:
        return ProviderErrorKind.CONTENT_FILTERED
    if status_code in (401, 403):
        return ProviderErrorKind.INVALID_CREDENTIAL
    return ProviderErrorKind.TRANSPORT


class GenerationError(CLIError):
    """A generation request failed; `kind` says why."""

    def __init__(self, kind: ProviderErrorKind, detail: str = ""):
        self.kind = kind
        self.detail = detail
        super().__init__(user_message(kind, detail))
