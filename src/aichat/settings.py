# src/aichat/settings.py
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from aichat.config import API_KEY_ENV_VAR, DEFAULT_MODEL
from aichat.errors import InvalidSetting, NotConfigured

logger = logging.getLogger(__name__)

APP_ID = "ai-chat-cli"

HOME = Path.home()
XDG_CONFIG_HOME = Path(os.getenv("XDG_CONFIG_HOME", HOME / ".config"))


def default_config_path() -> Path:
    """$AI_CHAT_CONFIG_DIR/config.json, else the XDG config directory."""
    config_dir = os.getenv("AI_CHAT_CONFIG_DIR")
    if config_dir:
        return Path(config_dir) / "config.json"
    return XDG_CONFIG_HOME / APP_ID / "config.json"


class AppSettings:
    """
    Stored API key and model name.

    Read through explicitly; callers construct one and pass it where it is
    needed. Values are persisted to a small JSON file on every change.
    """

    DEFAULTS: Dict[str, Any] = {"apiKey": "", "model": DEFAULT_MODEL}

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = Path(config_path) if config_path else default_config_path()
        self._data = dict(self.DEFAULTS)
        self._data.update(self._load())

    def _load(self) -> Dict[str, Any]:
        if not self.config_path.exists():
            return {}
        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable config file %s: %s", self.config_path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring malformed config file %s", self.config_path)
            return {}
        return {k: v for k, v in data.items() if k in self.DEFAULTS and isinstance(v, str)}

    def _save(self) -> None:
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, "w", encoding="utf-8") as f:
            json.dump(self._data, f, indent=2)
        try:
            os.chmod(self.config_path, 0o600)
        except OSError:
            logger.debug("Could not restrict permissions on %s", self.config_path)

    # --- API key ---

    def set_api_key(self, api_key: str) -> None:
        if not isinstance(api_key, str) or not api_key.strip():
            raise InvalidSetting("Invalid API key provided")
        self._data["apiKey"] = api_key.strip()
        self._save()

    def get_api_key(self) -> str:
        api_key = self._data.get("apiKey") or os.getenv(API_KEY_ENV_VAR, "").strip()
        if not api_key:
            raise NotConfigured()
        return api_key

    def has_api_key(self) -> bool:
        try:
            self.get_api_key()
        except NotConfigured:
            return False
        return True

    # --- Model ---

    def set_model(self, model: str) -> None:
        if not isinstance(model, str) or not model.strip():
            raise InvalidSetting("Invalid model name provided")
        self._data["model"] = model.strip()
        self._save()

    def get_model(self) -> str:
        return self._data.get("model") or DEFAULT_MODEL

    # --- Whole store ---

    def clear(self) -> None:
        self._data = dict(self.DEFAULTS)
        if self.config_path.exists():
            self.config_path.unlink()

    def describe(self) -> Dict[str, str]:
        """Current values with the API key masked."""
        api_key = self._data.get("apiKey") or os.getenv(API_KEY_ENV_VAR, "")
        return {
            "API Key": f"{api_key[:8]}..." if api_key else "Not set",
            "Model": self.get_model(),
            "Config location": str(self.config_path),
        }
