# core/config.py
"""
Configuration lookup shared by all credential resolvers.

Values come from three layers, first non-empty wins:
  1. process environment
  2. the plugin's .env file
  3. host-provided settings (settings.json written by the host UI)
"""
import json
import logging
import os
from pathlib import Path

from dotenv import dotenv_values

logger = logging.getLogger("ai_usage.config")

# CONFIGURABLE: every path can be overridden via environment variable so
# tests and alternative hosts can point the plugin somewhere else.
PLUGIN_DIR = Path(os.getenv("AI_USAGE_DIR", "~/.config/ai-usage")).expanduser()
ENV_FILE = Path(os.getenv("AI_USAGE_ENV_FILE", str(PLUGIN_DIR / ".env"))).expanduser()
SETTINGS_FILE = Path(os.getenv("AI_USAGE_SETTINGS_FILE", str(PLUGIN_DIR / "settings.json"))).expanduser()
CACHE_FILE = Path(os.getenv("AI_USAGE_CACHE_FILE", str(PLUGIN_DIR / "usage-cache.json"))).expanduser()

# Seconds per HTTP request. The fan-out barrier waits at most three times this.
REQUEST_TIMEOUT = float(os.getenv("AI_USAGE_REQUEST_TIMEOUT", "15"))

STALE_CACHE_MS = 180_000

# Env var name -> host settings field
SETTING_FIELDS = {
    "CLAUDE_ACCESS_TOKEN": "claudeAccessToken",
    "OPENAI_API_KEY": "openaiApiKey",
    "ZAI_API_KEY": "zaiApiKey",
    "OPENROUTER_API_KEY": "openrouterApiKey",
    "OPENCODE_API_KEY": "opencodeApiKey",
}


def parse_dotenv(path) -> dict:
    """
    Parse a dotenv file into a plain dict.

    Comments, blank lines and malformed lines are skipped, surrounding quotes
    are stripped and later duplicates win. "KEY=" is kept as "". Lines
    without "=" come back from python-dotenv as None and are dropped.
    """
    path = Path(path)
    if not path.is_file():
        return {}

    try:
        parsed = dotenv_values(str(path), interpolate=False)
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Could not read {path}: {e}")
        return {}

    return {key: value for key, value in parsed.items() if key and value is not None}


def load_settings(path) -> dict:
    """Load the host settings JSON. Missing or invalid files yield {}."""
    path = Path(path)
    if not path.is_file():
        return {}

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning(f"Ignoring unreadable settings file {path}: {e}")
        return {}

    if not isinstance(data, dict):
        logger.warning(f"Ignoring settings file {path}: expected a JSON object")
        return {}
    return data


class ConfigSource:
    """
    Merged key/value lookup over environment, .env file and host settings.

    Passed into every resolver instead of reading os.environ directly, so
    tests can build one from fixed dictionaries.
    """

    def __init__(self, environ=None, env_file=None, settings=None, home=None, settings_file=None):
        self.environ = os.environ if environ is None else environ
        self.env_file = Path(env_file) if env_file is not None else ENV_FILE
        self.settings_file = Path(settings_file) if settings_file is not None else SETTINGS_FILE
        self.home = Path(home) if home is not None else Path.home()

        # Explicit settings are fixed; file-backed settings follow reload()
        self._fixed_settings = settings is not None
        self.settings = dict(settings) if settings is not None else {}
        self.dotenv = {}
        self.reload()

    def reload(self):
        """Re-read the .env file (and settings file when not given explicitly)."""
        self.dotenv = parse_dotenv(self.env_file)
        if not self._fixed_settings:
            self.settings = load_settings(self.settings_file)

    def get_setting(self, field: str) -> str:
        value = self.settings.get(field)
        if isinstance(value, str):
            return value.strip()
        return ""

    def lookup(self, name: str, include_settings: bool = True):
        """
        Return (value, source) for name, or ("", None) if no layer has it.

        source names the layer and the key that matched, e.g. "env:ZAI_KEY"
        or "settings:zaiApiKey". Credential resolvers pass
        include_settings=False so every alias is tried in env and .env
        before any settings field.
        """
        value = (self.environ.get(name) or "").strip()
        if value:
            return value, f"env:{name}"

        value = (self.dotenv.get(name) or "").strip()
        if value:
            return value, f"dotenv:{name}"

        if include_settings:
            for field in (name, SETTING_FIELDS.get(name)):
                value = self.get_setting(field) if field else ""
                if value:
                    return value, f"settings:{field}"

        return "", None

    def get_env_value(self, name: str) -> str:
        return self.lookup(name)[0]
