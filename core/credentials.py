# core/credentials.py
"""
Credential source strategies.

A provider's credential lookup is an ordered list of sources. Each source
returns (value, label) on a hit or None, and resolve_credential() stops at
the first hit. Adding a new place to look is a change to that list only.
"""
import json
import logging
from pathlib import Path

from .models import Credential

logger = logging.getLogger("ai_usage.credentials")


def read_json_file(path):
    """Parse a JSON file. Missing, unreadable or invalid files return None."""
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        return None
    except (OSError, ValueError) as e:
        logger.debug(f"Skipping credential file {path}: {e}")
        return None


def dig(data, dotted: str):
    """Follow a dotted path through nested dicts; non-empty strings only."""
    for part in dotted.split("."):
        if not isinstance(data, dict):
            return None
        data = data.get(part)
    if isinstance(data, str) and data.strip():
        return data.strip()
    return None


def display_path(relative: str) -> str:
    return f"~/{relative}"


class EnvSource:
    """Environment and .env lookup over one or more aliases. Settings come later."""

    def __init__(self, *names):
        self.names = names

    def __call__(self, config):
        for name in self.names:
            value, source = config.lookup(name, include_settings=False)
            if value:
                return value, source
        return None


class SettingSource:
    """A single field of the host settings mapping."""

    def __init__(self, field: str):
        self.field = field

    def __call__(self, config):
        value = config.get_setting(self.field)
        if value:
            return value, f"settings:{self.field}"
        return None


class JsonFileSource:
    """
    Well-known JSON files under the home directory, tried in order.

    The first file that parses and has a non-empty string at one of the
    dotted field paths wins.
    """

    def __init__(self, paths, fields):
        self.paths = tuple(paths)
        self.fields = tuple(fields)

    def __call__(self, config):
        for relative in self.paths:
            data = read_json_file(Path(config.home) / relative)
            if data is None:
                continue
            for dotted in self.fields:
                value = dig(data, dotted)
                if value:
                    return value, f"file:{display_path(relative)}"
        return None


def resolve_credential(sources, config, kind: str = "apiKey"):
    """Try each source in order and wrap the first hit in a Credential."""
    for source in sources:
        hit = source(config)
        if hit:
            value, label = hit
            logger.debug(f"Resolved {kind} from {label}")
            return Credential(kind=kind, value=value, source=label)
    return None
