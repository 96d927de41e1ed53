# core/cache.py
"""Last-known-good payload on disk. Best effort: failures are logged, never raised."""
import json
import logging
import os
import tempfile
from pathlib import Path

from .config import CACHE_FILE, STALE_CACHE_MS
from .errors import CacheCorruptError
from .models import now_ms

logger = logging.getLogger("ai_usage.cache")


def validate_payload(payload):
    """Raise CacheCorruptError unless payload has the top-level payload shape."""
    if not isinstance(payload, dict):
        raise CacheCorruptError("expected a JSON object")
    if "ok" not in payload or "data" not in payload:
        raise CacheCorruptError("missing 'ok' or 'data'")
    if not isinstance(payload["data"], list):
        raise CacheCorruptError("'data' is not a list")
    return payload


class CacheStore:
    def __init__(self, path=None, stale_ms: int = STALE_CACHE_MS):
        self.path = Path(path) if path is not None else CACHE_FILE
        self.stale_ms = stale_ms

    def read(self):
        """Return the cached payload, or None on a miss or a corrupt file."""
        if not self.path.exists():
            return None

        try:
            with open(self.path, encoding="utf-8") as f:
                payload = json.load(f)
            return validate_payload(payload)
        except (OSError, ValueError, CacheCorruptError) as e:
            logger.warning(f"Discarding usage cache {self.path}: {e}")
            return None

    def write(self, payload):
        """Atomically replace the cache file with payload."""
        tmp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".usage-", suffix=".json")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f)
            os.replace(tmp_path, self.path)
            tmp_path = None
        except (OSError, TypeError, ValueError) as e:
            logger.warning(f"Could not write usage cache {self.path}: {e}")
        finally:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)

    def is_stale(self, payload, now=None) -> bool:
        fetched_at = payload.get("fetchedAtMs") if isinstance(payload, dict) else None
        if isinstance(fetched_at, bool) or not isinstance(fetched_at, (int, float)) or fetched_at <= 0:
            return True
        now = now_ms() if now is None else now
        return now - fetched_at >= self.stale_ms

    def clear(self):
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
