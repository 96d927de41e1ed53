# core/models.py
"""Normalized result types and the formatting helpers providers share."""
import math
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

STATUS_OK = "ok"
STATUS_ERROR = "error"
STATUS_NO_CREDENTIALS = "no_credentials"


@dataclass(frozen=True)
class Credential:
    """A resolved secret plus where it came from. Never persisted."""

    kind: str  # "apiKey" | "accessToken" | "accessToken+accountId"
    value: str
    source: str
    account_id: Optional[str] = None
    api_key: Optional[str] = None

    def __repr__(self):
        # Keep secrets out of logs and tracebacks
        return f"Credential(kind={self.kind!r}, source={self.source!r})"


@dataclass
class UsageWindow:
    used: str
    remaining: str
    resets_in: str = ""
    resets_at_ms: int = 0
    used_percent: float = 0

    def to_dict(self) -> dict:
        return {
            "used": self.used,
            "remaining": self.remaining,
            "resetsIn": self.resets_in,
            "resetsAtMs": self.resets_at_ms,
            "usedPercent": self.used_percent,
        }


@dataclass
class ProviderResult:
    service: str
    status: str
    error: Optional[str] = None
    hint: Optional[str] = None
    source: Optional[str] = None
    plan: Optional[str] = None
    five_hour: Optional[UsageWindow] = None
    seven_day: Optional[UsageWindow] = None

    def to_dict(self) -> dict:
        """JSON shape used by the cache and the UI. Absent fields are omitted."""
        result = {"service": self.service, "status": self.status}
        for key, value in (
            ("error", self.error),
            ("hint", self.hint),
            ("source", self.source),
            ("plan", self.plan),
        ):
            if value is not None:
                result[key] = value
        if self.five_hour is not None:
            result["fiveHour"] = self.five_hour.to_dict()
        if self.seven_day is not None:
            result["sevenDay"] = self.seven_day.to_dict()
        return result


@dataclass(frozen=True)
class Provider:
    """
    One registered provider: how to find its credential, how to fetch,
    how to normalize. The collector kernel only talks to this record.
    """

    service: str
    resolve: Callable
    fetch: Callable
    normalize: Callable
    missing_hint: str = ""
    error_hint: str = ""


def now_ms() -> int:
    return int(time.time() * 1000)


def format_duration(ms) -> str:
    """Format milliseconds until reset: 2d 3h, 1h 0m, 45m, or now."""
    ms = int(ms)
    if ms <= 0:
        return "now"
    minutes = ms // 60_000
    days, rem = divmod(minutes, 1440)
    hours, mins = divmod(rem, 60)
    if days:
        return f"{days}d {hours}h"
    if hours:
        return f"{hours}h {mins}m"
    return f"{mins}m"


def format_percent(pct) -> str:
    return f"{round(float(pct), 1):g}%"


def format_dollars(amount) -> str:
    return f"${float(amount):.2f}"


def clamp_percent(pct) -> float:
    return max(0.0, min(100.0, float(pct)))


def number(value, default=0.0) -> float:
    """Defensive numeric decode: absent, non-numeric or non-finite JSON values become default."""
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        return default
    try:
        result = float(value)
    except (ValueError, OverflowError):
        return default
    return result if math.isfinite(result) else default


def parse_iso_ms(value) -> int:
    """ISO 8601 timestamp (Z or offset) to epoch milliseconds, 0 if unusable."""
    if not isinstance(value, str) or not value:
        return 0
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return 0
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp() * 1000)


def percent_window(used_percent, resets_at_ms: int, now: int) -> UsageWindow:
    """Build a percentage window from percent used and an absolute reset time."""
    pct = clamp_percent(used_percent)
    resets_at_ms = max(0, int(resets_at_ms))
    return UsageWindow(
        used=format_percent(pct),
        remaining=format_percent(100 - pct),
        resets_in=format_duration(resets_at_ms - now) if resets_at_ms else "",
        resets_at_ms=resets_at_ms,
        used_percent=pct,
    )


def truncate(text, limit: int = 200) -> str:
    text = str(text).strip()
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."
