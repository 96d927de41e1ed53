# core/monitor.py
"""
Refresh coordination between the collectors, the cache and the host UI.

The host subscribes to "usage_updated" and "usage_error", calls load_cache()
once at startup and refresh() from its timer or command handler.
"""
import logging
import threading

from .cache import CacheStore, validate_payload
from .collector import run_all_collectors
from .config import ConfigSource
from .errors import CacheCorruptError
from .logger import setup_logger

logger = logging.getLogger("ai_usage.monitor")

EVENTS = ("usage_updated", "usage_error")


class UsageMonitor:
    """Observable usage state plus the refresh entry points."""

    def __init__(self, providers, config=None, cache=None, collect=run_all_collectors):
        # The host drives the monitor directly, so make sure the plugin logs somewhere
        setup_logger()

        self.providers = tuple(providers)
        self.config = config or ConfigSource()
        self.cache = cache or CacheStore()
        self.collect = collect

        self.data = []
        self.fetched_at_ms = 0
        self.loading = False
        self.last_error = None
        self.visible = True

        self._lock = threading.Lock()
        self._listeners = {event: [] for event in EVENTS}

    def on(self, event: str, callback):
        if event not in self._listeners:
            raise ValueError(f"Unknown event: '{event}'. Must be one of: {', '.join(EVENTS)}")
        self._listeners[event].append(callback)

    def _emit(self, event: str, arg):
        for callback in list(self._listeners[event]):
            try:
                callback(arg)
            except Exception:
                logger.exception(f"{event} listener failed")

    def apply_payload(self, payload) -> bool:
        """Publish a payload to the UI. Returns False if its shape is unusable."""
        try:
            validate_payload(payload)
        except CacheCorruptError as e:
            message = f"Invalid usage payload: {e}"
            with self._lock:
                self.loading = False
                self.last_error = message
            logger.error(message)
            self._emit("usage_error", message)
            return False

        with self._lock:
            self.data = list(payload["data"])
            self.fetched_at_ms = payload.get("fetchedAtMs") or 0
            self.loading = False
            self.last_error = None
        self._emit("usage_updated", self.data)
        return True

    def refresh_usage(self, force: bool = False):
        """
        Collect from every provider, publish and cache the result.

        No-op (returns None) when a refresh is already running and force is
        False. Missed requests are not queued.
        """
        with self._lock:
            if self.loading and not force:
                logger.info("Refresh already in progress - skipping")
                return None
            self.loading = True

        try:
            self.config.reload()
            payload = self.collect(self.providers, self.config)
        except Exception as e:
            logger.exception("Usage refresh failed")
            with self._lock:
                self.loading = False
                self.last_error = str(e)
            self._emit("usage_error", str(e))
            return None

        if self.apply_payload(payload):
            self.cache.write(payload)
        return payload

    def refresh_in_background(self, force: bool = False) -> threading.Thread:
        thread = threading.Thread(
            target=self.refresh_usage, kwargs={"force": force}, name="usage-refresh", daemon=True
        )
        thread.start()
        return thread

    def load_cache(self):
        """
        Startup path: show the cached snapshot right away, then revalidate.

        Returns the background refresh thread when a stale cache triggered
        one, otherwise None.
        """
        payload = self.cache.read()
        if payload is None:
            logger.info("No usable usage cache - refreshing")
            self.refresh_usage(force=True)
            return None

        self.apply_payload(payload)
        if self.cache.is_stale(payload):
            logger.info("Usage cache is stale - refreshing in background")
            return self.refresh_in_background(force=True)
        return None

    # Commands exposed to the host's command handler

    def refresh(self) -> threading.Thread:
        return self.refresh_in_background(force=True)

    def toggle(self) -> bool:
        self.visible = not self.visible
        return self.visible
