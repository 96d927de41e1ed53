"""
AI Usage Monitor - quota and balance status across AI service accounts.

This is the command-line entry point. The host UI normally drives
UsageMonitor directly; this runner exposes the same refresh paths for
scripts and debugging.
"""
import json
import sys

from core.cache import CacheStore
from core.logger import setup_logger
from core.monitor import UsageMonitor
from providers import PROVIDERS

__version__ = "0.4.0"
logger = setup_logger()


def print_payload(monitor: UsageMonitor):
    print(json.dumps({"ok": True, "fetchedAtMs": monitor.fetched_at_ms, "data": monitor.data}, indent=2))


def main():
    if len(sys.argv) < 2:
        logger.info(f"AI Usage Monitor v{__version__}")
        print("Usage: python main.py [--task TASK_NAME]")
        print("Tasks: refresh, show, clear-cache")
        return 1

    if sys.argv[1] == "--task" and len(sys.argv) > 2:
        task = sys.argv[2]
        monitor = UsageMonitor(PROVIDERS)
        monitor.on("usage_error", lambda message: logger.error(f"✗ {message}"))

        if task == "refresh":
            payload = monitor.refresh_usage(force=True)
            if payload is None:
                return 1
            print_payload(monitor)
            return 0
        elif task == "show":
            pending = monitor.load_cache()
            if pending is not None:
                pending.join()
            if monitor.last_error:
                return 1
            print_payload(monitor)
            return 0
        elif task == "clear-cache":
            CacheStore().clear()
            logger.info("✓ Usage cache cleared")
            return 0
        else:
            logger.error(f"Unknown task: {task}")
            return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
