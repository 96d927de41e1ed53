# core/logger.py
import logging
import os
from pathlib import Path

from .config import PLUGIN_DIR

# CONFIGURABLE: the log lives next to the cache in the plugin directory.
# Tests point AI_USAGE_LOG_FILE at /dev/null.
LOG_FILE = Path(os.getenv("AI_USAGE_LOG_FILE", str(PLUGIN_DIR / "ai-usage.log"))).expanduser()
LOG_LEVEL = os.getenv("AI_USAGE_LOG_LEVEL", "INFO").split()[0].upper()

FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logger(name: str = "ai_usage", log_file=None):
    """
    Configure the plugin's root logger and return it.

    Every module logs through a child of "ai_usage" ("ai_usage.cache",
    "ai_usage.collector", ...), so configuring this one logger covers the
    whole plugin whether the CLI or the host UI drives it. Safe to call
    repeatedly: handlers are only attached once.

    An unwritable log file is not fatal; the plugin keeps logging to stderr.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    level = getattr(logging, LOG_LEVEL, logging.INFO)
    logger.setLevel(level)
    formatter = logging.Formatter(FORMAT, datefmt=DATE_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    logger.addHandler(console)

    path = Path(log_file) if log_file is not None else LOG_FILE
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
    except OSError as e:
        logger.warning(f"Logging to stderr only, cannot open {path}: {e}")
    else:
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # requests/urllib3 connection chatter only at DEBUG
    logging.getLogger("urllib3").setLevel(logging.DEBUG if level == logging.DEBUG else logging.WARNING)

    return logger
