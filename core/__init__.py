# AI Usage Core - The Kernel
"""
Core infrastructure for the usage monitor.

This package provides the foundational components that all providers and
the host integration build upon:

- config: Layered configuration lookup (ConfigSource, parse_dotenv)
- credentials: Credential source strategies (EnvSource, JsonFileSource, ...)
- collector: Per-provider kernel and concurrent fan-out (run_all_collectors)
- cache: Last-known-good payload on disk (CacheStore)
- monitor: Refresh coordination and UI events (UsageMonitor)
- logger: Logging setup (setup_logger)

Usage:
    from core import ConfigSource, UsageMonitor, setup_logger
"""

from .cache import CacheStore
from .collector import run_all_collectors, run_collector
from .config import CACHE_FILE, ENV_FILE, STALE_CACHE_MS, ConfigSource, parse_dotenv
from .credentials import EnvSource, JsonFileSource, SettingSource, resolve_credential
from .errors import AuthError, HttpError, ShapeError, UsageError
from .logger import LOG_FILE, setup_logger
from .models import Credential, Provider, ProviderResult, UsageWindow
from .monitor import UsageMonitor

# Public API - what gets exported with "from core import *"
__all__ = [
    # Configuration
    "ConfigSource",
    "parse_dotenv",
    "CACHE_FILE",
    "ENV_FILE",
    "STALE_CACHE_MS",
    # Credentials
    "EnvSource",
    "SettingSource",
    "JsonFileSource",
    "resolve_credential",
    # Models
    "Credential",
    "Provider",
    "ProviderResult",
    "UsageWindow",
    # Errors
    "UsageError",
    "AuthError",
    "HttpError",
    "ShapeError",
    # Collection
    "run_collector",
    "run_all_collectors",
    "CacheStore",
    "UsageMonitor",
    # Logging
    "setup_logger",
    "LOG_FILE",
]
