# AI Usage Providers
"""
Provider plugins for the usage monitor.

Each provider module implements the collector pattern with three functions:
- resolve_*_credential(config): Finds a credential or returns None
- fetch_*_usage(credential): Calls the provider's usage endpoint
- normalize_*_data(response, now_ms): Maps the response to a ProviderResult

Available providers:
- claude: Claude subscription (OAuth usage endpoint)
- codex: ChatGPT/Codex subscription, with API-key fallback
- zai: z.ai coding plan quota
- openrouter: OpenRouter credits
- opencode-zen: OpenCode Zen balance

To add a new provider:
1. Create a new file: providers/your_provider.py
2. Implement the three functions above
3. Register it in PROVIDERS below
"""

from core.models import Provider

from . import claude, codex, opencode_zen, openrouter, zai
from .claude import fetch_claude_usage, normalize_claude_data, resolve_claude_credential
from .codex import fetch_codex_usage, normalize_codex_data, resolve_codex_credential
from .opencode_zen import fetch_opencode_zen_usage, normalize_opencode_zen_data, resolve_opencode_zen_credential
from .openrouter import fetch_openrouter_usage, normalize_openrouter_data, resolve_openrouter_credential
from .zai import fetch_zai_usage, normalize_zai_data, resolve_zai_credential

PROVIDERS = (
    Provider(claude.SERVICE, resolve_claude_credential, fetch_claude_usage, normalize_claude_data,
             missing_hint=claude.MISSING_HINT, error_hint=claude.REAUTH_HINT),
    Provider(codex.SERVICE, resolve_codex_credential, fetch_codex_usage, normalize_codex_data,
             missing_hint=codex.MISSING_HINT, error_hint=codex.LOGIN_HINT),
    Provider(zai.SERVICE, resolve_zai_credential, fetch_zai_usage, normalize_zai_data,
             missing_hint=zai.MISSING_HINT, error_hint=zai.KEY_HINT),
    Provider(openrouter.SERVICE, resolve_openrouter_credential, fetch_openrouter_usage, normalize_openrouter_data,
             missing_hint=openrouter.MISSING_HINT, error_hint=openrouter.BILLING_HINT),
    Provider(opencode_zen.SERVICE, resolve_opencode_zen_credential, fetch_opencode_zen_usage,
             normalize_opencode_zen_data, missing_hint=opencode_zen.MISSING_HINT, error_hint=opencode_zen.BILLING_HINT),
)

__all__ = [
    "PROVIDERS",
    # Claude
    "resolve_claude_credential",
    "fetch_claude_usage",
    "normalize_claude_data",
    # Codex
    "resolve_codex_credential",
    "fetch_codex_usage",
    "normalize_codex_data",
    # z.ai
    "resolve_zai_credential",
    "fetch_zai_usage",
    "normalize_zai_data",
    # OpenRouter
    "resolve_openrouter_credential",
    "fetch_openrouter_usage",
    "normalize_openrouter_data",
    # OpenCode Zen
    "resolve_opencode_zen_credential",
    "fetch_opencode_zen_usage",
    "normalize_opencode_zen_data",
]
