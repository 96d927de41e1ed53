# providers/codex.py
"""
Codex (ChatGPT subscription) usage.

The Codex CLI stores an OAuth token pair and sometimes an API key in the
same auth.json. Quota windows are only available through the OAuth
endpoint; with just an API key we can confirm the key works and nothing
more.
"""
import logging
from collections import namedtuple
from pathlib import Path

from core.credentials import EnvSource, SettingSource, dig, display_path, read_json_file
from core.errors import HttpError
from core.http import check_response, http_get
from core.models import STATUS_OK, Credential, ProviderResult, number, percent_window

logger = logging.getLogger("ai_usage.codex")

SERVICE = "codex"
USAGE_URL = "https://chatgpt.com/backend-api/wham/usage"
MODELS_URL = "https://api.openai.com/v1/models"

AUTH_FILES = (".codex/auth.json", ".config/codex/auth.json")

LOGIN_HINT = "Run `codex login` to refresh your ChatGPT session"
MISSING_HINT = "Run `codex login` or set OPENAI_API_KEY"
API_KEY_ONLY_HINT = "API key is valid; subscription quota data requires an OAuth login (`codex login`)"

KEY_SOURCES = (EnvSource("OPENAI_API_KEY"), SettingSource("openaiApiKey"))

# mode is "oauth" or "apiKey"; oauth_failure describes the failed OAuth call behind a fallback
CodexResponse = namedtuple("CodexResponse", ["mode", "status", "body", "oauth_failure"])


def resolve_codex_credential(config):
    """
    Collect an API key and an OAuth token/account id pair.

    Each auth file is scanned for whatever is still missing, so the key can
    come from one place and the token pair from another. Scanning stops once
    a token and an account id are both held.
    """
    api_key = token = account_id = None
    key_label = token_label = None

    for source in KEY_SOURCES:
        hit = source(config)
        if hit:
            api_key, key_label = hit
            break

    for relative in AUTH_FILES:
        if token and account_id:
            break
        data = read_json_file(Path(config.home) / relative)
        if not isinstance(data, dict):
            continue
        label = f"file:{display_path(relative)}"
        if not api_key:
            api_key = dig(data, "OPENAI_API_KEY")
            key_label = label if api_key else None
        if not token:
            token = dig(data, "tokens.access_token")
            token_label = label if token else None
        if not account_id:
            account_id = dig(data, "tokens.account_id")

    if token:
        kind = "accessToken+accountId" if account_id else "accessToken"
        return Credential(kind=kind, value=token, source=token_label, account_id=account_id, api_key=api_key)
    if api_key:
        return Credential(kind="apiKey", value=api_key, source=key_label, api_key=api_key)
    return None


def fetch_codex_usage(credential):
    """OAuth usage call first; the models list with the API key if that fails."""
    oauth_failure = None
    if credential.kind != "apiKey":
        headers = {"Authorization": f"Bearer {credential.value}"}
        if credential.account_id:
            headers["chatgpt-account-id"] = credential.account_id
        try:
            status, body = http_get(USAGE_URL, headers)
        except HttpError as e:
            if not credential.api_key:
                raise
            status, body, oauth_failure = None, None, str(e)
        if status == 200 or not credential.api_key:
            return CodexResponse("oauth", status, body, None)
        oauth_failure = oauth_failure or f"HTTP {status}"
        logger.info(f"Codex OAuth usage failed ({oauth_failure}); checking API key instead")

    status, body = http_get(MODELS_URL, {"Authorization": f"Bearer {credential.api_key}"})
    return CodexResponse("apiKey", status, body, oauth_failure)


def _window(raw, now: int):
    if not isinstance(raw, dict):
        return None
    if raw.get("reset_at") is not None:
        resets_at = int(number(raw.get("reset_at")) * 1000)
    elif raw.get("reset_after_seconds") is not None:
        resets_at = now + int(number(raw.get("reset_after_seconds")) * 1000)
    else:
        resets_at = 0
    return percent_window(number(raw.get("used_percent")), resets_at, now)


def normalize_codex_data(response, now_ms: int) -> ProviderResult:
    if response.mode == "apiKey":
        check_response(response.status, response.body, LOGIN_HINT)
        hint = API_KEY_ONLY_HINT
        if response.oauth_failure:
            hint = f"OAuth usage check failed ({response.oauth_failure}). {hint}"
        return ProviderResult(service=SERVICE, status=STATUS_OK, hint=hint)

    data = check_response(response.status, response.body, LOGIN_HINT, auth_message="Session expired")
    rate_limit = data.get("rate_limit") if isinstance(data.get("rate_limit"), dict) else {}
    plan = data.get("plan_type")
    return ProviderResult(
        service=SERVICE,
        status=STATUS_OK,
        plan=plan if isinstance(plan, str) else None,
        five_hour=_window(rate_limit.get("primary_window"), now_ms),
        seven_day=_window(rate_limit.get("secondary_window"), now_ms),
    )
