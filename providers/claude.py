# providers/claude.py
from core.credentials import EnvSource, JsonFileSource, SettingSource, resolve_credential
from core.http import check_response, http_get
from core.models import STATUS_OK, ProviderResult, number, parse_iso_ms, percent_window

SERVICE = "claude"
USAGE_URL = "https://api.anthropic.com/api/oauth/usage"
BETA_HEADER = "oauth-2025-04-20"

REAUTH_HINT = "Run `claude` and sign in again to re-authenticate"
MISSING_HINT = "Sign in with the Claude Code CLI or set CLAUDE_ACCESS_TOKEN"

CREDENTIAL_SOURCES = (
    EnvSource("CLAUDE_ACCESS_TOKEN"),
    SettingSource("claudeAccessToken"),
    JsonFileSource(
        (".claude/.credentials.json", ".claude/credentials.json", ".config/claude/credentials.json"),
        ("claudeAiOauth.accessToken", "accessToken"),
    ),
)


def resolve_claude_credential(config):
    """OAuth access token written by the Claude Code login flow."""
    return resolve_credential(CREDENTIAL_SOURCES, config, kind="accessToken")


def fetch_claude_usage(credential):
    headers = {
        "Authorization": f"Bearer {credential.value}",
        "anthropic-beta": BETA_HEADER,
    }
    return http_get(USAGE_URL, headers)


def _window(raw, now: int):
    if not isinstance(raw, dict) or raw.get("utilization") is None:
        return None
    return percent_window(number(raw.get("utilization")), parse_iso_ms(raw.get("resets_at")), now)


def normalize_claude_data(response, now_ms: int) -> ProviderResult:
    """
    Map the OAuth usage response to the standard result.

    five_hour and seven_day carry "utilization" (percent) and an ISO
    "resets_at". A 401 means the stored token has expired.
    """
    status, body = response
    data = check_response(status, body, REAUTH_HINT, auth_message="Token expired")
    return ProviderResult(
        service=SERVICE,
        status=STATUS_OK,
        five_hour=_window(data.get("five_hour"), now_ms),
        seven_day=_window(data.get("seven_day"), now_ms),
    )
