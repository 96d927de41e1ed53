# providers/openrouter.py
from core.credentials import EnvSource, JsonFileSource, SettingSource, resolve_credential
from core.http import check_response, http_get
from core.models import STATUS_OK, ProviderResult, UsageWindow, clamp_percent, format_dollars, number

SERVICE = "openrouter"
CREDITS_URL = "https://openrouter.ai/api/v1/credits"

BILLING_HINT = "Check your credits at https://openrouter.ai/settings/credits"
MISSING_HINT = "Set OPENROUTER_API_KEY in the plugin .env file"

CREDENTIAL_SOURCES = (
    EnvSource("OPENROUTER_API_KEY"),
    SettingSource("openrouterApiKey"),
    JsonFileSource(
        (".config/openrouter/config.json", ".openrouter/config.json"),
        ("OPENROUTER_API_KEY", "apiKey", "api_key"),
    ),
)


def resolve_openrouter_credential(config):
    return resolve_credential(CREDENTIAL_SOURCES, config, kind="apiKey")


def fetch_openrouter_usage(credential):
    return http_get(CREDITS_URL, {"Authorization": f"Bearer {credential.value}"})


def normalize_openrouter_data(response, now_ms: int) -> ProviderResult:
    """Credits are a balance, not a time window: used/remaining in dollars, no reset."""
    status, body = response
    payload = check_response(status, body, BILLING_HINT)
    data = payload.get("data") if isinstance(payload.get("data"), dict) else {}

    credits = number(data.get("total_credits"))
    usage = number(data.get("total_usage"))
    used_percent = clamp_percent(100 * usage / credits) if credits > 0 else 0

    window = UsageWindow(
        used=format_dollars(usage),
        remaining=format_dollars(max(0.0, credits - usage)),
        used_percent=round(used_percent, 2),
    )
    return ProviderResult(service=SERVICE, status=STATUS_OK, five_hour=window)
