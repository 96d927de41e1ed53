# providers/opencode_zen.py
from core.credentials import EnvSource, JsonFileSource, SettingSource, resolve_credential
from core.http import check_response, http_get
from core.models import STATUS_OK, ProviderResult, UsageWindow, format_dollars, number

SERVICE = "opencode-zen"
BALANCE_URL = "https://opencode.ai/zen/v1/balance"

BILLING_HINT = "Check your balance at https://opencode.ai/zen"
MISSING_HINT = "Set OPENCODE_API_KEY in the plugin .env file"

CREDENTIAL_SOURCES = (
    EnvSource("OPENCODE_API_KEY"),
    SettingSource("opencodeApiKey"),
    JsonFileSource(
        (".config/opencode/config.json", ".opencode/config.json"),
        ("OPENCODE_API_KEY", "apiKey", "api_key"),
    ),
)


def resolve_opencode_zen_credential(config):
    return resolve_credential(CREDENTIAL_SOURCES, config, kind="apiKey")


def fetch_opencode_zen_usage(credential):
    return http_get(BALANCE_URL, {"Authorization": f"Bearer {credential.value}"})


def normalize_opencode_zen_data(response, now_ms: int) -> ProviderResult:
    """Prepaid balance. usedPercent stays 0: there is no ceiling to measure against."""
    status, body = response
    payload = check_response(status, body, BILLING_HINT)
    data = payload.get("data") if isinstance(payload.get("data"), dict) else payload

    balance = number(data.get("balance"))
    used = format_dollars(number(data.get("usage"))) if data.get("usage") is not None else ""

    window = UsageWindow(used=used, remaining=format_dollars(balance), used_percent=0)
    return ProviderResult(service=SERVICE, status=STATUS_OK, five_hour=window)
