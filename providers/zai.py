# providers/zai.py
from core.credentials import EnvSource, JsonFileSource, SettingSource, resolve_credential
from core.http import check_response, http_get
from core.models import STATUS_OK, ProviderResult, number, percent_window

SERVICE = "zai"
USAGE_URL = "https://api.z.ai/api/monitor/usage/quota/limit"

KEY_HINT = "Check your API key at https://z.ai/manage-apikey/apikey-list"
MISSING_HINT = "Set ZAI_API_KEY in the plugin .env file"

CREDENTIAL_SOURCES = (
    EnvSource("ZAI_API_KEY", "ZAI_KEY", "ZHIPU_API_KEY", "ZHIPUAI_API_KEY"),
    SettingSource("zaiApiKey"),
    JsonFileSource((".zai/config.json", ".config/zai/config.json"), ("apiKey", "api_key")),
)

# limit type -> result window
WINDOWS = {"TOKENS_LIMIT": "five_hour", "TIME_LIMIT": "seven_day"}


def resolve_zai_credential(config):
    return resolve_credential(CREDENTIAL_SOURCES, config, kind="apiKey")


def fetch_zai_usage(credential):
    # z.ai expects the bare key, no "Bearer" prefix
    return http_get(USAGE_URL, {"Authorization": credential.value})


def normalize_zai_data(response, now_ms: int) -> ProviderResult:
    """
    The quota endpoint wraps a "limits" list in "data". Each entry has a
    type, a "percentage" used and an absolute "nextResetTime" in ms.
    """
    status, body = response
    payload = check_response(status, body, KEY_HINT)
    data = payload.get("data") if isinstance(payload.get("data"), dict) else payload

    result = ProviderResult(service=SERVICE, status=STATUS_OK)
    plan = data.get("planName") or data.get("level")
    if isinstance(plan, str) and plan:
        result.plan = plan

    limits = data.get("limits")
    for entry in limits if isinstance(limits, list) else []:
        if not isinstance(entry, dict):
            continue
        attr = WINDOWS.get(entry.get("type"))
        if attr is None or getattr(result, attr) is not None:
            continue
        window = percent_window(number(entry.get("percentage")), int(number(entry.get("nextResetTime"))), now_ms)
        setattr(result, attr, window)

    return result
