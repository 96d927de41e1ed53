# tests/test_core.py
"""
Tests for the usage monitor's core infrastructure.

These tests verify the kernel pieces work in isolation:
- Layered configuration and dotenv parsing
- Credential source strategies
- Cache persistence and staleness
- Formatting helpers and logger configuration

Run with: pytest tests/test_core.py -v
"""
import json
import os
import tempfile

# Set test environment variables BEFORE importing modules
# so nothing touches the real plugin directory or log file
os.environ.setdefault("AI_USAGE_DIR", tempfile.mkdtemp(prefix="ai-usage-test-"))
os.environ.setdefault("AI_USAGE_LOG_FILE", os.devnull)

from core.cache import CacheStore
from core.config import ConfigSource, load_settings, parse_dotenv
from core.credentials import EnvSource, JsonFileSource, SettingSource, resolve_credential
from core.models import ProviderResult, UsageWindow, format_duration, format_percent, number, parse_iso_ms

NOW = 1_700_000_000_000


def make_config(tmp_path, environ=None, dotenv_text=None, settings=None):
    env_file = tmp_path / ".env"
    if dotenv_text is not None:
        env_file.write_text(dotenv_text)
    return ConfigSource(environ=environ or {}, env_file=env_file, settings=settings or {}, home=tmp_path)


class TestDotenv:
    """Tests for parse_dotenv"""

    def test_parses_quoted_values_and_skips_comments(self, tmp_path):
        path = tmp_path / ".env"
        path.write_text('FOO="bar"\n# comment\nBAZ=qux\n')

        assert parse_dotenv(path) == {"FOO": "bar", "BAZ": "qux"}

    def test_strips_single_quotes(self, tmp_path):
        path = tmp_path / ".env"
        path.write_text("TOKEN='abc 123'\n")

        assert parse_dotenv(path) == {"TOKEN": "abc 123"}

    def test_line_without_equals_is_ignored(self, tmp_path):
        path = tmp_path / ".env"
        path.write_text("JUSTAKEY\nREAL=1\n")

        assert parse_dotenv(path) == {"REAL": "1"}

    def test_empty_value_is_stored(self, tmp_path):
        """KEY= has its '=' past index 0, so it is kept with an empty value"""
        path = tmp_path / ".env"
        path.write_text("EMPTY=\n")

        assert parse_dotenv(path) == {"EMPTY": ""}

    def test_malformed_and_blank_lines_are_skipped(self, tmp_path):
        path = tmp_path / ".env"
        path.write_text("\n   \n=nokey\nGOOD=yes\n")

        assert parse_dotenv(path) == {"GOOD": "yes"}

    def test_later_duplicates_win(self, tmp_path):
        path = tmp_path / ".env"
        path.write_text("KEY=first\nKEY=second\n")

        assert parse_dotenv(path) == {"KEY": "second"}

    def test_no_variable_interpolation(self, tmp_path):
        path = tmp_path / ".env"
        path.write_text("A=1\nB=${A}\n")

        assert parse_dotenv(path)["B"] == "${A}"

    def test_missing_file_is_empty(self, tmp_path):
        assert parse_dotenv(tmp_path / "nope.env") == {}


class TestConfigSource:
    """Tests for ConfigSource precedence"""

    def test_environment_wins_over_dotenv(self, tmp_path):
        config = make_config(tmp_path, environ={"ZAI_API_KEY": "from-env"}, dotenv_text="ZAI_API_KEY=from-file\n")

        assert config.get_env_value("ZAI_API_KEY") == "from-env"
        assert config.lookup("ZAI_API_KEY") == ("from-env", "env:ZAI_API_KEY")

    def test_empty_environment_value_falls_through(self, tmp_path):
        config = make_config(tmp_path, environ={"ZAI_API_KEY": ""}, dotenv_text="ZAI_API_KEY=from-file\n")

        assert config.lookup("ZAI_API_KEY") == ("from-file", "dotenv:ZAI_API_KEY")

    def test_empty_dotenv_value_falls_through_to_settings(self, tmp_path):
        config = make_config(tmp_path, dotenv_text="ZAI_API_KEY=\n", settings={"zaiApiKey": "from-settings"})

        assert config.lookup("ZAI_API_KEY") == ("from-settings", "settings:zaiApiKey")

    def test_settings_keyed_by_env_name(self, tmp_path):
        config = make_config(tmp_path, settings={"CUSTOM_KEY": "value"})

        assert config.get_env_value("CUSTOM_KEY") == "value"

    def test_missing_value_is_empty_string(self, tmp_path):
        config = make_config(tmp_path)

        assert config.get_env_value("NOT_SET_ANYWHERE") == ""
        assert config.lookup("NOT_SET_ANYWHERE") == ("", None)

    def test_reload_picks_up_dotenv_changes(self, tmp_path):
        config = make_config(tmp_path, dotenv_text="OPENROUTER_API_KEY=old\n")
        (tmp_path / ".env").write_text("OPENROUTER_API_KEY=new\n")

        assert config.get_env_value("OPENROUTER_API_KEY") == "old"
        config.reload()
        assert config.get_env_value("OPENROUTER_API_KEY") == "new"

    def test_settings_file_is_loaded_and_reloaded(self, tmp_path):
        settings_file = tmp_path / "settings.json"
        settings_file.write_text(json.dumps({"openaiApiKey": "sk-one"}))
        config = ConfigSource(environ={}, env_file=tmp_path / ".env", settings_file=settings_file, home=tmp_path)

        assert config.get_env_value("OPENAI_API_KEY") == "sk-one"
        settings_file.write_text(json.dumps({"openaiApiKey": "sk-two"}))
        config.reload()
        assert config.get_setting("openaiApiKey") == "sk-two"

    def test_invalid_settings_file_is_ignored(self, tmp_path):
        settings_file = tmp_path / "settings.json"
        settings_file.write_text("{not json")

        assert load_settings(settings_file) == {}


class TestCredentialSources:
    """Tests for core/credentials.py"""

    def test_env_source_tries_aliases_in_order(self, tmp_path):
        config = make_config(tmp_path, environ={"SECOND": "b"}, dotenv_text="FIRST=a\n")

        assert EnvSource("FIRST", "SECOND")(config) == ("a", "dotenv:FIRST")

    def test_env_source_ignores_settings(self, tmp_path):
        """Settings are their own step, after every alias was tried in env and .env"""
        config = make_config(tmp_path, settings={"zaiApiKey": "from-settings", "ZAI_API_KEY": "also-settings"})

        assert EnvSource("ZAI_API_KEY")(config) is None
        assert config.lookup("ZAI_API_KEY", include_settings=False) == ("", None)

    def test_settings_lookup_reports_matching_field(self, tmp_path):
        config = make_config(tmp_path, settings={"openrouterApiKey": "or"})

        assert config.lookup("OPENROUTER_API_KEY") == ("or", "settings:openrouterApiKey")

    def test_setting_source(self, tmp_path):
        config = make_config(tmp_path, settings={"zaiApiKey": "k"})

        assert SettingSource("zaiApiKey")(config) == ("k", "settings:zaiApiKey")
        assert SettingSource("other")(config) is None

    def test_json_file_source_skips_invalid_and_empty_files(self, tmp_path):
        (tmp_path / "one.json").write_text("{broken")
        (tmp_path / "two.json").write_text(json.dumps({"apiKey": ""}))
        (tmp_path / "three.json").write_text(json.dumps({"nested": {"token": "t-3"}}))
        config = make_config(tmp_path)

        source = JsonFileSource(("missing.json", "one.json", "two.json", "three.json"), ("apiKey", "nested.token"))

        assert source(config) == ("t-3", "file:~/three.json")

    def test_json_file_source_ignores_non_object_json(self, tmp_path):
        (tmp_path / "list.json").write_text("[1, 2, 3]")
        config = make_config(tmp_path)

        assert JsonFileSource(("list.json",), ("apiKey",))(config) is None

    def test_resolve_credential_stops_at_first_hit(self, tmp_path):
        (tmp_path / "cfg.json").write_text(json.dumps({"apiKey": "from-file"}))
        config = make_config(tmp_path, settings={"field": "from-settings"})

        credential = resolve_credential(
            (EnvSource("UNSET"), SettingSource("field"), JsonFileSource(("cfg.json",), ("apiKey",))),
            config,
        )

        assert credential.value == "from-settings"
        assert credential.source == "settings:field"
        assert credential.kind == "apiKey"

    def test_resolve_credential_returns_none_when_nothing_found(self, tmp_path):
        config = make_config(tmp_path)

        assert resolve_credential((EnvSource("UNSET"),), config) is None

    def test_credential_repr_hides_secret(self, tmp_path):
        config = make_config(tmp_path, environ={"SECRET_KEY": "sk-very-secret"})

        credential = resolve_credential((EnvSource("SECRET_KEY"),), config)

        assert "sk-very-secret" not in repr(credential)


class TestCacheStore:
    """Tests for core/cache.py"""

    def payload(self, fetched_at=NOW):
        return {
            "ok": True,
            "fetchedAtMs": fetched_at,
            "data": [
                {"service": "claude", "status": "no_credentials", "hint": "Sign in"},
                {"service": "zai", "status": "ok", "fiveHour": UsageWindow("42%", "58%", "1h 0m", NOW, 42.0).to_dict()},
            ],
        }

    def test_round_trip(self, tmp_path):
        cache = CacheStore(path=tmp_path / "cache.json")
        original = self.payload()

        cache.write(original)
        restored = cache.read()

        assert restored["data"] == original["data"]
        assert restored["fetchedAtMs"] == original["fetchedAtMs"]

    def test_write_creates_directory_and_overwrites(self, tmp_path):
        cache = CacheStore(path=tmp_path / "nested" / "dir" / "cache.json")

        cache.write(self.payload(fetched_at=1))
        cache.write(self.payload(fetched_at=2))

        assert cache.read()["fetchedAtMs"] == 2
        assert [p.name for p in (tmp_path / "nested" / "dir").iterdir()] == ["cache.json"]

    def test_read_missing_file(self, tmp_path):
        assert CacheStore(path=tmp_path / "absent.json").read() is None

    def test_read_rejects_corrupt_files(self, tmp_path):
        path = tmp_path / "cache.json"
        cache = CacheStore(path=path)

        for content in ("not json", "[]", '{"ok": true}', '{"data": []}', '{"ok": true, "data": {}}'):
            path.write_text(content)
            assert cache.read() is None, content

    def test_write_failure_is_swallowed(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("")
        cache = CacheStore(path=blocker / "cache.json")

        # Parent is a regular file, so mkdir fails - must not raise
        cache.write(self.payload())

        assert cache.read() is None

    def test_unserializable_payload_is_swallowed(self, tmp_path):
        cache = CacheStore(path=tmp_path / "cache.json")

        cache.write({"ok": True, "fetchedAtMs": NOW, "data": [object()]})

        assert cache.read() is None
        assert list(tmp_path.iterdir()) == []

    def test_is_stale_boundaries(self, tmp_path):
        cache = CacheStore(path=tmp_path / "cache.json")

        assert cache.is_stale({"fetchedAtMs": NOW}, now=NOW) is False
        assert cache.is_stale({"fetchedAtMs": NOW - 179_999}, now=NOW) is False
        assert cache.is_stale({"fetchedAtMs": NOW - 180_000}, now=NOW) is True
        assert cache.is_stale({"fetchedAtMs": 0}, now=NOW) is True
        assert cache.is_stale({"fetchedAtMs": -5}, now=NOW) is True
        assert cache.is_stale({"ok": True, "data": []}, now=NOW) is True
        assert cache.is_stale({"fetchedAtMs": "yesterday"}, now=NOW) is True

    def test_clear(self, tmp_path):
        cache = CacheStore(path=tmp_path / "cache.json")
        cache.write(self.payload())

        cache.clear()
        cache.clear()

        assert cache.read() is None


class TestModels:
    """Tests for core/models.py helpers"""

    def test_format_duration(self):
        assert format_duration(3_600_000) == "1h 0m"
        assert format_duration(90 * 60_000) == "1h 30m"
        assert format_duration(45 * 60_000) == "45m"
        assert format_duration(2 * 86_400_000 + 3 * 3_600_000) == "2d 3h"
        assert format_duration(0) == "now"
        assert format_duration(-1000) == "now"

    def test_format_percent(self):
        assert format_percent(42) == "42%"
        assert format_percent(12.5) == "12.5%"

    def test_number_defaults(self):
        assert number(None) == 0
        assert number("3.5") == 3.5
        assert number("abc") == 0
        assert number(True) == 0
        assert number(7) == 7.0

    def test_number_rejects_non_finite(self):
        assert number(float("nan")) == 0
        assert number(float("inf")) == 0
        assert number("Infinity") == 0
        assert number("-inf", default=5) == 5
        assert number(10 ** 400) == 0

    def test_parse_iso_ms(self):
        assert parse_iso_ms("2023-11-14T22:13:20Z") == NOW
        assert parse_iso_ms("2023-11-14T22:13:20.000+00:00") == NOW
        assert parse_iso_ms("garbage") == 0
        assert parse_iso_ms(None) == 0

    def test_provider_result_omits_absent_fields(self):
        result = ProviderResult(service="openrouter", status="error", error="HTTP 500")

        assert result.to_dict() == {"service": "openrouter", "status": "error", "error": "HTTP 500"}


class TestLogger:
    """Tests for core/logger.py"""

    def test_setup_logger_is_idempotent(self):
        """Verify setup_logger doesn't add duplicate handlers"""
        from core.logger import setup_logger

        logger1 = setup_logger("test_logger")
        initial_handler_count = len(logger1.handlers)

        logger2 = setup_logger("test_logger")

        assert logger1 is logger2
        assert len(logger2.handlers) == initial_handler_count

    def test_log_file_directory_is_created(self, tmp_path):
        """The log lives in the plugin directory, which may not exist yet"""
        import logging
        from core.logger import setup_logger

        log_path = tmp_path / "plugin" / "ai-usage.log"
        logger = setup_logger("test_logger_file", log_file=log_path)

        assert log_path.parent.is_dir()
        assert any(isinstance(h, logging.FileHandler) for h in logger.handlers)

    def test_unwritable_log_file_falls_back_to_console(self, tmp_path):
        import logging
        from core.logger import setup_logger

        # A directory cannot be opened as a log file
        logger = setup_logger("test_logger_unwritable", log_file=tmp_path)

        assert len(logger.handlers) == 1
        assert not isinstance(logger.handlers[0], logging.FileHandler)

    def test_default_log_file_is_in_plugin_dir(self, monkeypatch, tmp_path):
        """Without an override the log goes next to the cache, not into the cwd"""
        import importlib
        import core.config
        import core.logger

        monkeypatch.delenv("AI_USAGE_LOG_FILE", raising=False)
        try:
            reloaded = importlib.reload(core.logger)
            assert reloaded.LOG_FILE == core.config.PLUGIN_DIR / "ai-usage.log"
        finally:
            monkeypatch.undo()
            importlib.reload(core.logger)
