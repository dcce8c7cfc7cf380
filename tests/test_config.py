import sys
from types import ModuleType

import pytest


def test_parse_helpers_cover_edge_cases():
    from webhook_tester.core import config as cfg

    assert cfg._parse_bool(None, default=True) is True
    assert cfg._parse_bool(" TrUe ") is True
    assert cfg._parse_bool("0") is False
    assert cfg._parse_bool("not-a-bool", default=False) is False

    assert cfg._parse_int(None, 7) == 7
    assert cfg._parse_int("not-an-int", 7) == 7
    assert cfg._parse_int(" 5 ", 0) == 5
    assert cfg._parse_int("5", 0, min_value=10) == 10
    assert cfg._parse_int("500", 0, max_value=100) == 100

    assert cfg._parse_float(None, 2.0) == 2.0
    assert cfg._parse_float("nope", 2.0) == 2.0
    assert cfg._parse_float(" 0.5 ", 0.0) == 0.5
    assert cfg._parse_float("-1", 0.0, min_value=0.0) == 0.0

    assert cfg._parse_list(" a, ,b ", ["*"]) == ["a", "b"]
    assert cfg._parse_list("", ["*"]) == ["*"]


def test_defaults_match_polling_and_concurrency_policy(monkeypatch):
    from webhook_tester.core import config as cfg

    for key in cfg._CONFIG_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)

    instance = cfg.Config()

    assert instance.POLL_INTERVAL_SECONDS == 2.0
    assert instance.POLL_MAX_ATTEMPTS == 150
    assert instance.BATCH_CONCURRENCY == 50
    assert instance.SSE_HEARTBEAT_SECONDS == 15.0
    assert instance.LISTING_PAGE_SIZE == 100
    assert instance.SERVER_PORT == 3000
    assert instance.LOG_DIRECTORY.endswith("/")
    assert instance.has_api_token is False
    assert instance.DRIVE_FOLDER_NAME == "Preset Gen"


def test_environment_overrides(monkeypatch):
    from webhook_tester.core import config as cfg

    monkeypatch.setenv("POLL_INTERVAL_SECONDS", "0.5")
    monkeypatch.setenv("POLL_MAX_ATTEMPTS", "3")
    monkeypatch.setenv("BATCH_CONCURRENCY", "0")
    monkeypatch.setenv("PICSART_API_TOKEN", "  secret  ")
    monkeypatch.setenv("CMS_API_BASE_URL", "https://cms.example.com/api/")

    instance = cfg.Config()

    assert instance.POLL_INTERVAL_SECONDS == 0.5
    assert instance.POLL_MAX_ATTEMPTS == 3
    assert instance.BATCH_CONCURRENCY == 1
    assert instance.PICSART_API_TOKEN == "secret"
    assert instance.has_api_token is True
    assert instance.CMS_API_BASE_URL == "https://cms.example.com/api"


def test_validate_configuration_rejects_wildcard_with_credentials(monkeypatch):
    from webhook_tester.core import config as cfg

    monkeypatch.setenv("CORS_ALLOW_CREDENTIALS", "true")
    monkeypatch.setenv("CORS_ALLOW_ORIGINS", "*")

    with pytest.raises(ValueError, match="CORS"):
        cfg.Config().validate_configuration()


def test_validate_configuration_warns_without_token(monkeypatch, capsys):
    from webhook_tester.core import config as cfg

    monkeypatch.delenv("PICSART_API_TOKEN", raising=False)
    cfg.Config().validate_configuration()

    assert "PICSART_API_TOKEN is not set" in capsys.readouterr().out


def test_clear_config_env_vars_removes_only_managed(monkeypatch):
    from webhook_tester.core import config as cfg

    monkeypatch.setenv("POLL_MAX_ATTEMPTS", "5")
    monkeypatch.setenv("SOME_OTHER", "keep")

    cfg._clear_config_env_vars()

    assert "SOME_OTHER" in cfg.os.environ
    assert "POLL_MAX_ATTEMPTS" not in cfg.os.environ


def test_load_environment_variables_override_and_default_paths(monkeypatch, capsys):
    from webhook_tester.core import config as cfg

    monkeypatch.setenv("CONFIG_ENV_PATH", "/tmp/does-not-exist.env")
    monkeypatch.setattr(cfg.os.path, "exists", lambda _: False)
    cfg._load_environment_variables()
    out = capsys.readouterr().out
    assert "override path" in out
    assert "no .env file found" in out

    monkeypatch.delenv("CONFIG_ENV_PATH", raising=False)
    monkeypatch.delenv("ENV_FILE", raising=False)
    cfg._load_environment_variables()
    out = capsys.readouterr().out
    assert "default path" in out


def test_load_environment_variables_uses_dotenv(monkeypatch, capsys):
    from webhook_tester.core import config as cfg

    calls = []
    fake_dotenv = ModuleType("dotenv")

    def fake_load_dotenv(path, *, override=False):
        calls.append((path, override))

    fake_dotenv.load_dotenv = fake_load_dotenv

    monkeypatch.setenv("CONFIG_ENV_PATH", "/tmp/fake.env")
    monkeypatch.setattr(cfg.os.path, "exists", lambda _: True)
    monkeypatch.setitem(sys.modules, "dotenv", fake_dotenv)

    cfg._load_environment_variables()

    assert calls == [("/tmp/fake.env", True)]
    assert "Loaded environment variables" in capsys.readouterr().out


def test_reload_config_env_updates_shared_instance(monkeypatch):
    from webhook_tester.core import config as cfg

    shared = cfg.config
    original = dict(shared.__dict__)
    monkeypatch.setenv("POLL_MAX_ATTEMPTS", "1")
    monkeypatch.setattr(
        cfg, "_load_environment_variables", lambda: cfg.os.environ.update(POLL_MAX_ATTEMPTS="42")
    )

    try:
        reloaded = cfg.reload_config_env()
        assert reloaded is shared
        assert shared.POLL_MAX_ATTEMPTS == 42
    finally:
        shared.__dict__.clear()
        shared.__dict__.update(original)
        cfg._CONFIG_INSTANCE = shared
