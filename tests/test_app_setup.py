"""Application wiring: OpenAPI metadata, routes and the launcher."""

import launcher
from webhook_tester.api.openapi import OpenAPIConfig, _get_openapi_tags
from webhook_tester.main import app


def test_openapi_schema_lists_tags_and_routes(client):
    schema = client.get("/openapi.json").json()

    assert schema["info"]["title"] == OpenAPIConfig.TITLE
    assert [tag["name"] for tag in schema["tags"]] == [tag["name"] for tag in _get_openapi_tags()]
    for path in ("/api/test", "/api/test-all", "/api/reports", "/api/report", "/api/health"):
        assert path in schema["paths"]
    assert app.openapi() is app.openapi_schema


def test_fastapi_config_uses_docs_urls():
    fastapi_config = OpenAPIConfig.get_fastapi_config()

    assert fastapi_config["docs_url"] == "/docs"
    assert fastapi_config["redoc_url"] == "/redoc"


def test_launcher_selects_server_from_environment(monkeypatch):
    calls = []
    monkeypatch.setattr(launcher, "run_dev", lambda: calls.append("dev"))
    monkeypatch.setattr(launcher, "run_prod", lambda: calls.append("prod"))
    monkeypatch.setattr(launcher.signal, "signal", lambda *args: None)

    monkeypatch.setenv("ENVIRONMENT", "production")
    launcher.main()
    monkeypatch.setenv("ENVIRONMENT", "development")
    launcher.main()

    assert calls == ["prod", "dev"]


def test_run_prod_builds_gunicorn_command(monkeypatch):
    captured = {}
    monkeypatch.setattr(
        launcher.subprocess, "run", lambda cmd, check: captured.update(cmd=cmd, check=check)
    )

    launcher.run_prod()

    assert captured["cmd"][:2] == ["gunicorn", "webhook_tester.main:app"]
    assert "uvicorn.workers.UvicornWorker" in captured["cmd"]
    assert captured["check"] is True
