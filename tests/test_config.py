"""Tests for backend.config.Settings."""

from pathlib import Path

from backend.config import DEFAULT_DATA_DIR, Settings


def test_defaults(monkeypatch):
    for name in ("DATA_DIR", "HOST", "BACKEND_PORT", "LOG_LEVEL", "USER_HEADER", "DEV_USER"):
        monkeypatch.delenv(name, raising=False)
    s = Settings.from_env()
    assert s.data_dir == DEFAULT_DATA_DIR
    assert s.host == "0.0.0.0"
    assert s.port == 13013
    assert s.log_level == "INFO"
    assert s.user_header == "X-User-Id"
    assert s.dev_user == ""


def test_env_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "quests"))
    monkeypatch.setenv("BACKEND_PORT", "9000")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("USER_HEADER", "X-Forwarded-User")
    monkeypatch.setenv("DEV_USER", " tester ")
    s = Settings.from_env()
    assert s.data_dir == Path(tmp_path / "quests")
    assert s.port == 9000
    assert s.log_level == "DEBUG"
    assert s.user_header == "X-Forwarded-User"
    assert s.dev_user == "tester"


def test_bad_port_falls_back(monkeypatch):
    monkeypatch.setenv("BACKEND_PORT", "not-a-port")
    assert Settings.from_env().port == 13013
