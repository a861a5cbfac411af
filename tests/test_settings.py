# tests/test_settings.py
from hello_chatbot.settings import Settings


def test_dev_server_settings_from_environment(monkeypatch):
    monkeypatch.setenv("DEV_SERVER_HOST", "0.0.0.0")
    monkeypatch.setenv("DEV_SERVER_PORT", "9001")
    monkeypatch.setenv("DEV_SERVER_RELOAD", "false")

    loaded = Settings()

    assert loaded.dev_server_host == "0.0.0.0"
    assert loaded.dev_server_port == 9001
    assert loaded.dev_server_reload is False


def test_dev_server_reload_unset_by_default(monkeypatch):
    monkeypatch.delenv("DEV_SERVER_RELOAD", raising=False)

    assert Settings(_env_file=None).dev_server_reload is None
