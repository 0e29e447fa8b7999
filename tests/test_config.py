"""Tests for settings loading and the CLI entry point."""

import pytest
from click.testing import CliRunner

from slack2notion import __version__
from slack2notion.cli import main
from slack2notion.config import Settings, get_settings
from slack2notion.exceptions import ConfigurationError

ENV = {
    "SLACK_BOT_TOKEN": "xoxb-test",
    "SLACK_SIGNING_SECRET": "signing-secret",
    "NOTION_TOKEN": "secret_notion",
}


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    # Keep a developer's .env out of the tests
    monkeypatch.chdir(tmp_path)
    for name in [*ENV, "SLACK_SHORTCUT_ID", "NOTION_VERSION", "PORT", "LOG_LEVEL"]:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSettings:
    """Tests for Settings."""

    def test_from_environment(self, monkeypatch):
        for name, value in ENV.items():
            monkeypatch.setenv(name, value)
        settings = get_settings()
        assert settings.slack_bot_token == "xoxb-test"
        assert settings.notion_token == "secret_notion"
        assert settings.shortcut_id == "push_to_notion"
        assert settings.notion_version == "2022-06-28"
        assert settings.port == 3000

    def test_overrides(self, monkeypatch):
        for name, value in ENV.items():
            monkeypatch.setenv(name, value)
        monkeypatch.setenv("SLACK_SHORTCUT_ID", "to_notion")
        monkeypatch.setenv("PORT", "8080")
        settings = Settings()
        assert settings.shortcut_id == "to_notion"
        assert settings.port == 8080

    def test_from_env_file(self, tmp_path):
        (tmp_path / ".env").write_text(
            "SLACK_BOT_TOKEN=xoxb-file\nSLACK_SIGNING_SECRET=s\nNOTION_TOKEN=n\n"
        )
        assert get_settings().slack_bot_token == "xoxb-file"

    def test_missing_settings(self):
        with pytest.raises(ConfigurationError) as exc_info:
            get_settings()
        assert "SLACK_BOT_TOKEN" in str(exc_info.value)


class TestCli:
    """Tests for the click entry point."""

    def test_version(self):
        result = CliRunner().invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_command_without_settings(self):
        result = CliRunner().invoke(main, ["schema", "db-1"])
        assert result.exit_code == 1
        assert "Error loading settings" in result.output
