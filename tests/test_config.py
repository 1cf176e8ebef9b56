# ABOUTME: Tests for environment-driven application configuration
# ABOUTME: Defaults, TRADE_JOURNAL_ prefixed overrides and the cached global instance

from pathlib import Path

from trade_journal.config import Config, get_config, reload_config


def test_defaults(monkeypatch):
    for name in ("TRADE_JOURNAL_UPLOAD_DIR", "TRADE_JOURNAL_DATABASE_URL", "TRADE_JOURNAL_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)

    config = Config(_env_file=None)

    assert config.upload_dir == Path("public/uploads")
    assert config.image_subdir == "images"
    assert config.public_base_url == "/uploads"
    assert config.database_url.startswith("sqlite+aiosqlite://")
    assert "image/png" in config.allowed_upload_types
    assert "webp" in config.inline_image_subtypes
    assert config.log_level == "INFO"


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("TRADE_JOURNAL_UPLOAD_DIR", str(tmp_path))
    monkeypatch.setenv("TRADE_JOURNAL_PUBLIC_BASE_URL", "https://cdn.test/u")
    monkeypatch.setenv("TRADE_JOURNAL_ALLOWED_UPLOAD_TYPES", '["image/png", "image/webp"]')
    monkeypatch.setenv("TRADE_JOURNAL_LOG_LEVEL", "DEBUG")

    config = Config(_env_file=None)

    assert config.upload_dir == tmp_path
    assert config.public_base_url == "https://cdn.test/u"
    assert config.allowed_upload_types == ["image/png", "image/webp"]
    assert config.log_level == "DEBUG"


def test_get_config_is_cached_until_reload(monkeypatch):
    first = reload_config()
    assert get_config() is first

    monkeypatch.setenv("TRADE_JOURNAL_PUBLIC_BASE_URL", "/media")
    second = reload_config()

    assert second is not first
    assert get_config().public_base_url == "/media"

    monkeypatch.delenv("TRADE_JOURNAL_PUBLIC_BASE_URL")
    reload_config()
