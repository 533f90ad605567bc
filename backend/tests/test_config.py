import logging

from position_service.config import DEFAULT_MAX_UPLOAD_BYTES, PositionSettings, get_settings
from position_service.core.logging import setup_logging
from position_service.core.telemetry import setup_telemetry


def test_settings_defaults(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    settings = PositionSettings()

    assert settings.database_url.startswith("postgresql+asyncpg://")
    assert settings.max_upload_bytes == DEFAULT_MAX_UPLOAD_BYTES == 1024 * 1024
    assert settings.stock_splits_file is None
    assert settings.telemetry_enabled is False


def test_settings_read_environment(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///./positions.db")
    monkeypatch.setenv("MAX_UPLOAD_BYTES", "2048")
    monkeypatch.setenv("IMPORT_DIR", str(tmp_path / "staging"))

    settings = PositionSettings()

    assert settings.database_url == "sqlite+aiosqlite:///./positions.db"
    assert settings.max_upload_bytes == 2048
    assert settings.import_dir == tmp_path / "staging"


def test_dict_for_logging_hides_password():
    settings = PositionSettings(database_url="postgresql+asyncpg://positions:s3cret@db:5432/positions")

    logged = settings.dict_for_logging()

    assert "s3cret" not in logged["database_url"]
    assert logged["database_url"].startswith("postgresql+asyncpg://positions:")


def test_get_settings_is_cached():
    get_settings.cache_clear()
    try:
        assert get_settings() is get_settings()
    finally:
        get_settings.cache_clear()


def test_telemetry_disabled_is_a_no_op():
    assert setup_telemetry(PositionSettings(telemetry_enabled=False)) is False


def test_setup_logging_installs_one_handler():
    root = logging.getLogger()
    before = list(root.handlers)
    previous_level = root.level
    try:
        first = setup_logging("debug")
        second = setup_logging(logging.WARNING)

        assert first is second
        assert [h for h in root.handlers if h not in before] == [first]
        assert root.level == logging.WARNING
    finally:
        for handler in list(root.handlers):
            if handler not in before:
                root.removeHandler(handler)
        root.setLevel(previous_level)
