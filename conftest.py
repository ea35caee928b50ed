"""Root conftest.py — loads .env before any tests run."""
import pytest
from dotenv import load_dotenv

load_dotenv()


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    """Clear the lru_cache on get_settings so monkeypatch.setenv takes effect."""
    from config.settings import get_settings
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fresh_db(tmp_path):
    """Point persistence at an empty SQLite file for the duration of one test."""
    from config.settings import settings
    from persistence import database

    database.use_database(str(tmp_path / "test.db"))
    database.init_db()
    yield database
    database.use_database(settings.sqlite_db_path)
