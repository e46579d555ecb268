"""
Unit tests for environment config: typed defaults and fallback on bad values.
"""

from snipsearch.config import settings


def test_defaults_are_typed() -> None:
    assert isinstance(settings.EMBEDDING_DIM, int)
    assert isinstance(settings.SEARCH_DEFAULT_LIMIT, int)
    assert isinstance(settings.DB_TIMEOUT_SEC, float)
    assert isinstance(settings.EMBEDDING_MODEL_NAME, str)


def test_search_limits_consistent() -> None:
    assert 1 <= settings.SEARCH_DEFAULT_LIMIT <= settings.SEARCH_MAX_LIMIT
    assert settings.SEARCH_QUERY_MAX_LENGTH > 0


def test_int_env_falls_back_on_invalid(monkeypatch) -> None:
    monkeypatch.setenv("SNIPSEARCH_TEST_INT", "not-a-number")
    assert settings._int_env("SNIPSEARCH_TEST_INT", 7) == 7
    monkeypatch.setenv("SNIPSEARCH_TEST_INT", "12")
    assert settings._int_env("SNIPSEARCH_TEST_INT", 7) == 12


def test_float_env_unset_returns_default(monkeypatch) -> None:
    monkeypatch.delenv("SNIPSEARCH_TEST_FLOAT", raising=False)
    assert settings._float_env("SNIPSEARCH_TEST_FLOAT", 2.5) == 2.5


def test_database_url_from_env(monkeypatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/snippets")
    assert settings.get_database_url() == "postgresql://localhost/snippets"
    monkeypatch.delenv("DATABASE_URL")
    assert settings.get_database_url() is None


def test_log_level_env_falls_back_on_unknown_name(monkeypatch) -> None:
    monkeypatch.setenv("SNIPSEARCH_TEST_LOG_LEVEL", "verbose")
    assert settings._log_level_env("SNIPSEARCH_TEST_LOG_LEVEL", "INFO") == "INFO"
    monkeypatch.setenv("SNIPSEARCH_TEST_LOG_LEVEL", " debug ")
    assert settings._log_level_env("SNIPSEARCH_TEST_LOG_LEVEL", "INFO") == "DEBUG"
    monkeypatch.delenv("SNIPSEARCH_TEST_LOG_LEVEL")
    assert settings._log_level_env("SNIPSEARCH_TEST_LOG_LEVEL", "WARNING") == "WARNING"
