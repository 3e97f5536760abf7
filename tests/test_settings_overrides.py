from __future__ import annotations

from typing import Iterator

import pytest

from settings import get_settings


@pytest.fixture(autouse=True)
def _fresh_settings() -> Iterator[None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_environment_overrides_apply(monkeypatch, tmp_path) -> None:
    database = tmp_path / "records.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{database}")
    monkeypatch.setenv("PUBLIC_BASE_URL", "https://records.plant.test/")
    monkeypatch.setenv("CLOUDINARY_API_SECRET", "  s3cret  ")
    monkeypatch.setenv("GMAIL_USER", "alerts@plant.test")
    monkeypatch.setenv("DEFAULT_NOTIFICATION_RECIPIENTS", "a@plant.test, ,b@plant.test")
    monkeypatch.setenv("RECORD_LIST_LIMIT", "25")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = get_settings()

    assert settings.database_url == f"sqlite:///{database}"
    assert settings.public_base_url == "https://records.plant.test"
    assert settings.cloudinary_api_secret == "s3cret"
    assert settings.mail_user == "alerts@plant.test"
    assert settings.default_recipients == ("a@plant.test", "b@plant.test")
    assert settings.record_list_limit == 25
    assert settings.log_level == "DEBUG"


def test_invalid_values_fall_back_to_defaults(monkeypatch) -> None:
    monkeypatch.setenv("RECORD_LIST_LIMIT", "-3")
    monkeypatch.setenv("GMAIL_APP_PASSWORD", "   ")
    monkeypatch.setenv("LOG_LEVEL", "")
    monkeypatch.delenv("DATABASE_URL", raising=False)

    settings = get_settings()

    assert settings.record_list_limit == 10
    assert settings.mail_password is None
    assert settings.log_level == "INFO"
    assert settings.database_url == "sqlite:///./tmp/maintenance.db"
