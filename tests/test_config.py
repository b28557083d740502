"""Tests for settings - defaults, environment overrides and validation."""

from decimal import Decimal
from pathlib import Path

import pytest
from pydantic import ValidationError

from hypetrad.config import AccountConfig, PriceFeedConfig, Settings, load_settings


def test_defaults(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    settings = Settings()

    assert settings.database.path == Path("hypetrad.db")
    assert settings.account.initial_cash == Decimal("100000")
    assert settings.account.min_password_length == 8
    assert settings.price_feed.interval_seconds == 60.0
    assert settings.price_feed.max_step == Decimal("1.00")
    assert settings.quotes.rapidapi_key == ""
    assert settings.quotes.max_results == 5
    assert settings.journal.export_dir == Path("journals")
    assert settings.logging.level == "INFO"


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HYPETRAD_DATABASE__PATH", "/tmp/other.db")
    monkeypatch.setenv("HYPETRAD_ACCOUNT__INITIAL_CASH", "25000.50")
    monkeypatch.setenv("HYPETRAD_PRICE_FEED__SEED", "7")
    monkeypatch.setenv("HYPETRAD_LOGGING__LEVEL", "DEBUG")

    settings = load_settings()

    assert settings.database.path == Path("/tmp/other.db")
    assert settings.account.initial_cash == Decimal("25000.50")
    assert settings.price_feed.seed == 7
    assert settings.logging.level == "DEBUG"


def test_dotenv_file(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    (tmp_path / ".env").write_text("HYPETRAD_QUOTES__RAPIDAPI_KEY=abc123\n", encoding="utf-8")

    assert Settings().quotes.rapidapi_key == "abc123"


@pytest.mark.parametrize(
    "factory",
    [
        lambda: AccountConfig(initial_cash=Decimal("0")),
        lambda: AccountConfig(min_password_length=0),
        lambda: PriceFeedConfig(interval_seconds=0),
        lambda: PriceFeedConfig(min_price=Decimal("0")),
    ],
)
def test_validation(factory):
    with pytest.raises(ValidationError):
        factory()
