from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from fare_alert.config import get_settings, Settings
from fare_alert.models import Route


@pytest.fixture
def secrets(monkeypatch):
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "abc")
    monkeypatch.setenv("CHAT_ID", "12345")
    monkeypatch.setenv("RAPIDAPI_KEY", "key")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_settings_from_env(secrets, monkeypatch):
    monkeypatch.setenv("PRICE_THRESHOLD", "650")
    monkeypatch.setenv("ROUTING_POLICY", "lenient")
    monkeypatch.setenv(
        "ROUTES",
        '[{"origin_code": "GIG", "destination_code": "FOR", "display_name": "Fortaleza"}]',
    )

    cfg = get_settings()
    assert isinstance(cfg, Settings)
    assert cfg.telegram_token == "abc"
    assert cfg.chat_id == "12345"
    assert cfg.price_threshold == Decimal("650")
    assert cfg.routing_policy == "lenient"
    assert cfg.routes == [Route("GIG", "FOR", "Fortaleza")]


def test_defaults(secrets):
    cfg = get_settings()
    assert cfg.price_threshold == Decimal("700")
    assert cfg.leg_price_threshold == Decimal("360")
    assert cfg.max_layover_min == 90
    assert cfg.pair_offset_days == 12
    assert cfg.window_start == date(2025, 5, 1)
    assert cfg.schedule_cron == "0 */4 * * *"
    assert [r.destination_code for r in cfg.routes] == ["SSA", "REC", "MCZ"]


@pytest.mark.parametrize("missing", ["TELEGRAM_BOT_TOKEN", "CHAT_ID", "RAPIDAPI_KEY"])
def test_missing_secret_fails_fast(secrets, monkeypatch, missing):
    monkeypatch.delenv(missing)
    with pytest.raises(ValidationError):
        get_settings()


def test_blank_secret_rejected(secrets, monkeypatch):
    monkeypatch.setenv("RAPIDAPI_KEY", "   ")
    with pytest.raises(ValidationError):
        get_settings()


@pytest.mark.parametrize(
    "name, value",
    [
        ("ROUTING_POLICY", "fast"),
        ("LEG_STRATEGY", "both"),
        ("PRICE_THRESHOLD", "0"),
        ("SCHEDULE_CRON", "every hour"),
        ("ROUTES", "[]"),
    ],
)
def test_invalid_values(secrets, monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ValidationError):
        get_settings()


def test_window_order(secrets, monkeypatch):
    monkeypatch.setenv("WINDOW_START", "2025-06-01")
    monkeypatch.setenv("WINDOW_END", "2025-05-01")
    with pytest.raises(ValidationError):
        get_settings()
