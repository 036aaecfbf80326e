"""Settings read from the environment (and a local .env file)."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from functools import lru_cache
from typing import List, Literal

from dotenv import load_dotenv
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import Route

load_dotenv()


def _default_routes() -> List[Route]:
    return [
        Route("GIG", "SSA", "Salvador"),
        Route("GIG", "REC", "Recife"),
        Route("GIG", "MCZ", "Maceió"),
    ]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    # secrets
    telegram_token: str = Field(..., alias="TELEGRAM_BOT_TOKEN")
    chat_id: str = Field(..., alias="CHAT_ID")
    rapidapi_key: str = Field(..., alias="RAPIDAPI_KEY")

    # what to watch
    routes: List[Route] = Field(default_factory=_default_routes, alias="ROUTES")
    price_threshold: Decimal = Field(Decimal("700"), alias="PRICE_THRESHOLD")
    leg_price_threshold: Decimal = Field(
        Decimal("360"), alias="LEG_PRICE_THRESHOLD"
    )
    routing_policy: Literal["strict", "lenient"] = Field(
        "strict", alias="ROUTING_POLICY"
    )
    max_layover_min: int = Field(90, alias="MAX_LAYOVER_MIN")
    leg_strategy: Literal["joint", "paired"] = Field(
        "joint", alias="LEG_STRATEGY"
    )
    follow_return_leg: bool = Field(True, alias="FOLLOW_RETURN_LEG")
    trip_days: int = Field(11, alias="TRIP_DAYS")
    pair_offset_days: int = Field(12, alias="PAIR_OFFSET_DAYS")
    window_start: date = Field(date(2025, 5, 1), alias="WINDOW_START")
    window_end: date = Field(date(2025, 5, 31), alias="WINDOW_END")

    # when and how to notify
    schedule_cron: str = Field("0 */4 * * *", alias="SCHEDULE_CRON")
    batch_per_run: bool = Field(False, alias="BATCH_PER_RUN")
    schedule_tz: str = Field("UTC", alias="SCHEDULE_TZ")

    # provider request fields
    currency: str = Field("BRL", alias="CURRENCY")
    currency_symbol: str = Field("R$", alias="CURRENCY_SYMBOL")
    country_code: str = Field("BR", alias="COUNTRY_CODE")
    language_code: str = Field("pt-BR", alias="LANGUAGE_CODE")
    travel_class: str = Field("ECONOMY", alias="TRAVEL_CLASS")
    adults: int = Field(1, alias="ADULTS")
    rapidapi_host: str = Field(
        "google-flights2.p.rapidapi.com", alias="RAPIDAPI_HOST"
    )
    http_timeout_s: float = Field(15.0, alias="HTTP_TIMEOUT_S")

    log_file: str = Field("fare_alert.log", alias="LOG_FILE")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    @field_validator("telegram_token", "chat_id", "rapidapi_key")
    @classmethod
    def _secret_non_empty(cls, v: str, info) -> str:
        if not v or not v.strip():
            raise ValueError(f"{info.field_name} must be a non-empty string")
        return v.strip()

    @field_validator(
        "price_threshold", "leg_price_threshold", "http_timeout_s"
    )
    @classmethod
    def _positive(cls, v):
        if v <= 0:
            raise ValueError("must be greater than 0")
        return v

    @field_validator(
        "max_layover_min", "trip_days", "pair_offset_days", "adults"
    )
    @classmethod
    def _positive_int(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be greater than 0")
        return v

    @field_validator("schedule_cron")
    @classmethod
    def _cron_fields(cls, v: str) -> str:
        if len(v.split()) != 5:
            raise ValueError("SCHEDULE_CRON must have five fields")
        return v

    @field_validator("routes")
    @classmethod
    def _routes_non_empty(cls, v: List[Route]) -> List[Route]:
        if not v:
            raise ValueError("ROUTES must contain at least one route")
        return v

    @model_validator(mode="after")
    def _window_order(self) -> "Settings":
        if self.window_start > self.window_end:
            raise ValueError("WINDOW_START must not be after WINDOW_END")
        return self


@lru_cache()
def get_settings() -> Settings:
    """Return application settings loaded from the environment."""
    return Settings()  # type: ignore[call-arg]


__all__ = ["Settings", "get_settings"]
