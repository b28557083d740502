"""Configuration management using pydantic settings."""

from decimal import Decimal
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


class DatabaseConfig(BaseModel):
    """Database configuration."""

    path: Path = Field(default=Path("hypetrad.db"))


class AccountConfig(BaseModel):
    """Account defaults."""

    initial_cash: Decimal = Field(
        default=Decimal("100000"),
        gt=0,
        description="Cash balance of a new or reset account",
    )
    min_password_length: int = Field(default=8, ge=1)


class PriceFeedConfig(BaseModel):
    """Simulated price feed configuration."""

    interval_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Seconds between simulated price ticks",
    )

    # Each tick moves a price by a uniform random amount in [-max_step, +max_step]
    max_step: Decimal = Field(default=Decimal("1.00"), ge=0)
    min_price: Decimal = Field(default=Decimal("0.01"), gt=0)
    seed: int | None = Field(default=None)


class QuotesConfig(BaseModel):
    """Quote search configuration."""

    rapidapi_key: str = Field(default="")
    rapidapi_host: str = Field(default="apidojo-yahoo-finance-v1.p.rapidapi.com")
    region: str = Field(default="US")
    timeout_seconds: float = Field(default=10.0, gt=0)
    max_results: int = Field(default=5, ge=1, le=20)


class JournalConfig(BaseModel):
    """Journal export configuration."""

    export_dir: Path = Field(default=Path("journals"))


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    log_dir: Path = Field(default=Path("logs"))
    json_format: bool = Field(default=True)


class Settings(BaseSettings):
    """Application settings."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    account: AccountConfig = Field(default_factory=AccountConfig)
    price_feed: PriceFeedConfig = Field(default_factory=PriceFeedConfig)
    quotes: QuotesConfig = Field(default_factory=QuotesConfig)
    journal: JournalConfig = Field(default_factory=JournalConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {
        "env_prefix": "HYPETRAD_",
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


def load_settings() -> Settings:
    """Load settings from environment variables."""
    return Settings()
