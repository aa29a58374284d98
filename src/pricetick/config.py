"""
Settings for pricetick.

Values come from, in increasing precedence: field defaults, a ``.env``
file, ``PRICETICK_*`` environment variables, explicit overrides (the CLI
flags).
"""

import logging
import os
from typing import Any, Optional

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .core.errors import ConfigurationError

ENV_PREFIX = "PRICETICK_"


class Settings(BaseModel):
    """Validated configuration shared by the server, clients and CLI."""

    model_config = ConfigDict(frozen=True)

    # Network
    host: str = Field(default="localhost", description="Server host")
    port: int = Field(default=8080, ge=0, le=65535, description="Server port, 0 picks a free one")

    # Market
    min_price: int = Field(default=10, ge=0, description="Lowest generated price")
    max_price: int = Field(default=100, ge=0, description="Highest generated price")
    price_interval: float = Field(default=3.0, gt=0, description="Seconds between price ticks")

    # Clients
    min_budget: int = Field(default=10, ge=0, description="Lowest random client budget")
    max_budget: int = Field(default=75, ge=0, description="Highest random client budget")
    target_purchases: int = Field(default=10, ge=1, description="Approved purchases before a client finishes")

    # Combined mode
    num_clients: int = Field(default=3, ge=1, description="Clients started alongside the server")
    start_delay: float = Field(default=2.0, ge=0, description="Seconds to wait for the server before clients start")
    client_stagger: float = Field(default=1.0, ge=0, description="Seconds between client launches")

    # Diagnostics
    log_level: str = Field(default="INFO", description="Root log level")
    max_events: int = Field(default=1000, ge=1, description="Diagnostic event log capacity")

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level {value!r}")
        return level

    @model_validator(mode="after")
    def _check_ranges(self) -> "Settings":
        if self.min_price > self.max_price:
            raise ValueError(f"min_price {self.min_price} exceeds max_price {self.max_price}")
        if self.min_budget > self.max_budget:
            raise ValueError(f"min_budget {self.min_budget} exceeds max_budget {self.max_budget}")
        return self


def load_settings(env_file: Optional[str] = None, **overrides: Any) -> Settings:
    """
    Build settings from the environment.

    Args:
        env_file: Path to a .env file. If None, the nearest .env from the
            working directory is used when one exists. Variables already
            set in the environment win over the file.
        **overrides: Explicit values; None entries are ignored

    Returns:
        Settings

    Raises:
        ConfigurationError: a value failed validation
    """
    dotenv_path = env_file or find_dotenv(usecwd=True)
    if dotenv_path:
        load_dotenv(dotenv_path)

    values = {}
    for name in Settings.model_fields:
        raw = os.environ.get(f"{ENV_PREFIX}{name.upper()}")
        if raw is not None:
            values[name] = raw

    values.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return Settings(**values)
    except ValidationError as e:
        raise ConfigurationError(str(e)) from e
