"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, hardcover-tui.toml only contains
overrides. A fresh install needs no config file at all.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

DEFAULT_ENDPOINT = "https://api.hardcover.app/v1/graphql"


class ApiConfig(BaseModel):
    """[api] section."""

    model_config = {"frozen": True}

    endpoint: str = DEFAULT_ENDPOINT
    requests_per_minute: int = Field(default=60, ge=1)


class TimeoutsConfig(BaseModel):
    """[timeouts] section. Seconds."""

    model_config = {"frozen": True}

    primary: float = Field(default=30.0, gt=0)
    secondary: float = Field(default=15.0, gt=0)
    credentials: float = Field(default=10.0, gt=0)


class UiConfig(BaseModel):
    """[ui] section."""

    model_config = {"frozen": True}

    filter_debounce_ms: int = Field(default=300, ge=0)
    list_debounce_ms: int = Field(default=250, ge=0)
    notification_seconds: float = Field(default=3.0, gt=0)
    fps: int = Field(default=20, ge=1, le=60)
    page_size: int = Field(default=50, ge=1, le=500)
    max_notifications: int = Field(default=5, ge=1)

    @property
    def filter_debounce(self) -> float:
        return self.filter_debounce_ms / 1000

    @property
    def list_debounce(self) -> float:
        return self.list_debounce_ms / 1000


class CredentialsConfig(BaseModel):
    """[credentials] section."""

    model_config = {"frozen": True}

    # "auto" uses the OS keyring when one is available, else the token file.
    backend: Literal["auto", "keyring", "file"] = "auto"
    path: Path | None = None
