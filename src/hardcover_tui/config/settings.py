"""Settings for one invocation: CLI flags, env vars and the TOML config file.

Priority chain (highest to lowest):
  1. Init kwargs: CLI flags passed by Click
  2. Env vars: ``HARDCOVER_TUI_*`` prefix
  3. TOML file: ``hardcover-tui.toml`` discovered via walk-up
  4. Code defaults: baked into the section models

Uses Pydantic Settings v2 with a custom :class:`TomlSettingsSource` that
reuses the discovery logic from :mod:`hardcover_tui.config.discovery`.
"""

from __future__ import annotations

import threading
import tomllib
from pathlib import Path
from typing import Any

import click
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from hardcover_tui.config.discovery import find_config, user_cache_dir, user_config_dir
from hardcover_tui.config.models import (
    ApiConfig,
    CredentialsConfig,
    TimeoutsConfig,
    UiConfig,
)


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a ``hardcover-tui.toml`` file."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            raw = toml_path.read_text(encoding="utf-8")
            try:
                self._data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as exc:
                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise click.ClickException(msg) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


# Thread-local storage for TOML path during construction.
_tls = threading.local()


class AppSettings(BaseSettings):
    """Unified settings for the hardcover-tui CLI and TUI.

    Stored on the :class:`~hardcover_tui.commands._context.AppContext` at the
    CLI root level.

    Attributes:
        config_path: Config file that was loaded, or None.
        token: API token from the environment. Takes precedence over the
            credential store and is never written back to it.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "HARDCOVER_TUI_",
        "env_nested_delimiter": "__",
    }

    config_path: Path | None = None
    token: str | None = Field(default=None, repr=False)

    # --- CLI flags ---
    verbose: bool = False
    log_json: bool = False
    log_file: Path | None = None
    sync: bool = False

    # --- TOML sections ---
    api: ApiConfig = Field(default_factory=ApiConfig)
    timeouts: TimeoutsConfig = Field(default_factory=TimeoutsConfig)
    ui: UiConfig = Field(default_factory=UiConfig)
    credentials: CredentialsConfig = Field(default_factory=CredentialsConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        start: Path | None = None,
        **cli_flags: Any,
    ) -> AppSettings:
        """Construct settings from a CLI invocation.

        Uses the explicit *config_path* when given, otherwise discovers the
        config file starting from *start*. ``None`` flag values are dropped
        so they do not mask env or TOML values.
        """
        toml_path: Path | None = None
        if config_path:
            p = Path(config_path)
            if not p.is_file():
                msg = f"Config file not found: {config_path}"
                raise click.ClickException(msg)
            toml_path = p
        else:
            toml_path = find_config(start)

        flags = {k: v for k, v in cli_flags.items() if v is not None}
        _tls.toml_path = toml_path
        try:
            return cls(config_path=toml_path, **flags)
        finally:
            _tls.toml_path = None

    # --- Derived paths ---

    @property
    def token_path(self) -> Path:
        return self.credentials.path or user_config_dir() / "token"

    @property
    def default_log_file(self) -> Path:
        return user_cache_dir() / "hardcover-tui.log"
