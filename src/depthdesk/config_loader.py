"""Configuration loading: YAML, ${VAR} interpolation, pydantic validation."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field, field_validator

# .env values become visible to ${VAR} interpolation
load_dotenv(find_dotenv(usecwd=True))

from depthdesk.constants import (  # noqa: E402
    DEFAULT_BALANCE_POLL_SEC,
    DEFAULT_BASE_ASSET,
    DEFAULT_CANDLE_INTERVAL_SEC,
    DEFAULT_HTTP_BASE_URL,
    DEFAULT_MAX_LEVELS,
    DEFAULT_MY_TRADES_POLL_SEC,
    DEFAULT_QUOTE_ASSET,
    DEFAULT_RECONNECT_DELAY_SEC,
    DEFAULT_REQUEST_TIMEOUT_SEC,
    DEFAULT_STATS_WINDOW_HOURS,
    DEFAULT_TRADES_POLL_SEC,
    DEFAULT_WS_URL,
    LogLevel,
)

_ENV_PATTERN = re.compile(r"\$\{([^}:]+)(?::([^}]*))?\}")


def interpolate_env_vars(value: Any) -> Any:
    """
    Substitute environment variables into a string value.

    ``${NAME}`` becomes the variable's value (empty if unset) and
    ``${NAME:default}`` falls back to ``default``. Everything after the first
    colon is the default, so URLs work as defaults. Non-strings pass through.
    """
    if not isinstance(value, str):
        return value

    def substitute(match: re.Match[str]) -> str:
        name, default = match.group(1), match.group(2)
        return os.environ.get(name, default if default is not None else "")

    return _ENV_PATTERN.sub(substitute, value)


def process_config_dict(data: dict[str, Any]) -> dict[str, Any]:
    """Interpolate every string in a parsed YAML tree."""
    return {key: _interpolate_tree(value) for key, value in data.items()}


def _interpolate_tree(value: Any) -> Any:
    if isinstance(value, dict):
        return process_config_dict(value)
    if isinstance(value, list):
        return [_interpolate_tree(item) for item in value]
    return interpolate_env_vars(value)


# ============================================
# Pydantic Configuration Models
# ============================================


class EnvironmentConfig(BaseModel):
    """Environment and runtime settings."""

    dry_run: bool = False
    log_level: LogLevel = LogLevel.INFO


class EndpointsConfig(BaseModel):
    """Where the exchange lives."""

    http_base_url: str = DEFAULT_HTTP_BASE_URL
    ws_url: str = DEFAULT_WS_URL
    request_timeout_sec: float = DEFAULT_REQUEST_TIMEOUT_SEC

    @field_validator("http_base_url")
    @classmethod
    def validate_http_url(cls, v: str) -> str:
        if not re.match(r"^https?://", v):
            raise ValueError(f"http_base_url must start with http:// or https://, got: {v}")
        return v.rstrip("/")

    @field_validator("ws_url")
    @classmethod
    def validate_ws_url(cls, v: str) -> str:
        if not re.match(r"^wss?://", v):
            raise ValueError(f"ws_url must start with ws:// or wss://, got: {v}")
        return v

    @field_validator("request_timeout_sec")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"Timeout must be positive, got: {v}")
        return v


class FeedsConfig(BaseModel):
    """Poll cadence and push-feed reconnection."""

    trades_poll_sec: float = DEFAULT_TRADES_POLL_SEC
    my_trades_poll_sec: float = DEFAULT_MY_TRADES_POLL_SEC
    balance_poll_sec: float = DEFAULT_BALANCE_POLL_SEC
    single_flight: bool = True
    reconnect: bool = False
    reconnect_delay_sec: float = DEFAULT_RECONNECT_DELAY_SEC

    @field_validator(
        "trades_poll_sec", "my_trades_poll_sec", "balance_poll_sec", "reconnect_delay_sec"
    )
    @classmethod
    def validate_positive_interval(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"Interval must be positive, got: {v}")
        return v


class DepthConfig(BaseModel):
    """Depth ladder settings."""

    max_levels: int = DEFAULT_MAX_LEVELS

    @field_validator("max_levels")
    @classmethod
    def validate_levels(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"max_levels must be positive, got: {v}")
        return v


class ChartConfig(BaseModel):
    """Candle chart settings."""

    candle_interval_sec: int = DEFAULT_CANDLE_INTERVAL_SEC

    @field_validator("candle_interval_sec")
    @classmethod
    def validate_interval(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"candle_interval_sec must be positive, got: {v}")
        return v


class StatsConfig(BaseModel):
    """Market statistics settings."""

    window_hours: int = DEFAULT_STATS_WINDOW_HOURS

    @field_validator("window_hours")
    @classmethod
    def validate_window(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"window_hours must be positive, got: {v}")
        return v


class AssetsConfig(BaseModel):
    """Names of the traded pair's assets."""

    quote: str = DEFAULT_QUOTE_ASSET
    base: str = DEFAULT_BASE_ASSET
    owner: str | None = None  # restrict "my orders" to this owner id

    @field_validator("quote", "base")
    @classmethod
    def upper_case(cls, v: str) -> str:
        if not v:
            raise ValueError("Asset name must not be empty")
        return v.upper()


class AppConfig(BaseModel):
    """Root application configuration."""

    environment: EnvironmentConfig = Field(default_factory=EnvironmentConfig)
    endpoints: EndpointsConfig = Field(default_factory=EndpointsConfig)
    feeds: FeedsConfig = Field(default_factory=FeedsConfig)
    depth: DepthConfig = Field(default_factory=DepthConfig)
    chart: ChartConfig = Field(default_factory=ChartConfig)
    stats: StatsConfig = Field(default_factory=StatsConfig)
    assets: AssetsConfig = Field(default_factory=AssetsConfig)

    @property
    def is_dry_run(self) -> bool:
        """Check if running against the simulated exchange."""
        return self.environment.dry_run


# ============================================
# Configuration Loader
# ============================================


class ConfigLoader:
    """Reads one YAML file into an ``AppConfig``; caches the result until ``reload()``."""

    def __init__(self, config_path: str | Path) -> None:
        self.config_path = Path(config_path)
        self._config: AppConfig | None = None

    def load(self) -> AppConfig:
        """
        Read, interpolate and validate the file.

        Raises:
            FileNotFoundError: If the file does not exist.
            yaml.YAMLError: If the file is not valid YAML.
            pydantic.ValidationError: If a section fails validation.
        """
        if not self.config_path.exists():
            raise FileNotFoundError(f"Config file not found: {self.config_path}")

        with open(self.config_path, encoding="utf-8") as f:
            # an empty file means "all defaults"
            raw = yaml.safe_load(f) or {}

        self._config = AppConfig.model_validate(process_config_dict(raw))
        return self._config

    @property
    def config(self) -> AppConfig:
        return self._config if self._config is not None else self.load()

    def reload(self) -> AppConfig:
        self._config = None
        return self.load()


def load_config(config_path: str | Path) -> AppConfig:
    return ConfigLoader(config_path).load()


def load_config_with_overrides(
    config_path: str | Path,
    *,
    dry_run: bool | None = None,
    log_level: str | None = None,
    max_levels: int | None = None,
) -> AppConfig:
    """
    Load configuration with CLI overrides.

    Args:
        config_path: Path to the YAML configuration file.
        dry_run: Override dry_run setting.
        log_level: Override log level.
        max_levels: Override depth ladder size.

    Returns:
        Validated AppConfig instance with overrides applied.
    """
    config = load_config(config_path)

    updates: dict[str, Any] = {}
    env_updates: dict[str, Any] = {}

    if dry_run is not None:
        env_updates["dry_run"] = dry_run

    if log_level is not None:
        env_updates["log_level"] = LogLevel(log_level.upper())

    if env_updates:
        updates["environment"] = config.environment.model_copy(update=env_updates)

    if max_levels is not None:
        updates["depth"] = DepthConfig(max_levels=max_levels)

    if updates:
        return config.model_copy(update=updates)

    return config
