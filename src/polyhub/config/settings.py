"""TOML config loading and profiles."""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any

# Default config search path (project root or cwd)
_CONFIG_DIR = Path(__file__).resolve().parent.parent.parent.parent / "config"
_CWD_CONFIG = Path.cwd() / "config"


def _load_toml(path: Path) -> dict[str, Any]:
    with open(path, "rb") as f:
        return tomllib.load(f)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into base. Override values take precedence."""
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _find_config_dir(config_dir: Path | None = None) -> Path:
    if config_dir is not None:
        return config_dir
    if _CWD_CONFIG.exists():
        return _CWD_CONFIG
    return _CONFIG_DIR


def load_config(profile: str | None = None, config_dir: Path | None = None) -> dict[str, Any]:
    """Load merged config from default.toml and optional profile overlay."""
    config_dir = _find_config_dir(config_dir)
    default_path = config_dir / "default.toml"
    if not default_path.exists():
        return {}
    base = _load_toml(default_path)
    if profile:
        profile_path = config_dir / f"{profile}.toml"
        if profile_path.exists():
            overlay = _load_toml(profile_path)
            base = _deep_merge(base, overlay)
    return base


def get_settings(profile: str | None = None, config_dir: Path | None = None) -> Settings:
    """Return Settings instance from merged config."""
    raw = load_config(profile, config_dir)
    return Settings.from_dict(raw)


class Settings:
    """Application settings from TOML config."""

    def __init__(
        self,
        *,
        upstream: dict[str, Any] | None = None,
        aggregation: dict[str, Any] | None = None,
        cache: dict[str, Any] | None = None,
        api: dict[str, Any] | None = None,
        logging: dict[str, Any] | None = None,
    ):
        self.upstream = upstream or {}
        self.aggregation = aggregation or {}
        self.cache = cache or {}
        self.api = api or {}
        self.logging = logging or {}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Settings:
        return cls(
            upstream=raw.get("upstream"),
            aggregation=raw.get("aggregation"),
            cache=raw.get("cache"),
            api=raw.get("api"),
            logging=raw.get("logging"),
        )

    # Convenience accessors with defaults
    @property
    def gamma_api_base(self) -> str:
        return self.upstream.get("gamma_api_base", "https://gamma-api.polymarket.com")

    @property
    def upstream_timeout_sec(self) -> float:
        return float(self.upstream.get("timeout_sec", 8.0))

    @property
    def upstream_max_retries(self) -> int:
        return int(self.upstream.get("max_retries", 2))

    @property
    def upstream_backoff_base_sec(self) -> float:
        return float(self.upstream.get("backoff_base_sec", 0.5))

    @property
    def user_agent(self) -> str:
        return self.upstream.get("user_agent", "PolyHub/1.0")

    @property
    def events_page_size(self) -> int:
        return int(self.aggregation.get("events_page_size", 100))

    @property
    def events_max_pages(self) -> int:
        return int(self.aggregation.get("events_max_pages", 2))

    @property
    def event_detail_limit(self) -> int:
        return int(self.aggregation.get("event_detail_limit", 40))

    @property
    def markets_page_size(self) -> int:
        return int(self.aggregation.get("markets_page_size", 100))

    @property
    def markets_max_pages(self) -> int:
        return int(self.aggregation.get("markets_max_pages", 5))

    @property
    def page_delay_sec(self) -> float:
        return float(self.aggregation.get("page_delay_sec", 0.15))

    @property
    def cache_ttl_sec(self) -> float:
        return float(self.cache.get("ttl_sec", 60.0))

    @property
    def default_limit(self) -> int:
        return int(self.api.get("default_limit", 100))

    @property
    def max_limit(self) -> int:
        return int(self.api.get("max_limit", 300))

    @property
    def cors_origins(self) -> list[str]:
        return list(self.api.get("cors_origins") or ["*"])

    @property
    def logging_level(self) -> str:
        return self.logging.get("level", "INFO").upper()

    @property
    def logging_format(self) -> str:
        return self.logging.get("format", "console")

    @property
    def logging_level_num(self) -> int:
        return getattr(logging, self.logging_level, logging.INFO)


def configure_logging(settings: Settings) -> None:
    """Configure structlog with settings. Call once at application entry."""
    import structlog

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if settings.logging_format == "json":
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(settings.logging_level_num),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
