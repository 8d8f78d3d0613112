"""TOML config loading and profiles."""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any

# Default config search path (project root or cwd)
_CONFIG_DIR = Path(__file__).resolve().parent.parent.parent.parent / "config"
_CWD_CONFIG = Path.cwd() / "config"

DEFAULT_ALIGN_WINDOW_SEC = 3 * 24 * 60 * 60

_DEFAULT_SHARES_OUTSTANDING = {
    "WMT": 8.04e9,
    "AMZN": 10.52e9,
    "COST": 443e6,
    "TGT": 460e6,
}


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
        polymarket: dict[str, Any] | None = None,
        stocks: dict[str, Any] | None = None,
        fetch: dict[str, Any] | None = None,
        series: dict[str, Any] | None = None,
        logging: dict[str, Any] | None = None,
    ):
        self.polymarket = polymarket or {}
        self.stocks = stocks or {}
        self.fetch = fetch or {}
        self.series = series or {}
        self.logging = logging or {}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Settings:
        return cls(
            polymarket=raw.get("polymarket"),
            stocks=raw.get("stocks"),
            fetch=raw.get("fetch"),
            series=raw.get("series"),
            logging=raw.get("logging"),
        )

    # Convenience accessors with defaults
    @property
    def gamma_api_base(self) -> str:
        return self.polymarket.get("gamma_api_base", "https://gamma-api.polymarket.com")

    @property
    def clob_api_base(self) -> str:
        return self.polymarket.get("clob_api_base", "https://clob.polymarket.com")

    @property
    def market_url_base(self) -> str:
        return self.polymarket.get("market_url_base", "https://polymarket.com/event")

    @property
    def yahoo_chart_base(self) -> str:
        return self.stocks.get("chart_api_base", "https://query1.finance.yahoo.com/v8/finance/chart")

    @property
    def user_agent(self) -> str:
        return self.stocks.get(
            "user_agent", "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
        )

    @property
    def shares_outstanding(self) -> dict[str, float]:
        configured = self.stocks.get("shares_outstanding") or {}
        merged = dict(_DEFAULT_SHARES_OUTSTANDING)
        merged.update({k.upper(): float(v) for k, v in configured.items()})
        return merged

    @property
    def request_timeout_sec(self) -> float:
        return float(self.fetch.get("request_timeout_sec", 15.0))

    @property
    def markets_limit(self) -> int:
        return int(self.fetch.get("markets_limit", 200))

    @property
    def events_limit(self) -> int:
        return int(self.fetch.get("events_limit", 200))

    @property
    def stocks_tag_limit(self) -> int:
        return int(self.fetch.get("stocks_tag_limit", 500))

    @property
    def ticker_tag_limit(self) -> int:
        return int(self.fetch.get("ticker_tag_limit", 50))

    @property
    def earnings_limit(self) -> int:
        return int(self.fetch.get("earnings_limit", 25))

    @property
    def stocks_tag_id(self) -> str:
        return str(self.fetch.get("stocks_tag_id", "604"))

    @property
    def earnings_tag_id(self) -> str:
        return str(self.fetch.get("earnings_tag_id", "1013"))

    @property
    def ticker_tag_ids(self) -> dict[str, str]:
        """Retailer -> Gamma tag id for retailers that have a dedicated ticker tag."""
        raw = self.fetch.get("ticker_tag_ids") or {"amazon": "102681"}
        return {k: str(v) for k, v in raw.items()}

    @property
    def history_days(self) -> int:
        return int(self.series.get("history_days", 7))

    @property
    def history_fidelity_min(self) -> int:
        return int(self.series.get("fidelity_min", 60))

    @property
    def stock_interval(self) -> str:
        return self.series.get("stock_interval", "1h")

    @property
    def align_window_sec(self) -> int:
        return int(self.series.get("align_window_sec", DEFAULT_ALIGN_WINDOW_SEC))

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
