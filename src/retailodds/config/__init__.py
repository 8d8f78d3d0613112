"""Configuration: TOML files + profile overlays."""

from retailodds.config.settings import Settings, configure_logging, get_settings, load_config

__all__ = ["Settings", "configure_logging", "get_settings", "load_config"]
