"""Display metrics for market cards."""

from retailodds.metrics.market import consensus, format_probability, format_volume, has_significant_movement

__all__ = ["consensus", "format_probability", "format_volume", "has_significant_movement"]
