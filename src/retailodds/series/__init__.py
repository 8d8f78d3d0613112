"""Time-series alignment for probability/stock overlays."""

from retailodds.series.aligner import DEFAULT_WINDOW_SEC, PriceIndex, align
from retailodds.series.overlay import build_overlay

__all__ = ["DEFAULT_WINDOW_SEC", "PriceIndex", "align", "build_overlay"]
