"""RetailOdds - retail prediction markets classified, bucketed and overlaid on stock prices."""

__version__ = "0.1.0"
