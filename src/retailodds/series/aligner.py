"""Nearest-neighbour join of a 24/7 probability series against business-hours stock prices."""

from __future__ import annotations

from bisect import bisect_left
from collections.abc import Sequence

from retailodds.models import AlignedPoint, PricePoint

# 3 days: spans a weekend plus a market holiday without reaching into another week.
DEFAULT_WINDOW_SEC = 259_200


class PriceIndex:
    """Sorted timestamp index over a price series for O(log m) nearest lookups.

    Duplicate timestamps keep the last value given.
    """

    def __init__(self, points: Sequence[PricePoint]) -> None:
        by_ts: dict[int, float] = {}
        for ts, value in points:
            by_ts[int(ts)] = float(value)
        self._timestamps = sorted(by_ts)
        self._values = [by_ts[ts] for ts in self._timestamps]

    def __len__(self) -> int:
        return len(self._timestamps)

    def nearest(self, ts: int, window_sec: int) -> float | None:
        """Value at the timestamp closest to ``ts``, or None if it is more than window_sec away.

        Equidistant neighbours resolve to the earlier one.
        """
        if not self._timestamps:
            return None
        i = bisect_left(self._timestamps, ts)
        if i == 0:
            best = 0
        elif i == len(self._timestamps):
            best = i - 1
        elif self._timestamps[i] - ts < ts - self._timestamps[i - 1]:
            best = i
        else:
            best = i - 1
        if abs(self._timestamps[best] - ts) > window_sec:
            return None
        return self._values[best]


def align(
    probability_series: Sequence[PricePoint],
    price_series: Sequence[PricePoint],
    window_sec: int = DEFAULT_WINDOW_SEC,
) -> list[AlignedPoint]:
    """One AlignedPoint per probability sample, ordered by timestamp.

    Each sample independently takes the globally nearest price point; several
    samples may share one price point. A gap of exactly ``window_sec`` still
    matches.
    """
    index = PriceIndex(price_series)
    # Stable: samples sharing a timestamp keep their input order.
    ordered = sorted(probability_series, key=lambda point: point[0])
    return [
        AlignedPoint(
            timestamp=int(ts),
            probability=float(p),
            matched_price=index.nearest(int(ts), window_sec),
        )
        for ts, p in ordered
    ]
