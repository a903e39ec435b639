"""
STARSIGHT Metrics Trend

Compares the current frame with recent frames supplied by the caller.
The engine keeps no history of its own.
"""

import statistics
from typing import Sequence

from .models import ImageMetrics, MetricsTrend, TrendDirection

# Recent frames averaged for the comparison
TREND_WINDOW = 5

# Changes smaller than these count as stable
HFR_STABLE_DELTA = 0.1
SNR_STABLE_DELTA = 1.0
FOCUS_STABLE_DELTA = 2.0


def _direction(change: float, stable_delta: float, lower_is_better: bool) -> TrendDirection:
    if abs(change) < stable_delta:
        return TrendDirection.STABLE
    improved = change < 0 if lower_is_better else change > 0
    return TrendDirection.IMPROVING if improved else TrendDirection.DEGRADING


def calculate_trend(current: ImageMetrics, previous: Sequence[ImageMetrics]) -> MetricsTrend:
    """
    Trend of HFR, SNR and focus score against the last few frames.

    Args:
        current: Metrics of the newest frame
        previous: Earlier metrics, oldest first

    Returns:
        MetricsTrend; all stable when there is no history
    """
    if not previous:
        return MetricsTrend()

    recent = list(previous)[-TREND_WINDOW:]
    hfr_change = current.hfr - statistics.fmean(m.hfr for m in recent)
    snr_change = current.snr - statistics.fmean(m.snr for m in recent)
    focus_change = current.focus_score - statistics.fmean(m.focus_score for m in recent)

    return MetricsTrend(
        hfr_trend=_direction(hfr_change, HFR_STABLE_DELTA, lower_is_better=True),
        snr_trend=_direction(snr_change, SNR_STABLE_DELTA, lower_is_better=False),
        focus_trend=_direction(focus_change, FOCUS_STABLE_DELTA, lower_is_better=False),
    )
