"""
STARSIGHT Metrics Aggregator

Reduces the per-star measurements into frame-level statistics.
"""

import statistics
from datetime import datetime, timezone
from typing import List, Optional, Tuple

import numpy as np

from .config import AnalysisConfig, DEFAULT_CONFIG
from .models import BackgroundModel, ImageMetrics, StarCandidate
from .window import PixelWindow

HISTOGRAM_BINS = 256


def _mean(values: List[float]) -> float:
    return float(statistics.fmean(values)) if values else 0.0


def shape_sample(stars: List[StarCandidate], top_n: int) -> List[StarCandidate]:
    """
    Brightest stars used for the shape averages.

    Saturated stars have flattened cores and are skipped unless nothing
    else is available.
    """
    ranked = sorted(stars, key=lambda s: s.flux, reverse=True)
    unsaturated = [s for s in ranked if not s.saturated]
    return (unsaturated or ranked)[:top_n]


def calculate_focus_score(hfr: float, snr: float, eccentricity: float, star_count: int) -> float:
    """
    Focus quality score (0-100) from HFR, SNR and star roundness.

    Starts at 100 and subtracts penalties for large HFR, weak SNR and
    elongated stars. A frame without stars scores 0.
    """
    if star_count == 0:
        return 0.0

    score = 100.0

    # HFR penalty (lower is better)
    if hfr > 2.0:
        score -= (hfr - 2.0) * 15
    if hfr > 4.0:
        score -= (hfr - 4.0) * 25

    # SNR penalty
    if snr < 10:
        score -= (10 - snr) * 2

    # Eccentricity penalty
    if eccentricity > 0.3:
        score -= (eccentricity - 0.3) * 50

    return max(0.0, min(100.0, score))


def aggregate_metrics(
    window: PixelWindow,
    background: BackgroundModel,
    stars: List[StarCandidate],
    config: AnalysisConfig = DEFAULT_CONFIG,
    timestamp: Optional[datetime] = None,
) -> ImageMetrics:
    """
    Calculate frame metrics from star measurements.

    Args:
        window: Analysed frame
        background: Background model of the frame
        stars: Measured stars
        config: Aggregation and saturation parameters
        timestamp: Frame time (defaults to now)

    Returns:
        ImageMetrics; numeric fields are 0 when no stars were found
    """
    if timestamp is None:
        timestamp = datetime.now(timezone.utc)

    sample = shape_sample(stars, config.aggregate_top_n)
    hfr = _mean([s.hfr for s in sample])
    fwhm = _mean([s.fwhm for s in sample])
    ecc = _mean([s.eccentricity for s in sample])
    snr = float(statistics.median(s.snr for s in stars)) if stars else 0.0

    data = window.data
    peak_value = float(data.max())
    level = background.level

    contrast = (peak_value - level) / level if level > 0 and peak_value > level else 0.0
    saturated_pixels = int(np.count_nonzero(data >= config.saturation_level))
    saturation = saturated_pixels / data.size * 100.0

    return ImageMetrics(
        hfr=hfr,
        fwhm=fwhm,
        snr=snr,
        star_count=len(stars),
        eccentricity=ecc,
        background_level=level,
        peak_value=peak_value,
        focus_score=calculate_focus_score(hfr, snr, ecc, len(stars)),
        timestamp=timestamp,
        noise=background.noise_sigma,
        contrast=contrast,
        saturation=saturation,
    )


def luminance_histogram(
    window: PixelWindow,
    bins: int = HISTOGRAM_BINS,
    max_value: int = 65535,
) -> Tuple[int, ...]:
    """
    Histogram of pixel values over [0, max_value] in equal-width bins.

    Values above max_value land in the last bin.
    """
    data = np.clip(window.data.ravel(), 0, max_value)
    indices = np.minimum((data * bins / (max_value + 1)).astype(np.int64), bins - 1)
    counts = np.bincount(indices, minlength=bins)
    return tuple(int(c) for c in counts)
