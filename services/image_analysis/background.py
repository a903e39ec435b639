"""
STARSIGHT Background Estimator

Sky level and noise floor from a raw frame. Median and MAD are used rather
than mean and standard deviation because star pixels are bright outliers
that would otherwise pull the background upward.
"""

import math

import numpy as np

from starsight.logging_config import get_logger

from .models import BackgroundModel
from .window import PixelWindow

logger = get_logger(__name__)

# Pixels sampled at most; larger frames are strided
DEFAULT_MAX_SAMPLES = 250_000

# Scales MAD to the standard deviation of a Gaussian
MAD_TO_SIGMA = 1.4826

# Upper percentile discarded by the fallback sigma estimate
FALLBACK_CLIP_PERCENTILE = 99.0

MAX_LEVEL = 65535.0


def sample_pixels(window: PixelWindow, max_samples: int = DEFAULT_MAX_SAMPLES) -> np.ndarray:
    """
    Flattened pixel sample, strided on a regular grid for large frames.

    Args:
        window: Frame to sample
        max_samples: Upper bound on the number of sampled pixels

    Returns:
        1-D float64 array of sampled values
    """
    if window.size <= max_samples:
        return window.data.ravel()

    stride = int(math.ceil(math.sqrt(window.size / max_samples)))
    return window.data[::stride, ::stride].ravel()


def estimate_background(window: PixelWindow, max_samples: int = DEFAULT_MAX_SAMPLES) -> BackgroundModel:
    """
    Estimate background level and noise sigma.

    The level is the sample median and the noise is 1.4826 * MAD. When the
    MAD is zero (flat or heavily quantised frames) the noise falls back to
    the standard deviation of the sample with its brightest percent removed.

    Args:
        window: Frame to analyse
        max_samples: Upper bound on the number of sampled pixels

    Returns:
        BackgroundModel with finite, non-negative values
    """
    sample = sample_pixels(window, max_samples)

    level = float(np.median(sample))
    mad = float(np.median(np.abs(sample - level)))
    sigma = MAD_TO_SIGMA * mad

    if sigma <= 0.0:
        cutoff = float(np.percentile(sample, FALLBACK_CLIP_PERCENTILE))
        clipped = sample[sample <= cutoff]
        sigma = float(np.std(clipped)) if clipped.size > 1 else 0.0
        logger.debug(f"MAD is zero, fallback sigma={sigma:.3f}")

    if not math.isfinite(sigma) or sigma < 0.0:
        sigma = 0.0
    level = min(max(level, 0.0), MAX_LEVEL)

    return BackgroundModel(level=level, noise_sigma=sigma, sample_count=int(sample.size))
