"""
STARSIGHT Star Detector

Finds star candidates above the background and measures their sub-pixel
centroids.

Algorithm:
1. Threshold at background level + k * noise sigma
2. Keep local maxima above the threshold as seeds; a connected plateau of
   equal maxima (a saturated core, a clipped extended object) is one seed
3. Visit seeds brightest first; a seed within the minimum separation of an
   accepted seed is merged into it
4. Flux-weighted centroid over a circular window, recentred once
5. Sort by flux, keep the brightest max_candidate_stars

Cost is one maximum filter over the frame plus work proportional to the
number of seeds times the window area.
"""

from typing import List, Optional

import numpy as np
from scipy import ndimage

from starsight.logging_config import get_logger

from .config import AnalysisConfig, DEFAULT_CONFIG
from .models import BackgroundModel, DetectedSource
from .window import PixelWindow

logger = get_logger(__name__)

# Local maximum neighbourhood (pixels)
LOCAL_MAX_SIZE = 5

# Threshold floor above the level when the noise estimate is zero
MIN_THRESHOLD_ADU = 1.0

# Seeds examined per reported star
SEEDS_PER_CANDIDATE = 20


def detection_threshold(background: BackgroundModel, config: AnalysisConfig = DEFAULT_CONFIG) -> float:
    """Pixel value a seed has to exceed."""
    margin = config.detection_sigma_multiplier * background.noise_sigma
    return background.level + max(margin, MIN_THRESHOLD_ADU)


def find_seeds(window: PixelWindow, threshold: float, max_seeds: int) -> tuple[np.ndarray, np.ndarray]:
    """
    Local maxima above threshold, brightest first.

    Adjacent maxima can only share a value, so each 8-connected group of
    maxima is a plateau and yields one seed at its centre of mass. The
    max_seeds cap is applied after plateaus are merged.

    Returns:
        (ys, xs) integer coordinate arrays, at most max_seeds long
    """
    image = window.data
    max_filtered = ndimage.maximum_filter(image, size=LOCAL_MAX_SIZE, mode="nearest")
    peaks = (image == max_filtered) & (image > threshold)

    labels, count = ndimage.label(peaks, structure=np.ones((3, 3), dtype=bool))
    if count == 0:
        empty = np.zeros(0, dtype=np.intp)
        return empty, empty

    index = np.arange(1, count + 1)
    values = np.asarray(ndimage.maximum(image, labels, index), dtype=np.float64)
    centres = np.asarray(ndimage.center_of_mass(peaks.astype(np.float64), labels, index)).reshape(-1, 2)
    ys = np.clip(np.rint(centres[:, 0]).astype(np.intp), 0, image.shape[0] - 1)
    xs = np.clip(np.rint(centres[:, 1]).astype(np.intp), 0, image.shape[1] - 1)

    if values.size > max_seeds:
        keep = np.argpartition(-values, max_seeds - 1)[:max_seeds]
        ys, xs, values = ys[keep], xs[keep], values[keep]

    order = np.argsort(-values, kind="stable")
    return ys[order], xs[order]


def suppress_neighbours(
    ys: np.ndarray,
    xs: np.ndarray,
    shape: tuple[int, int],
    min_separation: float,
) -> List[tuple[int, int]]:
    """
    Accept seeds in the given (brightest first) order, dropping any seed
    closer than min_separation to one already accepted.
    """
    height, width = shape
    blocked = np.zeros(shape, dtype=bool)
    r = int(np.floor(min_separation))
    oy, ox = np.ogrid[-r:r + 1, -r:r + 1]
    disk = (ox * ox + oy * oy) < min_separation * min_separation

    accepted = []
    for y, x in zip(ys.tolist(), xs.tolist()):
        if blocked[y, x]:
            continue
        accepted.append((y, x))
        if r == 0:
            continue

        y0, y1 = max(0, y - r), min(height, y + r + 1)
        x0, x1 = max(0, x - r), min(width, x + r + 1)
        blocked[y0:y1, x0:x1] |= disk[y0 - (y - r):y1 - (y - r), x0 - (x - r):x1 - (x - r)]

    return accepted


def centroid(
    window: PixelWindow,
    cx: float,
    cy: float,
    radius: float,
    level: float,
) -> Optional[DetectedSource]:
    """
    Flux-weighted centroid over a circular window.

    Returns:
        DetectedSource, or None when the window holds no flux above level
    """
    values, dx, dy = window.cutout(cx, cy, radius)
    inside = (dx * dx + dy * dy) <= radius * radius
    residual = np.where(inside, np.clip(values - level, 0.0, None), 0.0)

    flux = float(residual.sum())
    if flux <= 0.0:
        return None

    x = cx + float((residual * dx).sum()) / flux
    y = cy + float((residual * dy).sum()) / flux
    x = min(max(x, 0.0), window.width - 1.0)
    y = min(max(y, 0.0), window.height - 1.0)

    peak = float(values[inside].max())
    return DetectedSource(x=x, y=y, peak=peak, flux=flux)


def detect_stars(
    window: PixelWindow,
    background: BackgroundModel,
    config: AnalysisConfig = DEFAULT_CONFIG,
) -> List[DetectedSource]:
    """
    Detect star candidates in a frame.

    Args:
        window: Frame to search
        background: Background model of the frame
        config: Detection parameters

    Returns:
        Sources sorted by descending flux, at most config.max_candidate_stars
    """
    threshold = detection_threshold(background, config)
    max_seeds = config.max_candidate_stars * SEEDS_PER_CANDIDATE

    ys, xs = find_seeds(window, threshold, max_seeds)
    if ys.size == 0:
        logger.debug(f"No seeds above threshold {threshold:.1f}")
        return []

    seeds = suppress_neighbours(ys, xs, window.data.shape, config.min_star_separation_px)
    radius = float(config.aperture_radius_px)

    sources = []
    for y, x in seeds:
        first = centroid(window, float(x), float(y), radius, background.level)
        if first is None:
            continue
        refined = centroid(window, first.x, first.y, radius, background.level)
        source = refined if refined is not None else first
        if source.flux > 0.0:
            sources.append(source)

    sources.sort(key=lambda s: s.flux, reverse=True)
    if len(sources) > config.max_candidate_stars:
        logger.debug(f"Dropping {len(sources) - config.max_candidate_stars} faint candidates")
        sources = sources[:config.max_candidate_stars]

    logger.debug(f"Detected {len(sources)} stars from {len(seeds)} seeds (threshold {threshold:.1f})")
    return sources
