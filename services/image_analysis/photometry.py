"""
STARSIGHT Photometry

Per-star measurements: flux, half-flux radius (HFR), full-width half-max
(FWHM), signal-to-noise ratio (SNR) and eccentricity.

The routines take a PixelWindow plus a background level, so the same code
serves 16-bit frames and 8-bit patches. measure_fwhm() and measure_snr()
expose the FWHM and SNR math to callers that already hold a cropped patch;
they estimate a local background from an annulus around the star.
"""

import math
from typing import Optional

import numpy as np

from starsight.exceptions import InvalidInputError
from starsight.logging_config import get_logger
from starsight.types import PixelBuffer

from .config import AnalysisConfig, DEFAULT_CONFIG
from .models import BackgroundModel, DetectedSource, StarCandidate
from .window import PixelWindow

logger = get_logger(__name__)

# HFR aperture growth step (pixels)
HFR_RADIUS_STEP = 0.5

# Eccentricity moments only use pixels this many sigma above background
MOMENT_SIGMA = 3.0

# Patch helpers: star aperture and background annulus (pixels)
PATCH_APERTURE_RADIUS = 10.0
PATCH_ANNULUS_OUTER = 20.0
PATCH_MIN_ANNULUS_PIXELS = 8

MAD_TO_SIGMA = 1.4826


class Aperture:
    """
    Background-subtracted pixels within a circular aperture.

    Attributes:
        residual: Values minus background, clamped at zero (1-D)
        distance: Distance of each pixel from the centre (1-D)
        dx, dy: Offsets of each pixel from the centre (1-D)
        raw: Raw pixel values (1-D)
    """

    def __init__(self, window: PixelWindow, cx: float, cy: float, radius: float, level: float):
        values, dx, dy = window.cutout(cx, cy, radius)
        dx, dy = np.broadcast_arrays(dx, dy)
        dist = np.hypot(dx, dy)
        inside = dist <= radius

        self.radius = radius
        self.raw = values[inside]
        self.dx = dx[inside].astype(np.float64)
        self.dy = dy[inside].astype(np.float64)
        self.distance = dist[inside]
        self.residual = np.clip(self.raw - level, 0.0, None)

    @property
    def npix(self) -> int:
        return int(self.raw.size)

    @property
    def flux(self) -> float:
        return float(self.residual.sum())


# =============================================================================
# Core measurements
# =============================================================================


def half_flux_radius(distance: np.ndarray, residual: np.ndarray, max_radius: float) -> float:
    """
    Radius containing half of the total flux.

    Cumulative flux is evaluated in circular apertures growing from radius 0
    in half-pixel steps; the crossing is linearly interpolated.

    Returns:
        HFR in pixels, 0.0 when there is no flux
    """
    total = float(residual.sum())
    if total <= 0.0:
        return 0.0

    order = np.argsort(distance, kind="stable")
    sorted_dist = distance[order]
    cumulative = np.cumsum(residual[order])

    radii = np.arange(0.0, max_radius + HFR_RADIUS_STEP, HFR_RADIUS_STEP)
    counts = np.searchsorted(sorted_dist, radii, side="right")
    enclosed = np.where(counts > 0, cumulative[np.maximum(counts - 1, 0)], 0.0)

    half = total / 2.0
    above = np.nonzero(enclosed >= half)[0]
    if above.size == 0:
        return float(radii[-1])

    i = int(above[0])
    if i == 0:
        return 0.0

    prev_flux, flux = enclosed[i - 1], enclosed[i]
    if flux <= prev_flux:
        return float(radii[i])
    frac = (half - prev_flux) / (flux - prev_flux)
    return float(radii[i - 1] + frac * (radii[i] - radii[i - 1]))


def radial_profile(distance: np.ndarray, residual: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """
    Mean residual in one-pixel annuli.

    Each annulus is placed at the mean distance of its pixels rather than
    its nominal centre, which keeps coarse sampling from biasing the FWHM.

    Returns:
        (radii, values) for non-empty annuli, increasing radius
    """
    bins = np.floor(distance + 0.5).astype(np.int64)
    nbins = int(bins.max()) + 1 if bins.size else 0

    counts = np.bincount(bins, minlength=nbins)
    sums = np.bincount(bins, weights=residual, minlength=nbins)
    dist_sums = np.bincount(bins, weights=distance, minlength=nbins)

    filled = counts > 0
    return dist_sums[filled] / counts[filled], sums[filled] / counts[filled]


def fwhm_from_profile(distance: np.ndarray, residual: np.ndarray, peak: float) -> float:
    """
    Full width at half maximum from the radial profile.

    The profile starts at (0, peak); the first radius at which it drops to
    half the peak is interpolated and doubled.

    Args:
        distance: Pixel distances from the star centre
        residual: Background-subtracted values
        peak: Peak value above background

    Returns:
        FWHM in pixels, 0.0 when the peak is not above background
    """
    if peak <= 0.0 or distance.size == 0:
        return 0.0

    radii, values = radial_profile(distance, residual)
    keep = radii > 0.0
    radii = np.concatenate(([0.0], radii[keep]))
    values = np.concatenate(([peak], values[keep]))

    half = peak / 2.0
    below = np.nonzero(values <= half)[0]
    if below.size == 0:
        return 2.0 * float(radii[-1])

    i = int(below[0])
    r0, r1 = radii[i - 1], radii[i]
    v0, v1 = values[i - 1], values[i]
    if v0 == v1:
        return 2.0 * float(r1)
    r_half = r0 + (v0 - half) / (v0 - v1) * (r1 - r0)
    return 2.0 * float(r_half)


def aperture_snr(flux: float, npix: int, noise_sigma: float) -> float:
    """
    Aperture photometry SNR (CCD equation, unit gain).

    SNR = flux / sqrt(flux + npix * sigma^2)

    Returns:
        SNR, 0.0 when there is no flux
    """
    if flux <= 0.0:
        return 0.0
    variance = flux + max(npix, 0) * noise_sigma * noise_sigma
    if variance <= 0.0:
        return 0.0
    return flux / math.sqrt(variance)


def eccentricity(dx: np.ndarray, dy: np.ndarray, weights: np.ndarray) -> float:
    """
    Eccentricity from second-order intensity moments.

    Eigenvalues of the moment matrix [[Ixx, Ixy], [Ixy, Iyy]] are the
    squared major/minor axes; e = sqrt(1 - (minor/major)^2).

    Returns:
        Value in [0, 1]; 0.0 when the moments are degenerate
    """
    total = float(weights.sum())
    if total <= 0.0:
        return 0.0

    mx = float((weights * dx).sum()) / total
    my = float((weights * dy).sum()) / total
    ddx, ddy = dx - mx, dy - my

    ixx = float((weights * ddx * ddx).sum()) / total
    iyy = float((weights * ddy * ddy).sum()) / total
    ixy = float((weights * ddx * ddy).sum()) / total

    spread = math.sqrt(((ixx - iyy) / 2.0) ** 2 + ixy * ixy)
    major = (ixx + iyy) / 2.0 + spread
    minor = (ixx + iyy) / 2.0 - spread
    if major <= 0.0:
        return 0.0

    ratio = max(minor, 0.0) / major
    return float(min(max(math.sqrt(max(1.0 - ratio, 0.0)), 0.0), 1.0))


# =============================================================================
# Full-frame path
# =============================================================================


def measure_star(
    window: PixelWindow,
    source: DetectedSource,
    background: BackgroundModel,
    config: AnalysisConfig = DEFAULT_CONFIG,
) -> Optional[StarCandidate]:
    """
    Measure one detected star.

    Args:
        window: Frame the star was detected in
        source: Detector output (centroid, peak, flux)
        background: Background model of the frame
        config: Aperture and saturation parameters

    Returns:
        StarCandidate, or None if the aperture holds no flux
    """
    radius = float(config.aperture_radius_px)
    ap = Aperture(window, source.x, source.y, radius, background.level)

    flux = ap.flux
    if flux <= 0.0:
        return None

    peak_above = float(ap.residual.max())
    hfr = half_flux_radius(ap.distance, ap.residual, radius)
    fwhm = fwhm_from_profile(ap.distance, ap.residual, peak_above)
    snr = aperture_snr(flux, ap.npix, background.noise_sigma)

    significant = ap.residual > MOMENT_SIGMA * background.noise_sigma
    weights = np.where(significant, ap.residual, 0.0)
    ecc = eccentricity(ap.dx, ap.dy, weights)

    peak = float(ap.raw.max())
    return StarCandidate(
        x=source.x,
        y=source.y,
        flux=flux,
        snr=snr,
        hfr=hfr,
        fwhm=fwhm,
        eccentricity=ecc,
        peak=peak,
        background=background.level,
        saturated=peak >= config.saturation_level,
    )


def measure_stars(
    window: PixelWindow,
    sources: list[DetectedSource],
    background: BackgroundModel,
    config: AnalysisConfig = DEFAULT_CONFIG,
) -> list[StarCandidate]:
    """
    Measure every source; result sorted by descending flux.

    Stars with no SNR or an HFR below config.min_star_hfr are dropped.
    """
    stars = []
    for source in sources:
        star = measure_star(window, source, background, config)
        if star is None or star.snr <= 0.0:
            continue
        if star.hfr < config.min_star_hfr:
            logger.debug(f"Dropping compact source at ({star.x:.1f}, {star.y:.1f}) with HFR {star.hfr:.2f}")
            continue
        stars.append(star)
    stars.sort(key=lambda s: s.flux, reverse=True)
    return stars


# =============================================================================
# Patch helpers
# =============================================================================


def local_background(window: PixelWindow, cx: float, cy: float) -> BackgroundModel:
    """
    Background from the annulus between the patch aperture and the outer
    radius, clipped to the patch. Falls back to the whole patch when the
    annulus is too small.
    """
    values, dx, dy = window.cutout(cx, cy, PATCH_ANNULUS_OUTER)
    dist = np.hypot(*np.broadcast_arrays(dx, dy))
    ring = values[(dist > PATCH_APERTURE_RADIUS) & (dist <= PATCH_ANNULUS_OUTER)]
    if ring.size < PATCH_MIN_ANNULUS_PIXELS:
        ring = window.data.ravel()

    level = float(np.median(ring))
    sigma = MAD_TO_SIGMA * float(np.median(np.abs(ring - level)))
    if sigma <= 0.0 and ring.size > 1:
        sigma = float(np.std(ring))
    return BackgroundModel(level=level, noise_sigma=sigma, sample_count=int(ring.size))


def _patch_window(patch: PixelBuffer, width: int, height: int, x: float, y: float) -> PixelWindow:
    window = PixelWindow.from_buffer(patch, width, height)
    if not (math.isfinite(x) and math.isfinite(y)) or not (0 <= x < width and 0 <= y < height):
        raise InvalidInputError(
            f"Centre ({x}, {y}) is outside the {width}x{height} patch",
            width=width, height=height, reason="bad_centre",
        )
    return window


def measure_fwhm(patch: PixelBuffer, width: int, height: int, x: float, y: float) -> float:
    """
    FWHM of the star centred at (x, y) in a cropped patch.

    Works on any bit depth; the background is taken from an annulus
    around the star.

    Args:
        patch: Flat row-major pixel values (or a 2-D array)
        width: Patch width
        height: Patch height
        x: Star centre column
        y: Star centre row

    Returns:
        FWHM in pixels, 0.0 for flat or clipped patches

    Raises:
        InvalidInputError: for malformed patches or an out-of-bounds centre
    """
    window = _patch_window(patch, width, height, x, y)
    background = local_background(window, x, y)
    ap = Aperture(window, x, y, PATCH_APERTURE_RADIUS, background.level)
    if ap.npix == 0:
        return 0.0

    peak = float(ap.residual.max())
    return fwhm_from_profile(ap.distance, ap.residual, peak)


def measure_snr(patch: PixelBuffer, width: int, height: int, x: float, y: float) -> float:
    """
    Aperture SNR of the star centred at (x, y) in a cropped patch.

    Args:
        patch: Flat row-major pixel values (or a 2-D array)
        width: Patch width
        height: Patch height
        x: Star centre column
        y: Star centre row

    Returns:
        SNR, 0.0 when nothing rises above the local background

    Raises:
        InvalidInputError: for malformed patches or an out-of-bounds centre
    """
    window = _patch_window(patch, width, height, x, y)
    background = local_background(window, x, y)
    ap = Aperture(window, x, y, PATCH_APERTURE_RADIUS, background.level)
    return aperture_snr(ap.flux, ap.npix, background.noise_sigma)
