"""
STARSIGHT Photometry Tests

Tests for flux, HFR, FWHM, SNR and eccentricity, plus the patch helpers
measure_fwhm() and measure_snr().
"""

import math

import numpy as np
import pytest

from starsight.exceptions import InvalidInputError
from services.image_analysis.config import AnalysisConfig
from services.image_analysis.models import BackgroundModel, DetectedSource
from services.image_analysis.photometry import (
    Aperture,
    aperture_snr,
    eccentricity,
    fwhm_from_profile,
    half_flux_radius,
    measure_fwhm,
    measure_snr,
    measure_star,
    measure_stars,
)
from services.image_analysis.window import PixelWindow
from tests.fixtures.synthetic_frames import FrameNoise, SyntheticStar, render_frame

NOISELESS = FrameNoise(background_adu=1000.0, enable_read_noise=False)


def _star_window(sigma, sigma_y=None, amplitude=10000.0, size=41):
    centre = size // 2
    star = SyntheticStar(centre, centre, amplitude, sigma=sigma, sigma_y=sigma_y)
    return PixelWindow.from_buffer(render_frame(size, size, [star], noise=NOISELESS)), star


def _measure(sigma, sigma_y=None, amplitude=10000.0):
    window, star = _star_window(sigma, sigma_y, amplitude)
    source = DetectedSource(x=star.x, y=star.y, peak=amplitude, flux=0.0)
    return measure_star(window, source, BackgroundModel(1000.0, 0.0), AnalysisConfig())


# =============================================================================
# Aperture Tests
# =============================================================================


class TestAperture:
    """Tests for the circular aperture."""

    def test_pixel_count(self):
        """Test a radius-8 aperture holds the expected number of pixels."""
        window = PixelWindow.from_buffer(np.zeros((41, 41)))
        ap = Aperture(window, 20.0, 20.0, 8.0, 0.0)
        assert abs(ap.npix - math.pi * 64) < 15

    def test_residual_clamped(self):
        """Test pixels below the level contribute nothing."""
        window = PixelWindow.from_buffer(np.full((21, 21), 90.0))
        ap = Aperture(window, 10.0, 10.0, 5.0, 100.0)
        assert ap.flux == 0.0

    def test_clipped_at_edge(self):
        """Test apertures are clipped to the window."""
        window = PixelWindow.from_buffer(np.ones((41, 41)))
        ap = Aperture(window, 0.0, 0.0, 8.0, 0.0)
        assert ap.npix < math.pi * 64 / 2


# =============================================================================
# HFR Tests
# =============================================================================


class TestHalfFluxRadius:
    """Tests for half_flux_radius."""

    def test_point_source(self):
        """Test all flux in the centre pixel."""
        distance = np.array([0.0, 1.0, 1.0, 1.0, 1.0])
        residual = np.array([100.0, 0.0, 0.0, 0.0, 0.0])
        assert half_flux_radius(distance, residual, 8.0) == 0.0

    def test_no_flux(self):
        """Test an empty aperture."""
        assert half_flux_radius(np.array([0.0, 1.0]), np.zeros(2), 8.0) == 0.0

    def test_ring_interpolation(self):
        """Test half the flux between two rings is interpolated."""
        distance = np.array([1.0, 2.0])
        residual = np.array([25.0, 75.0])
        # Enclosed flux: 0 below r=1, 25 from r=1, 100 from r=2
        hfr = half_flux_radius(distance, residual, 4.0)
        assert hfr == pytest.approx(1.5 + 0.5 * (50 - 25) / 75)

    def test_gaussian_star(self):
        """Test HFR of a sigma=1.5 Gaussian."""
        star = _measure(1.5)
        # Continuous value is sigma * sqrt(2 ln 2) = 1.77
        assert 1.4 < star.hfr < 2.0

    def test_broader_star_has_larger_hfr(self):
        """Test HFR grows with the PSF width."""
        assert _measure(3.0).hfr > _measure(1.5).hfr > _measure(1.0).hfr


# =============================================================================
# FWHM Tests
# =============================================================================


class TestFWHM:
    """Tests for fwhm_from_profile."""

    def test_no_peak(self):
        """Test a non-positive peak."""
        assert fwhm_from_profile(np.array([0.0, 1.0]), np.zeros(2), 0.0) == 0.0

    def test_sigma_one(self):
        """Test FWHM of a sigma=1 Gaussian (2.355)."""
        assert 2.0 < _measure(1.0).fwhm < 2.8

    def test_sigma_two(self):
        """Test FWHM of a sigma=2 Gaussian (4.71)."""
        assert 4.2 < _measure(2.0).fwhm < 5.2

    @pytest.mark.parametrize("sigma", [1.0, 1.5, 2.0, 3.0])
    def test_fwhm_hfr_ratio(self, sigma):
        """Test FWHM/HFR stays near the Gaussian constant."""
        star = _measure(sigma)
        assert 1.0 <= star.fwhm / star.hfr <= 5.0


# =============================================================================
# SNR Tests
# =============================================================================


class TestSNR:
    """Tests for aperture_snr."""

    def test_ccd_equation(self):
        """Test flux / sqrt(flux + npix * sigma^2)."""
        assert aperture_snr(10000.0, 100, 10.0) == pytest.approx(10000 / math.sqrt(20000))

    def test_no_flux(self):
        """Test zero flux gives zero SNR."""
        assert aperture_snr(0.0, 100, 10.0) == 0.0

    def test_noiseless_background(self):
        """Test zero noise reduces to shot noise only."""
        assert aperture_snr(400.0, 100, 0.0) == pytest.approx(20.0)

    def test_brighter_star_higher_snr(self):
        """Test SNR grows with flux."""
        assert aperture_snr(5000.0, 200, 10.0) > aperture_snr(500.0, 200, 10.0)

    def test_noisier_background_lower_snr(self):
        """Test SNR falls as the background noise grows at fixed flux."""
        snrs = [aperture_snr(5000.0, 200, sigma) for sigma in (0.0, 5.0, 10.0, 20.0)]
        assert snrs == sorted(snrs, reverse=True)
        assert len(set(snrs)) == 4


# =============================================================================
# Eccentricity Tests
# =============================================================================


class TestEccentricity:
    """Tests for eccentricity."""

    def test_symmetric_cross(self):
        """Test a symmetric distribution is round."""
        dx = np.array([-1.0, 1.0, 0.0, 0.0])
        dy = np.array([0.0, 0.0, -1.0, 1.0])
        assert eccentricity(dx, dy, np.ones(4)) == pytest.approx(0.0, abs=1e-9)

    def test_line_is_fully_elongated(self):
        """Test a line has eccentricity 1."""
        dx = np.array([-2.0, -1.0, 0.0, 1.0, 2.0])
        dy = np.zeros(5)
        assert eccentricity(dx, dy, np.ones(5)) == pytest.approx(1.0)

    def test_no_weight(self):
        """Test degenerate input."""
        assert eccentricity(np.zeros(3), np.zeros(3), np.zeros(3)) == 0.0

    def test_round_star(self):
        """Test a round Gaussian star."""
        assert _measure(1.5).eccentricity < 0.1

    def test_elongated_star(self):
        """Test a star three times wider than tall."""
        ecc = _measure(3.0, sigma_y=1.0).eccentricity
        # sqrt(1 - (1/3)^2) = 0.943
        assert 0.85 < ecc <= 1.0


# =============================================================================
# Star Measurement Tests
# =============================================================================


class TestMeasureStar:
    """Tests for measure_star and measure_stars."""

    def test_flux_matches_gaussian_integral(self):
        """Test aperture flux recovers 2 pi sigma^2 A."""
        window, star = _star_window(1.5, amplitude=1000.0)
        source = DetectedSource(star.x, star.y, 2000.0, 0.0)
        measured = measure_star(window, source, BackgroundModel(1000.0, 0.0))

        assert measured.flux == pytest.approx(star.total_flux, rel=0.02)

    def test_fields_populated(self):
        """Test every field of a measured star."""
        star = _measure(1.5)

        assert star.snr > 0
        assert star.hfr > 0
        assert star.fwhm > 0
        assert 0 <= star.eccentricity <= 1
        assert star.peak == pytest.approx(11000)
        assert star.background == 1000.0
        assert star.saturated is False

    def test_saturated_flag(self):
        """Test a clipped star is flagged."""
        star = _measure(1.5, amplitude=80000.0)
        assert star.saturated is True
        assert star.peak == 65535

    def test_no_flux_returns_none(self):
        """Test an empty aperture gives no star."""
        window = PixelWindow.from_buffer(np.full((30, 30), 500.0))
        source = DetectedSource(15.0, 15.0, 500.0, 0.0)
        assert measure_star(window, source, BackgroundModel(1000.0, 5.0)) is None

    def test_measure_stars_sorted(self):
        """Test measure_stars orders by flux."""
        stars = [
            SyntheticStar(20, 20, 1000, sigma=1.5),
            SyntheticStar(60, 20, 3000, sigma=1.5),
            SyntheticStar(40, 50, 2000, sigma=1.5),
        ]
        window = PixelWindow.from_buffer(render_frame(80, 70, stars, noise=NOISELESS))
        sources = [DetectedSource(s.x, s.y, s.amplitude, 0.0) for s in stars]
        measured = measure_stars(window, sources, BackgroundModel(1000.0, 1.0))

        assert [round(m.x) for m in measured] == [60, 40, 20]

    def test_hot_pixel_kept_by_default(self):
        """Test a single bright pixel is measured when no HFR cut is set."""
        frame = render_frame(50, 40, [SyntheticStar(15, 20, 3000, sigma=1.5)], noise=NOISELESS)
        frame[20, 35] = 6000
        window = PixelWindow.from_buffer(frame)
        sources = [DetectedSource(15.0, 20.0, 4000.0, 0.0), DetectedSource(35.0, 20.0, 6000.0, 0.0)]
        measured = measure_stars(window, sources, BackgroundModel(1000.0, 0.0))

        assert len(measured) == 2
        assert min(m.hfr for m in measured) < 1.0

    def test_min_star_hfr_drops_hot_pixel(self):
        """Test the HFR cut removes a single bright pixel and keeps the star."""
        frame = render_frame(50, 40, [SyntheticStar(15, 20, 3000, sigma=1.5)], noise=NOISELESS)
        frame[20, 35] = 6000
        window = PixelWindow.from_buffer(frame)
        sources = [DetectedSource(15.0, 20.0, 4000.0, 0.0), DetectedSource(35.0, 20.0, 6000.0, 0.0)]
        measured = measure_stars(window, sources, BackgroundModel(1000.0, 0.0), AnalysisConfig(min_star_hfr=1.0))

        assert len(measured) == 1
        assert measured[0].x == pytest.approx(15, abs=0.1)


# =============================================================================
# Patch Helper Tests
# =============================================================================


def _patch(amplitude, sigma=2.0, size=41, read_noise=0.0, seed=0):
    centre = size // 2
    noise = FrameNoise(
        background_adu=20.0,
        enable_read_noise=read_noise > 0,
        read_noise_adu=read_noise,
        max_adu=255,
    )
    star = SyntheticStar(centre, centre, amplitude, sigma=sigma)
    return render_frame(size, size, [star], noise=noise, seed=seed, dtype=np.uint8), centre


class TestMeasureFWHM:
    """Tests for the measure_fwhm patch helper."""

    def test_eight_bit_patch(self):
        """Test FWHM on an 8-bit patch."""
        patch, c = _patch(200)
        assert 4.2 < measure_fwhm(patch.ravel().tolist(), 41, 41, c, c) < 5.2

    def test_bytes_patch(self):
        """Test raw bytes are accepted."""
        patch, c = _patch(200)
        assert 4.2 < measure_fwhm(patch.tobytes(), 41, 41, c, c) < 5.2

    def test_flat_patch(self):
        """Test a flat patch has no FWHM."""
        assert measure_fwhm([50] * 400, 20, 20, 10, 10) == 0.0

    def test_bad_centre(self):
        """Test a centre outside the patch is rejected."""
        with pytest.raises(InvalidInputError) as exc_info:
            measure_fwhm([0] * 100, 10, 10, 12, 5)
        assert exc_info.value.reason == "bad_centre"

    def test_length_mismatch(self):
        """Test a patch that does not match its dimensions."""
        with pytest.raises(InvalidInputError):
            measure_fwhm([0] * 99, 10, 10, 5, 5)


class TestMeasureSNR:
    """Tests for the measure_snr patch helper."""

    def test_bright_star_clears_threshold(self):
        """Test a bright star is well above the noise."""
        patch, c = _patch(100, sigma=1.5, read_noise=3.0, seed=21)
        assert measure_snr(patch, 41, 41, c, c) > 15

    def test_faint_star_below_bright(self):
        """Test a faint star has lower SNR than a bright one."""
        faint, c = _patch(10, sigma=1.5, read_noise=3.0, seed=21)
        bright, _ = _patch(100, sigma=1.5, read_noise=3.0, seed=21)

        faint_snr = measure_snr(faint, 41, 41, c, c)
        assert faint_snr < 15
        assert faint_snr < measure_snr(bright, 41, 41, c, c)

    def test_more_read_noise_lower_snr(self):
        """Test the same star measures lower SNR on a noisier patch."""
        quiet, c = _patch(100, sigma=1.5, read_noise=2.0, seed=22)
        noisy, _ = _patch(100, sigma=1.5, read_noise=8.0, seed=22)

        assert measure_snr(noisy, 41, 41, c, c) < measure_snr(quiet, 41, 41, c, c)

    def test_flat_patch(self):
        """Test a flat patch has zero SNR."""
        assert measure_snr([50] * 400, 20, 20, 10, 10) == 0.0

    def test_fwhm_snr_consistent_with_pipeline_ratio(self):
        """Test the patch FWHM agrees with the full-frame measurement."""
        patch, c = _patch(200, sigma=2.0)
        assert measure_fwhm(patch, 41, 41, c, c) == pytest.approx(_measure(2.0).fwhm, rel=0.1)
