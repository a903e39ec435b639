"""
Pytest Fixtures for STARSIGHT Testing.

Provides shared fixtures for unit tests. tests/conftest.py re-exports
them so they are available to every test module.

Usage:
    # In test files, fixtures are automatically available:
    async def test_detects_stars(analyzer, star_field):
        result = await analyzer.analyze_frame(star_field)
        assert result.metrics.star_count > 0
"""

from datetime import datetime, timezone

import numpy as np
import pytest

from services.image_analysis import AnalysisConfig, ImageAnalyzer
from tests.fixtures.synthetic_frames import (
    SyntheticStar,
    render_frame,
    star_grid,
    uniform_noise_frame,
)


# =============================================================================
# Analyzer Fixtures
# =============================================================================

@pytest.fixture
def config() -> AnalysisConfig:
    """Default analysis configuration."""
    return AnalysisConfig()


@pytest.fixture
def analyzer(config) -> ImageAnalyzer:
    """Analyzer with the default configuration."""
    return ImageAnalyzer(config)


@pytest.fixture
def fixed_time() -> datetime:
    """Fixed frame timestamp for reproducible results."""
    return datetime(2024, 1, 15, 22, 30, tzinfo=timezone.utc)


# =============================================================================
# Frame Fixtures
# =============================================================================

@pytest.fixture
def noise_only_frame() -> np.ndarray:
    """200x200 uniform-noise frame without stars."""
    return uniform_noise_frame(200, 200, seed=1)


@pytest.fixture
def star_field() -> np.ndarray:
    """400x300 frame with a 4x5 grid of round, focused stars."""
    stars = star_grid(400, 300, rows=4, cols=5, amplitude=4000, amplitude_step=100, sigma=1.5, seed=2)
    return render_frame(400, 300, stars, seed=2)


@pytest.fixture
def defocused_field() -> np.ndarray:
    """400x300 frame with a 3x4 grid of broad, round stars."""
    stars = star_grid(400, 300, rows=3, cols=4, amplitude=3000, sigma=4.0, seed=3)
    return render_frame(400, 300, stars, seed=3)


@pytest.fixture
def elongated_field() -> np.ndarray:
    """400x300 frame with a 3x4 grid of stars trailed along x."""
    stars = star_grid(400, 300, rows=3, cols=4, amplitude=4000, sigma=3.0, sigma_y=1.0, seed=4)
    return render_frame(400, 300, stars, seed=4)


@pytest.fixture
def single_star_frame() -> np.ndarray:
    """100x100 frame with one round star at (50.3, 40.7)."""
    return render_frame(100, 100, [SyntheticStar(50.3, 40.7, amplitude=5000, sigma=1.5)], seed=5)


@pytest.fixture
def saturated_frame() -> np.ndarray:
    """200x200 frame with every pixel at full scale."""
    return np.full((200, 200), 65535, dtype=np.uint16)


@pytest.fixture
def flat_frame() -> np.ndarray:
    """200x200 frame with every pixel at 100 ADU."""
    return np.full((200, 200), 100, dtype=np.uint16)

