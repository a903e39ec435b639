"""
STARSIGHT Test Fixtures Package.

Provides synthetic frame generators with known ground truth, so the
analysis pipeline can be tested without a camera.

Available helpers:
- SyntheticStar: Gaussian star description
- FrameNoise: Background and noise settings
- render_frame: Frame with Gaussian stars over Gaussian read noise
- uniform_noise_frame: Uniform 1000-1049 background with compact stars
- star_grid: Evenly spaced stars for multi-star frames

Usage:
    from tests.fixtures import SyntheticStar, render_frame

    frame = render_frame(200, 200, [SyntheticStar(100, 100, amplitude=5000)])
"""

from tests.fixtures.synthetic_frames import (
    FrameNoise,
    SyntheticStar,
    render_frame,
    star_grid,
    uniform_noise_frame,
)

__all__ = [
    "FrameNoise",
    "SyntheticStar",
    "render_frame",
    "star_grid",
    "uniform_noise_frame",
]
