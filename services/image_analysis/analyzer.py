"""
STARSIGHT Image Analyzer
Star Detection and Frame Quality Pipeline

Runs the six analysis stages in order:
1. Background estimation
2. Star detection
3. Photometry (flux, HFR, FWHM, SNR, eccentricity)
4. Metrics aggregation
5. Focus analysis
6. Quality assessment

Each stage is a pure function of its inputs. The analyzer holds only its
configuration, so one instance can serve any number of frames and calling
it twice on the same buffer gives the same numbers.

Usage:
    analyzer = ImageAnalyzer()
    result = await analyzer.analyze_frame(raw16)
    print(result.quality_assessment.score, result.focus_analysis.recommendation)
"""

import asyncio
import time
from dataclasses import replace
from datetime import datetime
from typing import List, Optional

from starsight.logging_config import get_logger
from starsight.types import PixelBuffer, Region

from .background import estimate_background
from .config import AnalysisConfig
from .focus import analyze_focus
from .metrics import aggregate_metrics, luminance_histogram
from .models import AnalysisResult, BackgroundModel, StarCandidate
from .photometry import measure_stars
from .quality import assess_quality
from .star_detector import detect_stars
from .window import PixelWindow

logger = get_logger(__name__)

# Frames larger than this yield to the event loop between stages
YIELD_PIXEL_THRESHOLD = 250_000


class ImageAnalyzer:
    """
    Frame analyzer for star metrics, focus and quality.

    Usage:
        analyzer = ImageAnalyzer(AnalysisConfig(focus_hfr_threshold=2.5))
        result = await analyzer.analyze_frame(pixels, width=1600, height=1200)
        if not result.focus_analysis.is_in_focus:
            print(result.focus_analysis.recommendation)
    """

    def __init__(self, config: Optional[AnalysisConfig] = None):
        """
        Initialize analyzer.

        Args:
            config: Analysis parameters (defaults to standard values)
        """
        self.config = config or AnalysisConfig()

    async def analyze_frame(
        self,
        pixels: PixelBuffer,
        width: Optional[int] = None,
        height: Optional[int] = None,
        timestamp: Optional[datetime] = None,
    ) -> AnalysisResult:
        """
        Analyze a frame.

        Large frames yield to the event loop after background estimation,
        detection and photometry so a single call never blocks the loop
        for the whole pipeline.

        Args:
            pixels: 2-D array, or flat row-major buffer with width/height
            width: Frame width (required for flat buffers)
            height: Frame height (required for flat buffers)
            timestamp: Frame capture time (defaults to now)

        Returns:
            AnalysisResult

        Raises:
            InvalidInputError: if the buffer is structurally invalid
        """
        window = PixelWindow.from_buffer(pixels, width, height)
        return await self._run(window, timestamp, yield_between_stages=window.size > YIELD_PIXEL_THRESHOLD)

    def analyze_frame_sync(
        self,
        pixels: PixelBuffer,
        width: Optional[int] = None,
        height: Optional[int] = None,
        timestamp: Optional[datetime] = None,
    ) -> AnalysisResult:
        """Blocking variant of analyze_frame() for callers without a loop."""
        window = PixelWindow.from_buffer(pixels, width, height)
        return self._run_stages(window, timestamp)

    async def analyze_region(
        self,
        pixels: PixelBuffer,
        region: Region,
        width: Optional[int] = None,
        height: Optional[int] = None,
        timestamp: Optional[datetime] = None,
    ) -> AnalysisResult:
        """
        Analyze a rectangular part of a frame.

        Star coordinates in the result refer to the full frame.

        Args:
            pixels: Full frame
            region: (x, y, width, height) of the area to analyze
            width: Frame width (required for flat buffers)
            height: Frame height (required for flat buffers)
            timestamp: Frame capture time (defaults to now)

        Raises:
            InvalidInputError: if the buffer or region is invalid
        """
        window = PixelWindow.from_buffer(pixels, width, height).crop(region)
        return await self._run(window, timestamp, yield_between_stages=window.size > YIELD_PIXEL_THRESHOLD)

    async def _run(
        self,
        window: PixelWindow,
        timestamp: Optional[datetime],
        yield_between_stages: bool,
    ) -> AnalysisResult:
        started = time.perf_counter()
        config = self.config

        background = estimate_background(window)
        if yield_between_stages:
            await asyncio.sleep(0)

        sources = detect_stars(window, background, config)
        if yield_between_stages:
            await asyncio.sleep(0)

        stars = measure_stars(window, sources, background, config)
        if yield_between_stages:
            await asyncio.sleep(0)

        result = self._finish(window, background, stars, timestamp)
        self._log_result(result, window, started)
        return result

    def _run_stages(self, window: PixelWindow, timestamp: Optional[datetime]) -> AnalysisResult:
        started = time.perf_counter()
        config = self.config

        background = estimate_background(window)
        sources = detect_stars(window, background, config)
        stars = measure_stars(window, sources, background, config)

        result = self._finish(window, background, stars, timestamp)
        self._log_result(result, window, started)
        return result

    def _finish(
        self,
        window: PixelWindow,
        background: BackgroundModel,
        stars: List[StarCandidate],
        timestamp: Optional[datetime],
    ) -> AnalysisResult:
        config = self.config

        metrics = aggregate_metrics(window, background, stars, config, timestamp)
        focus = analyze_focus(metrics, config)
        quality = assess_quality(metrics, config)

        if window.x_offset or window.y_offset:
            stars = [_translate(s, window.x_offset, window.y_offset) for s in stars]

        return AnalysisResult(
            metrics=metrics,
            stars=stars,
            quality_assessment=quality,
            focus_analysis=focus,
            background=background,
            histogram=luminance_histogram(window, max_value=config.max_adu),
        )

    @staticmethod
    def _log_result(result: AnalysisResult, window: PixelWindow, started: float) -> None:
        elapsed_ms = (time.perf_counter() - started) * 1000
        m = result.metrics
        logger.debug(
            f"Analyzed {window.width}x{window.height} frame in {elapsed_ms:.0f} ms: "
            f"{m.star_count} stars, HFR {m.hfr:.2f}, score {result.quality_assessment.score:.0f}"
        )
        if m.star_count == 0:
            logger.warning(f"No stars detected in {window.width}x{window.height} frame")


def _translate(star: StarCandidate, dx: int, dy: int) -> StarCandidate:
    return replace(star, x=star.x + dx, y=star.y + dy)


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


async def analyze_frame(
    pixels: PixelBuffer,
    width: Optional[int] = None,
    height: Optional[int] = None,
    config: Optional[AnalysisConfig] = None,
    timestamp: Optional[datetime] = None,
) -> AnalysisResult:
    """
    Analyze a frame with a fresh analyzer.

    Args:
        pixels: 2-D array, or flat row-major buffer with width/height
        width: Frame width (required for flat buffers)
        height: Frame height (required for flat buffers)
        config: Analysis parameters (defaults to standard values)
        timestamp: Frame capture time (defaults to now)

    Returns:
        AnalysisResult
    """
    return await ImageAnalyzer(config).analyze_frame(pixels, width, height, timestamp)
