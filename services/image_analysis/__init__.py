"""
STARSIGHT Image Analysis Service

Star detection, per-star photometry, focus analysis and frame quality
assessment for raw monochrome frames.

Usage:
    from services.image_analysis import ImageAnalyzer

    analyzer = ImageAnalyzer()
    result = await analyzer.analyze_frame(pixels, width=1600, height=1200)
    print(result.metrics.hfr, result.quality_assessment.recommendations)
"""

from .analyzer import ImageAnalyzer, analyze_frame
from .config import AnalysisConfig, DEFAULT_CONFIG
from .models import (
    AnalysisResult,
    BackgroundModel,
    FocusAnalysis,
    FocusDirection,
    ImageMetrics,
    MetricsTrend,
    QualityAssessment,
    QualityGrade,
    StarCandidate,
    TrendDirection,
)
from .photometry import measure_fwhm, measure_snr
from .trend import calculate_trend

__all__ = [
    "ImageAnalyzer",
    "analyze_frame",
    "measure_fwhm",
    "measure_snr",
    "calculate_trend",
    "AnalysisConfig",
    "DEFAULT_CONFIG",
    "AnalysisResult",
    "BackgroundModel",
    "FocusAnalysis",
    "FocusDirection",
    "ImageMetrics",
    "MetricsTrend",
    "QualityAssessment",
    "QualityGrade",
    "StarCandidate",
    "TrendDirection",
]
