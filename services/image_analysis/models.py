"""
STARSIGHT Analysis Value Types

Results produced by the analysis pipeline. Every type is an immutable value
created once per analysis call; nothing is shared between calls.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Tuple

from starsight.types import ADU, Percent, Pixels


class FocusDirection(Enum):
    """Suggested focuser movement."""
    IN = "in"          # Move focuser inward
    OUT = "out"        # Move focuser outward
    NONE = "none"      # No reliable signal


class QualityGrade(Enum):
    """Overall frame quality classification."""
    EXCELLENT = "excellent"    # score >= 85
    GOOD = "good"              # score >= 70
    FAIR = "fair"              # score >= 50
    POOR = "poor"              # below 50


class TrendDirection(Enum):
    """Direction of change between frames."""
    IMPROVING = "improving"
    DEGRADING = "degrading"
    STABLE = "stable"


@dataclass(frozen=True)
class BackgroundModel:
    """Sky background of a frame."""
    level: ADU                  # Robust background level (ADU)
    noise_sigma: ADU            # Robust noise estimate (ADU)
    sample_count: int = 0       # Pixels used for the estimate

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "noise_sigma": self.noise_sigma,
            "sample_count": self.sample_count,
        }


@dataclass(frozen=True)
class DetectedSource:
    """Star detector output before photometry."""
    x: Pixels                   # Centroid X position (pixels)
    y: Pixels                   # Centroid Y position (pixels)
    peak: ADU                   # Peak raw pixel value (ADU)
    flux: ADU                   # Background-subtracted flux (ADU)


@dataclass(frozen=True)
class StarCandidate:
    """Measurement of a single star in a frame."""
    x: Pixels                   # Centroid X position (pixels)
    y: Pixels                   # Centroid Y position (pixels)
    flux: ADU                   # Total flux above background (ADU)
    snr: float                  # Signal-to-noise ratio
    hfr: Pixels                 # Half-flux radius (pixels)
    fwhm: Pixels                # Full-width half-max (pixels)
    eccentricity: float         # 0 = round, towards 1 = elongated
    peak: ADU = 0.0             # Peak raw pixel value (ADU)
    background: ADU = 0.0       # Background level used (ADU)
    saturated: bool = False     # Peak reached the saturation level

    def to_dict(self) -> Dict[str, Any]:
        return {
            "x": self.x,
            "y": self.y,
            "flux": self.flux,
            "snr": self.snr,
            "hfr": self.hfr,
            "fwhm": self.fwhm,
            "eccentricity": self.eccentricity,
            "peak": self.peak,
            "background": self.background,
            "saturated": self.saturated,
        }


@dataclass(frozen=True)
class ImageMetrics:
    """Frame-level statistics reduced from the star list."""
    hfr: Pixels                 # Mean HFR of the brightest stars (pixels)
    fwhm: Pixels                # Mean FWHM of the brightest stars (pixels)
    snr: float                  # Median star SNR
    star_count: int             # Number of detected stars
    eccentricity: float         # Mean eccentricity of the brightest stars
    background_level: ADU       # Background ADU level
    peak_value: ADU             # Max raw pixel value in the frame
    focus_score: Percent        # 0-100
    timestamp: datetime
    noise: ADU = 0.0            # Background noise sigma (ADU)
    contrast: float = 0.0       # (peak - background) / background
    saturation: Percent = 0.0   # Percentage of saturated pixels

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/storage."""
        return {
            "hfr": self.hfr,
            "fwhm": self.fwhm,
            "snr": self.snr,
            "star_count": self.star_count,
            "eccentricity": self.eccentricity,
            "background_level": self.background_level,
            "peak_value": self.peak_value,
            "focus_score": self.focus_score,
            "timestamp": self.timestamp.isoformat(),
            "noise": self.noise,
            "contrast": self.contrast,
            "saturation": self.saturation,
        }


@dataclass(frozen=True)
class FocusAnalysis:
    """Focus state inferred from a single frame."""
    is_in_focus: bool
    focus_direction: FocusDirection
    confidence: Percent         # 0-100
    recommendation: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_in_focus": self.is_in_focus,
            "focus_direction": self.focus_direction.value,
            "confidence": self.confidence,
            "recommendation": self.recommendation,
        }


@dataclass(frozen=True)
class QualityAssessment:
    """Overall score and actionable advice."""
    score: Percent              # 0-100
    grade: QualityGrade = QualityGrade.POOR
    issues: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "grade": self.grade.value,
            "issues": list(self.issues),
            "recommendations": list(self.recommendations),
        }


@dataclass(frozen=True)
class MetricsTrend:
    """Change of the current frame relative to recent frames."""
    hfr_trend: TrendDirection = TrendDirection.STABLE
    snr_trend: TrendDirection = TrendDirection.STABLE
    focus_trend: TrendDirection = TrendDirection.STABLE


@dataclass(frozen=True)
class AnalysisResult:
    """Complete analysis of one frame."""
    metrics: ImageMetrics
    stars: List[StarCandidate]              # Sorted by descending flux
    quality_assessment: QualityAssessment
    focus_analysis: FocusAnalysis
    background: BackgroundModel
    histogram: Tuple[int, ...] = ()         # 256-bin luminance histogram

    def to_dict(self, include_stars: bool = True) -> Dict[str, Any]:
        """Convert to dictionary for logging/storage."""
        result = {
            "metrics": self.metrics.to_dict(),
            "quality_assessment": self.quality_assessment.to_dict(),
            "focus_analysis": self.focus_analysis.to_dict(),
            "background": self.background.to_dict(),
        }
        if include_stars:
            result["stars"] = [s.to_dict() for s in self.stars]
        return result
