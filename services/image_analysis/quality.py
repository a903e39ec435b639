"""
STARSIGHT Quality Assessor

Combines frame metrics into a 0-100 score and a list of recommendations.

Score = 100 * (weighted HFR, SNR and star-count components) minus a
saturation penalty. Recommendation rules are independent of each other
and may fire together.
"""

from dataclasses import dataclass
from typing import List, Tuple

from .config import AnalysisConfig, DEFAULT_CONFIG
from .models import ImageMetrics, QualityAssessment, QualityGrade


@dataclass(frozen=True)
class ScoreWeights:
    """Fixed weights of the score components (sum to 1.0)."""
    hfr: float = 0.45
    snr: float = 0.30
    star_count: float = 0.25


WEIGHTS = ScoreWeights()

# HFR component: full credit up to HFR_SHARP, none from HFR_BLURRED
HFR_SHARP = 1.5
HFR_BLURRED = 6.0

# Components saturate at these values
SNR_CEILING = 50.0
STAR_COUNT_CEILING = 20

# Saturation penalty range (score points)
SATURATION_PENALTY_MIN = 10.0
SATURATION_PENALTY_MAX = 50.0

# Recommendation thresholds
SATURATION_WARN_PCT = 5.0
LOW_STAR_COUNT = 10
HFR_POOR = 4.0
FWHM_POOR = 9.4
HFR_SUBOPTIMAL = 2.5
SNR_LOW = 5.0
ECCENTRICITY_POOR = 0.5
NOISE_HIGH_ADU = 100.0

# Recommendation texts
REC_REDUCE_EXPOSURE = "Reduce exposure time or gain"
REC_CHECK_POINTING = "Check pointing and exposure time"
REC_RUN_AUTOFOCUS = "Run autofocus routine"
REC_FINE_TUNE_FOCUS = "Consider fine-tuning focus"
REC_INCREASE_EXPOSURE = "Increase exposure time or gain"
REC_CHECK_TRACKING = "Check tracking and guiding"
REC_CHECK_COOLING = "Check camera cooling and gain settings"


def hfr_component(metrics: ImageMetrics) -> float:
    """1.0 for sharp stars falling linearly to 0.0 for blurred ones."""
    if metrics.star_count == 0:
        return 0.0
    if metrics.hfr <= HFR_SHARP:
        return 1.0
    return max(0.0, 1.0 - (metrics.hfr - HFR_SHARP) / (HFR_BLURRED - HFR_SHARP))


def snr_component(metrics: ImageMetrics) -> float:
    return min(max(metrics.snr, 0.0), SNR_CEILING) / SNR_CEILING


def star_count_component(metrics: ImageMetrics) -> float:
    return min(metrics.star_count, STAR_COUNT_CEILING) / STAR_COUNT_CEILING


def saturation_penalty(metrics: ImageMetrics, config: AnalysisConfig = DEFAULT_CONFIG) -> float:
    """
    Penalty (score points) once the peak reaches the saturation level,
    growing with the share of saturated pixels.
    """
    if metrics.peak_value < config.saturation_level:
        return 0.0
    share = min(metrics.saturation / SATURATION_WARN_PCT, 1.0)
    return SATURATION_PENALTY_MIN + (SATURATION_PENALTY_MAX - SATURATION_PENALTY_MIN) * share


def calculate_score(metrics: ImageMetrics, config: AnalysisConfig = DEFAULT_CONFIG) -> float:
    """Quality score clamped to 0-100."""
    weighted = (
        WEIGHTS.hfr * hfr_component(metrics)
        + WEIGHTS.snr * snr_component(metrics)
        + WEIGHTS.star_count * star_count_component(metrics)
    )
    score = 100.0 * weighted - saturation_penalty(metrics, config)
    return max(0.0, min(100.0, score))


def grade_for_score(score: float) -> QualityGrade:
    if score >= 85:
        return QualityGrade.EXCELLENT
    elif score >= 70:
        return QualityGrade.GOOD
    elif score >= 50:
        return QualityGrade.FAIR
    return QualityGrade.POOR


def collect_issues(metrics: ImageMetrics) -> Tuple[List[str], List[str]]:
    """
    Apply the recommendation rules.

    Returns:
        (issues, recommendations) in rule order
    """
    issues: List[str] = []
    recommendations: List[str] = []

    def flag(issue: str, recommendation: str) -> None:
        issues.append(issue)
        if recommendation not in recommendations:
            recommendations.append(recommendation)

    if metrics.saturation > SATURATION_WARN_PCT:
        flag("High saturation level", REC_REDUCE_EXPOSURE)

    if metrics.star_count < LOW_STAR_COUNT:
        flag("Low star count", REC_CHECK_POINTING)

    if metrics.star_count > 0:
        if metrics.hfr > HFR_POOR or metrics.fwhm > FWHM_POOR:
            flag("Poor focus quality", REC_RUN_AUTOFOCUS)
        elif metrics.hfr > HFR_SUBOPTIMAL:
            flag("Suboptimal focus", REC_FINE_TUNE_FOCUS)

        if metrics.snr < SNR_LOW:
            flag("Low signal-to-noise ratio", REC_INCREASE_EXPOSURE)

    if metrics.eccentricity > ECCENTRICITY_POOR:
        flag("Poor star roundness", REC_CHECK_TRACKING)

    if metrics.noise > NOISE_HIGH_ADU:
        flag("High noise level", REC_CHECK_COOLING)

    return issues, recommendations


def assess_quality(metrics: ImageMetrics, config: AnalysisConfig = DEFAULT_CONFIG) -> QualityAssessment:
    """
    Assess overall frame quality.

    Args:
        metrics: Frame metrics
        config: Provides the saturation level

    Returns:
        QualityAssessment; recommendations is empty when nothing fired
    """
    score = calculate_score(metrics, config)
    issues, recommendations = collect_issues(metrics)
    return QualityAssessment(
        score=score,
        grade=grade_for_score(score),
        issues=issues,
        recommendations=recommendations,
    )
