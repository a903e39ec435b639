"""
STARSIGHT Focus Analyzer

Classifies a frame as in or out of focus and suggests a focuser direction.

A single frame cannot reveal which side of focus the focuser sits on, so
any inferred direction is reported with capped confidence.
"""

from .config import AnalysisConfig, DEFAULT_CONFIG
from .models import FocusAnalysis, FocusDirection, ImageMetrics

# Fewer stars than this cannot support an in-focus verdict
MIN_FOCUS_STARS = 3

# Stars counted / SNR at which each half of the confidence saturates
CONFIDENCE_STAR_COUNT = 20
CONFIDENCE_SNR = 20

# Confidence ceiling for directions inferred from a single frame
SINGLE_FRAME_DIRECTION_CONFIDENCE = 40.0

# Eccentricity above which stars count as elongated
ELONGATED_ECCENTRICITY = 0.5
# Eccentricity that flags tight-but-distorted stars
ABERRATED_ECCENTRICITY = 0.4


def focus_confidence(metrics: ImageMetrics) -> float:
    """Confidence (0-100) from star count and SNR."""
    if metrics.star_count == 0:
        return 0.0
    confidence = (
        metrics.star_count / CONFIDENCE_STAR_COUNT * 50
        + metrics.snr / CONFIDENCE_SNR * 50
    )
    return max(0.0, min(100.0, confidence))


def analyze_focus(metrics: ImageMetrics, config: AnalysisConfig = DEFAULT_CONFIG) -> FocusAnalysis:
    """
    Analyze focus from aggregated metrics.

    Args:
        metrics: Frame metrics
        config: Provides the focus HFR threshold

    Returns:
        FocusAnalysis with direction, confidence and recommendation
    """
    threshold = config.focus_hfr_threshold

    if metrics.star_count == 0:
        return FocusAnalysis(
            is_in_focus=False,
            focus_direction=FocusDirection.NONE,
            confidence=0.0,
            recommendation="No stars detected. Check exposure and pointing before focusing.",
        )

    confidence = focus_confidence(metrics)
    enough_stars = metrics.star_count >= MIN_FOCUS_STARS
    is_in_focus = enough_stars and metrics.hfr <= threshold

    if metrics.hfr > threshold:
        if metrics.eccentricity > ELONGATED_ECCENTRICITY:
            return FocusAnalysis(
                is_in_focus=False,
                focus_direction=FocusDirection.NONE,
                confidence=confidence,
                recommendation=(
                    f"Stars are large (HFR {metrics.hfr:.2f}) and elongated "
                    f"(eccentricity {metrics.eccentricity:.2f}). "
                    "Check tracking and sensor tilt before refocusing."
                ),
            )
        return FocusAnalysis(
            is_in_focus=False,
            focus_direction=FocusDirection.IN,
            confidence=min(confidence, SINGLE_FRAME_DIRECTION_CONFIDENCE),
            recommendation=(
                f"Focus needs improvement. Current HFR: {metrics.hfr:.2f}, "
                f"target: {threshold:.2f}. Consider running autofocus."
            ),
        )

    if metrics.hfr < threshold / 2 and metrics.eccentricity > ABERRATED_ECCENTRICITY:
        return FocusAnalysis(
            is_in_focus=is_in_focus,
            focus_direction=FocusDirection.OUT,
            confidence=min(confidence, SINGLE_FRAME_DIRECTION_CONFIDENCE),
            recommendation=(
                "Stars appear over-corrected or there may be optical issues. "
                "Check collimation."
            ),
        )

    if not enough_stars:
        return FocusAnalysis(
            is_in_focus=False,
            focus_direction=FocusDirection.NONE,
            confidence=confidence,
            recommendation=(
                f"Only {metrics.star_count} star(s) detected. "
                "Focus looks sharp but more stars are needed to confirm."
            ),
        )

    return FocusAnalysis(
        is_in_focus=True,
        focus_direction=FocusDirection.NONE,
        confidence=confidence,
        recommendation="Focus is optimal.",
    )
