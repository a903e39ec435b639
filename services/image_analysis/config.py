"""
STARSIGHT Analysis Configuration

Every tunable of the analysis pipeline, enumerated with its default.
The configuration is per call: an analyzer keeps the config it was built
with and nothing else.
"""

import math
from dataclasses import dataclass, fields
from typing import Any, Mapping

from starsight.exceptions import ConfigurationError


@dataclass(frozen=True)
class AnalysisConfig:
    """
    Configurable parameters for star detection and quality assessment.

    Attributes:
        detection_sigma_multiplier: A pixel seeds a star when it exceeds
            background level + k * noise sigma. Lower values find fainter
            stars and more noise.
        min_star_separation_px: Seeds closer than this to a brighter,
            already-accepted seed are merged into it.
        aperture_radius_px: Radius of the circular window used for the
            centroid and all per-star photometry.
        max_candidate_stars: Upper bound on reported stars; the faintest
            candidates are dropped first.
        focus_hfr_threshold: Mean HFR (pixels) at or below which the frame
            counts as in focus.
        saturation_fraction: Fraction of max_adu at or above which a pixel
            is treated as saturated.
        max_adu: Largest value the sensor can report.
        aggregate_top_n: Number of brightest stars averaged into the
            frame-level HFR/FWHM/eccentricity.
        min_star_hfr: Measured stars with a smaller HFR (pixels) are
            discarded as hot pixels or cosmic rays. 0 keeps every star.
    """
    detection_sigma_multiplier: float = 5.0
    min_star_separation_px: float = 6.0
    aperture_radius_px: int = 8
    max_candidate_stars: int = 200
    focus_hfr_threshold: float = 3.0
    saturation_fraction: float = 0.95
    max_adu: int = 65535
    aggregate_top_n: int = 20
    min_star_hfr: float = 0.0

    def __post_init__(self) -> None:
        self._require_positive("detection_sigma_multiplier", self.detection_sigma_multiplier)
        self._require_positive("focus_hfr_threshold", self.focus_hfr_threshold)

        if not _is_finite(self.min_star_hfr) or self.min_star_hfr < 0:
            raise ConfigurationError(
                "min_star_hfr must be a non-negative number",
                config_key="min_star_hfr",
                value=self.min_star_hfr,
            )

        if not _is_finite(self.min_star_separation_px) or self.min_star_separation_px < 0:
            raise ConfigurationError(
                "min_star_separation_px must be a non-negative number",
                config_key="min_star_separation_px",
                value=self.min_star_separation_px,
            )

        self._require_int("aperture_radius_px", self.aperture_radius_px, minimum=1)
        self._require_int("max_candidate_stars", self.max_candidate_stars, minimum=1)
        self._require_int("max_adu", self.max_adu, minimum=1)
        self._require_int("aggregate_top_n", self.aggregate_top_n, minimum=1)

        if not _is_finite(self.saturation_fraction) or not 0.0 < self.saturation_fraction <= 1.0:
            raise ConfigurationError(
                "saturation_fraction must be in (0, 1]",
                config_key="saturation_fraction",
                value=self.saturation_fraction,
            )

    @property
    def saturation_level(self) -> float:
        """ADU value at or above which a pixel counts as saturated."""
        return self.saturation_fraction * self.max_adu

    @classmethod
    def from_dict(cls, values: Mapping[str, Any]) -> "AnalysisConfig":
        """Build a config from a mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        for key in values:
            if key not in known:
                raise ConfigurationError(f"Unknown configuration key: {key}", config_key=key)
        return cls(**dict(values))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @staticmethod
    def _require_positive(name: str, value: Any) -> None:
        if not _is_finite(value) or value <= 0:
            raise ConfigurationError(f"{name} must be a positive number", config_key=name, value=value)

    @staticmethod
    def _require_int(name: str, value: Any, minimum: int) -> None:
        if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
            raise ConfigurationError(
                f"{name} must be an integer >= {minimum}",
                config_key=name,
                value=value,
            )


def _is_finite(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


DEFAULT_CONFIG = AnalysisConfig()
