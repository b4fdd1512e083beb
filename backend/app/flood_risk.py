# backend/app/flood_risk.py
"""
Rule-based flood risk assessment for a flood-characteristics record.

Each hydrological magnitude (maximum depth, peak velocity, inundation area)
is checked against descending bands; the first band exceeded adds its points
and a human-readable factor. The summed score (0-8) maps to a static risk
level: low / moderate / high / extreme.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

# (threshold, points, factor) checked top-down, strict ">" comparison
Band = Tuple[float, int, str]

DEPTH_BANDS: Tuple[Band, ...] = (
    (2.0, 3, "Very high water depth (>2m)"),
    (1.5, 2, "High water depth (1.5-2m)"),
    (1.0, 1, "Moderate water depth (1-1.5m)"),
)
VELOCITY_BANDS: Tuple[Band, ...] = (
    (3.0, 3, "Very high water velocity (>3m/s)"),
    (2.0, 2, "High water velocity (2-3m/s)"),
    (1.0, 1, "Moderate water velocity (1-2m/s)"),
)
AREA_BANDS: Tuple[Band, ...] = (
    (10.0, 2, "Large inundation area (>10km²)"),
    (5.0, 1, "Moderate inundation area (5-10km²)"),
)
# (minimum score, level) checked top-down, ">=" comparison
LEVEL_CUTOFFS: Tuple[Tuple[int, str], ...] = (
    (6, "extreme"),
    (4, "high"),
    (2, "moderate"),
)
STATIC_RISK_LEVELS = ("low", "moderate", "high", "extreme")


@dataclass(frozen=True)
class RiskScoringRules:
    depth_bands: Tuple[Band, ...] = DEPTH_BANDS
    velocity_bands: Tuple[Band, ...] = VELOCITY_BANDS
    area_bands: Tuple[Band, ...] = AREA_BANDS
    level_cutoffs: Tuple[Tuple[int, str], ...] = LEVEL_CUTOFFS
    default_level: str = "low"

    @property
    def max_score(self) -> int:
        return sum(b[0][1] for b in (self.depth_bands, self.velocity_bands, self.area_bands) if b)


DEFAULT_RISK_RULES = RiskScoringRules()


@dataclass
class RiskAssessmentResult:
    score: int
    level: str
    factors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"score": self.score, "factors": list(self.factors), "level": self.level}


def _band_points(value: float, bands: Tuple[Band, ...]):
    for threshold, points, factor in bands:
        if value > threshold:
            return points, factor
    return 0, None


def level_for_score(score: int, rules: RiskScoringRules = DEFAULT_RISK_RULES) -> str:
    for minimum, level in rules.level_cutoffs:
        if score >= minimum:
            return level
    return rules.default_level


def score_flood_risk(
    maximum_depth: float,
    peak_velocity: float,
    inundation_area: float,
    rules: RiskScoringRules = DEFAULT_RISK_RULES,
) -> RiskAssessmentResult:
    """
    Score depth (m), velocity (m/s) and inundation area (km²).
    Factors come back in depth, velocity, area order, only for bands that fired.
    """
    score = 0
    factors: List[str] = []
    for value, bands in (
        (maximum_depth, rules.depth_bands),
        (peak_velocity, rules.velocity_bands),
        (inundation_area, rules.area_bands),
    ):
        points, factor = _band_points(value, bands)
        if factor:
            score += points
            factors.append(factor)
    return RiskAssessmentResult(score=score, level=level_for_score(score, rules), factors=factors)


def assess_characteristics(record, rules: RiskScoringRules = DEFAULT_RISK_RULES) -> RiskAssessmentResult:
    return score_flood_risk(record.maximum_depth, record.peak_velocity, record.inundation_area, rules)


def build_flood_summary(record, rules: RiskScoringRules = DEFAULT_RISK_RULES) -> Dict[str, Any]:
    """Dashboard summary of a flood-characteristics record with its risk assessment."""
    assessment = assess_characteristics(record, rules)
    return {
        "hasData": True,
        "location": record.location,
        "maximumDepth": {
            "value": record.maximum_depth,
            "uncertainty": record.maximum_depth_uncertainty,
            "unit": "m",
        },
        "peakVelocity": {
            "value": record.peak_velocity,
            "uncertainty": record.peak_velocity_uncertainty,
            "unit": "m/s",
        },
        "arrivalTime": {
            "value": record.arrival_time,
            "uncertainty": record.arrival_time_uncertainty,
            "unit": "hours",
        },
        "inundationArea": {
            "value": record.inundation_area,
            "uncertainty": record.inundation_area_uncertainty,
            "unit": "km²",
        },
        "riskLevel": record.flood_risk_level,
        "riskAssessment": assessment.to_dict(),
        "lastUpdated": record.last_updated,
        "expertAnalysis": record.expert_analysis,
        "recommendedActions": record.recommended_actions,
    }
