# backend/app/prediction_generator.py
"""
Mock flood forecasting model.

Combines a barangay's static risk class with recent rainfall and water levels
into a flood probability, then derives the forecast risk level, alert level
and the estimated impact of the event.

Predicted rainfall and the confidence score are drawn from an injectable
random generator. With the module default generator (unseeded unless
FLOODWATCH_RANDOM_SEED is set) those two fields are not reproducible.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Tuple

import numpy as np

from .aggregator import AggregatedWindow
from .config import FRESHNESS_HOURS, RANDOM_SEED
from .errors import InvalidForecastWindow

BARANGAY_RISK_CLASSES = ("low", "moderate", "high", "very_high")
FORECAST_RISK_LEVELS = ("low", "moderate", "high", "severe", "extreme")
ALERT_LEVELS = ("watch", "warning", "emergency")
HIGH_RISK_LEVELS = ("high", "severe", "extreme")

RAINFALL_PARAM = "rainfall_mm"
WATER_LEVEL_PARAM = "water_level_m"


@dataclass(frozen=True)
class PredictionRules:
    base_probabilities: Dict[str, float] = field(default_factory=lambda: {
        "low": 0.05,
        "moderate": 0.15,
        "high": 0.35,
        "very_high": 0.55,
    })
    default_base_probability: float = 0.15
    # (threshold, increment), first strict ">" match wins
    rainfall_adjustments: Tuple[Tuple[float, float], ...] = ((20.0, 0.30), (10.0, 0.15), (5.0, 0.05))
    water_level_adjustments: Tuple[Tuple[float, float], ...] = ((2.5, 0.25), (2.0, 0.15), (1.8, 0.05))
    max_probability: float = 0.95
    risk_cutoffs: Tuple[Tuple[float, str], ...] = ((0.7, "extreme"), (0.5, "severe"), (0.3, "high"), (0.15, "moderate"))
    alert_cutoffs: Tuple[Tuple[float, str], ...] = ((0.7, "emergency"), (0.4, "warning"), (0.2, "watch"))
    default_water_level_m: float = 1.5
    min_predicted_water_level_m: float = 1.0
    water_level_gain_m: float = 2.0
    rainfall_jitter: Tuple[float, float] = (0.8, 1.2)
    confidence_range: Tuple[float, float] = (0.65, 0.90)
    default_area_km2: float = 2.5
    affected_area_factor: float = 0.6
    default_population: int = 5000
    population_factor: float = 0.4
    freshness: timedelta = timedelta(hours=FRESHNESS_HOURS)


DEFAULT_PREDICTION_RULES = PredictionRules()


@dataclass
class GenerationResult:
    prediction: Any
    generated: bool


_rng = None
def get_rng():
    global _rng
    if _rng is None:
        _rng = np.random.default_rng(RANDOM_SEED)
    return _rng


def _first_increment(value: float, table) -> float:
    for threshold, increment in table:
        if value > threshold:
            return increment
    return 0.0


def flood_probability(risk_class: str, recent_rainfall_mm: float, avg_water_level_m: float,
                      rules: PredictionRules = DEFAULT_PREDICTION_RULES) -> float:
    p = rules.base_probabilities.get(risk_class, rules.default_base_probability)
    p += _first_increment(recent_rainfall_mm, rules.rainfall_adjustments)
    p += _first_increment(avg_water_level_m, rules.water_level_adjustments)
    p = min(rules.max_probability, p)
    # stored value; levels are derived from it so they always agree
    return round(p, 3)


def risk_level_for(probability: float, rules: PredictionRules = DEFAULT_PREDICTION_RULES) -> str:
    for cutoff, level in rules.risk_cutoffs:
        if probability > cutoff:
            return level
    return "low"


def alert_level_for(probability: float, rules: PredictionRules = DEFAULT_PREDICTION_RULES) -> Optional[str]:
    for cutoff, level in rules.alert_cutoffs:
        if probability > cutoff:
            return level
    return None


def is_fresh(prediction, now: datetime, rules: PredictionRules = DEFAULT_PREDICTION_RULES) -> bool:
    """True when the prediction was made within the freshness window and its forecast is still running."""
    if prediction is None:
        return False
    return (prediction.prediction_timestamp >= now - rules.freshness
            and prediction.forecast_end > now)


def window_inputs(window: AggregatedWindow, rules: PredictionRules = DEFAULT_PREDICTION_RULES) -> Tuple[float, float]:
    """(recent rainfall sum, average water level) read from an aggregated window."""
    rain = window.get(RAINFALL_PARAM)
    water = window.get(WATER_LEVEL_PARAM)
    recent_rainfall = rain.recent_sum if rain.recent_sum is not None else (rain.sum or 0.0)
    avg_water = water.average if water.average is not None else rules.default_water_level_m
    return float(recent_rainfall), float(avg_water)


def build_prediction_payload(
    risk_class: str,
    window: AggregatedWindow,
    forecast_hours: float,
    barangay_area_km2: Optional[float] = None,
    barangay_population: Optional[int] = None,
    rng=None,
    rules: PredictionRules = DEFAULT_PREDICTION_RULES,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Compute a new prediction as a plain dict of FloodPrediction column values.
    """
    if forecast_hours is None or forecast_hours <= 0:
        raise InvalidForecastWindow(forecast_hours)
    rng = rng or get_rng()
    now = now or datetime.utcnow()

    recent_rainfall, avg_water = window_inputs(window, rules)
    p = flood_probability(risk_class, recent_rainfall, avg_water, rules)

    area = barangay_area_km2 or rules.default_area_km2
    population = barangay_population or rules.default_population

    return {
        "prediction_timestamp": now,
        "forecast_start": now,
        "forecast_end": now + timedelta(hours=float(forecast_hours)),
        "flood_probability": p,
        "risk_level": risk_level_for(p, rules),
        "alert_level": alert_level_for(p, rules),
        "predicted_water_level": max(rules.min_predicted_water_level_m, avg_water + p * rules.water_level_gain_m),
        "predicted_rainfall": recent_rainfall * float(rng.uniform(*rules.rainfall_jitter)),
        "affected_area_km2": round(area * p * rules.affected_area_factor, 2),
        "population_at_risk": int(math.floor(population * p * rules.population_factor)),
        "confidence_score": float(rng.uniform(*rules.confidence_range)),
        "input_features": {
            "recent_rainfall_mm": recent_rainfall,
            "avg_water_level_m": avg_water,
            "barangay_risk_level": risk_class,
            "data_points_used": window.total_readings,
            "forecast_hours": forecast_hours,
        },
    }


def generate_prediction(
    risk_class: str,
    window: AggregatedWindow,
    forecast_hours: float,
    barangay_area_km2: Optional[float] = None,
    barangay_population: Optional[int] = None,
    force_refresh: bool = False,
    existing_recent_prediction=None,
    rng=None,
    rules: PredictionRules = DEFAULT_PREDICTION_RULES,
    now: Optional[datetime] = None,
) -> GenerationResult:
    """
    Return the existing prediction untouched when it is still fresh (unless
    force_refresh), otherwise a freshly computed payload.
    """
    now = now or datetime.utcnow()
    if not force_refresh and is_fresh(existing_recent_prediction, now, rules):
        return GenerationResult(prediction=existing_recent_prediction, generated=False)

    payload = build_prediction_payload(
        risk_class, window, forecast_hours,
        barangay_area_km2=barangay_area_km2,
        barangay_population=barangay_population,
        rng=rng, rules=rules, now=now,
    )
    return GenerationResult(prediction=payload, generated=True)
