# backend/app/prediction_summary.py
"""
Dashboard roll-ups over lists of flood predictions.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from .prediction_generator import FORECAST_RISK_LEVELS, HIGH_RISK_LEVELS


def summarize_listing(predictions: List[Any], now: datetime) -> Dict[str, Any]:
    count = len(predictions)
    avg_conf = sum(p.confidence_score for p in predictions) / count if count else 0.0
    return {
        "high_risk_count": sum(1 for p in predictions if p.risk_level in HIGH_RISK_LEVELS),
        "average_confidence": round(avg_conf, 3),
        "active_forecasts": sum(1 for p in predictions if p.forecast_end > now),
    }


def latest_per_barangay(predictions: List[Any]) -> List[Any]:
    """
    Keep the first prediction seen for each barangay.
    Callers pass predictions ordered newest first within a barangay.
    """
    latest: Dict[str, Any] = {}
    for p in predictions:
        latest.setdefault(p.barangay_id, p)
    return list(latest.values())


def filter_by_threshold(predictions: List[Any], threshold: Optional[str]) -> List[Any]:
    """Keep predictions at or above a forecast risk level; unknown thresholds keep everything."""
    if threshold not in FORECAST_RISK_LEVELS:
        return list(predictions)
    floor = FORECAST_RISK_LEVELS.index(threshold)
    return [
        p for p in predictions
        if p.risk_level in FORECAST_RISK_LEVELS and FORECAST_RISK_LEVELS.index(p.risk_level) >= floor
    ]


def risk_summary(predictions: List[Any]) -> Dict[str, int]:
    summary = {level: 0 for level in FORECAST_RISK_LEVELS}
    for p in predictions:
        if p.risk_level in summary:
            summary[p.risk_level] += 1
    return summary


def highest_risk(summary: Dict[str, int]) -> str:
    """Level with the most predictions; ties go to the lower level, 'low' when empty."""
    top = max(summary.values(), default=0)
    if top == 0:
        return "low"
    return next(level for level in FORECAST_RISK_LEVELS if summary.get(level) == top)
