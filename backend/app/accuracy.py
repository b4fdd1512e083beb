# backend/app/accuracy.py
"""
Operator feedback on predictions and the accuracy metrics derived from it.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, Optional

import numpy as np
from sklearn.metrics import accuracy_score, precision_score, recall_score
from sqlalchemy.orm import Session

from .config import DEFAULT_MODEL_VERSION, EVALUATION_DAYS
from .db_helpers import get_prediction, list_evaluated_predictions, save
from .errors import NotFoundError, ValidationStatusError
from .healthcheck import update_health
from .logging_setup import logger

VALIDATION_STATUSES = ("validated", "false_positive", "false_negative")


def validate_prediction(
    db: Session,
    prediction_id: int,
    status: str,
    actual_outcome: Any = None,
    notes: Optional[str] = None,
):
    """
    Record the observed outcome of a prediction.
    Only validation_status, actual_outcome and (when given) prediction_notes change.
    """
    if status not in VALIDATION_STATUSES:
        raise ValidationStatusError(status, VALIDATION_STATUSES)

    prediction = get_prediction(db, prediction_id)
    if prediction is None:
        raise NotFoundError("Prediction", prediction_id)

    prediction.validation_status = status
    prediction.actual_outcome = actual_outcome
    if notes:
        prediction.prediction_notes = notes
    save(db, prediction, f"validate_prediction id={prediction_id}")
    update_health("validation_run")
    logger.info(f"[accuracy] Prediction id={prediction_id} marked {status}")
    return prediction


@dataclass
class AccuracyReport:
    model_version: str
    evaluation_days: int
    start_date: datetime
    end_date: datetime
    total_predictions: int
    accurate_predictions: int
    false_positives: int
    false_negatives: int
    accuracy: float
    precision: float
    recall: float
    average_confidence: float
    barangay_filter: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model_version": self.model_version,
            "evaluation_period": {
                "days": self.evaluation_days,
                "start_date": self.start_date,
                "end_date": self.end_date,
            },
            "metrics": {
                "total_predictions": self.total_predictions,
                "accurate_predictions": self.accurate_predictions,
                "false_positives": self.false_positives,
                "false_negatives": self.false_negatives,
                "accuracy": self.accuracy,
                "precision": self.precision,
                "recall": self.recall,
                "average_confidence": self.average_confidence,
            },
            "barangay_filter": self.barangay_filter or "all",
        }


# (flooded, predicted flood) per feedback status
OUTCOME_LABELS = {
    "validated": (1, 1),
    "false_positive": (0, 1),
    "false_negative": (1, 0),
}


def _outcome_arrays(evaluated):
    pairs = np.array([OUTCOME_LABELS[p.validation_status] for p in evaluated], dtype=int)
    return pairs[:, 0], pairs[:, 1]


def evaluate_accuracy(
    predictions: Iterable[Any],
    model_version: str,
    evaluation_days: int,
    start_date: datetime,
    end_date: datetime,
    barangay_id: Optional[str] = None,
) -> AccuracyReport:
    evaluated = [p for p in predictions if p.validation_status in OUTCOME_LABELS]
    total = len(evaluated)
    accurate = sum(1 for p in evaluated if p.validation_status == "validated")
    false_pos = sum(1 for p in evaluated if p.validation_status == "false_positive")
    false_neg = sum(1 for p in evaluated if p.validation_status == "false_negative")

    acc = prec = rec = avg_conf = 0.0
    if total:
        y_true, y_pred = _outcome_arrays(evaluated)
        acc = accuracy_score(y_true, y_pred)
        # zero_division=0: no positives in the denominator reports 0
        prec = precision_score(y_true, y_pred, zero_division=0)
        rec = recall_score(y_true, y_pred, zero_division=0)
        avg_conf = np.mean([p.confidence_score for p in evaluated])

    return AccuracyReport(
        model_version=model_version,
        evaluation_days=evaluation_days,
        start_date=start_date,
        end_date=end_date,
        total_predictions=total,
        accurate_predictions=accurate,
        false_positives=false_pos,
        false_negatives=false_neg,
        accuracy=round(float(acc), 3),
        precision=round(float(prec), 3),
        recall=round(float(rec), 3),
        average_confidence=round(float(avg_conf), 3),
        barangay_filter=barangay_id,
    )


def compute_accuracy(
    db: Session,
    model_version: str = DEFAULT_MODEL_VERSION,
    evaluation_days: int = EVALUATION_DAYS,
    barangay_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> AccuracyReport:
    end = now or datetime.utcnow()
    start = end - timedelta(days=evaluation_days)
    predictions = list_evaluated_predictions(db, model_version, start, barangay_id)
    report = evaluate_accuracy(predictions, model_version, evaluation_days, start, end, barangay_id)
    logger.info(
        f"[accuracy] model={model_version} days={evaluation_days} barangay={barangay_id or 'all'} "
        f"total={report.total_predictions} accuracy={report.accuracy}"
    )
    return report
