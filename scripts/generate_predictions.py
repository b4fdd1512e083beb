# scripts/generate_predictions.py
"""
Generate flood predictions on demand, for one barangay or all of them.

Usage:
    python -m scripts.generate_predictions
    python -m scripts.generate_predictions --barangay BRGY-001 --hours 12 --force
"""

import argparse
import logging

import numpy as np

from backend.app.config import DEFAULT_MODEL_VERSION
from backend.app.db_helpers import ensure_db
from backend.app.db_models import SessionLocal
from backend.app.prediction_service import generate_for_all, generate_for_barangay

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("generate_predictions")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Generate flood predictions")
    parser.add_argument("--barangay", help="barangay id (default: all barangays)")
    parser.add_argument("--hours", type=int, default=24, help="forecast horizon in hours")
    parser.add_argument("--model-version", default=DEFAULT_MODEL_VERSION)
    parser.add_argument("--force", action="store_true", help="ignore a still-fresh recent prediction")
    parser.add_argument("--seed", type=int, default=None, help="seed for the stochastic fields")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    ensure_db()
    rng = np.random.default_rng(args.seed) if args.seed is not None else None

    db = SessionLocal()
    try:
        if args.barangay:
            results = [generate_for_barangay(
                db, args.barangay,
                forecast_hours=args.hours,
                model_version=args.model_version,
                force_refresh=args.force,
                rng=rng,
            )]
        else:
            results = generate_for_all(
                db,
                forecast_hours=args.hours,
                model_version=args.model_version,
                force_refresh=args.force,
                rng=rng,
            )
        for r in results:
            p = r.prediction
            state = "generated" if r.generated else "fresh, kept"
            logger.info(f"{p.barangay_id}: p={p.flood_probability} risk={p.risk_level} alert={p.alert_level} ({state})")
    finally:
        db.close()

    logger.info(f"✅ Processed {len(results)} barangay(s)")
    return results


if __name__ == "__main__":
    main()
