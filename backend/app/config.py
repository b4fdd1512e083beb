# backend/app/config.py
"""
Runtime settings, read once from environment variables.
"""

import os

DATABASE_URL = os.getenv("FLOODWATCH_DATABASE_URL", "sqlite:///data/floodwatch.sqlite3")

LOG_DIR = os.getenv("FLOODWATCH_LOG_DIR", "logs")
LOG_LEVEL = os.getenv("FLOODWATCH_LOG_LEVEL", "INFO").upper()
LOG_FILE = os.getenv("FLOODWATCH_LOG_FILE", "floodwatch.log")
LOG_MAX_BYTES = int(os.getenv("FLOODWATCH_LOG_MAX_BYTES", "5000000"))

DEFAULT_MODEL_VERSION = os.getenv("FLOODWATCH_MODEL_VERSION", "1.0.0-demo")

# prediction generation
FRESHNESS_HOURS = float(os.getenv("FLOODWATCH_FRESHNESS_HOURS", "2"))
READINGS_LOOKBACK_HOURS = int(os.getenv("FLOODWATCH_READINGS_LOOKBACK_HOURS", "48"))
READINGS_LIMIT = int(os.getenv("FLOODWATCH_READINGS_LIMIT", "48"))
RECENT_POINTS = int(os.getenv("FLOODWATCH_RECENT_POINTS", "12"))
_seed = os.getenv("FLOODWATCH_RANDOM_SEED", "").strip()
RANDOM_SEED = int(_seed) if _seed else None

# accuracy evaluation
EVALUATION_DAYS = int(os.getenv("FLOODWATCH_EVALUATION_DAYS", "30"))

# health freshness (seconds)
HEALTH_FRESH_SEC = int(os.getenv("FLOODWATCH_HEALTH_FRESH_SEC", "7200"))

# comma-separated origins allowed to call the API from a browser dashboard
CORS_ORIGINS = [o.strip() for o in os.getenv("FLOODWATCH_CORS_ORIGINS", "*").split(",") if o.strip()]
