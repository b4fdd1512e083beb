# backend/app/logging_setup.py
import logging
from logging.handlers import RotatingFileHandler
import os

from .config import LOG_DIR, LOG_FILE, LOG_LEVEL, LOG_MAX_BYTES

os.makedirs(LOG_DIR, exist_ok=True)

def setup_logger():
    logger = logging.getLogger("floodwatch")
    logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))

    # module may be imported under more than one name in tests
    if logger.handlers:
        return logger

    handler = RotatingFileHandler(
        os.path.join(LOG_DIR, LOG_FILE),
        maxBytes=LOG_MAX_BYTES,
        backupCount=3,
        encoding="utf-8"
    )

    formatter = logging.Formatter(
        "%(asctime)s - [%(levelname)s] - %(name)s - %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    return logger

logger = setup_logger()
