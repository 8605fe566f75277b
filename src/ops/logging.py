"""
Logging setup.

One file handler plus console output, configured once at startup. Modules
log through the root logger (``logging.info(...)``).
"""

from __future__ import annotations

import logging
import os

# Chatty third-party loggers kept at WARNING unless we are debugging
NOISY_LOGGERS = ("urllib3", "uvicorn.access", "PIL")


def setup_logging(log_path: str, log_level: str) -> None:
    log_dir = os.path.dirname(log_path)
    if log_dir and not os.path.exists(log_dir):
        os.makedirs(log_dir)

    level = getattr(logging, str(log_level).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.FileHandler(log_path),
            logging.StreamHandler(),
        ],
    )

    if level > logging.DEBUG:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
