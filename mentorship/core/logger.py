"""Application-wide logging setup.

Modules log through ``logging.getLogger(__name__)``; everything under the
``mentorship`` namespace propagates to the handler installed here.
"""

import logging
import sys

from mentorship.core import config

LOGGER_NAME = "mentorship"


def setup_logging(level: str | None = None) -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level or config.LOG_LEVEL)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        logger.addHandler(handler)

    return logger
