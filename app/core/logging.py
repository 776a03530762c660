"""
Logging setup shared by the API process and the event consumer.
"""

import logging
import sys

_NOISY_LOGGERS = ("googleapiclient.discovery_cache", "botocore", "urllib3")


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging and quiet chatty third-party loggers."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stdout,
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


__all__ = ["configure_logging"]
