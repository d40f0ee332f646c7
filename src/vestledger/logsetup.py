"""Logging configuration for the CLI and dashboard."""

import logging

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(level: int = logging.INFO, name: str = "vestledger") -> logging.Logger:
    """Attach a stream handler to the package logger once."""
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    return logger
