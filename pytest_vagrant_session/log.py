from __future__ import annotations

import logging


def get_logger(name: str) -> logging.Logger:
    """
    Get a module-scoped logger. The library attaches no output of its own;
    pytest's log capture (or the application) decides where records go.

    Always invoke as get_logger(__name__).
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
    return logger
