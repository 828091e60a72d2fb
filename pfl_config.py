"""
Settings for the PFL validator, read from the environment.

    PFL_MAX_PIECES              pieces allowed in one piecewise definition (20)
    PFL_MAX_EXPRESSION_LENGTH   characters in a single-expression definition (1000)
    PFL_MAX_PIECE_LENGTH        characters in one piece's expression or condition (500)
    PFL_LOG_LEVEL               level for module loggers (WARNING)
"""

import logging
import os


# --- small helpers for env parsing ---
def _env_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None:
        return default
    try:
        return int(v)
    except ValueError:
        return default


MAX_PIECES = _env_int("PFL_MAX_PIECES", 20)
MAX_EXPRESSION_LENGTH = _env_int("PFL_MAX_EXPRESSION_LENGTH", 1000)
MAX_PIECE_LENGTH = _env_int("PFL_MAX_PIECE_LENGTH", 500)

LOG_LEVEL = os.getenv("PFL_LOG_LEVEL", "WARNING")


def setup_logger(name, level_str=LOG_LEVEL):
    """
    Sets up a module logger with a console stream handler.
    Propagation stays on so an application can attach its own handlers.
    """
    log_level = getattr(logging, level_str.upper(), logging.WARNING)
    formatter = logging.Formatter('%(asctime)s - %(levelname)5s | %(name)s | %(message)s')

    logger = logging.getLogger(name)
    logger.setLevel(log_level)

    # Avoid duplicate console handlers on repeated imports
    if not any(isinstance(h, logging.StreamHandler) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(formatter)
        handler.setLevel(log_level)
        logger.addHandler(handler)

    logger.propagate = True
    return logger
