"""
Logging for cstore.

Every module logs through a child of the "cstore" logger; the application
factory sets the level from the LOG_LEVEL config key.
"""
import logging
import sys

ROOT_NAME = "cstore"
LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"

logger = logging.getLogger(ROOT_NAME)

if not logger.handlers:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)

# Flask's root handlers would print every record twice
logger.propagate = False


def get_logger(name: str = None) -> logging.Logger:
    """
    Get a logger in the cstore tree.

    Module paths inside the package (``cstore.pricing.cart``) are used as-is;
    any other name is nested under ``cstore``.
    """
    if not name:
        return logger
    if name == ROOT_NAME or name.startswith(ROOT_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_NAME}.{name}")


def configure_logging(level: str) -> logging.Logger:
    """Set the level of the cstore logger tree, e.g. from app.config['LOG_LEVEL']."""
    logger.setLevel(str(level).upper())
    return logger
