import logging

from .config import LOG_LEVEL

logger = logging.getLogger("storefront")
if not logger.handlers:
    logger.setLevel(LOG_LEVEL)
    ch = logging.StreamHandler()
    fmt = logging.Formatter("[%(asctime)s] [%(levelname)s] %(name)s: %(message)s")
    ch.setFormatter(fmt)
    logger.addHandler(ch)


def get_logger(name: str) -> logging.Logger:
    # Child loggers share the single storefront handler
    return logger.getChild(name)
