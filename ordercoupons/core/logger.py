"""
Logging for the coupon service.

Everything logs under the ``ordercoupons`` logger. Services ask for a child
with ``get_logger("usage")`` and so on; the package logger owns the single
stdout handler and the level from the LOG_LEVEL setting.
"""
import logging
import sys

from ordercoupons.core.config import settings

PACKAGE = "ordercoupons"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = settings.LOG_LEVEL) -> logging.Logger:
    package_logger = logging.getLogger(PACKAGE)
    package_logger.setLevel(level.upper())

    # Reconfiguring only changes the level, never stacks handlers
    if not package_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        package_logger.addHandler(handler)

    # Uvicorn configures the root logger too; keep coupon lines from printing twice
    package_logger.propagate = False
    return package_logger


logger = configure_logging()


def get_logger(name: str = None) -> logging.Logger:
    if name:
        return logging.getLogger(f"{PACKAGE}.{name}")
    return logger
