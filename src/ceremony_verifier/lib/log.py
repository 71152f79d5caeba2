"""
Logging helpers shared by the verifier components.

Loggers live under the ``ceremony_verifier`` namespace. Handlers are only
attached by setup_logging(), which the CLI calls, so importing the library
never reconfigures the host application's logging.
"""

import logging
import os
from typing import Optional

ROOT_LOGGER_NAME = "ceremony_verifier"

_FORMAT = "[%(asctime)s.%(msecs)03d] %(levelname)s [%(name)s]: %(message)s"
_DATE_FORMAT = "%H:%M:%S"


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """Setup logging configuration for the verifier."""
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if level is None:
        level = os.getenv("CEREMONY_VERIFIER_LOG_LEVEL", "INFO")
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT))
        root.addHandler(handler)

    return root


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def log(logger: logging.Logger, level: str, message: str, **kwargs) -> None:
    """Structured logging with optional context."""
    log_method = getattr(logger, level.lower(), logger.info)

    if kwargs:
        # Add context to message
        context = " ".join([f"{k}={v}" for k, v in kwargs.items()])
        message = f"{message} | {context}"

    log_method(message)
