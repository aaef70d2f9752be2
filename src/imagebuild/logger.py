import logging
import os
import sys
from typing import Optional, Union

from rich.logging import RichHandler

# Loggers that are chatty at INFO and below
NOISY_LOGGERS = ["docker", "urllib3"]


def is_rich_enabled() -> bool:
    """Check if Rich log rendering is enabled via environment."""
    return os.environ.get("IMAGEBUILD_RICH_LOGS", "false").lower() in (
        "true",
        "1",
        "yes",
    )


def setup_logging(
    level: Union[int, str] = logging.INFO, stream=sys.stderr, fmt: Optional[str] = None
):
    """
    Sets up the root logger with a stream handler and basic formatting.
    Uses a Rich handler when IMAGEBUILD_RICH_LOGS is set.
    Does nothing if handlers are already configured.
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    if not root_logger.hasHandlers():
        if is_rich_enabled():
            handler = RichHandler(show_path=level == logging.DEBUG)
        else:
            if fmt is None:
                if level == logging.DEBUG:
                    fmt = "%(asctime)s | %(levelname)-5s | %(name)s | %(filename)s:%(lineno)d | %(message)s"
                else:
                    # Default format for INFO level and above
                    fmt = "%(asctime)s | %(levelname)-5s | %(message)s"

            handler = logging.StreamHandler(stream)
            handler.setFormatter(logging.Formatter(fmt))

        root_logger.setLevel(level)
        root_logger.addHandler(handler)

        if level > logging.DEBUG:
            for logger_name in NOISY_LOGGERS:
                logging.getLogger(logger_name).setLevel(logging.WARNING)

    # Optionally allow log level override via env var
    env_level = os.environ.get("LOG_LEVEL")
    if env_level:
        root_logger.setLevel(env_level.upper())
