"""Logging setup shared by the API and scripts."""

import json
import logging
import os


def configure_logging(level: str = None) -> None:
    """Configure the root logger once.

    Repeated calls only adjust the level so test runs and the reloader do
    not stack handlers.
    """
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
        )
    root.setLevel(level)


def log_event(logger: logging.Logger, level: int, event: str, payload: dict, exc_info=None) -> None:
    """Emit `event` followed by a compact JSON payload on one line.

    `exc_info` is handed to the logger so tracebacks follow the line.
    """
    logger.log(level, "%s %s", event, json.dumps(payload, ensure_ascii=True, default=str), exc_info=exc_info)
