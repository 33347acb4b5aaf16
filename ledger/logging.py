from __future__ import annotations

import json
import logging
import sys
from logging import Logger
from typing import Union

DEFAULT_LOGGER_NAME = "aldersbach"


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }
        context = getattr(record, "context", None)
        if context:
            payload["context"] = context
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def get_logger(
    name: str = DEFAULT_LOGGER_NAME,
    json_output: bool = True,
    level: Union[int, str] = logging.INFO,
) -> Logger:
    """Configure and return ``name`` once; later calls return it unchanged.

    Only the application root logger is configured here. Modules log through
    ``logging.getLogger("aldersbach.<module>")`` and propagate up to it.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(level.upper() if isinstance(level, str) else level)

    handler = logging.StreamHandler(stream=sys.stdout)
    if json_output:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))

    logger.addHandler(handler)
    logger.propagate = False
    return logger
