"""Structured logging for Yomikata.

One JSON object per line on stderr. Besides ts/level/logger/msg, a record
carries whichever of EXTRA_FIELDS were passed via ``extra=``: gateway calls
log ``model``/``status_code``/``duration_ms``, retries log ``stage``/``attempt``,
and the pipeline logs ``stage`` transitions.

YOMIKATA_LOG_LEVEL sets verbosity (DEBUG/INFO/WARNING/ERROR).
YOMIKATA_LOG_FORMAT=text switches to human-readable lines.
"""
import logging
import json
import os
import sys
from typing import Any

# Fields copied from `extra=` into the JSON record
EXTRA_FIELDS = (
    "component", "stage", "attempt", "model", "detail",
    "duration_ms", "endpoint", "status_code",
)


class JSONFormatter(logging.Formatter):
    """Formats log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1]:
            entry["error"] = str(record.exc_info[1])
            entry["error_type"] = type(record.exc_info[1]).__name__
        for key in EXTRA_FIELDS:
            val = getattr(record, key, None)
            if val is not None:
                entry[key] = val
        return json.dumps(entry, ensure_ascii=False, default=str)


def get_logger(name: str = "yomikata") -> logging.Logger:
    """Get or create a structured logger.

    Loggers are namespaced under "yomikata", e.g.:

        logger = get_logger("yomikata.llm")
        logger.info("Hugging Face response received",
                    extra={"component": "huggingface", "model": model, "duration_ms": 412})
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        level = os.environ.get("YOMIKATA_LOG_LEVEL", "INFO").upper()
        logger.setLevel(getattr(logging, level, logging.INFO))

        handler = logging.StreamHandler(sys.stderr)
        fmt = os.environ.get("YOMIKATA_LOG_FORMAT", "json")
        if fmt == "text":
            handler.setFormatter(logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt="%H:%M:%S",
            ))
        else:
            handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)
        logger.propagate = False
    return logger
