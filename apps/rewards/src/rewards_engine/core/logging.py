"""JSON log lines on stderr; stdout is reserved for command output."""

from __future__ import annotations

import json
import logging
import sys
from typing import Any, Dict, TextIO

from loguru import logger
from opentelemetry import trace

_PACKAGE_PREFIX = "rewards_engine."
_QUIET_LIBRARIES = ("httpx", "httpcore", "sqlalchemy.engine", "aiosqlite")


class InterceptHandler(logging.Handler):
    """Hand httpx and SQLAlchemy records to Loguru."""

    def emit(self, record: logging.LogRecord) -> None:  # pragma: no cover - bridging glue
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(depth=6, exception=record.exc_info).bind(library=record.name).log(
            level, record.getMessage().replace("{", "{{").replace("}", "}}")
        )


def build_payload(record: Dict[str, Any], metadata: Dict[str, str]) -> Dict[str, Any]:
    name = record["name"] or ""
    payload: Dict[str, Any] = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name.lower(),
        "message": record["message"],
        "component": name[len(_PACKAGE_PREFIX):] if name.startswith(_PACKAGE_PREFIX) else name,
        **metadata,
    }

    span_context = trace.get_current_span().get_span_context()
    if span_context.is_valid:
        payload["trace_id"] = f"{span_context.trace_id:032x}"
        payload["span_id"] = f"{span_context.span_id:016x}"

    payload.update(record["extra"])
    if record["exception"] is not None:
        payload["error_type"] = type(record["exception"].value).__name__
    return payload


def configure_logging(
    *,
    service_name: str,
    environment: str,
    version: str,
    level: str = "INFO",
    stream: TextIO | None = None,
) -> None:
    """Install the JSON sink and route stdlib loggers through it."""

    metadata = {"service": service_name, "environment": environment, "version": version}

    def _sink(message: "logger.Message") -> None:
        out = stream or sys.stderr
        out.write(json.dumps(build_payload(message.record, metadata), default=str) + "\n")

    logger.remove()
    logger.add(_sink, level=level.upper(), backtrace=False, diagnose=False)

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in _QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)


__all__ = ["InterceptHandler", "build_payload", "configure_logging"]
