"""Structured logging configuration for the auditor."""

import logging
import sys
from typing import Any, Dict, Optional

import structlog
from structlog.types import Processor


def configure_structlog(fmt: str = "console") -> None:
    """Configure structlog on top of the stdlib logging tree.

    Only structlog is touched here; handlers and levels stay with the
    application that owns the process.
    """
    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if fmt == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


def setup_logging(level: str = "WARNING", fmt: str = "console") -> None:
    """Configure process-wide logging for the command line tool.

    Log output goes to stderr so rendered reports on stdout stay clean.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.WARNING),
        force=True,
    )
    configure_structlog(fmt)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


def log_audit_event(
    logger: structlog.stdlib.BoundLogger,
    organisation: str,
    rule_id: str,
    status: str,
    evidence_count: int = 0,
    duration_ms: Optional[int] = None,
    **kwargs: Any,
) -> None:
    """Log a rule verdict with standardized fields."""
    log_data: Dict[str, Any] = {
        "organisation": organisation,
        "rule_id": rule_id,
        "status": status,
        "evidence_count": evidence_count,
    }

    if duration_ms is not None:
        log_data["duration_ms"] = duration_ms

    log_data.update(kwargs)

    logger.info("audit.rule", **log_data)


def log_request(
    logger: structlog.stdlib.BoundLogger,
    method: str,
    url: str,
    status_code: Optional[int] = None,
    **kwargs: Any,
) -> None:
    """Log an outgoing GitHub API call. Query strings are not logged."""
    log_data: Dict[str, Any] = {
        "method": method,
        "path": url.split("?", 1)[0],
    }
    if status_code is not None:
        log_data["status_code"] = status_code

    log_data.update(kwargs)

    logger.debug("github.request", **log_data)


# Library use: render through structlog, leave stdlib handlers alone
configure_structlog()
