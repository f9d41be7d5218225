from __future__ import annotations

import logging
import re
import sys
from collections.abc import Callable, Mapping
from typing import Any, TextIO

# Credentials reach log text two ways: as key=value pairs and as URI userinfo.
_SECRET_PAIR_PATTERN = re.compile(r"(?i)\b(authorization|token|api_key|password|secret)=([^\s,;&]+)")
_URI_PASSWORD_PATTERN = re.compile(r"(?i)\b([a-z][a-z0-9+.-]*://[^/\s:@]+):[^@\s/]+@")
_SECRET_KEY_HINTS = ("authorization", "token", "api_key", "password", "secret")

STRUCTURED_FIELDS: tuple[tuple[str, Any], ...] = (
    ("request_id", ""),
    ("repository_id", ""),
    ("vcs", ""),
    ("component", ""),
    ("operation", ""),
    ("result", ""),
    ("duration_ms", 0),
    ("error_class", ""),
)

STRUCTURED_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: " + " ".join(
    f"{name}=%({name})s" for name, _default in STRUCTURED_FIELDS
) + " %(message)s"


def redact_log_text(message: str) -> str:
    """Mask secret ``key=value`` pairs and passwords embedded in URIs."""
    text = str(message)
    lowered = text.lower()
    if any(hint in lowered for hint in _SECRET_KEY_HINTS):
        text = _SECRET_PAIR_PATTERN.sub(r"\1=[redacted]", text)
    if "://" in text:
        text = _URI_PASSWORD_PATTERN.sub(r"\1:[redacted]@", text)
    return text


class StructuredLogDefaultsFilter(logging.Filter):
    """Give every record the structured fields and scrub secrets from its message."""

    def filter(self, record: logging.LogRecord) -> bool:
        for name, default in STRUCTURED_FIELDS:
            if not hasattr(record, name):
                setattr(record, name, default)
        try:
            message = record.getMessage()
        except Exception:
            return True
        redacted = redact_log_text(message)
        if redacted != message:
            record.msg = redacted
            record.args = ()
        return True


def configure_structured_logger(logger: logging.Logger, *, level: str, stream: TextIO | None = None) -> None:
    handler = logging.StreamHandler(stream if stream is not None else sys.__stderr__)
    handler.addFilter(StructuredLogDefaultsFilter())
    handler.setFormatter(logging.Formatter(STRUCTURED_LOG_FORMAT))
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(str(level or "info").upper())
    logger.propagate = False


def configure_domain_log_levels(
    *,
    domains: Mapping[str, Any] | None,
    logger_prefix: str,
    normalize_level: Callable[[Any], str],
) -> dict[str, str]:
    """Apply ``[logging.domains]`` levels; returns the levels actually set."""
    applied: dict[str, str] = {}
    if not isinstance(domains, Mapping):
        return applied
    for domain, level_value in domains.items():
        name = str(domain or "").strip().lower()
        if not name:
            continue
        level = normalize_level(level_value)
        logging.getLogger(f"{logger_prefix}.{name}").setLevel(level.upper())
        applied[name] = level
    return applied


__all__ = [
    "STRUCTURED_FIELDS",
    "STRUCTURED_LOG_FORMAT",
    "StructuredLogDefaultsFilter",
    "configure_domain_log_levels",
    "configure_structured_logger",
    "redact_log_text",
]
