"""structlog wiring shared by every process (web, Celery worker, management commands).

Everything goes out as one JSON object per line on stdout.  Personal and
payment data (CPF/CNPJ, card numbers, credentials such as the Asaas
``access_token`` header) is masked before rendering, in structlog events
and in records from stdlib loggers alike.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List

import structlog

MASK = "***MASKED***"

SENSITIVE_PATTERN = re.compile(
    r"(\d{3}\.?\d{3}\.?\d{3}-?\d{2})"  # CPF
    r"|(\d{2}\.?\d{3}\.?\d{3}/?\d{4}-?\d{2})"  # CNPJ
    r"|(\b(?:\d[ -]?){13,19}\b)"  # card number
    r"|(password|passwd|secret|token|authorization|ccv|cvv|api_key|access_token)"
    r"""([=:]\s*["']?)([^\s,}"']+)""",
    re.IGNORECASE,
)


def _mask(value: Any) -> Any:
    if isinstance(value, str):
        return SENSITIVE_PATTERN.sub(MASK, value)
    if isinstance(value, dict):
        return {key: _mask(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return type(value)(_mask(item) for item in value)
    return value


def mask_sensitive_data(_, __, event_dict):
    """Mask CPF, CNPJ, card numbers and credentials in every event value."""
    for key, value in list(event_dict.items()):
        event_dict[key] = _mask(value)
    return event_dict


SHARED_PROCESSORS: List[Any] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    mask_sensitive_data,
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
]


def configure_structlog() -> None:
    structlog.configure(
        processors=[
            *SHARED_PROCESSORS,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def build_logging_config(level: str = "INFO") -> Dict[str, Any]:
    """Django ``LOGGING`` dict that renders stdlib records through structlog."""
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": structlog.stdlib.ProcessorFormatter,
                "processors": [
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    structlog.processors.JSONRenderer(),
                ],
                "foreign_pre_chain": SHARED_PROCESSORS,
            },
        },
        "handlers": {
            "console": {"class": "logging.StreamHandler", "formatter": "json"},
        },
        "root": {"handlers": ["console"], "level": level},
        "loggers": {
            "django": {"handlers": ["console"], "level": level, "propagate": False},
            # runserver access lines duplicate request.finished
            "django.server": {
                "handlers": ["console"],
                "level": "WARNING",
                "propagate": False,
            },
            "celery": {"handlers": ["console"], "level": level, "propagate": False},
        },
    }
