"""structlog wiring shared by the web process and the Celery workers.

Everything goes out as one JSON object per line.  Customer phone numbers
end up in log values more often than anyone intends (notes, feedback,
free-text addresses), so every string value passes through
``mask_sensitive_data`` before rendering.
"""

from __future__ import annotations

import re
from typing import Any, Dict

import structlog

MASK = "***MASKED***"

# Indonesian mobile numbers (local 08.. or +62 8..) and credential-looking
# key/value pairs.  The lookarounds keep UUIDs and order numbers intact.
SENSITIVE_PATTERN = re.compile(
    r"(?<![\w-])((?:\+62[-\s]?|0)8\d{1,2}[-\s]?\d{3,4}[-\s]?\d{3,5})(?![\w-])"
    r"|(password|passwd|secret|token|authorization)"
    r"""([=:]\s*["']?)([^\s,}"']+)""",
    re.IGNORECASE,
)


def mask_sensitive_data(_, __, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in list(event_dict.items()):
        if isinstance(value, str):
            event_dict[key] = SENSITIVE_PATTERN.sub(MASK, value)
    return event_dict


SHARED_PROCESSORS = [
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
    """``LOGGING`` dict routing stdlib loggers through the structlog formatter.

    ``celery`` and ``django`` records (foreign to structlog) get the same
    processors via ``foreign_pre_chain`` so the output stays uniform.
    """
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
            # Request lines are noise next to the correlation-id middleware logs.
            "django.server": {
                "handlers": ["console"],
                "level": "WARNING",
                "propagate": False,
            },
            "celery": {"handlers": ["console"], "level": level, "propagate": False},
        },
    }
