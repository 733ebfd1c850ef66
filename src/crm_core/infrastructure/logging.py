import logging
import sys
from typing import Any, Mapping, MutableMapping, Optional

import structlog

# Matched as substrings, so "access_token" and "db_password" are covered too
SENSITIVE_MARKERS = ("password", "dsn", "token", "secret", "authorization")
MASK = "***"


def _is_sensitive(key: str) -> bool:
    key = key.lower()
    return any(marker in key for marker in SENSITIVE_MARKERS)


def _mask(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: MASK if _is_sensitive(str(k)) else _mask(v) for k, v in value.items()}
    return value


def _security_filter(logger: Any, method_name: str, event_dict: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    """
    Masks credentials and session tokens, including inside nested payloads
    such as a session or profile dict.
    """
    for key, value in list(event_dict.items()):
        if key == "event":
            continue
        event_dict[key] = MASK if _is_sensitive(key) else _mask(value)
    return event_dict


def setup_logging(env: str, level: Optional[int] = None) -> None:
    """
    Configure structlog for the CRM shell.

    Development renders to the console at DEBUG so every loading-state
    transition is visible; every other environment emits JSON at INFO.
    Events carry whatever ``bind_session`` put in the context.
    """
    development = env == "development"
    if level is None:
        level = logging.DEBUG if development else logging.INFO

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        _security_filter,
    ]
    if development:
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors.extend([
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ])

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Qt and asyncpg log through stdlib; keep them on the same stream
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    logging.getLogger("asyncpg").setLevel(max(level, logging.INFO))


def bind_session(user_id: str, role: str) -> None:
    """Tags subsequent events with the signed-in user."""
    structlog.contextvars.bind_contextvars(user_id=user_id, role=role)


def clear_session() -> None:
    structlog.contextvars.unbind_contextvars("user_id", "role")
