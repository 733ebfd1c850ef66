import logging

import structlog

from src.crm_core.infrastructure.logging import (
    MASK,
    _security_filter,
    bind_session,
    clear_session,
    setup_logging,
)


def test_security_filter_masks_credentials():
    event = _security_filter(None, "info", {
        "event": "session_refreshed",
        "access_token": "eyJhbGciOi",
        "db_password": "hunter2",
        "user_id": "u1",
    })

    assert event == {
        "event": "session_refreshed",
        "access_token": MASK,
        "db_password": MASK,
        "user_id": "u1",
    }


def test_security_filter_masks_nested_payloads():
    event = _security_filter(None, "info", {
        "event": "session_changed",
        "session": {"user_id": "u1", "refresh_token": "abc", "meta": {"Authorization": "Bearer x"}},
    })

    assert event["session"] == {"user_id": "u1", "refresh_token": MASK, "meta": {"Authorization": MASK}}


def test_bind_session_tags_events():
    bind_session("u1", "Administrator")
    try:
        assert structlog.contextvars.get_contextvars() == {"user_id": "u1", "role": "Administrator"}
    finally:
        clear_session()

    assert structlog.contextvars.get_contextvars() == {}


def test_setup_logging_levels():
    try:
        setup_logging("production")
        assert logging.getLogger("asyncpg").level == logging.INFO

        setup_logging("development", level=logging.WARNING)
        assert logging.getLogger("asyncpg").level == logging.WARNING
    finally:
        structlog.reset_defaults()
