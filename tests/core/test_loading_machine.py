import pytest
from unittest.mock import MagicMock

from src.crm_core.application.loading_machine import HISTORY_LIMIT, LoadingMachine
from src.crm_core.domain.models import (
    AppError,
    Authenticating,
    Failed,
    Initializing,
    LoadingPermissions,
    LoadingSection,
    Ready,
    SectionName,
    Unauthenticated,
    UserInfo,
)

ADMIN = UserInfo(id="u1", email="a@b.nl", role="Administrator", is_admin=True)


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        self.now += 1.0
        return self.now


@pytest.fixture
def machine():
    return LoadingMachine(clock=FakeClock())


def _error(can_retry: bool = True) -> AppError:
    return AppError(code="profile_fetch_failed", message="boom", can_retry=can_retry)


def test_initial_state_is_initializing(machine):
    assert machine.state == Initializing()
    assert machine.status == "initializing"
    assert machine.history == ()
    assert machine.is_loading
    assert not machine.is_authenticated


def test_history_keeps_only_most_recent_entries(machine):
    expected = ["initializing"]
    for i in range(25):
        if i % 2 == 0:
            machine.start_authenticating(has_cache=False)
            expected.append("authenticating")
        else:
            machine.start_validating_cache()
            expected.append("validating-cache")

    history = machine.history
    assert len(history) == HISTORY_LIMIT == 20
    # expected holds one status too many: the current one is not history yet
    assert [e.status for e in history] == expected[:-1][-20:]
    timestamps = [e.timestamp for e in history]
    assert timestamps == sorted(timestamps)


def test_error_captures_previous_state(machine):
    machine.start_loading_permissions("u1")

    machine.set_error(_error())

    state = machine.state
    assert isinstance(state, Failed)
    assert state.previous_state == "loading-permissions"
    assert state.previous == LoadingPermissions(user_id="u1")
    assert machine.is_error
    assert machine.history[-1].status == "loading-permissions"


def test_error_after_error_records_error_as_previous(machine):
    machine.set_error(_error())
    machine.set_error(_error(can_retry=False))

    assert machine.state.previous_state == "error"


def _drive_to(machine: LoadingMachine, status: str) -> None:
    steps = {
        "initializing": lambda: None,
        "authenticating": lambda: machine.start_authenticating(True),
        "validating-cache": machine.start_validating_cache,
        "loading-profile": lambda: machine.start_loading_profile("u1"),
        "loading-permissions": lambda: machine.start_loading_permissions("u1"),
        "initializing-data": lambda: machine.start_initializing_data(True),
        "loading-section": lambda: machine.start_loading_section(SectionName.QUOTES),
        "ready": lambda: machine.set_ready(ADMIN),
        "error": lambda: machine.set_error(_error()),
        "unauthenticated": machine.set_unauthenticated,
    }
    steps[status]()


@pytest.mark.parametrize("status,loading,error,ready,authenticated", [
    ("initializing", True, False, False, False),
    ("authenticating", True, False, False, True),
    ("validating-cache", True, False, False, True),
    ("loading-profile", True, False, False, True),
    ("loading-permissions", True, False, False, True),
    ("initializing-data", True, False, False, True),
    ("loading-section", True, False, False, True),
    ("ready", False, False, True, True),
    ("error", False, True, False, True),
    ("unauthenticated", False, False, False, False),
])
def test_derived_flags(machine, status, loading, error, ready, authenticated):
    _drive_to(machine, status)

    assert machine.status == status
    assert machine.is_loading is loading
    assert machine.is_error is error
    assert machine.is_ready is ready
    assert machine.is_authenticated is authenticated
    assert sum([machine.is_loading, machine.is_error, machine.is_ready]) == (0 if status == "unauthenticated" else 1)


def test_scenario_no_cached_session(machine):
    machine.start_authenticating(has_cache=False)
    assert machine.state == Authenticating(has_cache=False)

    machine.set_unauthenticated()

    assert machine.state == Unauthenticated()
    assert machine.is_authenticated is False
    assert machine.is_loading is False
    assert [e.status for e in machine.history] == ["initializing", "authenticating"]


def test_scenario_valid_session_reaches_ready(machine):
    machine.start_authenticating(has_cache=True)
    machine.start_loading_profile("u1")
    machine.start_loading_permissions("u1")
    machine.set_ready(ADMIN)

    assert machine.is_ready
    assert machine.state == Ready(user=ADMIN)
    assert [e.status for e in machine.history] == [
        "initializing", "authenticating", "loading-profile", "loading-permissions",
    ]


def test_loading_profile_requires_user_id(machine):
    with pytest.raises(ValueError):
        machine.start_loading_profile("")
    assert machine.status == "initializing"
    assert machine.history == ()


def test_loading_section_accepts_known_names_only(machine):
    machine.start_loading_section("quotes", operation="retry")
    assert machine.state == LoadingSection(section=SectionName.QUOTES, operation="retry")

    with pytest.raises(ValueError):
        machine.start_loading_section("invoices")
    assert machine.state.section is SectionName.QUOTES


def test_unauthenticated_reachable_from_error(machine):
    machine.set_error(AppError(code="session_expired", message="expired", can_retry=False))
    machine.set_unauthenticated()
    assert machine.status == "unauthenticated"


def test_reset_returns_to_initializing_and_clears_history(machine):
    machine.start_authenticating(True)
    machine.start_loading_profile("u1")

    machine.reset()

    assert machine.state == Initializing()
    assert machine.history == ()


def test_listeners_receive_previous_and_current(machine):
    listener = MagicMock()
    unsubscribe = machine.subscribe(listener)

    machine.start_authenticating(False)
    listener.assert_called_once_with(Initializing(), Authenticating(has_cache=False))

    unsubscribe()
    machine.set_unauthenticated()
    assert listener.call_count == 1


def test_failing_listener_does_not_break_transition(machine):
    machine.subscribe(MagicMock(side_effect=RuntimeError("listener bug")))
    second = MagicMock()
    machine.subscribe(second)

    machine.start_validating_cache()

    assert machine.status == "validating-cache"
    second.assert_called_once()
