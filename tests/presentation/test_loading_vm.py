import pytest
from unittest.mock import AsyncMock, MagicMock

from src.crm_core.application.loading_machine import LoadingMachine
from src.crm_core.domain.models import (
    AppError,
    Authenticating,
    Initializing,
    LoadingSection,
    Ready,
    SectionName,
    Unauthenticated,
    UserInfo,
)
from src.presentation.resources.strings import UIStrings
from src.presentation.state.view_state import ScreenState
from src.presentation.viewmodels.loading_vm import LoadingViewModel, screen_for

ADMIN = UserInfo(id="u1", email="a@b.nl", role="Administrator", is_admin=True)


@pytest.fixture
def machine():
    return LoadingMachine()


@pytest.fixture
def mock_bootstrapper():
    bootstrapper = MagicMock()
    bootstrapper.start = AsyncMock()
    bootstrapper.retry = AsyncMock(return_value=True)
    return bootstrapper


@pytest.fixture
def viewModel(machine, mock_bootstrapper):
    return LoadingViewModel(machine, mock_bootstrapper)


@pytest.mark.parametrize("state,screen", [
    (Initializing(), ScreenState.LOADING),
    (Authenticating(has_cache=True), ScreenState.LOADING),
    (Ready(user=ADMIN), ScreenState.READY),
    (LoadingSection(section=SectionName.QUOTES), ScreenState.READY),
    (Unauthenticated(), ScreenState.LOGIN),
])
def test_screen_for(state, screen):
    assert screen_for(state) == screen


def test_initial_screen_is_loading(viewModel):
    assert viewModel.screen == ScreenState.LOADING
    assert viewModel.status_text == UIStrings.LOADING_APP
    assert viewModel.error_message is None


def test_screen_changed_emitted_once_per_screen(viewModel, machine):
    screens = []
    viewModel.screen_changed.connect(screens.append)

    machine.start_authenticating(False)
    machine.start_loading_profile("u1")
    machine.set_unauthenticated()

    assert screens == [ScreenState.LOGIN]
    assert viewModel.status_text == UIStrings.LOGIN_REQUIRED


def test_state_changed_emitted_on_every_transition(viewModel, machine):
    states = []
    viewModel.state_changed.connect(states.append)

    machine.start_authenticating(False)
    machine.set_ready(ADMIN)

    assert states == [Authenticating(has_cache=False), Ready(user=ADMIN)]
    assert viewModel.is_ready


def test_error_message_is_friendly(viewModel, machine):
    machine.start_loading_profile("u1")
    machine.set_error(AppError(code="profile_fetch_failed", message="connection reset", can_retry=True))

    assert viewModel.screen == ScreenState.ERROR
    assert viewModel.error_message == UIStrings.ERR_PROFILE_FETCH_FAILED
    assert "loading-profile" not in viewModel.error_message
    assert viewModel.can_retry


def test_unknown_error_code_uses_generic_message(viewModel, machine):
    machine.set_error(AppError(code="quota_exceeded", message="quota exceeded", can_retry=False))

    assert viewModel.error_message == UIStrings.ERR_GENERIC.format("quota exceeded")
    assert not viewModel.can_retry


def test_section_loading_text(viewModel, machine):
    machine.set_ready(ADMIN)
    machine.start_loading_section(SectionName.QUOTES)

    assert viewModel.screen == ScreenState.READY
    assert viewModel.status_text == "Offertes laden..."


@pytest.mark.asyncio
async def test_retry_delegates_when_retryable(viewModel, machine, mock_bootstrapper):
    machine.set_error(AppError(code="timeout", message="profile fetch timed out", can_retry=True))

    assert await viewModel.retry() is True
    mock_bootstrapper.retry.assert_awaited_once()


@pytest.mark.asyncio
async def test_retry_ignored_when_not_retryable(viewModel, machine, mock_bootstrapper):
    machine.set_error(AppError(code="profile_not_found", message="no profile", can_retry=False))

    assert await viewModel.retry() is False
    mock_bootstrapper.retry.assert_not_awaited()


@pytest.mark.asyncio
async def test_reload_restarts_bootstrap(viewModel, machine, mock_bootstrapper):
    machine.set_error(AppError(code="profile_not_found", message="no profile", can_retry=False))

    await viewModel.reload()

    assert machine.state == Initializing()
    mock_bootstrapper.start.assert_awaited_once()


def test_close_stops_listening(viewModel, machine):
    states = []
    viewModel.state_changed.connect(states.append)
    viewModel.close()

    machine.start_validating_cache()

    assert states == []
