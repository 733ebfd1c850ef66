import pytest
from unittest.mock import AsyncMock, MagicMock

from src.crm_core.application.permissions import ROLE_PRESETS, CapabilityCheck
from src.crm_core.application.section_loader import SectionDataLoader
from src.crm_core.domain.models import SectionName
from src.presentation.state.view_state import GateView
from src.presentation.viewmodels.section_gate_vm import SectionGateViewModel


class RoleHolder:
    def __init__(self, role=None):
        self.role = role

    def __call__(self):
        return self.role


@pytest.fixture
def mock_loader():
    loader = MagicMock(spec=SectionDataLoader)
    loader.is_loading.return_value = False
    loader.get_error_message.return_value = None
    loader.load = AsyncMock()
    return loader


@pytest.fixture
def role():
    return RoleHolder("Administrator")


@pytest.fixture
def viewModel(mock_loader, role):
    return SectionGateViewModel("projects", "Projecten", mock_loader, CapabilityCheck(dict(ROLE_PRESETS)), role)


def _listener(mock_loader):
    return mock_loader.subscribe.call_args[0][0]


def test_non_admin_bypasses_gate_without_reading_loader(mock_loader, role):
    role.role = "Installateur"
    mock_loader.is_loading.return_value = True
    mock_loader.get_error_message.return_value = "Kon projects niet laden"

    viewModel = SectionGateViewModel("projects", "Projecten", mock_loader, CapabilityCheck(dict(ROLE_PRESETS)), role)

    assert viewModel.view_mode == GateView.CONTENT
    assert viewModel.error_message is None
    mock_loader.is_loading.assert_not_called()
    mock_loader.get_error_message.assert_not_called()


def test_no_user_bypasses_gate(mock_loader):
    viewModel = SectionGateViewModel("projects", "Projecten", mock_loader, CapabilityCheck(dict(ROLE_PRESETS)), RoleHolder())

    assert not viewModel.is_gated
    assert viewModel.view_mode == GateView.CONTENT


def test_admin_sees_loading(viewModel, mock_loader):
    mock_loader.is_loading.return_value = True

    assert viewModel.view_mode == GateView.LOADING
    mock_loader.is_loading.assert_called_with(SectionName.PROJECTS)
    assert viewModel.loading_text == "Projecten laden..."


def test_admin_sees_error(viewModel, mock_loader):
    mock_loader.get_error_message.return_value = "connection reset"

    assert viewModel.view_mode == GateView.ERROR
    assert viewModel.error_message == "connection reset"
    assert viewModel.error_title == "Kon projecten niet laden"


def test_admin_sees_content_when_idle(viewModel):
    assert viewModel.view_mode == GateView.CONTENT


def test_view_changed_only_for_own_section(viewModel, mock_loader):
    views = []
    viewModel.view_changed.connect(views.append)
    listener = _listener(mock_loader)

    mock_loader.is_loading.return_value = True
    listener(SectionName.QUOTES)
    assert views == []

    listener(SectionName.PROJECTS)
    listener(SectionName.PROJECTS)
    assert views == [GateView.LOADING]

    mock_loader.is_loading.return_value = False
    listener(SectionName.PROJECTS)
    assert views == [GateView.LOADING, GateView.CONTENT]


@pytest.mark.asyncio
async def test_retry_reloads_section(viewModel, mock_loader):
    await viewModel.retry()

    mock_loader.load.assert_awaited_once_with(SectionName.PROJECTS)


@pytest.mark.asyncio
async def test_retry_failure_is_not_raised(viewModel, mock_loader):
    mock_loader.load.side_effect = RuntimeError("still down")

    await viewModel.retry()

    mock_loader.load.assert_awaited_once()


def test_close_unsubscribes(viewModel, mock_loader):
    viewModel.close()
    mock_loader.subscribe.return_value.assert_called_once()
