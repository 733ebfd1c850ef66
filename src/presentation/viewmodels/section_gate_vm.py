import logging
from PySide6.QtCore import QObject, Signal
from typing import Callable, Optional, Union

from src.crm_core.domain.models import SectionName
from src.presentation.interfaces.protocols import ICapabilityCheck, ISectionLoader
from src.presentation.resources.strings import UIStrings
from src.presentation.state.view_state import GateView

logger = logging.getLogger(__name__)


class SectionGateViewModel(QObject):
    """
    ViewModel for one gated admin section.

    Decides whether the section shows its content, a loading placeholder or
    an error panel with retry. The gate only applies to roles the capability
    check grants; for every other role the content is shown unconditionally
    and the loader is never consulted.
    """

    view_changed = Signal(GateView)

    def __init__(
        self,
        section: Union[SectionName, str],
        title: str,
        loader: ISectionLoader,
        capability_check: ICapabilityCheck,
        current_role: Callable[[], Optional[str]],
    ):
        super().__init__()
        self._section = SectionName(section)
        self._title = title
        self._loader = loader
        self._capability_check = capability_check
        self._current_role = current_role
        self._last_view = self.view_mode
        self._unsubscribe = loader.subscribe(self._on_section_changed)

    @property
    def section(self) -> SectionName:
        return self._section

    @property
    def title(self) -> str:
        return self._title

    @property
    def is_gated(self) -> bool:
        role = self._current_role()
        return role is not None and self._capability_check.allows_gating(role)

    @property
    def view_mode(self) -> GateView:
        if not self.is_gated:
            return GateView.CONTENT
        if self._loader.is_loading(self._section):
            return GateView.LOADING
        if self._loader.get_error_message(self._section):
            return GateView.ERROR
        return GateView.CONTENT

    @property
    def error_message(self) -> Optional[str]:
        if not self.is_gated:
            return None
        return self._loader.get_error_message(self._section)

    @property
    def loading_text(self) -> str:
        return UIStrings.LOADING_SECTION.format(self._title)

    @property
    def error_title(self) -> str:
        return UIStrings.SECTION_ERROR.format(self._title.lower())

    async def retry(self) -> None:
        """
        Runs the section's load again. The loader records any failure,
        so the error is logged here and not re-raised.
        """
        logger.info(f"Retrying section '{self._section.value}'")
        try:
            await self._loader.load(self._section)
        except Exception as e:
            logger.warning(f"Section '{self._section.value}' retry failed: {e}")

    def close(self) -> None:
        self._unsubscribe()

    def _on_section_changed(self, section: SectionName) -> None:
        if section is not self._section:
            return
        view = self.view_mode
        if view != self._last_view:
            self._last_view = view
            self.view_changed.emit(view)
