import dataclasses
from typing import Optional

from ..config import CoreConfig
from ..domain.interfaces import IPermissionService, IProfileService, ISectionQueries, ISessionProvider
from .bootstrap import SessionBootstrapper
from .loading_machine import LoadingMachine
from .permissions import ROLE_PRESETS, CapabilityCheck
from .profile_cache import ProfileCache
from .section_loader import Notifier, SectionDataLoader


@dataclasses.dataclass
class CoreContainer:
    """Everything one application session owns."""
    machine: LoadingMachine
    section_loader: SectionDataLoader
    bootstrapper: SessionBootstrapper
    capability_check: CapabilityCheck
    profile_cache: ProfileCache


def build_core(
    sessions: ISessionProvider,
    profiles: IProfileService,
    permissions: IPermissionService,
    queries: ISectionQueries,
    config: CoreConfig,
    notify: Optional[Notifier] = None,
) -> CoreContainer:
    """
    Wires the session core. Used by both entry points.
    """
    machine = LoadingMachine()
    cache = ProfileCache(ttl_sec=config.PROFILE_CACHE_TTL_SEC)
    capability_check = CapabilityCheck(dict(ROLE_PRESETS))

    bootstrapper: Optional[SessionBootstrapper] = None

    def is_admin() -> bool:
        return bootstrapper is not None and bootstrapper.is_admin

    loader = SectionDataLoader(queries, config, is_admin=is_admin, notify=notify)
    bootstrapper = SessionBootstrapper(
        machine=machine,
        sessions=sessions,
        profiles=profiles,
        permissions=permissions,
        section_loader=loader,
        cache=cache,
        config=config,
        capability_check=capability_check,
    )
    return CoreContainer(
        machine=machine,
        section_loader=loader,
        bootstrapper=bootstrapper,
        capability_check=capability_check,
        profile_cache=cache,
    )
