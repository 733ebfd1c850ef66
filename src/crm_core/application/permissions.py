"""
Role presets and capability checks.

Capabilities are the source of truth. Roles are presets only; the Postgres
service reads the live mapping from ``role_permissions``.
"""
from typing import Dict, FrozenSet, Iterable

import structlog

logger = structlog.get_logger()

# Capability granting the admin-only aggregate views (and their section gates)
ADMIN_SECTIONS_VIEW = "admin_sections_view"

ALL_CAPABILITIES = [
    ADMIN_SECTIONS_VIEW,

    "customers_view",
    "customers_edit",
    "customers_delete",

    "projects_view",
    "projects_create",
    "projects_edit",
    "projects_delete",

    "planning_view",
    "planning_create",
    "planning_edit",

    "invoices_view",
    "invoices_edit",
    "invoices_delete",

    "quotes_view",
    "quotes_edit",

    "receipts_view",
    "receipts_approve",

    "reports_view",

    "users_view",
    "users_edit",
    "users_delete",

    "settings_edit",
]

ROLES = ("Administrator", "Administratie", "Installateur", "Verkoper", "Bekijker")

ROLE_PRESETS: Dict[str, FrozenSet[str]] = {
    "Administrator": frozenset(ALL_CAPABILITIES),

    "Administratie": frozenset({
        "customers_view", "customers_edit",
        "projects_view", "projects_edit",
        "planning_view",
        "invoices_view", "invoices_edit",
        "quotes_view", "quotes_edit",
        "receipts_view", "receipts_approve",
        "reports_view",
        "users_view",
    }),

    "Installateur": frozenset({
        "customers_view",
        "projects_view",
        "planning_view",
        "receipts_view",
    }),

    "Verkoper": frozenset({
        "customers_view", "customers_edit",
        "projects_view",
        "quotes_view", "quotes_edit",
    }),

    "Bekijker": frozenset({
        "customers_view",
        "projects_view",
    }),
}


def get_preset_capabilities(role: str) -> FrozenSet[str]:
    """Returns the default capabilities for a role. Unknown roles get none."""
    return ROLE_PRESETS.get(role, frozenset())


def resolve_capabilities(role: str, granted: Iterable[str]) -> FrozenSet[str]:
    """
    Capabilities read from ``role_permissions`` plus the role's preset.

    The table only holds the ``app_permission`` enum, so role-level grants
    such as ADMIN_SECTIONS_VIEW come from the preset.
    """
    return frozenset(granted) | get_preset_capabilities(role)


def is_admin_capabilities(capabilities: Iterable[str]) -> bool:
    return ADMIN_SECTIONS_VIEW in set(capabilities)


class StaticPermissionService:
    """
    IPermissionService backed by ROLE_PRESETS.
    """
    def __init__(self, presets: Dict[str, FrozenSet[str]] = ROLE_PRESETS):
        self._presets = presets

    async def capabilities_for(self, role: str) -> FrozenSet[str]:
        caps = self._presets.get(role)
        if caps is None:
            logger.warning("unknown_role", role=role)
            return frozenset()
        return caps


class CapabilityCheck:
    """
    Policy injected into section gates: decides per role whether the
    loading/error gating applies. Roles that do not hold ``capability``
    bypass the gate entirely.
    """
    def __init__(self, role_capabilities: Dict[str, FrozenSet[str]], capability: str = ADMIN_SECTIONS_VIEW):
        self._role_capabilities = role_capabilities
        self._capability = capability

    def allows_gating(self, role: str) -> bool:
        return self._capability in self._role_capabilities.get(role, frozenset())

    def grant(self, role: str, capabilities: FrozenSet[str]) -> None:
        """Records the capabilities resolved for ``role`` at runtime."""
        self._role_capabilities = {**self._role_capabilities, role: frozenset(capabilities)}
