"""
Role-based permissions – capability vocabulary and the immutable permission matrix.
"""

import json
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Tuple

from healthgate.config import DEFAULT_HOME_PATH, GUIDE_ONLY_ROLES, GUIDE_PATH, PERMISSIONS_FILE
from healthgate.models import Role


class PermissionConfigError(ValueError):
    """Raised when a permission table cannot be turned into a matrix."""


class Permission(str, Enum):
    # Page access
    VIEW_DASHBOARD = "view_dashboard"
    VIEW_PATIENTS = "view_patients"
    VIEW_PATIENT_SNAPSHOT = "view_patient_snapshot"
    VIEW_CASES = "view_cases"
    VIEW_MEETINGS = "view_meetings"
    VIEW_ADDRESSBOOK = "view_addressbook"
    VIEW_APPOINTMENTS = "view_appointments"
    VIEW_REFERRALS = "view_referrals"
    VIEW_FEEDBACK = "view_feedback"
    VIEW_ADMIN = "view_admin"
    VIEW_REPORTS = "view_reports"
    VIEW_ANTENATAL_CARE = "view_antenatal_care"
    VIEW_KIT_DISTRIBUTION = "view_kit_distribution"

    # Data
    CREATE_PATIENTS = "create_patients"
    EDIT_PATIENTS = "edit_patients"
    DELETE_PATIENTS = "delete_patients"
    CREATE_CASES = "create_cases"
    EDIT_CASES = "edit_cases"
    DELETE_CASES = "delete_cases"
    CREATE_MEETINGS = "create_meetings"
    EDIT_MEETINGS = "edit_meetings"
    DELETE_MEETINGS = "delete_meetings"
    CREATE_ADDRESSBOOK = "create_addressbook"
    EDIT_ADDRESSBOOK = "edit_addressbook"
    DELETE_ADDRESSBOOK = "delete_addressbook"
    CREATE_APPOINTMENTS = "create_appointments"
    EDIT_APPOINTMENTS = "edit_appointments"
    DELETE_APPOINTMENTS = "delete_appointments"
    CREATE_REFERRALS = "create_referrals"
    EDIT_REFERRALS = "edit_referrals"
    DELETE_REFERRALS = "delete_referrals"
    CREATE_FEEDBACK = "create_feedback"
    EDIT_FEEDBACK = "edit_feedback"
    DELETE_FEEDBACK = "delete_feedback"

    # Administration
    MANAGE_USERS = "manage_users"
    MANAGE_ACCOUNTS = "manage_accounts"
    MANAGE_SYSTEM = "manage_system"


P = Permission

_VIEW_ALL_BUT_ADMIN = [
    P.VIEW_DASHBOARD, P.VIEW_PATIENTS, P.VIEW_PATIENT_SNAPSHOT, P.VIEW_CASES,
    P.VIEW_MEETINGS, P.VIEW_ADDRESSBOOK, P.VIEW_APPOINTMENTS, P.VIEW_REFERRALS,
    P.VIEW_FEEDBACK, P.VIEW_REPORTS, P.VIEW_ANTENATAL_CARE, P.VIEW_KIT_DISTRIBUTION,
]

# ── Static configuration ─────────────────────────────────────────────
DEFAULT_ROLE_PERMISSIONS: Dict[str, list] = {
    Role.ADMIN.value: list(Permission),
    Role.MANAGEMENT.value: [
        P.VIEW_DASHBOARD, P.VIEW_PATIENTS, P.VIEW_PATIENT_SNAPSHOT,
    ],
    Role.TELEMEDICINE.value: _VIEW_ALL_BUT_ADMIN + [
        P.CREATE_PATIENTS, P.EDIT_PATIENTS,
        P.CREATE_CASES, P.EDIT_CASES,
        P.CREATE_MEETINGS, P.EDIT_MEETINGS,
        P.CREATE_ADDRESSBOOK, P.EDIT_ADDRESSBOOK, P.DELETE_ADDRESSBOOK,
        P.CREATE_APPOINTMENTS, P.EDIT_APPOINTMENTS, P.DELETE_APPOINTMENTS,
        P.CREATE_REFERRALS, P.EDIT_REFERRALS, P.DELETE_REFERRALS,
        P.CREATE_FEEDBACK, P.EDIT_FEEDBACK,
    ],
    Role.CLINICIAN.value: _VIEW_ALL_BUT_ADMIN + [
        P.CREATE_PATIENTS, P.EDIT_PATIENTS,
        P.CREATE_CASES, P.EDIT_CASES,
        P.CREATE_MEETINGS, P.EDIT_MEETINGS,
        P.CREATE_APPOINTMENTS, P.EDIT_APPOINTMENTS,
        P.CREATE_REFERRALS, P.EDIT_REFERRALS,
        P.CREATE_FEEDBACK, P.EDIT_FEEDBACK,
    ],
    Role.VOLUNTEER.value: [
        P.VIEW_DASHBOARD, P.VIEW_PATIENTS, P.VIEW_CASES, P.VIEW_MEETINGS,
        P.VIEW_ADDRESSBOOK, P.VIEW_APPOINTMENTS, P.VIEW_REFERRALS, P.VIEW_FEEDBACK,
        P.CREATE_PATIENTS, P.EDIT_PATIENTS,
        P.CREATE_CASES, P.EDIT_CASES,
        P.CREATE_APPOINTMENTS, P.EDIT_APPOINTMENTS,
        P.CREATE_REFERRALS, P.EDIT_REFERRALS,
        P.CREATE_FEEDBACK, P.EDIT_FEEDBACK,
    ],
}

# Page path → permission required to open it. Sub-paths inherit their prefix.
PAGE_PERMISSIONS: Dict[str, Permission] = {
    "/": P.VIEW_DASHBOARD,
    "/dashboard": P.VIEW_DASHBOARD,
    "/patient-overview": P.VIEW_PATIENTS,
    "/patient-snapshot": P.VIEW_PATIENT_SNAPSHOT,
    "/referral": P.VIEW_REFERRALS,
    "/antenatal-care": P.VIEW_ANTENATAL_CARE,
    "/reports": P.VIEW_REPORTS,
    "/address-book": P.VIEW_ADDRESSBOOK,
    "/appointments": P.VIEW_APPOINTMENTS,
    "/kit-distribution": P.VIEW_KIT_DISTRIBUTION,
    "/feedback": P.VIEW_FEEDBACK,
    "/admin": P.VIEW_ADMIN,
    "/admin/settings": P.VIEW_ADMIN,
    "/admin/docs": P.VIEW_ADMIN,
    "/admin/implementation": P.VIEW_ADMIN,
    "/download": P.VIEW_DASHBOARD,
    "/guide": P.VIEW_DASHBOARD,
}


def permission_value(permission: Any) -> str:
    """Accept a Permission member or its plain string tag."""
    if isinstance(permission, Enum):
        return str(permission.value)
    return str(permission)


# ── Matrix ───────────────────────────────────────────────────────────

@dataclass(frozen=True)
class RoleGrant:
    """What one role holds: capability tags and reachable route prefixes."""
    permissions: FrozenSet[str]
    route_prefixes: Tuple[str, ...]
    home_path: str = DEFAULT_HOME_PATH


@dataclass(frozen=True)
class PermissionMatrix:
    """
    Read-only role → grant table.

    Built once at process start and shared between threads; it has no setters
    and its mappings are exposed through MappingProxyType.
    """
    grants: Mapping[str, RoleGrant]
    guide_only_roles: FrozenSet[str]
    guide_path: str = GUIDE_PATH

    # ── Construction ─────────────────────────────────────────────────

    @classmethod
    def from_config(
        cls,
        role_permissions: Mapping[str, Iterable[Any]],
        page_permissions: Mapping[str, Any],
        guide_only_roles: Iterable[str] = GUIDE_ONLY_ROLES,
        guide_path: str = GUIDE_PATH,
        home_paths: Optional[Mapping[str, str]] = None,
    ) -> "PermissionMatrix":
        """Derive every role's route prefixes from the page → permission table."""
        if not isinstance(role_permissions, Mapping) or not isinstance(page_permissions, Mapping):
            raise PermissionConfigError("role and page permission tables must be mappings")

        pages = {}
        for path, perm in page_permissions.items():
            if not isinstance(path, str) or not path.startswith("/"):
                raise PermissionConfigError(f"Invalid page path {path!r}; paths must start with '/'.")
            pages[path] = permission_value(perm)

        home_paths = home_paths or {}
        grants = {}
        for role, perms in role_permissions.items():
            if isinstance(perms, (str, bytes)) or not isinstance(perms, Iterable):
                raise PermissionConfigError(f"Permissions for role '{role}' must be a list.")
            held = frozenset(permission_value(p) for p in perms)
            prefixes = [path for path, needed in pages.items() if needed in held]
            if guide_path not in prefixes:
                prefixes.append(guide_path)
            grants[str(role)] = RoleGrant(
                permissions=held,
                route_prefixes=tuple(prefixes),
                home_path=home_paths.get(role, DEFAULT_HOME_PATH),
            )

        return cls(
            grants=MappingProxyType(grants),
            guide_only_roles=frozenset(guide_only_roles),
            guide_path=guide_path,
        )

    # ── Queries ──────────────────────────────────────────────────────

    def is_known_role(self, role: Optional[str]) -> bool:
        return isinstance(role, str) and role in self.grants

    def is_guide_only(self, role: Optional[str]) -> bool:
        """Unknown roles and explicitly guide-only roles are kept on the guide."""
        return not self.is_known_role(role) or role in self.guide_only_roles

    def has_permission(self, role: Optional[str], permission: Any) -> bool:
        if not self.is_known_role(role):
            return False
        return permission_value(permission) in self.grants[role].permissions

    def has_any_permission(self, role: Optional[str], permissions: Iterable[Any]) -> bool:
        return any(self.has_permission(role, p) for p in permissions)

    def permissions_for(self, role: Optional[str]) -> FrozenSet[str]:
        if not self.is_known_role(role):
            return frozenset()
        return self.grants[role].permissions

    def allowed_route_prefixes(self, role: Optional[str]) -> Tuple[str, ...]:
        # The guide is the only page an unknown role may open.
        if not self.is_known_role(role):
            return (self.guide_path,)
        return self.grants[role].route_prefixes

    def home_path(self, role: Optional[str]) -> str:
        if not self.is_known_role(role):
            return DEFAULT_HOME_PATH
        return self.grants[role].home_path


# ── Loading ──────────────────────────────────────────────────────────

def load_permission_matrix(path: Optional[str] = None) -> PermissionMatrix:
    """
    Build the matrix from the built-in tables, or from a JSON override file:

        {"roles": {"admin": ["view_admin", ...]},
         "pages": {"/admin": "view_admin"},
         "guide_only_roles": ["volunteer"],
         "home_paths": {"admin": "/dashboard"}}

    Any key left out falls back to the built-in value.
    """
    if not path:
        return PermissionMatrix.from_config(DEFAULT_ROLE_PERMISSIONS, PAGE_PERMISSIONS)

    try:
        with open(path, encoding="utf-8") as fh:
            raw = json.load(fh)
    except (OSError, json.JSONDecodeError) as e:
        raise PermissionConfigError(f"Could not read permission file {path}: {e}") from e

    if not isinstance(raw, dict):
        raise PermissionConfigError(f"Permission file {path} must contain a JSON object.")

    return PermissionMatrix.from_config(
        role_permissions=raw.get("roles", DEFAULT_ROLE_PERMISSIONS),
        page_permissions=raw.get("pages", PAGE_PERMISSIONS),
        guide_only_roles=raw.get("guide_only_roles", GUIDE_ONLY_ROLES),
        guide_path=raw.get("guide_path", GUIDE_PATH),
        home_paths=raw.get("home_paths"),
    )


@lru_cache(maxsize=1)
def get_permission_matrix() -> PermissionMatrix:
    """Process-wide matrix, built on first use from PERMISSIONS_FILE (if set)."""
    return load_permission_matrix(PERMISSIONS_FILE)
