"""
Domain dataclasses and enumerations used across the application.
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, List, Optional, Tuple, Union


class AccessLevel(IntEnum):
    """Geographic scope a user may see. Higher values contain lower ones."""
    COMMUNITY = 0
    SUBDISTRICT = 1
    DISTRICT = 2
    REGION = 3
    NATIONAL = 4


# Level of a ScopeDescriptor whose profile carried no usable level at all.
UNKNOWN_LEVEL = -1


def known_level(value: Any) -> Optional[AccessLevel]:
    """The AccessLevel for a genuine int level; None for anything else (bools, floats, strings)."""
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    try:
        return AccessLevel(value)
    except ValueError:
        return None


class Role(str, Enum):
    """The closed set of known user types."""
    VOLUNTEER = "volunteer"
    CLINICIAN = "clinician"
    TELEMEDICINE = "telemedicine"
    MANAGEMENT = "management"
    ADMIN = "admin"


class GuardState(str, Enum):
    """Outcome of a route or permission check."""
    LOADING = "loading"
    ALLOW = "allow"
    REDIRECT_TO_GUIDE = "redirect_to_guide"
    REDIRECT_TO_DEFAULT = "redirect_to_default"
    DENY = "deny"


@dataclass(frozen=True)
class UserProfile:
    """The authenticated user's role and geographic assignment."""
    role: Optional[str]              # None until the identity layer has answered
    access_level: Union[int, AccessLevel]
    region: Optional[str] = None
    district: Optional[str] = None
    subdistrict: Optional[str] = None
    community: Optional[str] = None
    user_id: Optional[int] = None
    username: Optional[str] = None


@dataclass(frozen=True)
class ScopeDescriptor:
    """Immutable view of a profile used purely for record filtering."""
    level: int                       # an AccessLevel, or the raw unrecognised value
    region: Optional[str] = None
    district: Optional[str] = None
    subdistrict: Optional[str] = None
    community: Optional[str] = None


@dataclass(frozen=True)
class ScopeInfo:
    """Display-only description of a scope (filter banners, profile pages)."""
    label: str
    scope_name: str
    location_name: str

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "scope": self.scope_name,
            "location": self.location_name,
        }


@dataclass
class FilteredView:
    """Records left after scoping, plus the counts shown in the filter banner."""
    records: List[Any]
    total: int
    info: ScopeInfo
    is_national: bool

    @property
    def visible(self) -> int:
        return len(self.records)

    @property
    def hidden(self) -> int:
        return self.total - self.visible

    @property
    def is_filtered(self) -> bool:
        return not self.is_national and self.hidden > 0


@dataclass(frozen=True)
class RouteDecision:
    """PageGuard verdict for one pathname."""
    state: GuardState
    redirect_to: Optional[str] = None
    matched_prefix: Optional[str] = None


@dataclass(frozen=True)
class NavItem:
    """One entry of the sidebar navigation."""
    title: str
    href: Optional[str] = None
    sub_items: Tuple["NavItem", ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        out = {"title": self.title, "href": self.href}
        if self.sub_items:
            out["sub_items"] = [s.to_dict() for s in self.sub_items]
        return out
