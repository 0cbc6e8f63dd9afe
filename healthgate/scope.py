"""
Access scope resolution – from a user profile to the scope used for filtering.
"""

from typing import Any, Mapping, Optional

from healthgate.models import (
    UNKNOWN_LEVEL,
    AccessLevel,
    ScopeDescriptor,
    ScopeInfo,
    UserProfile,
    known_level,
)


def _coerce_level(value: Any) -> int:
    """
    AccessLevel when recognised; the raw int otherwise; UNKNOWN_LEVEL for
    anything that is not an integral number (4.5 must never round to NATIONAL).
    """
    if isinstance(value, bool):
        return UNKNOWN_LEVEL
    if isinstance(value, int):
        number = value
    elif isinstance(value, float) and value.is_integer():
        number = int(value)
    elif isinstance(value, str) and value.strip().isascii() and value.strip().isdigit():
        number = int(value.strip())
    else:
        return UNKNOWN_LEVEL
    level = known_level(number)
    return level if level is not None else number


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def resolve(profile: UserProfile) -> ScopeDescriptor:
    """Derive the ScopeDescriptor of *profile*. Never raises."""
    return ScopeDescriptor(
        level=_coerce_level(profile.access_level),
        region=profile.region,
        district=profile.district,
        subdistrict=profile.subdistrict,
        community=profile.community,
    )


def is_national(scope: Optional[ScopeDescriptor]) -> bool:
    return scope is not None and known_level(scope.level) == AccessLevel.NATIONAL


# Level → (scope name, display prefix, ScopeDescriptor attribute).
_LEVEL_LABELS = {
    AccessLevel.COMMUNITY: ("community", "Community", "community"),
    AccessLevel.SUBDISTRICT: ("subdistrict", "Subdistrict", "subdistrict"),
    AccessLevel.DISTRICT: ("district", "District", "district"),
    AccessLevel.REGION: ("region", "Region", "region"),
}


def describe(scope: Optional[ScopeDescriptor]) -> ScopeInfo:
    """Human-readable label for filter banners. Not used for filtering."""
    if scope is None:
        return ScopeInfo(label="No Access", scope_name="none", location_name="")

    level = known_level(scope.level)
    if level == AccessLevel.NATIONAL:
        return ScopeInfo(label="National Access", scope_name="national", location_name="All Locations")
    if level is None:
        return ScopeInfo(label="Unknown Access Level", scope_name="none", location_name="No Access")

    scope_name, title, attr = _LEVEL_LABELS[level]
    location = getattr(scope, attr) or f"Unknown {title}"
    return ScopeInfo(label=f"{title}: {location}", scope_name=scope_name, location_name=location)


def profile_from_claims(claims: Mapping[str, Any]) -> UserProfile:
    """
    Build a UserProfile from identity claims (JWT payload or account JSON).

    Accepts either ``user_type`` or ``role`` for the role, and either
    ``community_name`` or ``community`` for the community. A missing role
    stays None so callers can show a loading state instead of refusing.
    """
    raw_role = claims.get("user_type", claims.get("role"))
    role = _clean(raw_role)
    if role is not None:
        role = role.lower()

    user_id = claims.get("user_id")
    try:
        user_id = int(user_id) if user_id is not None else None
    except (TypeError, ValueError):
        user_id = None

    return UserProfile(
        role=role,
        access_level=_coerce_level(claims.get("access_level")),
        region=_clean(claims.get("region")),
        district=_clean(claims.get("district")),
        subdistrict=_clean(claims.get("subdistrict")),
        community=_clean(claims.get("community_name", claims.get("community"))),
        user_id=user_id,
        username=_clean(claims.get("username")),
    )
