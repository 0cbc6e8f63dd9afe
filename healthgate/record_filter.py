"""
Geographic record filtering – narrows API responses to a user's scope.

Upstream records are JSON objects whose location keys come in two casing
conventions (``region`` / ``Region``). Lookups go through FIELD_ALIASES in
order and the first key holding a non-None value wins.
"""

from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, TypeVar

from healthgate.models import AccessLevel, FilteredView, ScopeDescriptor, UserProfile, known_level
from healthgate.scope import describe, is_national, resolve

R = TypeVar("R")

# ── Field alias table ────────────────────────────────────────────────
FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    "region": ("region", "Region"),
    "district": ("district", "District"),
    "subdistrict": ("subdistrict", "sub_district", "Subdistrict"),
    "community": ("community_name", "community", "Community"),
}

# Scope level → logical field compared against the scope's own value.
LEVEL_FIELDS: Dict[int, str] = {
    AccessLevel.COMMUNITY: "community",
    AccessLevel.SUBDISTRICT: "subdistrict",
    AccessLevel.DISTRICT: "district",
    AccessLevel.REGION: "region",
}


def _raw(record: Any, key: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(key)
    return getattr(record, key, None)


def get_location_field(record: Any, field: str) -> Optional[Any]:
    """Value of logical location *field* on *record*, or None when absent."""
    for key in FIELD_ALIASES[field]:
        value = _raw(record, key)
        if value is not None:
            return value
    return None


def _matcher(scope: ScopeDescriptor) -> Optional[Callable[[Any], bool]]:
    """Predicate for the scope's level; None means every record is visible."""
    level = known_level(scope.level)
    if level == AccessLevel.NATIONAL:
        return None

    # Bools, floats and out-of-range values never reach a field comparison.
    field = LEVEL_FIELDS.get(level) if level is not None else None
    if field is None:
        return lambda record: False

    wanted = getattr(scope, field)
    if not isinstance(wanted, str) or not wanted:
        # A scope without its own location value sees nothing.
        return lambda record: False

    return lambda record: get_location_field(record, field) == wanted


def filter_records(records: Iterable[R], scope: ScopeDescriptor) -> List[R]:
    """Records visible under *scope*, in input order."""
    if records is None:
        return []
    matches = _matcher(scope)
    if matches is None:
        return list(records)
    return [r for r in records if matches(r)]


def can_access(record: Any, scope: ScopeDescriptor) -> bool:
    """Single-record form of filter_records."""
    matches = _matcher(scope)
    return True if matches is None else matches(record)


def make_filter(profile: UserProfile) -> Callable[[Iterable[R]], List[R]]:
    """Bind a filter to *profile*, for code that filters many responses."""
    scope = resolve(profile)

    def _filter(records: Iterable[R]) -> List[R]:
        return filter_records(records, scope)

    return _filter


def extract_records(payload: Any) -> List[Any]:
    """The API answers either a bare list or ``{"data": [...]}``."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, Mapping) and isinstance(payload.get("data"), list):
        return payload["data"]
    return []


def apply_scope(records: Iterable[R], scope: ScopeDescriptor) -> FilteredView:
    """Filter and report how many records the scope hid."""
    records = list(records or [])
    return FilteredView(
        records=filter_records(records, scope),
        total=len(records),
        info=describe(scope),
        is_national=is_national(scope),
    )
