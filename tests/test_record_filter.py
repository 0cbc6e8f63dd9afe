"""
Unit tests for geographic record filtering.
"""

from types import SimpleNamespace

import pytest

from healthgate.models import AccessLevel, ScopeDescriptor, UserProfile
from healthgate.record_filter import (
    apply_scope,
    can_access,
    extract_records,
    filter_records,
    get_location_field,
    make_filter,
)
from healthgate.scope import resolve


# ── Helpers ──────────────────────────────────────────────────────────

CHAIN = {
    "region": "North East",
    "district": "Mamprugu Moagduri",
    "subdistrict": "Kunkua",
    "community": "Kubori",
}


def scope_at(level, **overrides):
    values = dict(CHAIN, **overrides)
    return ScopeDescriptor(level=level, **values)


RECORDS = [
    {"id": 1, "region": "North East", "district": "Mamprugu Moagduri",
     "subdistrict": "Kunkua", "community_name": "Kubori"},
    {"id": 2, "Region": "North East", "District": "Mamprugu Moagduri",
     "Subdistrict": "Kunkua", "Community": "Zangum"},
    {"id": 3, "region": "North East", "district": "Mamprugu Moagduri",
     "subdistrict": "Yagaba", "community_name": "Yikpabongo"},
    {"id": 4, "region": "North East", "district": "West Mamprusi",
     "subdistrict": "Walewale", "community_name": "Wungu"},
    {"id": 5, "region": "Ashanti", "district": "Kumasi",
     "subdistrict": "Bantama", "community_name": "Kubori"},
]


def ids(records):
    return [r["id"] for r in records]


# ── Tests: level rules ───────────────────────────────────────────────

def test_national_returns_every_record_in_order():
    out = filter_records(RECORDS, ScopeDescriptor(level=AccessLevel.NATIONAL))
    assert out == RECORDS


def test_national_does_not_inspect_fields():
    records = [{}, {"unrelated": True}, SimpleNamespace()]
    assert filter_records(records, ScopeDescriptor(level=AccessLevel.NATIONAL)) == records


def test_region_scope():
    assert ids(filter_records(RECORDS, scope_at(AccessLevel.REGION))) == [1, 2, 3, 4]


def test_district_scope():
    assert ids(filter_records(RECORDS, scope_at(AccessLevel.DISTRICT))) == [1, 2, 3]


def test_subdistrict_scope():
    assert ids(filter_records(RECORDS, scope_at(AccessLevel.SUBDISTRICT))) == [1, 2]


def test_community_scope():
    # Community names repeat across regions; only the community field is compared.
    assert ids(filter_records(RECORDS, scope_at(AccessLevel.COMMUNITY))) == [1, 5]


def test_match_is_case_sensitive():
    records = [{"region": "north east"}, {"region": "North East"}]
    assert filter_records(records, scope_at(AccessLevel.REGION)) == [{"region": "North East"}]


def test_region_match_does_not_need_finer_fields():
    assert filter_records([{"region": "North East"}], scope_at(AccessLevel.REGION)) == [{"region": "North East"}]


@pytest.mark.parametrize("level", [99, -1, 5, "2", None, True, False, 4.0, 4.5, 2.0])
def test_unknown_level_fails_closed(level):
    assert filter_records(RECORDS, ScopeDescriptor(level=level, **CHAIN)) == []


def test_scope_without_its_own_value_sees_nothing():
    scope = ScopeDescriptor(level=AccessLevel.DISTRICT, region="North East")
    records = [{"district": None}, {"region": "North East"}, {}]
    assert filter_records(records, scope) == []


def test_none_or_empty_input():
    assert filter_records(None, scope_at(AccessLevel.REGION)) == []
    assert filter_records([], scope_at(AccessLevel.NATIONAL)) == []


# ── Tests: scenarios ─────────────────────────────────────────────────

def test_subdistrict_kunkua_keeps_only_kunkua():
    scope = ScopeDescriptor(level=AccessLevel.SUBDISTRICT, subdistrict="Kunkua")
    records = [{"subdistrict": "Kunkua"}, {"subdistrict": "Yagaba"}]
    assert filter_records(records, scope) == [{"subdistrict": "Kunkua"}]


def test_district_scope_excludes_record_without_district():
    scope = ScopeDescriptor(level=AccessLevel.DISTRICT, district="Mamprugu Moagduri")
    assert filter_records([{"community_name": "Kubori"}], scope) == []


def test_region_scope_does_not_infer_region_from_district():
    scope = ScopeDescriptor(level=AccessLevel.REGION, region="North East")
    records = [{"district": "Mamprugu Moagduri"}, {"region": "North East", "district": "East Mamprusi"}]
    assert filter_records(records, scope) == [records[1]]


def test_district_scope_ignores_subdistrict_equal_to_district_name():
    scope = ScopeDescriptor(level=AccessLevel.DISTRICT, district="Kunkua")
    assert filter_records([{"subdistrict": "Kunkua", "community_name": "Kubori"}], scope) == []


# ── Tests: aliases ───────────────────────────────────────────────────

def test_alias_casing_behaves_identically():
    scope = ScopeDescriptor(level=AccessLevel.REGION, region="Ashanti")
    assert can_access({"Region": "Ashanti"}, scope) is True
    assert can_access({"region": "Ashanti"}, scope) is True
    assert filter_records([{"Region": "Ashanti"}], scope) == [{"Region": "Ashanti"}]


def test_canonical_key_wins_over_alias():
    scope = ScopeDescriptor(level=AccessLevel.REGION, region="Ashanti")
    record = {"region": "Volta", "Region": "Ashanti"}
    assert get_location_field(record, "region") == "Volta"
    assert can_access(record, scope) is False


def test_none_canonical_value_falls_through_to_alias():
    record = {"district": None, "District": "Kumasi"}
    assert get_location_field(record, "district") == "Kumasi"


def test_community_aliases():
    assert get_location_field({"community_name": "Kubori"}, "community") == "Kubori"
    assert get_location_field({"Community": "Kubori"}, "community") == "Kubori"
    assert get_location_field({"community": "Kubori"}, "community") == "Kubori"
    assert get_location_field({}, "community") is None


def test_attribute_records_are_supported():
    rec = SimpleNamespace(district="Kumasi")
    scope = ScopeDescriptor(level=AccessLevel.DISTRICT, district="Kumasi")
    assert filter_records([rec], scope) == [rec]


def test_nested_objects_are_not_searched():
    scope = ScopeDescriptor(level=AccessLevel.REGION, region="Ashanti")
    assert filter_records([{"patient": {"region": "Ashanti"}}], scope) == []


# ── Tests: properties ────────────────────────────────────────────────

def test_monotonic_by_level():
    previous = None
    for level in (AccessLevel.COMMUNITY, AccessLevel.SUBDISTRICT, AccessLevel.DISTRICT,
                  AccessLevel.REGION, AccessLevel.NATIONAL):
        current = ids(filter_records(RECORDS[:4], scope_at(level)))
        if previous is not None:
            assert set(previous) <= set(current)
        previous = current
    assert previous == ids(RECORDS[:4])


@pytest.mark.parametrize("level", list(AccessLevel) + [99])
def test_can_access_agrees_with_filter(level):
    scope = scope_at(level)
    extra = [{}, {"Region": "North East"}, {"subdistrict": "Kunkua"}, None]
    for record in RECORDS + extra:
        assert can_access(record, scope) == (len(filter_records([record], scope)) > 0)


def test_filter_is_idempotent_and_does_not_mutate_input():
    snapshot = [dict(r) for r in RECORDS]
    scope = scope_at(AccessLevel.DISTRICT)
    first = filter_records(RECORDS, scope)
    second = filter_records(RECORDS, scope)
    assert first == second
    assert filter_records(first, scope) == first
    assert RECORDS == snapshot


# ── Tests: helpers ───────────────────────────────────────────────────

def test_make_filter_binds_profile():
    profile = UserProfile(role="clinician", access_level=AccessLevel.SUBDISTRICT, subdistrict="Yagaba")
    assert ids(make_filter(profile)(RECORDS)) == [3]


def test_extract_records_shapes():
    assert extract_records([{"a": 1}]) == [{"a": 1}]
    assert extract_records({"data": [{"a": 1}]}) == [{"a": 1}]
    assert extract_records({"data": None}) == []
    assert extract_records("nope") == []
    assert extract_records(None) == []


def test_apply_scope_counts():
    view = apply_scope(RECORDS, scope_at(AccessLevel.SUBDISTRICT))
    assert view.total == 5
    assert view.visible == 2
    assert view.hidden == 3
    assert view.is_filtered is True
    assert view.info.label == "Subdistrict: Kunkua"


def test_apply_scope_national_is_never_filtered():
    view = apply_scope(RECORDS, ScopeDescriptor(level=AccessLevel.NATIONAL))
    assert view.hidden == 0
    assert view.is_filtered is False
    assert view.info.scope_name == "national"


# ── Tests: alias priority and fractional levels ─────────────────────

def test_community_canonical_key_wins_over_alias():
    scope = ScopeDescriptor(level=AccessLevel.COMMUNITY, community="Kubori")
    record = {"community": "Kubori", "Community": "Zangum"}
    assert get_location_field(record, "community") == "Kubori"
    assert filter_records([record], scope) == [record]


def test_subdistrict_lower_case_keys_win_over_alias():
    record = {"sub_district": "Kunkua", "Subdistrict": "Yagaba"}
    assert get_location_field(record, "subdistrict") == "Kunkua"


def test_fractional_profile_level_fails_closed():
    records = [{"region": "Volta"}, {"region": "Ashanti"}]
    for raw in (4.5, 3.7):
        profile = UserProfile(role="clinician", access_level=raw, region="Volta")
        assert make_filter(profile)(records) == []
        assert not any(can_access(r, resolve(profile)) for r in records)
