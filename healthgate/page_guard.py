"""
Route gating – decides whether a role may open a page, and where to send it if not.
"""

from typing import Any, Iterable, Optional

from healthgate.models import GuardState, RouteDecision
from healthgate.permissions import PermissionMatrix


def _normalise_path(pathname: str) -> str:
    path = (pathname or "").split("?", 1)[0].split("#", 1)[0]
    if not path.startswith("/"):
        path = "/" + path
    if len(path) > 1:
        path = path.rstrip("/") or "/"
    return path


def _prefix_matches(path: str, prefix: str) -> bool:
    # Segment-aware: "/admin" covers "/admin/settings" but not "/administrator";
    # "/" only covers the root page itself.
    prefix = _normalise_path(prefix)
    if prefix == "/":
        return path == "/"
    return path == prefix or path.startswith(prefix + "/")


def match_route_prefix(pathname: str, prefixes: Iterable[str]) -> Optional[str]:
    """Longest prefix in *prefixes* covering *pathname*, or None."""
    path = _normalise_path(pathname)
    best = None
    for prefix in prefixes:
        if _prefix_matches(path, prefix) and (best is None or len(prefix) > len(best)):
            best = prefix
    return best


def decide_route(matrix: PermissionMatrix, role: Optional[str], pathname: str) -> RouteDecision:
    """
    Evaluate *pathname* for *role*.

    A role that is not resolved yet yields LOADING: callers show a neutral
    spinner and must not redirect. Guide-only roles (unknown types and
    volunteers) are always sent to the guide unless they are already on it.
    """
    if role is None or role == "":
        return RouteDecision(state=GuardState.LOADING)

    guide_path = matrix.guide_path
    guide_only = matrix.is_guide_only(role)
    path = _normalise_path(pathname)

    if guide_only and path != _normalise_path(guide_path):
        return RouteDecision(state=GuardState.REDIRECT_TO_GUIDE, redirect_to=guide_path)

    matched = match_route_prefix(path, matrix.allowed_route_prefixes(role))
    if matched is not None:
        return RouteDecision(state=GuardState.ALLOW, matched_prefix=matched)

    if guide_only:
        return RouteDecision(state=GuardState.REDIRECT_TO_GUIDE, redirect_to=guide_path)
    return RouteDecision(state=GuardState.REDIRECT_TO_DEFAULT, redirect_to=matrix.home_path(role))


def evaluate_route(matrix: PermissionMatrix, role: Optional[str], pathname: str) -> GuardState:
    return decide_route(matrix, role, pathname).state


def can_access_page(matrix: PermissionMatrix, role: Optional[str], pathname: str) -> bool:
    """True only when the page would render without a redirect."""
    return evaluate_route(matrix, role, pathname) == GuardState.ALLOW


def gate(matrix: PermissionMatrix, role: Optional[str], permission: Any) -> GuardState:
    """In-page gate for an action or widget: ALLOW, DENY, or LOADING. Never redirects."""
    if role is None or role == "":
        return GuardState.LOADING
    if matrix.has_permission(role, permission):
        return GuardState.ALLOW
    return GuardState.DENY
