"""
Sidebar navigation, trimmed to the pages a role can open.
"""

from typing import List, Optional

from healthgate.models import NavItem
from healthgate.page_guard import can_access_page
from healthgate.permissions import PermissionMatrix

NAV_CONFIG = (
    NavItem("Dashboard", "/dashboard"),
    NavItem("Referral", "/referral"),
    NavItem("Antenatal Care", "/antenatal-care"),
    NavItem("Patient Overview", "/patient-overview"),
    NavItem("Reports", "/reports"),
    NavItem("Address Book", "/address-book"),
    NavItem("Appointments", "/appointments"),
    NavItem("Kit Distribution", "/kit-distribution"),
    NavItem("Admin", sub_items=(
        NavItem("User Management", "/admin"),
        NavItem("System Settings", "/admin/settings"),
        NavItem("Technical Documentation", "/admin/docs"),
        NavItem("Implementation Guide", "/admin/implementation"),
    )),
    NavItem("Guide", "/guide"),
    NavItem("Feedback", "/feedback"),
)


def visible_nav(matrix: PermissionMatrix, role: Optional[str], items=NAV_CONFIG) -> List[NavItem]:
    """Drop links the role cannot open, and groups left with no links."""
    out = []
    for item in items:
        if item.sub_items:
            subs = tuple(visible_nav(matrix, role, item.sub_items))
            if subs:
                out.append(NavItem(item.title, item.href, subs))
        elif item.href and can_access_page(matrix, role, item.href):
            out.append(item)
    return out
