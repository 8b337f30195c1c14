"""Role navigation table.

Static mapping from role to the ordered views that role may open,
resolved once per session by the client.
"""

from typing import Dict, NamedTuple, Tuple

from src.models.enums import UserRole


class Capability(NamedTuple):
    key: str
    label: str
    path: str


DASHBOARD = Capability("dashboard", "Dashboard", "/dashboard")
REPORTS = Capability("reports", "Reports", "/reports")
ALL_DEPARTMENTS = Capability("departments", "All Departments", "/departments")

ROLE_NAVIGATION: Dict[UserRole, Tuple[Capability, ...]] = {
    UserRole.TEACHER: (
        DASHBOARD,
        Capability("my_appraisal", "My Appraisal", "/appraisal"),
        Capability("part_a", "Part A - General Info", "/appraisal/part-a"),
        Capability("part_b", "Part B - Research", "/appraisal/part-b"),
        Capability("part_c", "Part C - Contributions", "/appraisal/part-c"),
        Capability("part_d", "Part D - Values", "/appraisal/part-d"),
        Capability("part_e", "Part E - Self Assessment", "/appraisal/part-e"),
    ),
    UserRole.HOD: (
        DASHBOARD,
        Capability("review", "Review Appraisals", "/review"),
        Capability("department", "Department Overview", "/department"),
        REPORTS,
    ),
    UserRole.IQAC: (
        DASHBOARD,
        Capability("review", "Review Appraisals", "/review"),
        ALL_DEPARTMENTS,
        REPORTS,
    ),
    UserRole.PRINCIPAL: (
        DASHBOARD,
        Capability("review", "Final Approval", "/review"),
        ALL_DEPARTMENTS,
        REPORTS,
    ),
    UserRole.ADMIN: (
        DASHBOARD,
        Capability("cycles", "Appraisal Cycles", "/admin/cycles"),
        Capability("users", "User Management", "/admin/users"),
        Capability("appraisals", "All Appraisals", "/admin/appraisals"),
        ALL_DEPARTMENTS,
        REPORTS,
        Capability("settings", "Settings", "/admin/settings"),
    ),
}


def get_navigation(role: UserRole) -> Tuple[Capability, ...]:
    """Ordered capabilities for a role; unknown roles get nothing."""
    try:
        return ROLE_NAVIGATION[UserRole(role)]
    except ValueError:
        return ()
