"""
SmartCampus - Dashboards
Read-only statistics for staff and submitters.
"""

from smartcampus.analytics.dashboard import (
    AdminOverview,
    UserOverview,
    admin_overview,
    user_overview,
    build_admin_overview,
    build_user_overview,
    short_user,
)

__all__ = [
    "AdminOverview",
    "UserOverview",
    "admin_overview",
    "user_overview",
    "build_admin_overview",
    "build_user_overview",
    "short_user",
]
