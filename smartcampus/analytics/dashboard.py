"""
Dashboard statistics over stored reports.

Read-only: everything here works on the result of ReportStore.query().
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone, tzinfo
from typing import Optional, List, Dict, Any

from smartcampus.core.constants import (
    DEFAULT_REPORT_STATUS,
    RESOLVED_STATUS,
    URGENT_STATUS,
    SHORT_USER_ID_LENGTH,
)
from smartcampus.store.base import ReportStore, ReportFilter, StoredReport

logger = logging.getLogger(__name__)

RECENT_ACTIVITY_LIMIT = 5

# Statuses counted as "active" on the submitter's own dashboard
ACTIVE_STATUSES = ("open", "in-progress")


def short_user(user_id: Optional[str]) -> str:
    """Shortened submitter id for display."""
    return user_id[:SHORT_USER_ID_LENGTH] if user_id else "Unknown"


def _created_on(report: StoredReport, day: date, tz: Optional[tzinfo] = None) -> bool:
    """Whether the report was created on `day` in `tz` (the machine's local zone by default)."""
    if report.created_at is None:
        return False
    created = report.created_at
    # Naive timestamps come from the SQL backend and are UTC
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    return created.astimezone(tz).date() == day


@dataclass
class CategoryCount:
    name: str
    value: int


@dataclass
class ActivityItem:
    id: str
    category: str
    status: str
    reported_by: str

    @property
    def headline(self) -> str:
        return f"{self.category} Issue"


@dataclass
class AdminOverview:
    """Admin landing page numbers."""
    total_issues: int
    resolved_today: int
    critical_alerts: int
    categories: List[CategoryCount] = field(default_factory=list)
    recent_activity: List[ActivityItem] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_issues": self.total_issues,
            "resolved_today": self.resolved_today,
            "critical_alerts": self.critical_alerts,
            "categories": [{"name": c.name, "value": c.value} for c in self.categories],
            "recent_activity": [
                {
                    "id": a.id,
                    "headline": a.headline,
                    "category": a.category,
                    "status": a.status,
                    "reported_by": a.reported_by,
                }
                for a in self.recent_activity
            ],
        }


@dataclass
class UserOverview:
    """A submitter's own dashboard."""
    active: int
    pending: int
    resolved: int
    recent: List[StoredReport] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "active": self.active,
            "pending": self.pending,
            "resolved": self.resolved,
            "recent": [
                {
                    "id": r.id,
                    "ref": r.id[:4],
                    "title": r.description,
                    "location": r.location,
                    "status": r.status,
                    "created_at": r.created_at.isoformat() if r.created_at else None,
                }
                for r in self.recent
            ],
        }


def category_counts(reports: List[StoredReport]) -> List[CategoryCount]:
    """Reports per category, in first-seen order."""
    counts: Dict[str, int] = {}
    for report in reports:
        counts[report.category] = counts.get(report.category, 0) + 1
    return [CategoryCount(name, value) for name, value in counts.items()]


def build_admin_overview(
    reports: List[StoredReport],
    today: Optional[date] = None,
    tz: Optional[tzinfo] = None
) -> AdminOverview:
    """
    Compute admin statistics.

    Args:
        reports: Reports, newest first
        today: Day used for "resolved today" (today in `tz` by default)
        tz: Zone the calendar day is taken in (local zone by default)
    """
    today = today or datetime.now(timezone.utc).astimezone(tz).date()

    resolved_today = sum(
        1 for r in reports
        if r.status == RESOLVED_STATUS and _created_on(r, today, tz)
    )
    critical = sum(1 for r in reports if r.status == URGENT_STATUS)

    recent = [
        ActivityItem(
            id=r.id,
            category=r.category,
            status=r.status,
            reported_by=short_user(r.user_id),
        )
        for r in reports[:RECENT_ACTIVITY_LIMIT]
    ]

    return AdminOverview(
        total_issues=len(reports),
        resolved_today=resolved_today,
        critical_alerts=critical,
        categories=category_counts(reports),
        recent_activity=recent,
    )


def build_user_overview(reports: List[StoredReport]) -> UserOverview:
    """Compute a submitter's dashboard from their own reports."""
    ordered = sorted(
        reports,
        key=lambda r: r.created_at.timestamp() if r.created_at else 0.0,
        reverse=True,
    )
    return UserOverview(
        active=sum(1 for r in ordered if r.status in ACTIVE_STATUSES),
        pending=sum(1 for r in ordered if r.status == DEFAULT_REPORT_STATUS),
        resolved=sum(1 for r in ordered if r.status == RESOLVED_STATUS),
        recent=ordered[:RECENT_ACTIVITY_LIMIT],
    )


async def admin_overview(
    store: ReportStore,
    today: Optional[date] = None,
    tz: Optional[tzinfo] = None
) -> AdminOverview:
    reports = await store.query(ReportFilter())
    return build_admin_overview(reports, today=today, tz=tz)


async def user_overview(store: ReportStore, user_id: str) -> UserOverview:
    reports = await store.query(ReportFilter(user_id=user_id))
    logger.debug(f"Loaded {len(reports)} reports for {short_user(user_id)}")
    return build_user_overview(reports)
