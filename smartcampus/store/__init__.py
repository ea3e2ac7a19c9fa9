"""
SmartCampus - Report Store
Append/query backends for report records.
"""

from smartcampus.store.base import (
    SERVER_TIMESTAMP,
    ReportRecord,
    StoredReport,
    ReportFilter,
    ReportStore,
    InMemoryReportStore,
)

__all__ = [
    "SERVER_TIMESTAMP",
    "ReportRecord",
    "StoredReport",
    "ReportFilter",
    "ReportStore",
    "InMemoryReportStore",
]
