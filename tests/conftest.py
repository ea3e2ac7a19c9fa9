"""
Pytest configuration and fixtures
"""
import pytest
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from smartcampus.auth.identity import Identity, StaticIdentityProvider
from smartcampus.store.base import InMemoryReportStore, StoredReport


@pytest.fixture
def memory_store():
    """Empty in-memory report store."""
    return InMemoryReportStore()


@pytest.fixture
def student_identity():
    return Identity(uid="u1", email="student@campus.edu")


@pytest.fixture
def identity_provider(student_identity):
    return StaticIdentityProvider(student_identity)


@pytest.fixture
def sample_reports():
    """Stored reports, newest first."""
    now = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)
    return [
        StoredReport(
            id="r5aaaaaaaa",
            category="Plumbing",
            location="Block A, Room 101",
            description="Leaking tap",
            status="resolved",
            user_id="student-0001",
            latitude=9.5920,
            longitude=76.5230,
            created_at=now,
        ),
        StoredReport(
            id="r4bbbbbbbb",
            category="Electrical",
            location="Library, 2nd floor",
            description="Flickering lights",
            status="urgent",
            user_id="student-0002",
            latitude=9.5910,
            longitude=76.5215,
            created_at=now - timedelta(hours=2),
        ),
        StoredReport(
            id="r3cccccccc",
            category="Plumbing",
            location="Hostel C",
            description="No water",
            status="pending",
            user_id="student-0001",
            created_at=now - timedelta(days=1),
        ),
        StoredReport(
            id="r2dddddddd",
            category="IT / Network",
            location="Lab 3",
            description="Wi-Fi down",
            status="in-progress",
            user_id="student-0003",
            latitude=0.0,
            longitude=0.0,
            created_at=now - timedelta(days=2),
        ),
        StoredReport(
            id="r1eeeeeeee",
            category="Safety",
            location="Parking lot",
            description="Broken lamp post",
            status="resolved",
            user_id=None,
            latitude=9.5900,
            longitude=None,
            created_at=now - timedelta(days=3),
        ),
    ]
