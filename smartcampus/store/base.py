"""
Report store interface and in-memory backend.

The store is an append-only document service: the submission pipeline
writes one record per report, dashboards query them back.
"""

import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any

from smartcampus.core.constants import DEFAULT_REPORT_STATUS
from smartcampus.core.exceptions import StoreWriteError

logger = logging.getLogger(__name__)


class _ServerTimestamp:
    """Placeholder replaced by the store's own clock at write time."""

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


@dataclass
class ReportRecord:
    """
    Record written to the store for one submitted report.

    `created_at` is always the SERVER_TIMESTAMP sentinel; the backend assigns
    the real value.
    """
    category: str
    location: str
    description: str
    user_id: str
    image_base64: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    status: str = DEFAULT_REPORT_STATUS
    created_at: Any = SERVER_TIMESTAMP

    def to_document(self) -> Dict[str, Any]:
        """Convert to the stored document shape."""
        return {
            "category": self.category,
            "location": self.location,
            "description": self.description,
            "imageBase64": self.image_base64,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "status": self.status,
            "userId": self.user_id,
            "createdAt": self.created_at,
        }


@dataclass
class StoredReport:
    """Report as read back from the store."""
    id: str
    category: str
    location: str
    description: str
    status: str = DEFAULT_REPORT_STATUS
    user_id: Optional[str] = None
    image_base64: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc_id: str, data: Dict[str, Any]) -> "StoredReport":
        created = data.get("createdAt")
        if created is not None and not isinstance(created, datetime):
            created = None
        return cls(
            id=doc_id,
            category=data.get("category", ""),
            location=data.get("location", ""),
            description=data.get("description", ""),
            status=data.get("status", DEFAULT_REPORT_STATUS),
            user_id=data.get("userId"),
            image_base64=data.get("imageBase64"),
            latitude=data.get("latitude"),
            longitude=data.get("longitude"),
            created_at=created,
        )

    @property
    def has_image(self) -> bool:
        return bool(self.image_base64)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (image omitted)."""
        return {
            "id": self.id,
            "category": self.category,
            "location": self.location,
            "description": self.description,
            "status": self.status,
            "user_id": self.user_id,
            "has_image": self.has_image,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass
class ReportFilter:
    """Equality filters for store queries. None means unfiltered."""
    user_id: Optional[str] = None
    status: Optional[str] = None
    category: Optional[str] = None
    limit: Optional[int] = None

    def matches(self, report: StoredReport) -> bool:
        if self.user_id is not None and report.user_id != self.user_id:
            return False
        if self.status is not None and report.status != self.status:
            return False
        if self.category is not None and report.category != self.category:
            return False
        return True


class ReportStore(ABC):
    """Append/query document service backing all report records."""

    backend_name: str = "abstract"

    @abstractmethod
    async def append(self, record: ReportRecord) -> str:
        """
        Atomically write one record.

        Returns:
            Store-assigned document id

        Raises:
            StoreWriteError: the write did not happen
        """

    @abstractmethod
    async def query(self, report_filter: Optional[ReportFilter] = None) -> List[StoredReport]:
        """Return matching records, newest first."""

    async def check_connection(self) -> bool:
        """Whether the backend is reachable."""
        return True

    def close(self) -> None:
        """Release backend resources."""


class InMemoryReportStore(ReportStore):
    """
    Process-local store for development and tests.

    `fail_next` makes the next N appends raise StoreWriteError without
    writing anything.
    """

    backend_name = "memory"

    def __init__(self, write_delay: float = 0.0):
        self._documents: Dict[str, Dict[str, Any]] = {}
        self._order: List[str] = []
        self.write_delay = write_delay
        self.fail_next = 0
        self.append_calls = 0

        logger.info("In-memory report store initialized")

    async def append(self, record: ReportRecord) -> str:
        self.append_calls += 1

        if self.write_delay:
            await asyncio.sleep(self.write_delay)

        if self.fail_next > 0:
            self.fail_next -= 1
            raise StoreWriteError("In-memory store rejected the write")

        doc_id = uuid.uuid4().hex[:20]
        document = record.to_document()
        document["createdAt"] = datetime.now(timezone.utc)

        self._documents[doc_id] = document
        self._order.append(doc_id)

        logger.info(f"Report stored: {doc_id} ({record.category})")
        return doc_id

    async def query(self, report_filter: Optional[ReportFilter] = None) -> List[StoredReport]:
        report_filter = report_filter or ReportFilter()

        results = []
        for doc_id in reversed(self._order):
            report = StoredReport.from_document(doc_id, self._documents[doc_id])
            if report_filter.matches(report):
                results.append(report)

        if report_filter.limit is not None:
            results = results[:report_filter.limit]

        return results

    def set_status(self, report_id: str, status: str) -> None:
        """Staff-side status change (resolved, urgent, ...)."""
        if report_id not in self._documents:
            raise KeyError(report_id)
        self._documents[report_id]["status"] = status

    def __len__(self) -> int:
        return len(self._documents)
