"""
Firestore report store.

Documents live in a single collection (``reports`` by default); the creation
time is filled in by Firestore through SERVER_TIMESTAMP.
"""

import asyncio
import logging
from typing import Optional, List, Any

import firebase_admin
from firebase_admin import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from smartcampus.core.constants import REPORTS_COLLECTION
from smartcampus.core.exceptions import StoreWriteError
from smartcampus.store.base import (
    ReportStore,
    ReportRecord,
    ReportFilter,
    StoredReport,
)

logger = logging.getLogger(__name__)


class FirestoreReportStore(ReportStore):
    """Report store backed by Cloud Firestore."""

    backend_name = "firestore"

    def __init__(
        self,
        app: Optional[firebase_admin.App] = None,
        collection: str = REPORTS_COLLECTION,
        client: Optional[Any] = None
    ):
        """
        Initialize Firestore store.

        Args:
            app: Initialized Firebase app
            collection: Collection holding report documents
            client: Pre-built Firestore client (overrides app)
        """
        self.collection = collection
        self._client = client if client is not None else firestore.client(app)

        logger.info(f"Firestore report store initialized (collection={collection})")

    def _add(self, record: ReportRecord) -> str:
        document = record.to_document()
        document["createdAt"] = firestore.SERVER_TIMESTAMP
        _, ref = self._client.collection(self.collection).add(document)
        return ref.id

    async def append(self, record: ReportRecord) -> str:
        try:
            doc_id = await asyncio.to_thread(self._add, record)
        except Exception as e:
            logger.error(f"Firestore append failed: {e}")
            raise StoreWriteError(str(e)) from e

        logger.info(f"Report stored in Firestore: {doc_id}")
        return doc_id

    def _stream(self, report_filter: ReportFilter) -> List[StoredReport]:
        query = self._client.collection(self.collection)

        if report_filter.user_id is not None:
            query = query.where(filter=FieldFilter("userId", "==", report_filter.user_id))
        if report_filter.status is not None:
            query = query.where(filter=FieldFilter("status", "==", report_filter.status))
        if report_filter.category is not None:
            query = query.where(filter=FieldFilter("category", "==", report_filter.category))

        return [
            StoredReport.from_document(snapshot.id, snapshot.to_dict() or {})
            for snapshot in query.stream()
        ]

    async def query(self, report_filter: Optional[ReportFilter] = None) -> List[StoredReport]:
        report_filter = report_filter or ReportFilter()
        reports = await asyncio.to_thread(self._stream, report_filter)

        # Sorted client-side; server ordering would need a composite index
        reports.sort(
            key=lambda r: r.created_at.timestamp() if r.created_at else 0.0,
            reverse=True
        )

        if report_filter.limit is not None:
            reports = reports[:report_filter.limit]

        return reports
