"""
SQL report store using SQLAlchemy.
"""

import asyncio
import logging
from typing import Optional, List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from smartcampus.core.exceptions import StoreWriteError
from smartcampus.database.connection import DatabaseConnection
from smartcampus.database.models import ReportRow
from smartcampus.store.base import (
    ReportStore,
    ReportRecord,
    ReportFilter,
    StoredReport,
)

logger = logging.getLogger(__name__)


class SQLReportStore(ReportStore):
    """Report store backed by a relational database."""

    backend_name = "sql"

    def __init__(self, db: DatabaseConnection, create_tables: bool = True):
        self.db = db
        if create_tables:
            self.db.create_tables()

    def _insert(self, record: ReportRecord) -> str:
        row = ReportRow(
            category=record.category,
            location=record.location,
            description=record.description,
            image_base64=record.image_base64,
            latitude=record.latitude,
            longitude=record.longitude,
            status=record.status,
            user_id=record.user_id,
        )
        with self.db.get_session() as session:
            session.add(row)
            session.flush()
            return str(row.id)

    async def append(self, record: ReportRecord) -> str:
        try:
            report_id = await asyncio.to_thread(self._insert, record)
        except SQLAlchemyError as e:
            raise StoreWriteError(str(e)) from e

        logger.info(f"Report stored in database: {report_id}")
        return report_id

    def _select(self, report_filter: ReportFilter) -> List[StoredReport]:
        stmt = select(ReportRow)

        if report_filter.user_id is not None:
            stmt = stmt.where(ReportRow.user_id == report_filter.user_id)
        if report_filter.status is not None:
            stmt = stmt.where(ReportRow.status == report_filter.status)
        if report_filter.category is not None:
            stmt = stmt.where(ReportRow.category == report_filter.category)

        stmt = stmt.order_by(ReportRow.created_at.desc(), ReportRow.id.desc())

        if report_filter.limit is not None:
            stmt = stmt.limit(report_filter.limit)

        with self.db.get_session() as session:
            rows = session.scalars(stmt).all()
            return [
                StoredReport(
                    id=str(row.id),
                    category=row.category,
                    location=row.location,
                    description=row.description,
                    status=row.status,
                    user_id=row.user_id,
                    image_base64=row.image_base64,
                    latitude=row.latitude,
                    longitude=row.longitude,
                    created_at=row.created_at,
                )
                for row in rows
            ]

    async def query(self, report_filter: Optional[ReportFilter] = None) -> List[StoredReport]:
        return await asyncio.to_thread(self._select, report_filter or ReportFilter())

    async def check_connection(self) -> bool:
        return await asyncio.to_thread(self.db.check_connection)

    def close(self) -> None:
        self.db.close()
