"""
SQLAlchemy models for SmartCampus
"""

from sqlalchemy import Column, Integer, Float, String, Text, DateTime, Index, func
from sqlalchemy.orm import declarative_base

from smartcampus.core.constants import DEFAULT_REPORT_STATUS

Base = declarative_base()


class ReportRow(Base):
    """
    Campus issue report.

    One row per submitted report; created_at is assigned by the database.
    """
    __tablename__ = "reports"

    id = Column(Integer, primary_key=True, index=True)

    # Report details
    category = Column(String(50), nullable=False)
    location = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    image_base64 = Column(Text)

    # Device coordinates (nullable independently)
    latitude = Column(Float)
    longitude = Column(Float)

    status = Column(String(20), nullable=False, default=DEFAULT_REPORT_STATUS)
    user_id = Column(String(128), nullable=False)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("idx_report_user", user_id),
        Index("idx_report_status", status),
        Index("idx_report_created_at", created_at),
    )

    def __repr__(self):
        return f"<ReportRow {self.id} {self.category} ({self.status})>"
