"""
Database module for SmartCampus
SQL persistence for the report store
"""

from .connection import DatabaseConnection
from .models import Base, ReportRow

__all__ = [
    "DatabaseConnection",
    "Base",
    "ReportRow",
]
