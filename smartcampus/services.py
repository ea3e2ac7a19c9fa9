"""
SmartCampus - Service wiring
Builds backend handles once at process start and hands them out by reference.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from smartcampus.auth.identity import (
    IdentityProviderFactory,
    firebase_identity_factory,
    static_identity_factory,
)
from smartcampus.core.config import Settings, get_settings
from smartcampus.intake.geolocation import (
    LocationProvider,
    ClientReportedLocationProvider,
    IPGeolocationProvider,
    StaticLocationProvider,
)
from smartcampus.intake.session import ReportSession
from smartcampus.store.base import ReportStore, InMemoryReportStore

logger = logging.getLogger(__name__)

LOCATION_SOURCES = ("device", "ip", "none")


def build_store(settings: Settings) -> ReportStore:
    """
    Create the report store selected by settings.store_backend.

    Falls back to the in-memory store for unknown backends.
    """
    backend = settings.store_backend.lower()

    if backend == "firestore":
        from smartcampus.core.firebase import get_firebase_app
        from smartcampus.store.firestore import FirestoreReportStore

        app = get_firebase_app(settings.firebase_credentials_path, settings.firebase_project_id)
        return FirestoreReportStore(app=app, collection=settings.reports_collection)

    if backend == "sql":
        from smartcampus.database.connection import DatabaseConnection
        from smartcampus.store.sql import SQLReportStore

        return SQLReportStore(DatabaseConnection(settings.database_url))

    if backend != "memory":
        logger.warning(f"Unknown store backend '{backend}', using in-memory store")

    return InMemoryReportStore()


def build_identity_factory(settings: Settings) -> IdentityProviderFactory:
    """
    Firebase token verification when Firebase is configured.

    Otherwise the bearer token is taken as the user id (development only).
    """
    if settings.firebase_credentials_path or settings.firebase_project_id:
        from smartcampus.core.firebase import get_firebase_app

        app = get_firebase_app(settings.firebase_credentials_path, settings.firebase_project_id)
        return firebase_identity_factory(app)

    logger.warning("Firebase not configured, bearer tokens are trusted as user ids")
    return static_identity_factory()


@dataclass
class Services:
    """Process-wide dependencies shared by every report session."""
    settings: Settings
    store: ReportStore
    identity_factory: IdentityProviderFactory

    def location_provider(self, source: str = "device") -> LocationProvider:
        if source == "device":
            return ClientReportedLocationProvider()
        if source == "ip":
            return IPGeolocationProvider(url=self.settings.ip_geolocation_url)
        if source == "none":
            return StaticLocationProvider()
        raise ValueError(f"Unknown location source: {source} (expected one of {', '.join(LOCATION_SOURCES)})")

    def new_session(
        self,
        token: Optional[str] = None,
        location_source: str = "device",
        location_provider: Optional[LocationProvider] = None
    ) -> ReportSession:
        """Create a wizard session (not yet started)."""
        return ReportSession(
            identity_provider=self.identity_factory(token),
            store=self.store,
            location_provider=location_provider or self.location_provider(location_source),
            geolocation_timeout=self.settings.geolocation_timeout_seconds,
            high_accuracy=self.settings.geolocation_high_accuracy,
            auto_advance_delay=self.settings.auto_advance_delay_seconds,
            success_redirect=self.settings.success_redirect,
        )


def build_services(settings: Optional[Settings] = None) -> Services:
    settings = settings or get_settings()
    return Services(
        settings=settings,
        store=build_store(settings),
        identity_factory=build_identity_factory(settings),
    )
