"""
Tests for service wiring and configuration
"""
import asyncio
import pytest
from unittest.mock import patch, MagicMock

import sys
sys.path.insert(0, '.')

from smartcampus.auth.identity import FirebaseIdentityProvider, StaticIdentityProvider
from smartcampus.core.config import Settings
from smartcampus.intake.geolocation import (
    ClientReportedLocationProvider,
    IPGeolocationProvider,
    StaticLocationProvider,
)
from smartcampus.services import build_services, build_store
from smartcampus.store.base import InMemoryReportStore
from smartcampus.store.sql import SQLReportStore


class TestSettings:

    def test_defaults(self):
        settings = Settings(_env_file=None)
        assert settings.store_backend == "memory"
        assert settings.auto_advance_delay_seconds == 0.2
        assert settings.campus_center == (9.5916, 76.5222)
        assert settings.is_production is False
        assert settings.wizard_session_ttl_seconds == 1800.0


class TestBuildStore:
    """Store backend selection."""

    def test_memory(self):
        store = build_store(Settings(_env_file=None, store_backend="memory"))
        assert isinstance(store, InMemoryReportStore)

    def test_unknown_backend_falls_back(self):
        store = build_store(Settings(_env_file=None, store_backend="mongo"))
        assert isinstance(store, InMemoryReportStore)

    def test_sql(self):
        store = build_store(Settings(_env_file=None, store_backend="sql", database_url="sqlite://"))
        assert isinstance(store, SQLReportStore)
        assert store.db.check_connection() is True

    @patch('smartcampus.store.firestore.firestore')
    @patch('smartcampus.core.firebase.get_firebase_app')
    def test_firestore(self, mock_get_app, mock_firestore):
        app = MagicMock()
        mock_get_app.return_value = app

        store = build_store(Settings(
            _env_file=None,
            store_backend="firestore",
            firebase_project_id="campus-demo",
            reports_collection="issues",
        ))

        assert store.backend_name == "firestore"
        assert store.collection == "issues"
        mock_firestore.client.assert_called_once_with(app)


class TestServices:
    """Per-session wiring."""

    def setup_method(self):
        self.services = build_services(Settings(_env_file=None, auto_advance_delay_ms=50))

    def test_location_sources(self):
        assert isinstance(self.services.location_provider("device"), ClientReportedLocationProvider)
        assert isinstance(self.services.location_provider("ip"), IPGeolocationProvider)
        assert isinstance(self.services.location_provider("none"), StaticLocationProvider)

        with pytest.raises(ValueError):
            self.services.location_provider("satellite")

    def test_new_session(self):
        session = self.services.new_session(token="u1", location_source="none")

        assert session.auto_advance_delay == 0.05
        assert session.coordinator.store is self.services.store
        identity = asyncio.run(session.coordinator.identity_provider.current_identity())
        assert identity.uid == "u1"

    def test_new_session_without_token(self):
        session = self.services.new_session(location_source="none")
        provider = session.coordinator.identity_provider

        assert isinstance(provider, StaticIdentityProvider)
        assert asyncio.run(provider.current_identity()) is None

    @patch('smartcampus.core.firebase.get_firebase_app')
    def test_firebase_identity_when_configured(self, mock_get_app):
        services = build_services(Settings(_env_file=None, firebase_project_id="campus-demo"))
        session = services.new_session(token="id-token", location_source="none")

        assert isinstance(session.coordinator.identity_provider, FirebaseIdentityProvider)
        assert session.coordinator.identity_provider.id_token == "id-token"


class TestFirebaseIdentityProvider:
    """ID token verification."""

    @patch('smartcampus.auth.identity.firebase_auth.verify_id_token')
    def test_valid_token(self, mock_verify):
        mock_verify.return_value = {"uid": "abc123", "email": "a@campus.edu"}

        identity = asyncio.run(FirebaseIdentityProvider("token").current_identity())

        assert identity.uid == "abc123"
        assert identity.email == "a@campus.edu"

    @patch('smartcampus.auth.identity.firebase_auth.verify_id_token')
    def test_invalid_token(self, mock_verify):
        mock_verify.side_effect = ValueError("bad token")
        assert asyncio.run(FirebaseIdentityProvider("token").current_identity()) is None

    def test_no_token(self):
        assert asyncio.run(FirebaseIdentityProvider(None).current_identity()) is None
