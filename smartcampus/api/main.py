"""
SmartCampus - REST API

FastAPI application exposing the report wizard, report listings, dashboard
statistics and the campus heatmap.

Run with: uvicorn smartcampus.api.main:app --reload
"""

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional, List, Dict, Callable

from fastapi import FastAPI, HTTPException, Query, File, UploadFile, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, Field

from smartcampus import __version__
from smartcampus.analytics.dashboard import admin_overview, user_overview
from smartcampus.core.constants import CATEGORIES, WIZARD_STEPS, ACCEPTED_MEDIA_HINT
from smartcampus.core.exceptions import WizardDisposedError, GeolocationErrorCode
from smartcampus.intake.geolocation import ClientReportedLocationProvider
from smartcampus.intake.session import ReportSession
from smartcampus.intake.submission import SubmissionStatus
from smartcampus.services import Services, build_services
from smartcampus.store.base import ReportFilter
from smartcampus.visualization.map_generator import create_campus_heatmap

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


# ============================================================================
# Pydantic Models
# ============================================================================

class HealthResponse(BaseModel):
    """API health check response."""
    status: str
    version: str
    timestamp: str
    store_backend: str
    store_connected: bool
    open_sessions: int


class WizardCreateRequest(BaseModel):
    """Mount a new report wizard."""
    location_source: str = Field(default="device", pattern="^(device|ip|none)$")


class CategoryRequest(BaseModel):
    category: str


class TextRequest(BaseModel):
    text: str


class CoordinatesRequest(BaseModel):
    """Device geolocation result: a fix, or an error code."""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    error: Optional[GeolocationErrorCode] = None


class ReviewResponse(BaseModel):
    category: str
    location: str
    description: str
    image_attached: bool
    gps: str


class WizardStateResponse(BaseModel):
    """Current wizard state."""
    session_id: str
    step_index: int
    step: str
    title: str
    step_count: int
    can_continue: bool
    can_retreat: bool
    submitting: bool
    closed: bool
    coordinates_resolved: bool
    review: ReviewResponse


class SubmissionResponse(BaseModel):
    status: str
    report_id: Optional[str] = None
    redirect: Optional[str] = None


class ReportResponse(BaseModel):
    """Stored report (image omitted)."""
    id: str
    category: str
    location: str
    description: str
    status: str
    user_id: Optional[str]
    has_image: bool
    latitude: Optional[float]
    longitude: Optional[float]
    created_at: Optional[str]


class ReportListResponse(BaseModel):
    count: int
    reports: List[ReportResponse]


class CategoryCountResponse(BaseModel):
    name: str
    value: int


class ActivityResponse(BaseModel):
    id: str
    headline: str
    category: str
    status: str
    reported_by: str


class AdminStatsResponse(BaseModel):
    """Admin overview statistics."""
    total_issues: int
    resolved_today: int
    critical_alerts: int
    categories: List[CategoryCountResponse]
    recent_activity: List[ActivityResponse]


class UserReportSummary(BaseModel):
    id: str
    ref: str
    title: str
    location: str
    status: str
    created_at: Optional[str]


class UserStatsResponse(BaseModel):
    active: int
    pending: int
    resolved: int
    recent: List[UserReportSummary]


# ============================================================================
# Session registry
# ============================================================================

class SessionRegistry:
    """
    Open wizard sessions by id.

    Sessions untouched for longer than `ttl_seconds` are closed and dropped
    whenever a session is added or looked up.
    """

    def __init__(self, ttl_seconds: float = 1800.0, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._sessions: Dict[str, ReportSession] = {}
        self._touched: Dict[str, float] = {}

    async def evict_idle(self) -> int:
        """Close sessions idle past the TTL. Returns how many were evicted."""
        cutoff = self._clock() - self.ttl_seconds
        expired = [sid for sid, touched in self._touched.items() if touched < cutoff]
        for session_id in expired:
            logger.info(f"Evicting idle report session {session_id}")
            await self.discard(session_id)
        return len(expired)

    async def add(self, session: ReportSession) -> None:
        await self.evict_idle()
        self._sessions[session.id] = session
        self._touched[session.id] = self._clock()

    async def get(self, session_id: str) -> ReportSession:
        await self.evict_idle()
        session = self._sessions.get(session_id)
        if session is None:
            raise HTTPException(status_code=404, detail="Report session not found")
        self._touched[session_id] = self._clock()
        return session

    async def discard(self, session_id: str) -> None:
        self._touched.pop(session_id, None)
        session = self._sessions.pop(session_id, None)
        if session is not None:
            await session.close()

    async def close_all(self) -> None:
        for session_id in list(self._sessions):
            await self.discard(session_id)

    def __len__(self) -> int:
        return len(self._sessions)


# ============================================================================
# Helper Functions
# ============================================================================

def get_services(request: Request) -> Services:
    return request.app.state.services


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.sessions


def bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    return credentials.credentials if credentials else None


def wizard_state(session: ReportSession) -> WizardStateResponse:
    return WizardStateResponse(session_id=session.id, **session.wizard.to_dict())


def report_response(report) -> ReportResponse:
    return ReportResponse(**report.to_dict())


def create_app(services: Optional[Services] = None) -> FastAPI:
    """Build the API around the given (or configured) services."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"SmartCampus API started (store: {app.state.services.store.backend_name})")
        yield
        await app.state.sessions.close_all()
        app.state.services.store.close()
        logger.info("SmartCampus API stopped")

    services = services or build_services()
    # Interactive docs stay off in production
    docs_enabled = not services.settings.is_production

    app = FastAPI(
        title="SmartCampus",
        description="Campus issue reporting: guided report wizard, dashboards and heatmap",
        version=__version__,
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.services = services
    app.state.sessions = SessionRegistry(ttl_seconds=services.settings.wizard_session_ttl_seconds)

    register_routes(app)
    return app


def register_routes(app: FastAPI) -> None:

    # ========================================================================
    # System Routes
    # ========================================================================

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    async def health(
        services: Services = Depends(get_services),
        registry: SessionRegistry = Depends(get_registry),
    ):
        """Health check."""
        connected = await services.store.check_connection()
        return HealthResponse(
            status="healthy" if connected else "degraded",
            version=__version__,
            timestamp=datetime.utcnow().isoformat(),
            store_backend=services.store.backend_name,
            store_connected=connected,
            open_sessions=len(registry),
        )

    @app.get("/api/v1/categories", tags=["Wizard"])
    async def list_categories():
        """Issue categories and wizard steps."""
        return {
            "categories": CATEGORIES,
            "steps": [{"id": key, "title": title} for key, title in WIZARD_STEPS],
            "accept": ACCEPTED_MEDIA_HINT,
        }

    # ========================================================================
    # Wizard Routes
    # ========================================================================

    @app.post("/api/v1/wizard", response_model=WizardStateResponse, status_code=201, tags=["Wizard"])
    async def create_wizard(
        request: WizardCreateRequest = WizardCreateRequest(),
        token: Optional[str] = Depends(bearer_token),
        services: Services = Depends(get_services),
        registry: SessionRegistry = Depends(get_registry),
    ):
        """
        Mount a report wizard.

        Geolocation starts immediately; with the "device" source the client is
        expected to post its fix to /coordinates.
        """
        session = services.new_session(token=token, location_source=request.location_source)
        await session.start()
        await registry.add(session)
        return wizard_state(session)

    @app.get("/api/v1/wizard/{session_id}", response_model=WizardStateResponse, tags=["Wizard"])
    async def get_wizard(session_id: str, registry: SessionRegistry = Depends(get_registry)):
        return wizard_state(await registry.get(session_id))

    @app.post("/api/v1/wizard/{session_id}/category", response_model=WizardStateResponse, tags=["Wizard"])
    async def select_category(
        session_id: str,
        request: CategoryRequest,
        registry: SessionRegistry = Depends(get_registry),
    ):
        """Select a category; on the first step the wizard moves on shortly after."""
        session = await registry.get(session_id)
        try:
            session.select_category(request.category)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except WizardDisposedError as e:
            raise HTTPException(status_code=410, detail=str(e))
        await session.settle()
        return wizard_state(session)

    @app.post("/api/v1/wizard/{session_id}/location", response_model=WizardStateResponse, tags=["Wizard"])
    async def set_location(
        session_id: str,
        request: TextRequest,
        registry: SessionRegistry = Depends(get_registry),
    ):
        session = await registry.get(session_id)
        try:
            session.set_location(request.text)
        except WizardDisposedError as e:
            raise HTTPException(status_code=410, detail=str(e))
        return wizard_state(session)

    @app.post("/api/v1/wizard/{session_id}/description", response_model=WizardStateResponse, tags=["Wizard"])
    async def set_description(
        session_id: str,
        request: TextRequest,
        registry: SessionRegistry = Depends(get_registry),
    ):
        session = await registry.get(session_id)
        try:
            session.set_description(request.text)
        except WizardDisposedError as e:
            raise HTTPException(status_code=410, detail=str(e))
        return wizard_state(session)

    @app.post("/api/v1/wizard/{session_id}/image", response_model=WizardStateResponse, tags=["Wizard"])
    async def attach_image(
        session_id: str,
        photo: UploadFile = File(...),
        registry: SessionRegistry = Depends(get_registry),
    ):
        """Attach a photo. Re-uploading replaces the previous one."""
        session = await registry.get(session_id)
        data = await photo.read()
        try:
            task = session.attach_image(data, content_type=photo.content_type, filename=photo.filename)
        except WizardDisposedError as e:
            raise HTTPException(status_code=410, detail=str(e))
        await task
        await session.settle()
        return wizard_state(session)

    @app.post("/api/v1/wizard/{session_id}/coordinates", response_model=WizardStateResponse, tags=["Wizard"])
    async def report_coordinates(
        session_id: str,
        request: CoordinatesRequest,
        registry: SessionRegistry = Depends(get_registry),
    ):
        """Deliver the device geolocation result (first report wins)."""
        session = await registry.get(session_id)
        provider = session.location_provider
        if not isinstance(provider, ClientReportedLocationProvider):
            raise HTTPException(status_code=409, detail="Session does not use device geolocation")

        if request.error is not None or request.latitude is None or request.longitude is None:
            provider.report_failure(request.error or GeolocationErrorCode.POSITION_UNAVAILABLE)
        else:
            provider.report_position(request.latitude, request.longitude)

        await session.settle(include_geolocation=True)
        return wizard_state(session)

    @app.post("/api/v1/wizard/{session_id}/advance", response_model=WizardStateResponse, tags=["Wizard"])
    async def advance(session_id: str, registry: SessionRegistry = Depends(get_registry)):
        session = await registry.get(session_id)
        try:
            session.advance()
        except WizardDisposedError as e:
            raise HTTPException(status_code=410, detail=str(e))
        return wizard_state(session)

    @app.post("/api/v1/wizard/{session_id}/retreat", response_model=WizardStateResponse, tags=["Wizard"])
    async def retreat(session_id: str, registry: SessionRegistry = Depends(get_registry)):
        session = await registry.get(session_id)
        try:
            session.retreat()
        except WizardDisposedError as e:
            raise HTTPException(status_code=410, detail=str(e))
        return wizard_state(session)

    @app.post("/api/v1/wizard/{session_id}/submit", response_model=SubmissionResponse, status_code=201, tags=["Wizard"])
    async def submit(session_id: str, registry: SessionRegistry = Depends(get_registry)):
        """
        Submit the report from the review step.

        On failure the draft is kept and the same request can be retried.
        """
        session = await registry.get(session_id)
        outcome = await session.submit()

        if outcome.status == SubmissionStatus.SUBMITTED:
            await registry.discard(session_id)
            return SubmissionResponse(
                status=outcome.status.value,
                report_id=outcome.report_id,
                redirect=outcome.redirect,
            )

        if outcome.status == SubmissionStatus.IGNORED:
            raise HTTPException(status_code=409, detail="Submission already in progress")
        if outcome.status == SubmissionStatus.REJECTED:
            raise HTTPException(status_code=409, detail=outcome.error)
        if outcome.unauthenticated:
            raise HTTPException(status_code=401, detail=outcome.notice)
        raise HTTPException(status_code=502, detail=outcome.notice)

    @app.delete("/api/v1/wizard/{session_id}", status_code=204, tags=["Wizard"])
    async def close_wizard(session_id: str, registry: SessionRegistry = Depends(get_registry)):
        """Navigate away; the draft is discarded."""
        await registry.get(session_id)
        await registry.discard(session_id)

    # ========================================================================
    # Report Routes
    # ========================================================================

    @app.get("/api/v1/reports", response_model=ReportListResponse, tags=["Reports"])
    async def list_reports(
        status: Optional[str] = Query(None, description="Filter by status"),
        category: Optional[str] = Query(None, description="Filter by category"),
        user_id: Optional[str] = Query(None, description="Filter by submitter"),
        limit: int = Query(default=50, ge=1, le=500),
        services: Services = Depends(get_services),
    ):
        """List reports, newest first."""
        try:
            reports = await services.store.query(
                ReportFilter(user_id=user_id, status=status, category=category, limit=limit)
            )
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        return ReportListResponse(
            count=len(reports),
            reports=[report_response(r) for r in reports],
        )

    @app.get("/api/v1/reports/mine", response_model=UserStatsResponse, tags=["Reports"])
    async def my_reports(
        token: Optional[str] = Depends(bearer_token),
        services: Services = Depends(get_services),
    ):
        """The signed-in user's dashboard."""
        identity = await services.identity_factory(token).current_identity()
        if identity is None:
            raise HTTPException(status_code=401, detail="User not authenticated")

        overview = await user_overview(services.store, identity.uid)
        return UserStatsResponse(**overview.to_dict())

    @app.get("/api/v1/reports/stats/summary", response_model=AdminStatsResponse, tags=["Reports"])
    async def report_stats(services: Services = Depends(get_services)):
        """Admin overview statistics."""
        try:
            overview = await admin_overview(services.store)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        return AdminStatsResponse(**overview.to_dict())

    # ========================================================================
    # Map Routes
    # ========================================================================

    @app.get("/api/v1/map/heatmap", response_class=HTMLResponse, tags=["Map"])
    async def heatmap(services: Services = Depends(get_services)):
        """Campus heatmap of reports that carry coordinates."""
        try:
            reports = await services.store.query(ReportFilter())
            campus_map = create_campus_heatmap(
                reports,
                center=services.settings.campus_center,
                zoom=services.settings.heatmap_zoom,
            )
            return campus_map.get_root().render()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))


app = create_app()


# ============================================================================
# Main
# ============================================================================

if __name__ == "__main__":
    import uvicorn
    from smartcampus.core.config import settings
    from smartcampus.core.logging import setup_logging

    setup_logging()
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
