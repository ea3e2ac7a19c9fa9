"""
SmartCampus - Report Intake
Wizard, geolocation, media capture and submission.
"""

from smartcampus.intake.wizard import (
    ReportWizard,
    DraftReport,
    WizardStep,
    ReviewSummary,
)
from smartcampus.intake.geolocation import (
    GeolocationCapture,
    LocationProvider,
    StaticLocationProvider,
    ClientReportedLocationProvider,
    IPGeolocationProvider,
)
from smartcampus.intake.media import MediaEncoder, to_data_uri
from smartcampus.intake.submission import (
    SubmissionCoordinator,
    SubmissionOutcome,
    SubmissionStatus,
)
from smartcampus.intake.session import ReportSession

__all__ = [
    # Wizard
    "ReportWizard",
    "DraftReport",
    "WizardStep",
    "ReviewSummary",
    # Geolocation
    "GeolocationCapture",
    "LocationProvider",
    "StaticLocationProvider",
    "ClientReportedLocationProvider",
    "IPGeolocationProvider",
    # Media
    "MediaEncoder",
    "to_data_uri",
    # Submission
    "SubmissionCoordinator",
    "SubmissionOutcome",
    "SubmissionStatus",
    "ReportSession",
]
