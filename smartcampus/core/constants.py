"""
SmartCampus - Constants and Reference Data
Static values used throughout the application.
"""

from typing import Dict, List, Tuple

# =============================================================================
# WIZARD
# =============================================================================

# Closed set of issue categories offered on the first step
CATEGORIES: List[str] = [
    "Maintenance",
    "Electrical",
    "Plumbing",
    "IT / Network",
    "Safety",
    "Other",
]

# (id, title) for each wizard step, in order
WIZARD_STEPS: List[Tuple[str, str]] = [
    ("category", "What type of issue is this?"),
    ("location", "Where is the problem?"),
    ("details", "Add some details."),
    ("review", "Review Report"),
]

# Delay before the wizard leaves the category step after a selection
AUTO_ADVANCE_DELAY_MS: int = 200

# File picker hint; not enforced
ACCEPTED_MEDIA_HINT: str = "image/*"

# =============================================================================
# REPORTS
# =============================================================================

DEFAULT_REPORT_STATUS: str = "pending"
RESOLVED_STATUS: str = "resolved"
URGENT_STATUS: str = "urgent"

REPORTS_COLLECTION: str = "reports"

SUBMISSION_FAILED_NOTICE: str = "Submission failed. Please try again."
SUCCESS_REDIRECT: str = "/dashboard"

# Length of the submitter id prefix shown on the admin dashboard
SHORT_USER_ID_LENGTH: int = 6

# =============================================================================
# GEOLOCATION
# =============================================================================

GEOLOCATION_TIMEOUT_SECONDS: float = 10.0

# Campus center used for the heatmap (lat, lon)
CAMPUS_CENTER: Tuple[float, float] = (9.5916, 76.5222)

# =============================================================================
# HEATMAP
# =============================================================================

HEATMAP_POINT_WEIGHT: float = 0.8

HEATMAP_GRADIENT: Dict[float, str] = {
    0.2: "#60a5fa",
    0.5: "#facc15",
    1.0: "#ef4444",
}

MARKER_COLOR: str = "#ef4444"
