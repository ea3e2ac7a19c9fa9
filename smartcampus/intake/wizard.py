"""
Report wizard state machine.

Four ordered steps (category, location, details, review) over a single
mutable draft. Only the review step gates progression: the earlier steps let
the user move forward with empty fields, and the "Continue" action at review
stays disabled until category, location and description are all filled in.
"""

import logging
from dataclasses import dataclass, field, asdict
from enum import IntEnum
from typing import Optional, List, Dict, Any

from smartcampus.core.constants import (
    CATEGORIES,
    WIZARD_STEPS,
    DEFAULT_REPORT_STATUS,
)
from smartcampus.core.exceptions import WizardDisposedError
from smartcampus.core.geo_utils import Coordinates

logger = logging.getLogger(__name__)


class WizardStep(IntEnum):
    """Wizard steps in display order."""
    CATEGORY = 0
    LOCATION = 1
    DETAILS = 2
    REVIEW = 3

    @property
    def key(self) -> str:
        return WIZARD_STEPS[self.value][0]

    @property
    def title(self) -> str:
        return WIZARD_STEPS[self.value][1]


FIRST_STEP = WizardStep.CATEGORY
LAST_STEP = WizardStep.REVIEW
STEP_COUNT = len(WizardStep)


@dataclass
class DraftReport:
    """In-memory report under construction. Identity is never stored here."""
    category: str = ""
    location: str = ""
    description: str = ""
    image: Optional[str] = None
    coordinates: Coordinates = field(default_factory=Coordinates)
    status: str = field(default=DEFAULT_REPORT_STATUS, init=False)

    def missing_fields(self) -> List[str]:
        """Required fields that are still empty."""
        return [
            name for name in ("category", "location", "description")
            if not getattr(self, name)
        ]

    @property
    def is_complete(self) -> bool:
        return not self.missing_fields()

    def snapshot(self) -> Dict[str, Any]:
        return asdict(self)


def _step_complete(step: WizardStep, draft: DraftReport) -> bool:
    if step == WizardStep.CATEGORY:
        return bool(draft.category)
    if step == WizardStep.LOCATION:
        return bool(draft.location)
    if step == WizardStep.DETAILS:
        return bool(draft.description)
    return draft.is_complete


@dataclass
class ReviewSummary:
    """What the review step shows before submission."""
    category: str
    location: str
    description: str
    image_attached: bool
    gps: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ReportWizard:
    """
    Step-wise intake for one report.

    All methods are synchronous and are expected to run on the event loop
    thread; asynchronous results (coordinates, encoded images, the deferred
    category advance) are applied by the owning ReportSession.
    """

    def __init__(self):
        self.step_index: int = FIRST_STEP
        self.draft = DraftReport()
        self.submission_in_flight = False
        self.disposed = False

        self._coordinates_resolved = False
        self._auto_advance_pending = False

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def step(self) -> WizardStep:
        return WizardStep(self.step_index)

    @property
    def is_terminal(self) -> bool:
        return self.step_index == LAST_STEP

    @property
    def coordinates_resolved(self) -> bool:
        return self._coordinates_resolved

    @property
    def auto_advance_pending(self) -> bool:
        return self._auto_advance_pending

    def is_step_complete(self, step: Optional[WizardStep] = None) -> bool:
        return _step_complete(self.step if step is None else step, self.draft)

    def ensure_active(self) -> None:
        if self.disposed:
            raise WizardDisposedError("Report wizard is closed")

    # ------------------------------------------------------------------
    # Field mutations
    # ------------------------------------------------------------------

    def select_category(self, value: str) -> bool:
        """
        Set the category. On the first step this requests a deferred advance.

        Returns:
            True if the caller should schedule fire_auto_advance()
        """
        self.ensure_active()
        if value not in CATEGORIES:
            raise ValueError(f"Unknown category: {value}")

        self.draft.category = value

        if self.step_index == WizardStep.CATEGORY:
            self._auto_advance_pending = True
            return True
        return False

    def fire_auto_advance(self) -> bool:
        """Complete a deferred category advance if still on the first step."""
        if self.disposed or not self._auto_advance_pending:
            return False

        self._auto_advance_pending = False
        if self.step_index != WizardStep.CATEGORY:
            return False

        return self.advance()

    def set_location(self, text: str) -> None:
        self.ensure_active()
        self.draft.location = text

    def set_description(self, text: str) -> None:
        self.ensure_active()
        self.draft.description = text

    def set_image(self, encoded: Optional[str]) -> None:
        self.ensure_active()
        self.draft.image = encoded

    def apply_coordinates(self, coordinates: Coordinates) -> bool:
        """
        Record the geolocation outcome. Only the first outcome is kept.

        Returns:
            True if the draft was updated
        """
        if self.disposed:
            logger.debug("Dropping coordinates for a closed wizard")
            return False
        if self._coordinates_resolved:
            return False

        self.draft.coordinates = coordinates
        self._coordinates_resolved = True
        return True

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def advance(self) -> bool:
        self.ensure_active()
        if self.submission_in_flight:
            return False

        new_index = min(self.step_index + 1, LAST_STEP)
        moved = new_index != self.step_index
        self.step_index = new_index
        return moved

    def retreat(self) -> bool:
        self.ensure_active()
        if self.submission_in_flight:
            return False

        new_index = max(self.step_index - 1, FIRST_STEP)
        moved = new_index != self.step_index
        self.step_index = new_index
        return moved

    def can_continue(self) -> bool:
        """Whether the "Continue" control is enabled."""
        if self.disposed or self.submission_in_flight:
            return False
        if self.is_terminal:
            return self.draft.is_complete
        return True

    def can_retreat(self) -> bool:
        return (
            not self.disposed
            and not self.submission_in_flight
            and self.step_index > FIRST_STEP
        )

    def continue_action(self) -> str:
        """
        Press "Continue".

        Returns:
            "advanced" at non-terminal steps, "submit" when the review step is
            ready for submission, "blocked" when the control is disabled
        """
        self.ensure_active()
        if not self.can_continue():
            return "blocked"
        if self.is_terminal:
            return "submit"
        self.advance()
        return "advanced"

    # ------------------------------------------------------------------
    # Submission lifecycle (driven by SubmissionCoordinator)
    # ------------------------------------------------------------------

    def begin_submission(self) -> None:
        self.submission_in_flight = True

    def end_submission(self) -> None:
        self.submission_in_flight = False

    def dispose(self) -> None:
        """Navigate away. The draft is discarded."""
        self.disposed = True
        self._auto_advance_pending = False

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def review_summary(self) -> ReviewSummary:
        # "Captured" only when a latitude came back
        gps = "Captured" if self.draft.coordinates.latitude is not None else "Not available"
        return ReviewSummary(
            category=self.draft.category,
            location=self.draft.location,
            description=self.draft.description,
            image_attached=self.draft.image is not None,
            gps=gps,
        )

    def to_dict(self) -> Dict[str, Any]:
        step = self.step
        return {
            "step_index": self.step_index,
            "step": step.key,
            "title": step.title,
            "step_count": STEP_COUNT,
            "can_continue": self.can_continue(),
            "can_retreat": self.can_retreat(),
            "submitting": self.submission_in_flight,
            "closed": self.disposed,
            "coordinates_resolved": self._coordinates_resolved,
            "review": self.review_summary().to_dict(),
        }
