"""
Submission coordinator: validate, attach identity, write once.
"""

import logging
import copy
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Dict, Any

from smartcampus.auth.identity import Identity, IdentityProvider
from smartcampus.core.constants import (
    DEFAULT_REPORT_STATUS,
    SUBMISSION_FAILED_NOTICE,
    SUCCESS_REDIRECT,
)
from smartcampus.core.exceptions import UnauthenticatedError
from smartcampus.intake.wizard import ReportWizard, DraftReport
from smartcampus.store.base import ReportStore, ReportRecord, SERVER_TIMESTAMP

logger = logging.getLogger(__name__)


class SubmissionStatus(str, Enum):
    """Result of a submit() call."""
    SUBMITTED = "submitted"
    FAILED = "failed"        # identity or store failure; retry allowed
    REJECTED = "rejected"    # not at review, or required fields missing
    IGNORED = "ignored"      # another submission is already in flight


@dataclass
class SubmissionOutcome:
    status: SubmissionStatus
    report_id: Optional[str] = None
    redirect: Optional[str] = None
    notice: Optional[str] = None
    error: Optional[str] = None
    unauthenticated: bool = False

    @property
    def ok(self) -> bool:
        return self.status == SubmissionStatus.SUBMITTED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "report_id": self.report_id,
            "redirect": self.redirect,
            "notice": self.notice,
            "error": self.error,
        }


class SubmissionCoordinator:
    """
    Performs the single atomic append for a completed draft.

    The draft is read, never modified; only the wizard's in-flight flag is
    flipped. On failure the draft is left exactly as it was so the same
    submission can be retried.
    """

    def __init__(
        self,
        identity_provider: IdentityProvider,
        store: ReportStore,
        success_redirect: str = SUCCESS_REDIRECT
    ):
        self.identity_provider = identity_provider
        self.store = store
        self.success_redirect = success_redirect

    @staticmethod
    def build_record(draft: DraftReport, identity: Identity) -> ReportRecord:
        """Persisted record for a draft; created_at is left to the store."""
        return ReportRecord(
            category=draft.category,
            location=draft.location,
            description=draft.description,
            user_id=identity.uid,
            image_base64=draft.image or None,
            latitude=draft.coordinates.latitude,
            longitude=draft.coordinates.longitude,
            status=DEFAULT_REPORT_STATUS,
            created_at=SERVER_TIMESTAMP,
        )

    def check_preconditions(self, wizard: ReportWizard) -> Optional[SubmissionOutcome]:
        if wizard.submission_in_flight:
            return SubmissionOutcome(SubmissionStatus.IGNORED)

        if wizard.disposed or not wizard.is_terminal:
            return SubmissionOutcome(
                SubmissionStatus.REJECTED,
                error="Submission is only possible from the review step",
            )

        missing = wizard.draft.missing_fields()
        if missing:
            return SubmissionOutcome(
                SubmissionStatus.REJECTED,
                error=f"Missing required fields: {', '.join(missing)}",
            )

        return None

    async def submit(self, wizard: ReportWizard) -> SubmissionOutcome:
        blocked = self.check_preconditions(wizard)
        if blocked is not None:
            if blocked.status == SubmissionStatus.IGNORED:
                logger.debug("Submission already in flight, ignoring")
            return blocked

        # Both happen before the first await: a second call sees the flag,
        # and edits made while the write is pending do not reach the record
        wizard.begin_submission()
        draft = copy.copy(wizard.draft)

        try:
            identity = await self.identity_provider.current_identity()
            if identity is None:
                raise UnauthenticatedError()

            record = self.build_record(draft, identity)
            report_id = await self.store.append(record)

        except UnauthenticatedError as e:
            logger.warning(f"Report submission failed: {e}")
            wizard.end_submission()
            return SubmissionOutcome(
                SubmissionStatus.FAILED,
                notice=SUBMISSION_FAILED_NOTICE,
                error=str(e),
                unauthenticated=True,
            )
        except Exception as e:
            logger.error(f"Report submission failed: {e}")
            wizard.end_submission()
            return SubmissionOutcome(
                SubmissionStatus.FAILED,
                notice=SUBMISSION_FAILED_NOTICE,
                error=str(e),
            )

        wizard.end_submission()
        wizard.dispose()

        logger.info(f"Report submitted: {report_id} by {identity.uid}")
        return SubmissionOutcome(
            SubmissionStatus.SUBMITTED,
            report_id=report_id,
            redirect=self.success_redirect,
        )
