"""
Tests for the report wizard state machine
"""
import pytest

import sys
sys.path.insert(0, '.')

from smartcampus.core.exceptions import WizardDisposedError
from smartcampus.core.geo_utils import Coordinates
from smartcampus.intake.wizard import ReportWizard, WizardStep, STEP_COUNT


def fill_draft(wizard):
    wizard.draft.category = "Plumbing"
    wizard.draft.location = "Block A, Room 101"
    wizard.draft.description = "Leaking tap"


class TestWizardNavigation:
    """Step bounds and the progression guard."""

    def setup_method(self):
        self.wizard = ReportWizard()

    def test_initial_state(self):
        assert self.wizard.step_index == 0
        assert self.wizard.step == WizardStep.CATEGORY
        assert self.wizard.draft.status == "pending"
        assert self.wizard.draft.coordinates == Coordinates(None, None)
        assert STEP_COUNT == 4

    def test_advance_through_empty_steps(self):
        """Earlier steps let the user move on with empty fields."""
        assert self.wizard.can_continue() is True
        assert self.wizard.advance() is True
        assert self.wizard.advance() is True
        assert self.wizard.advance() is True
        assert self.wizard.step == WizardStep.REVIEW

    def test_advance_clamped_at_review(self):
        for _ in range(10):
            self.wizard.advance()
        assert self.wizard.step_index == 3
        assert self.wizard.advance() is False

    def test_retreat_clamped_at_first_step(self):
        assert self.wizard.retreat() is False
        assert self.wizard.step_index == 0
        assert self.wizard.can_retreat() is False

    def test_any_sequence_stays_in_range(self):
        moves = "aarrraaaaarara"
        for move in moves:
            if move == "a":
                self.wizard.advance()
            else:
                self.wizard.retreat()
            assert 0 <= self.wizard.step_index <= 3

    def test_review_blocked_until_complete(self):
        for _ in range(3):
            self.wizard.advance()

        assert self.wizard.can_continue() is False
        assert self.wizard.continue_action() == "blocked"

        self.wizard.set_location("Block A")
        self.wizard.select_category("Electrical")
        assert self.wizard.can_continue() is False

        self.wizard.set_description("Sparks from socket")
        assert self.wizard.can_continue() is True
        assert self.wizard.continue_action() == "submit"

    def test_continue_action_advances(self):
        assert self.wizard.continue_action() == "advanced"
        assert self.wizard.step == WizardStep.LOCATION

    def test_navigation_frozen_while_submitting(self):
        self.wizard.advance()
        self.wizard.begin_submission()

        assert self.wizard.advance() is False
        assert self.wizard.retreat() is False
        assert self.wizard.step_index == 1
        assert self.wizard.can_continue() is False
        assert self.wizard.can_retreat() is False

    def test_step_complete(self):
        assert self.wizard.is_step_complete() is False
        self.wizard.select_category("Other")
        assert self.wizard.is_step_complete() is True
        assert self.wizard.is_step_complete(WizardStep.LOCATION) is False


class TestWizardFields:
    """Field updates and auto-advance."""

    def setup_method(self):
        self.wizard = ReportWizard()

    def test_select_category_on_first_step_requests_advance(self):
        assert self.wizard.select_category("Plumbing") is True
        assert self.wizard.auto_advance_pending is True
        # Not yet moved: the advance is deferred
        assert self.wizard.step_index == 0

        assert self.wizard.fire_auto_advance() is True
        assert self.wizard.step == WizardStep.LOCATION

    def test_select_category_on_later_step(self):
        self.wizard.advance()
        self.wizard.advance()
        assert self.wizard.select_category("Safety") is False
        assert self.wizard.draft.category == "Safety"
        assert self.wizard.step_index == 2

    def test_auto_advance_skipped_after_manual_advance(self):
        self.wizard.select_category("Plumbing")
        self.wizard.advance()

        assert self.wizard.fire_auto_advance() is False
        assert self.wizard.step_index == 1

    def test_double_selection_advances_once(self):
        self.wizard.select_category("Plumbing")
        self.wizard.select_category("Electrical")

        self.wizard.fire_auto_advance()
        self.wizard.fire_auto_advance()

        assert self.wizard.step_index == 1
        assert self.wizard.draft.category == "Electrical"

    def test_unknown_category_rejected(self):
        with pytest.raises(ValueError):
            self.wizard.select_category("Weather")
        assert self.wizard.draft.category == ""

    def test_free_text_fields(self):
        self.wizard.set_location("Library")
        self.wizard.set_description("Door jammed")
        assert self.wizard.draft.location == "Library"
        assert self.wizard.draft.description == "Door jammed"
        assert self.wizard.draft.missing_fields() == ["category"]

    def test_image_replaced(self):
        self.wizard.set_image("data:image/png;base64,AAAA")
        self.wizard.set_image("data:image/png;base64,BBBB")
        assert self.wizard.draft.image == "data:image/png;base64,BBBB"

    def test_first_coordinates_win(self):
        assert self.wizard.apply_coordinates(Coordinates(9.59, 76.52)) is True
        assert self.wizard.apply_coordinates(Coordinates(1.0, 2.0)) is False
        assert self.wizard.draft.coordinates == Coordinates(9.59, 76.52)
        assert self.wizard.coordinates_resolved is True

    def test_failed_capture_still_resolves(self):
        self.wizard.apply_coordinates(Coordinates.unavailable())
        assert self.wizard.coordinates_resolved is True
        assert self.wizard.draft.coordinates.to_tuple() == (None, None)


class TestWizardLifecycle:
    """Disposal and review summary."""

    def setup_method(self):
        self.wizard = ReportWizard()

    def test_disposed_wizard_rejects_input(self):
        self.wizard.dispose()

        with pytest.raises(WizardDisposedError):
            self.wizard.set_location("Anywhere")
        with pytest.raises(WizardDisposedError):
            self.wizard.advance()
        assert self.wizard.can_continue() is False

    def test_disposed_wizard_drops_late_results(self):
        self.wizard.select_category("Plumbing")
        self.wizard.dispose()

        assert self.wizard.apply_coordinates(Coordinates(9.59, 76.52)) is False
        assert self.wizard.fire_auto_advance() is False
        assert self.wizard.draft.coordinates.latitude is None
        assert self.wizard.step_index == 0

    def test_review_summary_gps_captured(self):
        fill_draft(self.wizard)
        self.wizard.apply_coordinates(Coordinates(9.59, 76.52))

        summary = self.wizard.review_summary()
        assert summary.gps == "Captured"
        assert summary.image_attached is False
        assert summary.category == "Plumbing"

    def test_review_summary_gps_not_available(self):
        fill_draft(self.wizard)
        assert self.wizard.review_summary().gps == "Not available"

    def test_review_summary_zero_latitude_is_captured(self):
        self.wizard.apply_coordinates(Coordinates(0.0, 0.0))
        assert self.wizard.review_summary().gps == "Captured"

    def test_to_dict(self):
        data = self.wizard.to_dict()
        assert data["step"] == "category"
        assert data["title"] == "What type of issue is this?"
        assert data["step_count"] == 4
        assert data["closed"] is False
        assert data["review"]["gps"] == "Not available"
