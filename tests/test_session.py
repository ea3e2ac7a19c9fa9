"""
Tests for report sessions
"""
import asyncio
import pytest

import sys
sys.path.insert(0, '.')

from smartcampus.auth.identity import Identity, StaticIdentityProvider
from smartcampus.core.exceptions import GeolocationErrorCode, WizardDisposedError
from smartcampus.core.geo_utils import Coordinates
from smartcampus.intake.geolocation import StaticLocationProvider, ClientReportedLocationProvider
from smartcampus.intake.session import ReportSession
from smartcampus.intake.submission import SubmissionStatus
from smartcampus.store.base import InMemoryReportStore


class SlowIdentityProvider(StaticIdentityProvider):
    async def current_identity(self):
        await asyncio.sleep(0.05)
        return self.identity


def make_session(store=None, provider=None, delay=0.01, identity=Identity(uid="u1")):
    return ReportSession(
        identity_provider=StaticIdentityProvider(identity),
        store=store if store is not None else InMemoryReportStore(),
        location_provider=provider or StaticLocationProvider(9.5916, 76.5222),
        geolocation_timeout=1.0,
        auto_advance_delay=delay,
    )


class TestReportSession:
    """Background work applied through the session inbox."""

    def test_geolocation_runs_on_start(self):
        async def scenario():
            session = make_session()
            await session.start()
            await session.settle(include_geolocation=True)
            coordinates = session.wizard.draft.coordinates
            await session.close()
            return coordinates

        assert asyncio.run(scenario()) == Coordinates(9.5916, 76.5222)

    def test_geolocation_failure_does_not_block(self):
        async def scenario():
            provider = StaticLocationProvider(error=GeolocationErrorCode.PERMISSION_DENIED)
            session = make_session(provider=provider)
            await session.start()
            session.advance()
            await session.settle(include_geolocation=True)
            state = session.wizard.to_dict()
            await session.close()
            return state

        state = asyncio.run(scenario())
        assert state["step_index"] == 1
        assert state["coordinates_resolved"] is True
        assert state["review"]["gps"] == "Not available"

    def test_deferred_category_advance(self):
        async def scenario():
            session = make_session(delay=0.05)
            await session.start()
            session.select_category("Plumbing")
            immediately = session.wizard.step_index
            await session.settle()
            after = session.wizard.step_index
            await session.close()
            return immediately, after

        immediately, after = asyncio.run(scenario())
        assert immediately == 0
        assert after == 1

    def test_manual_advance_before_deferred_advance(self):
        async def scenario():
            session = make_session(delay=0.05)
            await session.start()
            session.select_category("Plumbing")
            session.advance()
            await session.settle()
            step = session.wizard.step_index
            await session.close()
            return step

        assert asyncio.run(scenario()) == 1

    def test_attach_image(self):
        async def scenario():
            session = make_session()
            await session.start()
            await session.attach_image(b"\x89PNG", content_type="image/png")
            await session.settle()
            image = session.wizard.draft.image
            await session.close()
            return image

        assert asyncio.run(scenario()).startswith("data:image/png;base64,")

    def test_attach_image_file(self, tmp_path):
        path = tmp_path / "leak.jpg"
        path.write_bytes(b"\xff\xd8\xff")

        async def scenario():
            session = make_session()
            await session.start()
            await session.attach_image_file(path)
            await session.settle()
            image = session.wizard.draft.image
            await session.close()
            return image

        assert asyncio.run(scenario()).startswith("data:image/jpeg;base64,")

    def test_unreadable_file_leaves_image_unset(self, tmp_path):
        async def scenario():
            session = make_session()
            await session.start()
            await session.attach_image_file(tmp_path / "missing.png")
            await session.settle()
            image = session.wizard.draft.image
            await session.close()
            return image

        assert asyncio.run(scenario()) is None

    def test_close_drops_late_coordinates(self):
        async def scenario():
            provider = ClientReportedLocationProvider()
            session = make_session(provider=provider)
            await session.start()
            await session.close()
            provider.report_position(1.0, 2.0)
            await asyncio.sleep(0.01)
            return session

        session = asyncio.run(scenario())
        assert session.closed is True
        assert session.wizard.draft.coordinates.to_tuple() == (None, None)

    def test_close_drops_pending_advance(self):
        async def scenario():
            session = make_session(delay=0.05)
            await session.start()
            session.select_category("Plumbing")
            await session.close()
            await asyncio.sleep(0.1)
            return session.wizard.step_index

        assert asyncio.run(scenario()) == 0

    def test_actions_after_close_rejected(self):
        async def scenario():
            session = make_session()
            await session.start()
            await session.close()
            session.set_location("Library")

        with pytest.raises(WizardDisposedError):
            asyncio.run(scenario())

    def test_background_work_requires_start(self):
        async def scenario():
            session = make_session()
            session.attach_image(b"data")

        with pytest.raises(RuntimeError):
            asyncio.run(scenario())

    def test_full_flow(self):
        store = InMemoryReportStore()

        async def scenario():
            session = make_session(store=store)
            await session.start()
            session.select_category("Plumbing")
            await session.settle(include_geolocation=True)
            session.set_location("Block A, Room 101")
            session.advance()
            session.set_description("Leaking tap")
            session.advance()
            outcome = await session.submit()
            return session, outcome

        session, outcome = asyncio.run(scenario())

        assert outcome.status == SubmissionStatus.SUBMITTED
        assert session.closed is True
        assert session.last_outcome is outcome

        report = asyncio.run(store.query())[0]
        assert report.user_id == "u1"
        assert (report.latitude, report.longitude) == (9.5916, 76.5222)

    def test_failed_submit_keeps_session_open(self):
        store = InMemoryReportStore()
        store.fail_next = 1

        async def scenario():
            session = make_session(store=store)
            await session.start()
            session.select_category("Other")
            await session.settle()
            session.set_location("Gym")
            session.advance()
            session.set_description("Broken bench")
            session.advance()
            first = await session.submit()
            still_open = not session.closed
            second = await session.submit()
            return first, still_open, second

        first, still_open, second = asyncio.run(scenario())
        assert first.status == SubmissionStatus.FAILED
        assert still_open is True
        assert second.status == SubmissionStatus.SUBMITTED
        assert len(store) == 1

    def test_edits_while_submitting_not_stored(self):
        store = InMemoryReportStore()

        async def scenario():
            session = ReportSession(
                identity_provider=SlowIdentityProvider(Identity(uid="u1")),
                store=store,
                location_provider=StaticLocationProvider(9.5916, 76.5222),
                auto_advance_delay=0.01,
            )
            await session.start()
            session.select_category("Plumbing")
            await session.settle(include_geolocation=True)
            session.set_location("Block A, Room 101")
            session.advance()
            session.set_description("Leaking tap")
            session.advance()

            submit = asyncio.create_task(session.submit())
            await asyncio.sleep(0.01)
            session.set_description("")
            moved = session.retreat()
            outcome = await submit
            return outcome, moved

        outcome, moved = asyncio.run(scenario())

        assert outcome.status == SubmissionStatus.SUBMITTED
        assert moved is False
        report = asyncio.run(store.query())[0]
        assert report.description == "Leaking tap"
