"""
Report session: the single owner of one mounted wizard.

User actions mutate the wizard directly. Background work (geolocation from
mount, image encoding, the deferred category advance) runs as separate tasks
whose results are posted to an inbox queue and applied one at a time by the
dispatch loop. Once the session is closed, late results are dropped.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union, Set

from smartcampus.auth.identity import IdentityProvider
from smartcampus.core.constants import (
    AUTO_ADVANCE_DELAY_MS,
    GEOLOCATION_TIMEOUT_SECONDS,
    SUCCESS_REDIRECT,
)
from smartcampus.core.geo_utils import Coordinates
from smartcampus.intake.geolocation import GeolocationCapture, LocationProvider
from smartcampus.intake.media import MediaEncoder
from smartcampus.intake.submission import SubmissionCoordinator, SubmissionOutcome
from smartcampus.intake.wizard import ReportWizard
from smartcampus.store.base import ReportStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CoordinatesResolved:
    coordinates: Coordinates


@dataclass(frozen=True)
class ImageEncoded:
    image: str


@dataclass(frozen=True)
class DeferredAdvance:
    pass


SessionMessage = Union[CoordinatesResolved, ImageEncoded, DeferredAdvance]


class ReportSession:
    """
    Wires a ReportWizard to geolocation, media encoding and submission.

    Call start() from a running event loop (it begins geolocation capture),
    and close() when the user navigates away.
    """

    def __init__(
        self,
        identity_provider: IdentityProvider,
        store: ReportStore,
        location_provider: LocationProvider,
        media_encoder: Optional[MediaEncoder] = None,
        geolocation_timeout: float = GEOLOCATION_TIMEOUT_SECONDS,
        high_accuracy: bool = True,
        auto_advance_delay: float = AUTO_ADVANCE_DELAY_MS / 1000.0,
        success_redirect: str = SUCCESS_REDIRECT,
        session_id: Optional[str] = None
    ):
        self.id = session_id or uuid.uuid4().hex
        self.wizard = ReportWizard()
        self.location_provider = location_provider
        self.geolocation = GeolocationCapture(
            location_provider,
            timeout_seconds=geolocation_timeout,
            high_accuracy=high_accuracy,
        )
        self.media = media_encoder or MediaEncoder()
        self.coordinator = SubmissionCoordinator(
            identity_provider,
            store,
            success_redirect=success_redirect,
        )
        self.auto_advance_delay = auto_advance_delay
        self.last_outcome: Optional[SubmissionOutcome] = None

        self._inbox: Optional[asyncio.Queue] = None
        self._dispatcher: Optional[asyncio.Task] = None
        self._geolocation_task: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def started(self) -> bool:
        return self._inbox is not None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Mount: start the dispatch loop and request the device position."""
        if self.started:
            return

        self._inbox = asyncio.Queue()
        self._dispatcher = asyncio.create_task(self._dispatch_loop())
        self._geolocation_task = asyncio.create_task(self._capture_location())
        logger.debug(f"Report session {self.id} started")

    async def close(self) -> None:
        """Navigate away. Pending results are discarded."""
        if self._closed:
            return
        self._closed = True
        self.wizard.dispose()

        pending = list(self._tasks)
        if self._geolocation_task is not None:
            pending.append(self._geolocation_task)
        if self._dispatcher is not None:
            pending.append(self._dispatcher)

        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

        logger.debug(f"Report session {self.id} closed")

    async def settle(self, include_geolocation: bool = False) -> None:
        """Wait until background work has finished and its results are applied."""
        while True:
            pending = [t for t in self._tasks if not t.done()]
            if include_geolocation and self._geolocation_task is not None and not self._geolocation_task.done():
                pending.append(self._geolocation_task)
            if not pending:
                break
            await asyncio.gather(*pending, return_exceptions=True)

        if self._inbox is not None and not self._closed:
            await self._inbox.join()

    # ------------------------------------------------------------------
    # Result channel
    # ------------------------------------------------------------------

    def _post(self, message: SessionMessage) -> None:
        if self._closed or self._inbox is None:
            logger.debug(f"Dropping {type(message).__name__} for closed session {self.id}")
            return
        self._inbox.put_nowait(message)

    async def _dispatch_loop(self) -> None:
        assert self._inbox is not None
        while True:
            message = await self._inbox.get()
            try:
                self._apply(message)
            except Exception:
                logger.exception(f"Failed to apply {type(message).__name__}")
            finally:
                self._inbox.task_done()

    def _apply(self, message: SessionMessage) -> None:
        if self.wizard.disposed:
            return

        if isinstance(message, CoordinatesResolved):
            self.wizard.apply_coordinates(message.coordinates)
        elif isinstance(message, ImageEncoded):
            self.wizard.set_image(message.image)
        elif isinstance(message, DeferredAdvance):
            self.wizard.fire_auto_advance()

    def _spawn(self, coro) -> asyncio.Task:
        if not self.started:
            coro.close()
            raise RuntimeError("Report session has not been started")
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _capture_location(self) -> None:
        coordinates = await self.geolocation.capture()
        self._post(CoordinatesResolved(coordinates))

    async def _deferred_advance(self) -> None:
        await asyncio.sleep(self.auto_advance_delay)
        self._post(DeferredAdvance())

    async def _encode_image(self, data: bytes, content_type: Optional[str], filename: Optional[str]) -> None:
        image = await self.media.encode_bytes(data, content_type=content_type, filename=filename)
        if image is not None:
            self._post(ImageEncoded(image))

    async def _encode_image_file(self, path: Path) -> None:
        image = await self.media.encode_file(path)
        if image is not None:
            self._post(ImageEncoded(image))

    # ------------------------------------------------------------------
    # User actions
    # ------------------------------------------------------------------

    def select_category(self, value: str) -> None:
        if self.wizard.select_category(value):
            self._spawn(self._deferred_advance())

    def set_location(self, text: str) -> None:
        self.wizard.set_location(text)

    def set_description(self, text: str) -> None:
        self.wizard.set_description(text)

    def advance(self) -> bool:
        return self.wizard.advance()

    def retreat(self) -> bool:
        return self.wizard.retreat()

    def attach_image(
        self,
        data: bytes,
        content_type: Optional[str] = None,
        filename: Optional[str] = None
    ) -> asyncio.Task:
        """Encode a picked file; the draft image is replaced once encoding completes."""
        self.wizard.ensure_active()
        return self._spawn(self._encode_image(data, content_type, filename))

    def attach_image_file(self, path: Union[str, Path]) -> asyncio.Task:
        self.wizard.ensure_active()
        return self._spawn(self._encode_image_file(Path(path)))

    async def submit(self) -> SubmissionOutcome:
        """Submit with whatever coordinates are known right now."""
        outcome = await self.coordinator.submit(self.wizard)
        self.last_outcome = outcome
        if outcome.ok:
            await self.close()
        return outcome
