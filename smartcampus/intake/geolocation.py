"""
One-shot, time-bounded geolocation capture.

Every failure (permission denied, position unavailable, timeout, a broken
provider) degrades to Coordinates(None, None). Callers cannot tell the
failure kinds apart.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

import httpx

from smartcampus.core.constants import GEOLOCATION_TIMEOUT_SECONDS
from smartcampus.core.exceptions import GeolocationError, GeolocationErrorCode
from smartcampus.core.geo_utils import Coordinates, is_valid_coordinate

logger = logging.getLogger(__name__)


class LocationProvider(ABC):
    """Device location service."""

    @abstractmethod
    async def get_current_position(
        self,
        high_accuracy: bool = True,
        timeout: float = GEOLOCATION_TIMEOUT_SECONDS
    ) -> Coordinates:
        """
        Return the current position.

        Raises:
            GeolocationError: with the provider's failure code
        """


class StaticLocationProvider(LocationProvider):
    """Fixed fix or fixed failure, optionally after a delay."""

    def __init__(
        self,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        error: Optional[GeolocationErrorCode] = None,
        delay: float = 0.0
    ):
        self.latitude = latitude
        self.longitude = longitude
        self.error = error
        self.delay = delay
        self.calls = 0

    async def get_current_position(
        self,
        high_accuracy: bool = True,
        timeout: float = GEOLOCATION_TIMEOUT_SECONDS
    ) -> Coordinates:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)

        if self.error is not None:
            raise GeolocationError(self.error)
        if self.latitude is None or self.longitude is None:
            raise GeolocationError(GeolocationErrorCode.POSITION_UNAVAILABLE)

        return Coordinates(self.latitude, self.longitude)


class ClientReportedLocationProvider(LocationProvider):
    """
    Position pushed by the client device.

    The browser or app runs its own geolocation request and reports the fix
    (or its failure code) once; get_current_position waits for that report.
    """

    def __init__(self):
        self._result: Optional[asyncio.Future] = None
        self._pending_report = None

    def _future(self) -> asyncio.Future:
        if self._result is None:
            self._result = asyncio.get_running_loop().create_future()
            if self._pending_report is not None:
                self._settle(*self._pending_report)
        return self._result

    def _settle(self, coordinates: Optional[Coordinates], error: Optional[GeolocationErrorCode]) -> bool:
        if self._result.done():
            return False
        if error is not None:
            self._result.set_exception(GeolocationError(error))
        else:
            self._result.set_result(coordinates)
        return True

    def _report(self, coordinates: Optional[Coordinates], error: Optional[GeolocationErrorCode]) -> bool:
        if self._result is None:
            if self._pending_report is not None:
                return False
            self._pending_report = (coordinates, error)
            return True
        return self._settle(coordinates, error)

    def report_position(self, latitude: float, longitude: float) -> bool:
        """
        Deliver the device fix.

        Returns:
            False if a report was already delivered
        """
        return self._report(Coordinates(latitude, longitude), None)

    def report_failure(self, code: GeolocationErrorCode) -> bool:
        return self._report(None, GeolocationErrorCode(code))

    async def get_current_position(
        self,
        high_accuracy: bool = True,
        timeout: float = GEOLOCATION_TIMEOUT_SECONDS
    ) -> Coordinates:
        return await self._future()


class IPGeolocationProvider(LocationProvider):
    """
    Approximate position from an IP lookup service.

    Accepts both ``latitude``/``longitude`` and ``lat``/``lon`` response keys.
    """

    DEFAULT_URL = "https://ipapi.co/json/"

    def __init__(
        self,
        url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.url = url or self.DEFAULT_URL
        self._client = client

    async def _fetch(self, timeout: float) -> dict:
        if self._client is not None:
            response = await self._client.get(self.url, timeout=timeout)
            response.raise_for_status()
            return response.json()

        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.get(self.url)
            response.raise_for_status()
            return response.json()

    async def get_current_position(
        self,
        high_accuracy: bool = True,
        timeout: float = GEOLOCATION_TIMEOUT_SECONDS
    ) -> Coordinates:
        try:
            data = await self._fetch(timeout)
        except httpx.TimeoutException as e:
            raise GeolocationError(GeolocationErrorCode.TIMEOUT, str(e)) from e
        except (httpx.HTTPError, ValueError) as e:
            raise GeolocationError(GeolocationErrorCode.POSITION_UNAVAILABLE, str(e)) from e

        latitude = data.get("latitude", data.get("lat"))
        longitude = data.get("longitude", data.get("lon"))

        if not is_valid_coordinate(latitude, longitude):
            raise GeolocationError(GeolocationErrorCode.POSITION_UNAVAILABLE)

        return Coordinates(float(latitude), float(longitude))


class GeolocationCapture:
    """
    Requests the device position once with a bounded wait.

    capture() never raises; it returns Coordinates(None, None) on failure.
    """

    def __init__(
        self,
        provider: LocationProvider,
        timeout_seconds: float = GEOLOCATION_TIMEOUT_SECONDS,
        high_accuracy: bool = True
    ):
        self.provider = provider
        self.timeout_seconds = timeout_seconds
        self.high_accuracy = high_accuracy

    async def capture(self) -> Coordinates:
        try:
            position = await asyncio.wait_for(
                self.provider.get_current_position(
                    high_accuracy=self.high_accuracy,
                    timeout=self.timeout_seconds,
                ),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.info(f"Geolocation timed out after {self.timeout_seconds}s")
            return Coordinates.unavailable()
        except GeolocationError as e:
            logger.info(f"Geolocation unavailable: {e.code.value}")
            return Coordinates.unavailable()
        except Exception as e:
            logger.warning(f"Geolocation provider failed: {e}")
            return Coordinates.unavailable()

        if position is None or not is_valid_coordinate(position.latitude, position.longitude):
            logger.info("Geolocation returned an unusable position")
            return Coordinates.unavailable()

        return Coordinates(float(position.latitude), float(position.longitude))
