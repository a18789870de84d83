"""
Weather probe using the OpenWeatherMap current-weather API.
"""

import http.client
import json
import logging
import threading
import time
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Dict, Optional, Union

from ..location import LocationProvider
from ..models import Coordinate, WeatherReport, WeatherSnapshot
from ..utils.errors import (
    DecodeError,
    HTTPStatusError,
    InvalidInputError,
    NetworkError,
    PollError,
)
from .base import BaseProbe

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openweathermap.org/data/2.5/weather"
DEFAULT_TIMEOUT = 10.0
MAX_RETRIES = 3
RETRY_DELAY = 2.0
DEFAULT_CITY = "New Delhi"

# Condition groups reported in weather[0].main, used as symbolic icon keys
KNOWN_CONDITIONS = frozenset(
    {
        "clear",
        "clouds",
        "rain",
        "drizzle",
        "thunderstorm",
        "snow",
        "mist",
        "smoke",
        "haze",
        "dust",
        "fog",
        "sand",
        "ash",
        "squall",
        "tornado",
    }
)

WeatherLocation = Union[Coordinate, str]


def parse_weather(payload: Any) -> WeatherSnapshot:
    """
    Map a current-weather JSON payload to a snapshot.

    Raises:
        DecodeError: If required fields are missing or mistyped
    """
    try:
        main = payload["main"]
        conditions = payload.get("weather") or []
        first = conditions[0] if conditions else {}
        group = str(first.get("main", "")).lower()
        description = str(first.get("description", "")).strip()
        wind = payload.get("wind") or {}

        humidity = main.get("humidity")
        feels_like = main.get("feels_like")
        wind_speed = wind.get("speed")

        return WeatherSnapshot(
            location=str(payload["name"]),
            temperature_c=int(float(main["temp"])),
            condition=description.title() if description else "Unknown",
            icon=group if group in KNOWN_CONDITIONS else "unknown",
            humidity=int(humidity) if humidity is not None else None,
            feels_like_c=float(feels_like) if feels_like is not None else None,
            wind_speed=float(wind_speed) if wind_speed is not None else None,
        )
    except (KeyError, IndexError, TypeError, ValueError, AttributeError) as e:
        raise DecodeError(f"Unexpected weather payload ({type(e).__name__}: {e})", cause=e) from e


class WeatherClient:
    """
    HTTP client for current weather.

    Network failures are retried up to max_retries times with a fixed
    delay between attempts, so at most max_retries + 1 requests are made;
    every other failure surfaces at once.
    """

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = MAX_RETRIES,
        retry_delay: float = RETRY_DELAY,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self.max_retries = max(0, int(max_retries))
        self.retry_delay = retry_delay

    def fetch(
        self,
        location: WeatherLocation,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> WeatherSnapshot:
        """
        Fetch current weather for a coordinate or a place name.

        Args:
            location: Coordinate or city name
            timeout: Per-request timeout in seconds (default: client timeout)
            cancel_event: When set, stops the retry sequence between attempts

        Returns:
            WeatherSnapshot in Celsius

        Raises:
            InvalidInputError: Bad location or missing API key
            HTTPStatusError: Service answered with a non-200 status
            NetworkError: Service unreachable after all retries
            DecodeError: Response could not be parsed
        """
        url = self.build_url(location)
        timeout = self.timeout if timeout is None else timeout

        retries = 0
        while True:
            try:
                snapshot = self._request(url, timeout)
            except NetworkError as e:
                if retries >= self.max_retries:
                    logger.error(f"Weather request failed after {retries} retries: {e}")
                    raise
                retries += 1
                logger.warning(
                    f"Weather request failed: {e}; "
                    f"retry {retries}/{self.max_retries} in {self.retry_delay}s"
                )
                if self._wait_for_retry(cancel_event):
                    logger.info("Weather retry cancelled")
                    raise
                continue

            logger.debug(f"Weather for {describe(location)}: {snapshot}")
            return snapshot

    def fetch_by_city(self, city: str, **kwargs) -> WeatherSnapshot:
        return self.fetch(city, **kwargs)

    def fetch_by_coordinate(self, latitude: float, longitude: float, **kwargs) -> WeatherSnapshot:
        return self.fetch(Coordinate(latitude, longitude), **kwargs)

    def build_url(self, location: WeatherLocation) -> str:
        """
        Build the request URL.

        Raises:
            InvalidInputError: If the location or API key is unusable
        """
        if not self.api_key:
            raise InvalidInputError("Weather API key is not configured")

        if isinstance(location, Coordinate):
            if not -90.0 <= location.latitude <= 90.0:
                raise InvalidInputError(f"Latitude out of range: {location.latitude}")
            if not -180.0 <= location.longitude <= 180.0:
                raise InvalidInputError(f"Longitude out of range: {location.longitude}")
            params = {"lat": location.latitude, "lon": location.longitude}
        elif isinstance(location, str) and location.strip():
            params = {"q": location.strip()}
        else:
            raise InvalidInputError(f"Invalid weather location: {location!r}")

        params.update({"appid": self.api_key, "units": "metric"})
        return f"{self.base_url}?{urllib.parse.urlencode(params)}"

    def _request(self, url: str, timeout: float) -> WeatherSnapshot:
        try:
            with urllib.request.urlopen(url, timeout=timeout) as response:
                status = getattr(response, "status", 200)
                body = response.read()
        except urllib.error.HTTPError as e:
            try:
                error_body = e.read()
            except (OSError, AttributeError, http.client.HTTPException):
                error_body = None
            raise HTTPStatusError(e.code, self._error_message(error_body, e.reason)) from e
        except urllib.error.URLError as e:
            raise NetworkError(f"Weather API connection error: {e.reason}", cause=e) from e
        except (OSError, http.client.HTTPException) as e:
            raise NetworkError(f"Weather API connection error: {e}", cause=e) from e

        if status != 200:
            raise HTTPStatusError(status, self._error_message(body, None))

        try:
            payload = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise DecodeError(f"Invalid JSON response from weather API: {e}", cause=e) from e

        return parse_weather(payload)

    def _wait_for_retry(self, cancel_event: Optional[threading.Event]) -> bool:
        """Sleep out the retry delay; True if cancelled meanwhile."""
        if cancel_event is None:
            time.sleep(self.retry_delay)
            return False
        return cancel_event.wait(self.retry_delay)

    @staticmethod
    def _error_message(body: Optional[bytes], fallback: Any) -> Optional[str]:
        """Provider message from a {"message": ...} error body, if present."""
        if body:
            try:
                payload = json.loads(body.decode("utf-8"))
            except (UnicodeDecodeError, json.JSONDecodeError):
                payload = None
            if isinstance(payload, dict) and payload.get("message"):
                return str(payload["message"])
        return str(fallback) if fallback else None


def describe(location: WeatherLocation) -> str:
    if isinstance(location, Coordinate):
        return f"({location.latitude:.3f}, {location.longitude:.3f})"
    return str(location)


class WeatherProbe(BaseProbe[WeatherReport]):
    """
    Periodically fetch weather for the current location.

    Configuration:
        interval: Seconds between fetches (default: 600, API rate limits)
        location: City used when no coordinate is available (default: New Delhi)
        api_key: OpenWeatherMap API key
        base_url, timeout, max_retries, retry_delay: WeatherClient settings

    Example:
        weather:
          location: "San Francisco"
          api_key: "${OPENWEATHER_API_KEY}"
          interval: 600
    """

    probe_type = "weather"
    update_interval = 600.0

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        client: Optional[WeatherClient] = None,
        location_provider: Optional[LocationProvider] = None,
    ):
        super().__init__(config)
        self.client = client or WeatherClient(
            api_key=self.config.get("api_key"),
            base_url=self.config.get("base_url", DEFAULT_BASE_URL),
            timeout=float(self.config.get("timeout", DEFAULT_TIMEOUT)),
            max_retries=int(self.config.get("max_retries", MAX_RETRIES)),
            retry_delay=float(self.config.get("retry_delay", RETRY_DELAY)),
        )
        self.location_provider = location_provider
        self.city = self.config.get("location") or DEFAULT_CITY
        self._cancel_event = threading.Event()

    def sample(self) -> WeatherReport:
        location = self.resolve_location()
        try:
            snapshot = self.client.fetch(location, cancel_event=self._cancel_event)
        except PollError as e:
            self._log_failure(e, location)
            return WeatherReport(error=e)

        logger.info(f"Weather for {snapshot.location}: {snapshot.temperature_c}°C {snapshot.condition}")
        return WeatherReport(snapshot=snapshot)

    def resolve_location(self) -> WeatherLocation:
        """Current coordinate if the provider has one, else the configured city."""
        if self.location_provider is not None:
            try:
                coordinate = self.location_provider.get_coordinate()
            except Exception as e:
                logger.warning(f"Location provider failed: {e}")
                coordinate = None
            if coordinate is not None:
                return coordinate
            logger.debug(f"No coordinate available, using city '{self.city}'")
        return self.city

    def start(self) -> None:
        if not self.is_running():
            self._cancel_event.clear()
        super().start()

    def stop(self, timeout: Optional[float] = None) -> None:
        # Set first so an in-flight retry sequence ends before the join
        self._cancel_event.set()
        super().stop(timeout)

    def _log_failure(self, error: PollError, location: WeatherLocation) -> None:
        if isinstance(error, HTTPStatusError):
            if error.code == 401:
                logger.error("Invalid API key for OpenWeatherMap")
            elif error.code == 404:
                logger.error(f"Location not found: {describe(location)}")
            else:
                logger.error(f"Weather API HTTP error: {error}")
        elif isinstance(error, InvalidInputError):
            logger.error(f"Weather request not sent: {error}")
        else:
            logger.warning(f"Weather unavailable for {describe(location)}: {error}")
