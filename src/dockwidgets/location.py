"""
Location providers for the weather probe.

A provider may legitimately have no coordinate (permission not granted,
no fix yet); the weather probe then falls back to the configured city.
"""

import logging
import shlex
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from .models import Coordinate
from .platforms.runner import CommandRunner
from .utils.errors import PollError

logger = logging.getLogger(__name__)


class LocationProvider(ABC):
    """Supplies the current coordinate, if one is known."""

    @abstractmethod
    def get_coordinate(self) -> Optional[Coordinate]:
        pass


class StaticLocationProvider(LocationProvider):
    """Always reports the same coordinate (or none)."""

    def __init__(self, coordinate: Optional[Coordinate] = None):
        self.coordinate = coordinate

    def get_coordinate(self) -> Optional[Coordinate]:
        return self.coordinate


class CommandLocationProvider(LocationProvider):
    """
    Reads "<latitude> <longitude>" from an external helper.

    Example helper: CoreLocationCLI -format "%latitude %longitude"
    """

    def __init__(self, command: str, runner: Optional[CommandRunner] = None):
        argv = shlex.split(command)
        if not argv:
            raise ValueError("Location command must not be empty")
        self.executable, self.args = argv[0], argv[1:]
        self.runner = runner or CommandRunner()

    def get_coordinate(self) -> Optional[Coordinate]:
        try:
            output = self.runner.run(self.executable, self.args)
        except PollError as e:
            logger.warning(f"Location helper failed: {e}")
            return None
        return parse_coordinate(output)


def parse_coordinate(text: str) -> Optional[Coordinate]:
    """Parse "lat lon" or "lat,lon"; anything else is no coordinate."""
    parts = text.replace(",", " ").split()
    if len(parts) != 2:
        logger.warning(f"Unexpected location output: {text!r}")
        return None

    try:
        return Coordinate(latitude=float(parts[0]), longitude=float(parts[1]))
    except ValueError:
        logger.warning(f"Unexpected location output: {text!r}")
        return None


def location_provider_from_config(
    config: Dict[str, Any], runner: Optional[CommandRunner] = None
) -> Optional[LocationProvider]:
    """
    Build the provider described by the weather configuration section.

    A location_command wins over fixed latitude/longitude; with neither,
    there is no provider and the probe uses the city name.
    """
    command = config.get("location_command")
    if command:
        return CommandLocationProvider(command, runner)

    latitude = config.get("latitude")
    longitude = config.get("longitude")
    if latitude is not None and longitude is not None:
        return StaticLocationProvider(Coordinate(float(latitude), float(longitude)))

    return None
