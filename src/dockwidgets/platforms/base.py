"""
Base platform abstraction for the external sources the probes sample
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from .runner import CommandRunner

logger = logging.getLogger(__name__)


class Platform(ABC):
    """Base platform class for OS specific preference and scripting access"""

    name: str = "base"

    def __init__(self, runner: Optional[CommandRunner] = None):
        """
        Initialize the platform

        Args:
            runner: CommandRunner used for every external call
        """
        self.runner = runner or CommandRunner()

    @abstractmethod
    def detect(self) -> bool:
        """
        Detect if this platform is currently running

        Returns:
            True if this platform is detected
        """
        pass

    @abstractmethod
    def read_preference(self, domain: str, key: str) -> str:
        """
        Read a persisted preference value as text

        Args:
            domain: Preference domain (e.g. com.apple.dock)
            key: Preference key (e.g. tilesize)

        Returns:
            Raw textual value

        Raises:
            PollError: If the value cannot be read
        """
        pass

    @abstractmethod
    def run_script(self, script: str) -> str:
        """
        Run an automation script through the OS scripting bridge

        Args:
            script: Script source

        Returns:
            Script result as text

        Raises:
            PollError: If the script fails; permission refusals raise
                PermissionDeniedError
        """
        pass
