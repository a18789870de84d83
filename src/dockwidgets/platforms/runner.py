"""
External command execution shared by every platform probe
"""

import logging
import subprocess
from typing import Optional, Sequence

from ..utils.errors import NetworkError, NoDataError, PermissionDeniedError

logger = logging.getLogger(__name__)

DEFAULT_COMMAND_TIMEOUT = 5.0

# stderr fragments that mean the OS refused automation access
PERMISSION_MARKERS = (
    "-1743",
    "not authorized to send apple events",
    "not allowed to send keystrokes",
    "operation not permitted",
)


class CommandRunner:
    """Runs an external command synchronously and returns its trimmed stdout"""

    def __init__(self, timeout: float = DEFAULT_COMMAND_TIMEOUT):
        self.timeout = timeout

    def run(
        self, executable: str, args: Sequence[str] = (), timeout: Optional[float] = None
    ) -> str:
        """
        Execute a command and capture its output

        Args:
            executable: Program to run
            args: Arguments passed to the program
            timeout: Seconds before the process is killed (default: runner timeout)

        Returns:
            Standard output decoded as UTF-8 with trailing whitespace removed

        Raises:
            NetworkError: If the process cannot start or times out
            PermissionDeniedError: If the OS denied automation access
            NoDataError: If the command failed or printed nothing
        """
        command = [executable, *args]
        timeout = self.timeout if timeout is None else timeout
        logger.debug(f"Running command: {executable} ({len(args)} args, timeout={timeout}s)")

        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise NetworkError(f"{executable} timed out after {timeout}s", cause=e) from e
        except OSError as e:
            raise NetworkError(f"Failed to start {executable}: {e}", cause=e) from e

        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            if any(marker in stderr.lower() for marker in PERMISSION_MARKERS):
                raise PermissionDeniedError(f"{executable} was denied permission: {stderr}")
            raise NoDataError(f"{executable} exited with {result.returncode}: {stderr}")

        output = (result.stdout or "").rstrip()
        if not output:
            raise NoDataError(f"{executable} produced no output")

        return output
