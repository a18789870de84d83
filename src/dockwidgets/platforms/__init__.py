"""
Platform abstraction for the external sources the probes sample
"""

from typing import Optional

from .base import Platform
from .macos import MacOSPlatform
from .runner import CommandRunner


def detect_platform(runner: Optional[CommandRunner] = None) -> Optional[Platform]:
    """Auto-detect the current platform"""
    platforms = [
        MacOSPlatform(runner),
    ]

    for platform in platforms:
        if platform.detect():
            return platform

    # No supported platform; probes fall back to safe defaults
    return None


__all__ = [
    "CommandRunner",
    "Platform",
    "MacOSPlatform",
    "detect_platform",
]
