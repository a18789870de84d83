"""
macOS specific platform implementation
"""

import logging
import sys

from .base import Platform

logger = logging.getLogger(__name__)

DEFAULTS_BIN = "/usr/bin/defaults"
OSASCRIPT_BIN = "/usr/bin/osascript"


class MacOSPlatform(Platform):
    """macOS support through `defaults` and `osascript`"""

    name = "macos"

    def detect(self) -> bool:
        """Detect if running on macOS"""
        return sys.platform == "darwin"

    def read_preference(self, domain: str, key: str) -> str:
        """Read a value with `defaults read <domain> <key>`"""
        return self.runner.run(DEFAULTS_BIN, ["read", domain, key])

    def run_script(self, script: str) -> str:
        """Run AppleScript source with `osascript -e`"""
        return self.runner.run(OSASCRIPT_BIN, ["-e", script])
