"""
DockWidgets - External state polling and arbitration for dock-side widgets
"""

__version__ = "0.1.0"

from .controller import DockWidgetsController

__all__ = ["DockWidgetsController"]
