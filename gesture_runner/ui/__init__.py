"""
UI components and settings for Gesture Runner.
"""

from .debug_overlay import DebugOverlay
from .settings import ControlSettings, GameplaySettings, GameSettings, GraphicsSettings

__all__ = [
    'ControlSettings', 'GameplaySettings', 'GameSettings', 'GraphicsSettings',
    'DebugOverlay',
]
