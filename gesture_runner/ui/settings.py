"""
Settings Module
================
Game settings stored as JSON.

Features:
- Gesture sensitivity and camera options
- Resolution and display settings
- Player name and theme
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from typing import Tuple

from ..core.config import GestureConfig
from ..systems.runner_state import Theme

logger = logging.getLogger(__name__)


@dataclass
class ControlSettings:
    """Settings for gesture input."""
    camera_index: int = 0
    detection_fps: int = 20               # Processed camera frames per second

    # Gesture sensitivity
    move_threshold: float = 0.045         # Anchor displacement to fire (0.02 - 0.1)
    gesture_cooldown: float = 0.22        # Seconds between gestures (0.1 - 0.6)
    axis_bias: float = 1.1                # Dominant axis ratio (1.0 - 2.0)
    mirror: bool = True                   # Preview is mirrored


@dataclass
class GraphicsSettings:
    """Settings for display."""
    resolution: Tuple[int, int] = (1280, 720)
    fullscreen: bool = False
    show_pip: bool = True                 # Camera preview in the corner
    max_fps: int = 60


@dataclass
class GameplaySettings:
    player_name: str = "Player"
    theme: str = "normal"                 # normal, city or forest


@dataclass
class GameSettings:
    """Complete game settings."""
    controls: ControlSettings = field(default_factory=ControlSettings)
    graphics: GraphicsSettings = field(default_factory=GraphicsSettings)
    game: GameplaySettings = field(default_factory=GameplaySettings)

    def save(self, path: str = "settings.json"):
        """Save settings to file."""
        data = {
            'controls': asdict(self.controls),
            'graphics': {
                **asdict(self.graphics),
                'resolution': list(self.graphics.resolution),
            },
            'game': asdict(self.game),
        }
        with open(path, 'w') as f:
            json.dump(data, f, indent=2)

    @classmethod
    def load(cls, path: str = "settings.json") -> 'GameSettings':
        """Load settings from file. Missing or broken files give defaults."""
        if not os.path.exists(path):
            return cls()

        try:
            with open(path, 'r') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Error loading settings from %s: %s", path, e)
            return cls()

        settings = cls()
        if not isinstance(data, dict):
            logger.warning("Ignoring settings file %s: expected an object", path)
            return settings

        for section in ('controls', 'graphics', 'game'):
            values = data.get(section)
            if not isinstance(values, dict):
                continue
            target = getattr(settings, section)
            for key, value in values.items():
                if key == 'resolution':
                    settings.graphics.resolution = tuple(value)
                elif hasattr(target, key):
                    setattr(target, key, value)

        return settings

    @property
    def theme(self) -> Theme:
        try:
            return Theme.from_name(self.game.theme)
        except ValueError:
            logger.warning("Unknown theme '%s', using normal", self.game.theme)
            return Theme.NORMAL

    def apply_to(self, config: GestureConfig) -> GestureConfig:
        """Copy control settings onto a GestureConfig instance."""
        c = self.controls
        config.CAMERA_INDEX = c.camera_index
        config.MAX_FPS = c.detection_fps
        config.MOVE_THRESHOLD = c.move_threshold
        config.GESTURE_COOLDOWN = c.gesture_cooldown
        config.AXIS_BIAS = c.axis_bias
        config.MIRROR_X = c.mirror
        return config
