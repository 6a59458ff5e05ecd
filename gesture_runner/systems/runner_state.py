"""
Runner State Module
===================
Data structures for the runner simulation.

These are just data plus small geometry helpers. All mutation happens in
``RunnerSimulation``; renderers only ever see a ``RunnerSnapshot``.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


LANE_COUNT = 3


# =====================================================
# ENUMS
# =====================================================

class RunState(Enum):
    """Top-level game state."""
    WAITING = ("Waiting", "Show your hand, then raise it to start")
    RUNNING = ("Running", "")
    GAME_OVER = ("Game Over", "Raise your hand to restart")

    def __init__(self, display_name: str, hint: str):
        self.display_name = display_name
        self.hint = hint


class ObstacleKind(Enum):
    """
    Obstacle kinds across all themes.

    Each kind carries its collision geometry at scale 1: width, height and
    lift. Lifted obstacles float above the ground and only hit standing players.
    """
    BARRIER = ("Barrier", 84, 78, 0)
    CONE = ("Cone", 52, 62, 0)
    OVERHEAD = ("Overhead", 150, 26, 92)
    TRAIN = ("Train", 122, 170, 0)
    LOG = ("Log", 84, 78, 0)
    ROCK = ("Rock", 52, 62, 0)
    VINE = ("Vine", 150, 26, 92)
    BOULDER = ("Boulder", 122, 170, 0)

    def __init__(self, display_name: str, width: float, height: float, lift: float):
        self.display_name = display_name
        self.base_width = width
        self.base_height = height
        self.base_lift = lift

    @property
    def lifted(self) -> bool:
        return self.base_lift > 0


# Cumulative spawn probabilities for a theme's four kinds, in declaration order
KIND_WEIGHTS = (0.42, 0.64, 0.83, 1.0)


class Theme(Enum):
    """Visual theme and the obstacle kinds it spawns."""
    NORMAL = ("normal", (ObstacleKind.BARRIER, ObstacleKind.CONE, ObstacleKind.OVERHEAD, ObstacleKind.TRAIN))
    CITY = ("city", (ObstacleKind.BARRIER, ObstacleKind.CONE, ObstacleKind.OVERHEAD, ObstacleKind.TRAIN))
    FOREST = ("forest", (ObstacleKind.LOG, ObstacleKind.ROCK, ObstacleKind.VINE, ObstacleKind.BOULDER))

    def __init__(self, key: str, kinds: tuple):
        self.key = key
        self.kinds = kinds

    @classmethod
    def from_name(cls, name: str) -> 'Theme':
        for theme in cls:
            if theme.key == name.lower():
                return theme
        raise ValueError(f"Unknown theme '{name}'")

    def pick_kind(self, r: float) -> ObstacleKind:
        """Map a uniform draw in [0, 1) to one of this theme's kinds."""
        for kind, limit in zip(self.kinds, KIND_WEIGHTS):
            if r < limit:
                return kind
        return self.kinds[-1]


# =====================================================
# GEOMETRY
# =====================================================

@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle, y grows downward."""
    x: float
    y: float
    w: float
    h: float

    @property
    def right(self) -> float:
        return self.x + self.w

    @property
    def bottom(self) -> float:
        return self.y + self.h

    def overlaps(self, other: 'Rect') -> bool:
        return (self.x < other.right and self.right > other.x and
                self.y < other.bottom and self.bottom > other.y)

    def circle_overlaps(self, cx: float, cy: float, radius: float) -> bool:
        """Closest-point test between this rectangle and a circle."""
        nearest_x = min(max(cx, self.x), self.right)
        nearest_y = min(max(cy, self.y), self.bottom)
        dx = cx - nearest_x
        dy = cy - nearest_y
        return dx * dx + dy * dy < radius * radius


@dataclass(frozen=True)
class TrackGeometry:
    """Track bounds derived from the viewport size."""
    width: int
    height: int
    scale: float
    top: int
    bottom: int
    left: int
    right: int

    @classmethod
    def from_viewport(cls, width: int, height: int) -> 'TrackGeometry':
        if width <= 0 or height <= 0:
            raise ValueError(f"Viewport must be positive, got {width}x{height}")

        scale = max(0.75, min(1.65, min(width, height) / 720))
        return cls(
            width=width,
            height=height,
            scale=scale,
            top=round(height * 0.14),
            bottom=round(height * 0.92),
            left=round(width * 0.24),
            right=round(width * 0.76),
        )

    @property
    def ground(self) -> int:
        return self.bottom

    def lane_x(self, lane: int) -> float:
        """Horizontal centre of a lane."""
        t = (1 + lane * 2) / (LANE_COUNT * 2)
        return self.left + (self.right - self.left) * t


# =====================================================
# ENTITIES
# =====================================================

@dataclass
class Player:
    """The runner. ``y`` is the feet position; ground is ``TrackGeometry.bottom``."""
    lane: int = 1
    lane_target: int = 1
    x: float = 0.0
    y: float = 0.0
    vy: float = 0.0
    on_ground: bool = True

    width: float = 56
    stand_height: float = 98
    slide_height: float = 58

    sliding: bool = False
    slide_time: float = 0.0

    # Far in the past so the first action is always accepted
    last_action_time: float = -999.0

    @property
    def height(self) -> float:
        return self.slide_height if self.sliding else self.stand_height

    def rect(self) -> Rect:
        h = self.height
        return Rect(self.x - self.width / 2, self.y - h, self.width, h)


@dataclass
class Obstacle:
    lane: int
    y: float
    kind: ObstacleKind
    passed: bool = False

    def rect(self, geometry: TrackGeometry) -> Rect:
        s = geometry.scale
        w = self.kind.base_width * s
        h = self.kind.base_height * s
        lift = self.kind.base_lift * s
        return Rect(geometry.lane_x(self.lane) - w / 2, self.y - lift - h, w, h)


@dataclass
class Coin:
    lane: int
    y: float
    id: int = 0


# =====================================================
# SNAPSHOT
# =====================================================

@dataclass(frozen=True)
class RunnerSnapshot:
    """Read-only view of the simulation handed to renderers."""
    state: RunState
    theme: Theme
    geometry: TrackGeometry
    player: Player
    obstacles: Tuple[Obstacle, ...]
    coins: Tuple[Coin, ...]
    score: float
    coin_count: int
    speed: float
    obstacles_passed: int = 0
    last_event: Optional[str] = None

    @property
    def display_score(self) -> int:
        return int(math.floor(self.score))
