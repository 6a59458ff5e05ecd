"""
Game systems and data models for Gesture Runner.
"""

from .runner_state import (
    Coin, Obstacle, ObstacleKind, Player, Rect, RunnerSnapshot, RunState, Theme, TrackGeometry
)
from .simulation import RunnerSimulation

__all__ = [
    # State
    'Coin', 'Obstacle', 'ObstacleKind', 'Player', 'Rect',
    'RunnerSnapshot', 'RunState', 'Theme', 'TrackGeometry',
    # Simulation
    'RunnerSimulation',
]
