"""
Gesture Runner

An endless runner controlled with index-finger swipes tracked by MediaPipe.
"""

__version__ = "0.1.0"

from .core import Gesture, GestureClassifier, GestureConfig, RunnerConfig, TickLoop
from .systems import RunnerSimulation, RunState, Theme

__all__ = [
    "Gesture",
    "GestureClassifier",
    "GestureConfig",
    "RunnerConfig",
    "TickLoop",
    "RunnerSimulation",
    "RunState",
    "Theme",
]
