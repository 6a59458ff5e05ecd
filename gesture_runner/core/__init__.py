"""
Core engine components for Gesture Runner.
"""

from .config import GestureConfig, RunnerConfig
from .gesture_classifier import CommandSink, Gesture, GestureClassifier, classify_movement
from .gesture_engine import GestureEngine, GestureState
from .game_loop import TickLoop

__all__ = [
    'GestureConfig',
    'RunnerConfig',
    'CommandSink',
    'Gesture',
    'GestureClassifier',
    'classify_movement',
    'GestureEngine',
    'GestureState',
    'TickLoop',
]
