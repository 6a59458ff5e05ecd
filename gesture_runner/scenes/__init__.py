"""
Game scenes for Gesture Runner.
"""

from .runner_scene import RunnerScene

__all__ = [
    'RunnerScene',
]
