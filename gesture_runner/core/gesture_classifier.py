"""
Gesture Classifier
==================
Turns a stream of normalized fingertip positions into discrete runner commands.

The classifier measures displacement from a slowly drifting anchor instead of
frame-to-frame deltas, so slow deliberate swipes accumulate into a trigger.
A cooldown keeps one sustained motion from firing repeatedly.

Usage:
    classifier = GestureClassifier(GestureConfig(), sink=simulation)

    for point, t in frames:            # point is (x, y) in 0..1, or None
        gesture = classifier.update(point, t)
"""

import logging
from enum import Enum
from typing import Callable, List, Optional, Protocol, Tuple, runtime_checkable

from .config import GestureConfig

logger = logging.getLogger(__name__)

Point = Tuple[float, float]


class Gesture(Enum):
    """Discrete commands the classifier can emit."""
    MOVE_LEFT = "LEFT"
    MOVE_RIGHT = "RIGHT"
    JUMP = "JUMP"
    SLIDE = "SLIDE"


@runtime_checkable
class CommandSink(Protocol):
    """Anything that can receive a classified gesture."""

    def accept_gesture(self, gesture: Gesture, timestamp: Optional[float] = None) -> None:
        ...


# =====================
# CLASSIFICATION
# =====================
def classify_movement(dx: float, dy: float, threshold: float,
                      axis_bias: float) -> Optional[Gesture]:
    """
    Classify an anchor-relative displacement.

    ``dx`` must already be in real-world orientation (unmirrored).
    Image y grows downward, so negative ``dy`` means the hand moved up.
    """
    ax = abs(dx)
    ay = abs(dy)

    horizontal_strong = ax > threshold and ax > ay * axis_bias
    vertical_strong = ay > threshold and ay > ax * axis_bias

    if horizontal_strong:
        return Gesture.MOVE_RIGHT if dx > 0 else Gesture.MOVE_LEFT

    if vertical_strong:
        return Gesture.JUMP if dy < 0 else Gesture.SLIDE

    # Neither axis dominates: horizontal wins ties
    if dx > threshold:
        return Gesture.MOVE_RIGHT
    if dx < -threshold:
        return Gesture.MOVE_LEFT
    if dy < -threshold:
        return Gesture.JUMP
    if dy > threshold:
        return Gesture.SLIDE

    return None


class GestureClassifier:
    """
    Stateful fingertip filter with anchor-based swipe detection.

    Call ``update()`` once per delivered landmark frame. At most one gesture
    is emitted per call; emitted gestures are forwarded to the sink and any
    registered listeners.
    """

    STATUS_NO_HAND = "Show one hand (index finger)"
    STATUS_HAND = "Hand detected (index finger)"

    def __init__(self, config: GestureConfig = None, sink: Optional[CommandSink] = None):
        self.config = config or GestureConfig()
        self._sink = sink
        self._listeners: List[Callable[[Gesture, float], None]] = []

        self.smoothed: Optional[Point] = None
        self.previous: Optional[Point] = None
        self.anchor: Optional[Point] = None
        self.anchor_time = 0.0
        self.last_emit_time: Optional[float] = None
        self.last_gesture: Optional[Gesture] = None
        self.hand_status = self.STATUS_NO_HAND

    def set_sink(self, sink: Optional[CommandSink]):
        """Replace the command sink (None disconnects it)."""
        self._sink = sink

    def add_listener(self, callback: Callable[[Gesture, float], None]):
        """Register a callback(gesture, timestamp) for every emission."""
        self._listeners.append(callback)

    @property
    def hand_present(self) -> bool:
        return self.smoothed is not None

    def displacement(self) -> Tuple[float, float]:
        """Current anchor-relative displacement in real-world orientation."""
        if self.smoothed is None or self.anchor is None:
            return 0.0, 0.0
        adx = self.smoothed[0] - self.anchor[0]
        ady = self.smoothed[1] - self.anchor[1]
        if self.config.MIRROR_X:
            adx = -adx
        return adx, ady

    def update(self, point: Optional[Point], now: float) -> Optional[Gesture]:
        """
        Process one landmark frame.

        Args:
            point: Normalized (x, y) fingertip position, or None when no hand
            now: Frame timestamp in seconds

        Returns:
            The emitted gesture, or None
        """
        config = self.config

        if point is None:
            if self.smoothed is not None:
                logger.debug("Hand lost, clearing classifier state")
            self._clear_tracking()
            self.hand_status = self.STATUS_NO_HAND
            return None

        self.hand_status = self.STATUS_HAND
        raw_x, raw_y = float(point[0]), float(point[1])

        if self.smoothed is None or self.previous is None:
            self.smoothed = (raw_x, raw_y)
            self.previous = (raw_x, raw_y)
            self.anchor = (raw_x, raw_y)
            self.anchor_time = now
            return None

        alpha = config.SMOOTHING_ALPHA
        sx, sy = self.smoothed
        self.smoothed = (sx + (raw_x - sx) * alpha, sy + (raw_y - sy) * alpha)

        adx, ady = self.displacement()
        gesture = classify_movement(adx, ady, config.MOVE_THRESHOLD, config.AXIS_BIAS)

        emitted = None
        if gesture is not None:
            if self._emit(gesture, now):
                emitted = gesture
        else:
            idle = now - self.anchor_time
            rate = config.ANCHOR_RECENTER_FAST if idle > config.ANCHOR_IDLE_TIME else config.ANCHOR_RECENTER_SLOW
            ax, ay = self.anchor
            sx, sy = self.smoothed
            self.anchor = (ax + (sx - ax) * rate, ay + (sy - ay) * rate)

        self.previous = self.smoothed
        return emitted

    def cooldown_remaining(self, now: float) -> float:
        """Seconds until another gesture may be emitted."""
        if self.last_emit_time is None:
            return 0.0
        elapsed = now - self.last_emit_time
        if elapsed < 0:
            return 0.0
        return max(0.0, self.config.GESTURE_COOLDOWN - elapsed)

    def _emit(self, gesture: Gesture, now: float) -> bool:
        """Emit if the cooldown allows it. Returns True when emitted."""
        if self.cooldown_remaining(now) > 0:
            return False

        self.last_emit_time = now
        self.last_gesture = gesture
        self.anchor = self.smoothed
        self.anchor_time = now

        logger.debug("Gesture %s at %.3f", gesture.value, now)

        if self._sink is not None:
            self._sink.accept_gesture(gesture, now)
        for callback in self._listeners:
            callback(gesture, now)
        return True

    def _clear_tracking(self):
        self.smoothed = None
        self.previous = None
        self.anchor = None
        self.anchor_time = 0.0

    def reset(self):
        """Forget the hand and the cooldown clock."""
        self._clear_tracking()
        self.last_emit_time = None
        self.last_gesture = None
        self.hand_status = self.STATUS_NO_HAND
