"""
Debug overlay - toggle with D.

Shows what the classifier sees: the anchor displacement plotted against the
trigger threshold, the cooldown still running, and the recent event log.
"""

from typing import List, Tuple

import cv2
import numpy as np

from ..core.config import GestureConfig
from ..core.gesture_engine import GestureState

PANEL_WIDTH = 250
PANEL_HEIGHT = 350
PLOT_SIZE = 120

# Displacement plot covers +/- this many thresholds in each direction
PLOT_RANGE = 2.5


class DebugOverlay:
    """Classifier internals and recent gesture / game events."""

    MAX_EVENTS = 8

    def __init__(self, config: GestureConfig = None):
        self.config = config or GestureConfig()
        self.enabled = False
        self.events: List[Tuple[float, str]] = []

    def toggle(self):
        self.enabled = not self.enabled

    def log(self, msg: str, t: float):
        self.events.append((t, msg))
        if len(self.events) > self.MAX_EVENTS:
            self.events.pop(0)

    def update(self, state: GestureState):
        if state.gesture is not None:
            self.log(state.gesture.value, state.timestamp)

    def render(self, frame: np.ndarray, state: GestureState):
        if not self.enabled:
            return

        h, w = frame.shape[:2]
        x0 = w - PANEL_WIDTH - 10
        y0 = 10
        if x0 < 0 or y0 + PANEL_HEIGHT > h:
            return

        overlay = frame.copy()
        cv2.rectangle(overlay, (x0, y0), (x0 + PANEL_WIDTH, y0 + PANEL_HEIGHT), (20, 20, 20), -1)
        cv2.addWeighted(overlay, 0.8, frame, 0.2, 0, frame)

        font = cv2.FONT_HERSHEY_SIMPLEX
        x = x0 + 10
        cv2.putText(frame, "DEBUG [D]", (x, y0 + 20), font, 0.5, (0, 255, 255), 1)

        color = (0, 255, 0) if state.hand_detected else (0, 0, 255)
        cv2.putText(frame, state.hand_status, (x, y0 + 42), font, 0.4, color, 1)

        self._draw_displacement(frame, state, x, y0 + 55)
        y = self._draw_cooldown(frame, state, x, y0 + 55 + PLOT_SIZE + 20)

        cv2.putText(frame, "Events:", (x, y), font, 0.45, (200, 200, 200), 1)
        y += 18
        for evt_t, evt_msg in reversed(self.events[-5:]):
            age = state.timestamp - evt_t
            alpha = max(0.3, 1.0 - age / 3.0)
            col = tuple(int(c * alpha) for c in (150, 255, 150))
            cv2.putText(frame, f"  {evt_msg}", (x, y), font, 0.35, col, 1)
            y += 16

    def _draw_displacement(self, frame: np.ndarray, state: GestureState, x: int, y: int):
        """Anchor-relative displacement, with the threshold square in the middle."""
        threshold = self.config.MOVE_THRESHOLD
        half = PLOT_SIZE // 2
        cx, cy = x + half, y + half
        px_per_unit = half / (threshold * PLOT_RANGE)

        cv2.rectangle(frame, (x, y), (x + PLOT_SIZE, y + PLOT_SIZE), (90, 90, 90), 1)
        cv2.line(frame, (cx, y), (cx, y + PLOT_SIZE), (60, 60, 60), 1)
        cv2.line(frame, (x, cy), (x + PLOT_SIZE, cy), (60, 60, 60), 1)

        t = int(threshold * px_per_unit)
        cv2.rectangle(frame, (cx - t, cy - t), (cx + t, cy + t), (0, 200, 255), 1)

        dx, dy = state.displacement
        px = int(np.clip(cx + dx * px_per_unit, x, x + PLOT_SIZE))
        py = int(np.clip(cy + dy * px_per_unit, y, y + PLOT_SIZE))
        outside = abs(dx) > threshold or abs(dy) > threshold
        cv2.line(frame, (cx, cy), (px, py), (200, 200, 200), 1)
        cv2.circle(frame, (px, py), 4, (0, 0, 255) if outside else (0, 255, 0), -1)

        font = cv2.FONT_HERSHEY_SIMPLEX
        cv2.putText(frame, f"dx {dx:+.3f}", (x + PLOT_SIZE + 8, y + 20), font, 0.35, (180, 180, 180), 1)
        cv2.putText(frame, f"dy {dy:+.3f}", (x + PLOT_SIZE + 8, y + 38), font, 0.35, (180, 180, 180), 1)
        cv2.putText(frame, f"thr {threshold:.3f}", (x + PLOT_SIZE + 8, y + 56), font, 0.35, (0, 200, 255), 1)

    def _draw_cooldown(self, frame: np.ndarray, state: GestureState, x: int, y: int) -> int:
        """Cooldown bar; returns the next free row."""
        cooldown = self.config.GESTURE_COOLDOWN
        bar_width = PANEL_WIDTH - 20
        remaining = min(max(state.cooldown_remaining, 0.0), cooldown)
        filled = int(bar_width * remaining / cooldown) if cooldown > 0 else 0

        cv2.putText(frame, f"Cooldown {remaining * 1000:.0f} ms", (x, y), cv2.FONT_HERSHEY_SIMPLEX,
                    0.4, (200, 200, 200), 1)
        cv2.rectangle(frame, (x, y + 6), (x + bar_width, y + 16), (80, 80, 80), 1)
        if filled > 0:
            cv2.rectangle(frame, (x, y + 6), (x + filled, y + 16), (0, 140, 255), -1)
        return y + 40
