"""
Runner Scene
============
OpenCV renderer for the runner. Reads a ``RunnerSnapshot`` and never touches
the simulation itself.
"""

from typing import Dict, Optional, Tuple

import cv2
import numpy as np

from ..core.gesture_engine import GestureState
from ..systems.runner_state import ObstacleKind, RunnerSnapshot, RunState, Theme

Color = Tuple[int, int, int]

# BGR palettes per theme
THEME_COLORS: Dict[Theme, Dict[str, Color]] = {
    Theme.NORMAL: {
        'sky': (48, 24, 18), 'side': (70, 40, 30), 'road': (60, 52, 50),
        'edge': (255, 220, 70), 'lane': (120, 110, 110),
    },
    Theme.CITY: {
        'sky': (60, 30, 20), 'side': (90, 60, 45), 'road': (55, 55, 60),
        'edge': (255, 92, 124), 'lane': (140, 140, 150),
    },
    Theme.FOREST: {
        'sky': (30, 50, 25), 'side': (34, 68, 34), 'road': (33, 67, 101),
        'edge': (60, 120, 80), 'lane': (90, 120, 100),
    },
}

OBSTACLE_COLORS: Dict[ObstacleKind, Color] = {
    ObstacleKind.BARRIER: (40, 80, 230),
    ObstacleKind.CONE: (0, 140, 255),
    ObstacleKind.OVERHEAD: (200, 200, 60),
    ObstacleKind.TRAIN: (150, 90, 60),
    ObstacleKind.LOG: (30, 70, 120),
    ObstacleKind.ROCK: (120, 120, 120),
    ObstacleKind.VINE: (50, 160, 60),
    ObstacleKind.BOULDER: (90, 90, 100),
}

COIN_COLOR = (0, 215, 255)
PLAYER_COLOR = (255, 200, 90)
PLAYER_SLIDE_COLOR = (255, 140, 60)
TEXT_COLOR = (235, 235, 235)


class RunnerScene:
    """Draws the track, entities, HUD and state overlays."""

    def __init__(self, player_name: str = "Player"):
        self.font = cv2.FONT_HERSHEY_SIMPLEX
        self.player_name = player_name

    def render(self, frame: np.ndarray, snapshot: RunnerSnapshot,
               gesture_state: Optional[GestureState] = None):
        palette = THEME_COLORS[snapshot.theme]
        frame[:] = palette['sky']

        self._draw_track(frame, snapshot, palette)
        self._draw_coins(frame, snapshot)
        self._draw_obstacles(frame, snapshot)
        self._draw_player(frame, snapshot)
        self._draw_hud(frame, snapshot, gesture_state)

        if snapshot.state != RunState.RUNNING:
            self._draw_center_text(frame, snapshot)

    def _draw_track(self, frame: np.ndarray, snapshot: RunnerSnapshot, palette: Dict[str, Color]):
        g = snapshot.geometry
        cv2.rectangle(frame, (0, g.top), (g.left, g.height), palette['side'], -1)
        cv2.rectangle(frame, (g.right, g.top), (g.width, g.height), palette['side'], -1)
        cv2.rectangle(frame, (g.left, g.top), (g.right, g.bottom), palette['road'], -1)
        cv2.rectangle(frame, (g.left, g.top), (g.right, g.bottom), palette['edge'], 2)

        # Dashed lane dividers
        width = g.right - g.left
        dash = max(6, int(18 * g.scale))
        gap = max(6, int(22 * g.scale))
        for fraction in (2 / 6, 4 / 6):
            x = int(g.left + width * fraction)
            y = g.top + 18
            while y < g.bottom - 10:
                cv2.line(frame, (x, y), (x, min(y + dash, g.bottom - 10)), palette['lane'], 2)
                y += dash + gap

    def _draw_coins(self, frame: np.ndarray, snapshot: RunnerSnapshot):
        g = snapshot.geometry
        radius = max(2, int(14 * g.scale))
        for coin in snapshot.coins:
            center = (int(g.lane_x(coin.lane)), int(coin.y))
            cv2.circle(frame, center, radius, COIN_COLOR, -1)
            cv2.circle(frame, center, radius, (0, 0, 0), 1)

    def _draw_obstacles(self, frame: np.ndarray, snapshot: RunnerSnapshot):
        g = snapshot.geometry
        for obstacle in snapshot.obstacles:
            r = obstacle.rect(g)
            top_left = (int(r.x), int(r.y))
            bottom_right = (int(r.right), int(r.bottom))
            color = OBSTACLE_COLORS[obstacle.kind]

            if obstacle.kind in (ObstacleKind.CONE, ObstacleKind.ROCK):
                pts = np.array([
                    [int(r.x), int(r.bottom)],
                    [int(r.x + r.w / 2), int(r.y)],
                    [int(r.right), int(r.bottom)],
                ], np.int32)
                cv2.fillPoly(frame, [pts], color)
            else:
                cv2.rectangle(frame, top_left, bottom_right, color, -1)
                cv2.rectangle(frame, top_left, bottom_right, (20, 20, 20), 1)

            if obstacle.kind.lifted:
                # Posts down to the ground
                for post_x in (int(r.x) + 3, int(r.right) - 3):
                    cv2.line(frame, (post_x, int(r.bottom)), (post_x, int(obstacle.y)), (150, 150, 150), 2)

    def _draw_player(self, frame: np.ndarray, snapshot: RunnerSnapshot):
        p = snapshot.player
        r = p.rect()
        color = PLAYER_SLIDE_COLOR if p.sliding else PLAYER_COLOR
        cv2.rectangle(frame, (int(r.x), int(r.y)), (int(r.right), int(r.bottom)), color, -1)

        if not p.sliding:
            head_radius = int(p.width * 0.3)
            cv2.circle(frame, (int(p.x), int(r.y) - head_radius), head_radius, color, -1)

    def _draw_hud(self, frame: np.ndarray, snapshot: RunnerSnapshot,
                  gesture_state: Optional[GestureState]):
        font = self.font
        cv2.putText(frame, self.player_name, (15, 30), font, 0.6, PLAYER_COLOR, 2)
        cv2.putText(frame, f"Score: {snapshot.display_score}", (15, 58), font, 0.7, TEXT_COLOR, 2)
        cv2.putText(frame, f"Coins: {snapshot.coin_count}", (15, 86), font, 0.6, COIN_COLOR, 2)
        cv2.putText(frame, f"Speed: {snapshot.speed:.0f}", (15, 110), font, 0.45, TEXT_COLOR, 1)

        if gesture_state is not None:
            gesture = gesture_state.last_gesture.value if gesture_state.last_gesture else "-"
            cv2.putText(frame, f"Gesture: {gesture}", (15, 134), font, 0.45, TEXT_COLOR, 1)
            cv2.putText(frame, gesture_state.hand_status, (15, 156), font, 0.4, (170, 170, 170), 1)

    def _draw_center_text(self, frame: np.ndarray, snapshot: RunnerSnapshot):
        h, w = frame.shape[:2]
        font = self.font

        title = "GESTURE RUNNER" if snapshot.state == RunState.WAITING else "GAME OVER"
        (tw, _), _ = cv2.getTextSize(title, font, 1.2, 3)
        cv2.putText(frame, title, ((w - tw) // 2, h // 2 - 20), font, 1.2, TEXT_COLOR, 3)

        hint = snapshot.state.hint + "  (or press SPACE)"
        (tw, _), _ = cv2.getTextSize(hint, font, 0.55, 1)
        cv2.putText(frame, hint, ((w - tw) // 2, h // 2 + 20), font, 0.55, (200, 200, 200), 1)

        if snapshot.state == RunState.GAME_OVER:
            result = f"{self.player_name} scored {snapshot.display_score} ({snapshot.coin_count} coins)"
            (tw, _), _ = cv2.getTextSize(result, font, 0.7, 2)
            cv2.putText(frame, result, ((w - tw) // 2, h // 2 + 60), font, 0.7, COIN_COLOR, 2)
