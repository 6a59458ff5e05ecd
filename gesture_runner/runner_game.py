"""
Gesture Runner
==============
Endless runner controlled with one index finger.

Controls:
- Swipe left/right: change lane
- Swipe up: jump (also starts / restarts a run)
- Swipe down: slide
- SPACE: start / restart
- T: cycle theme (while not running)
- C: toggle camera preview
- D: toggle debug overlay
- Q / ESC: quit
"""

import logging
import random
import time
from typing import Optional

import cv2
import numpy as np

from .core import GestureConfig, GestureEngine, TickLoop
from .scenes import RunnerScene
from .systems import RunnerSimulation, RunState, Theme
from .ui import DebugOverlay, GameSettings

logger = logging.getLogger(__name__)


class RunnerGame:
    """Host application: wires camera, classifier, simulation and renderer together."""

    def __init__(self, settings: GameSettings = None, title: str = "Gesture Runner",
                 seed: Optional[int] = None):
        self.settings = settings or GameSettings.load()
        self.title = title
        self.width, self.height = self.settings.graphics.resolution
        self.show_pip = self.settings.graphics.show_pip

        self.simulation = RunnerSimulation(
            self.width, self.height,
            theme=self.settings.theme,
            rng=random.Random(seed),
        )

        config = self.settings.apply_to(GestureConfig())
        self.engine = GestureEngine(config, sink=self.simulation)

        self.scene = RunnerScene(self.settings.game.player_name)
        self.debug = DebugOverlay(config)
        self.simulation.on('state_changed',
                           lambda old, new: self.debug.log(new.display_name, time.monotonic()))

        self.loop = TickLoop(self.tick, max_fps=self.settings.graphics.max_fps,
                             max_dt=self.simulation.config.MAX_DT)
        self._frame = np.zeros((self.height, self.width, 3), dtype=np.uint8)

    def handle_key(self, key: int):
        if key in (27, ord('q')):
            self.loop.cancel()
        elif key == ord(' '):
            if self.simulation.state == RunState.WAITING:
                self.simulation.start()
            else:
                self.simulation.restart()
        elif key == ord('t'):
            themes = list(Theme)
            current = themes.index(self.simulation.theme)
            self.simulation.set_theme(themes[(current + 1) % len(themes)])
        elif key == ord('c'):
            self.show_pip = not self.show_pip
        elif key == ord('d'):
            self.debug.toggle()

    def _sync_window_size(self):
        """Forward window size changes to the simulation between ticks."""
        try:
            _, _, w, h = cv2.getWindowImageRect(self.title)
        except cv2.error:
            return
        if w <= 0 or h <= 0 or (w, h) == (self.width, self.height):
            return

        self.width, self.height = w, h
        self.simulation.resize(w, h)
        self._frame = np.zeros((h, w, 3), dtype=np.uint8)
        logger.debug("Viewport resized to %dx%d", w, h)

    def tick(self, dt: float, now: float) -> bool:
        key = cv2.waitKey(1) & 0xFF
        if key != 0xFF:
            self.handle_key(key)
        if self.loop.cancelled:
            return False

        if self.settings.graphics.fullscreen:
            self._sync_window_size()

        gesture_state = self.engine.update()
        self.debug.update(gesture_state)

        self.simulation.update(dt)

        frame = self._frame
        self.scene.render(frame, self.simulation.snapshot(), gesture_state)
        if self.show_pip:
            self.engine.render_pip(frame)
        self.debug.render(frame, gesture_state)

        cv2.imshow(self.title, frame)
        if cv2.getWindowProperty(self.title, cv2.WND_PROP_VISIBLE) < 1:
            return False
        return True

    def run(self):
        cv2.namedWindow(self.title, cv2.WINDOW_NORMAL)
        cv2.resizeWindow(self.title, self.width, self.height)
        if self.settings.graphics.fullscreen:
            cv2.setWindowProperty(self.title, cv2.WND_PROP_FULLSCREEN, cv2.WINDOW_FULLSCREEN)

        if not self.engine.camera_available:
            logger.warning("%s - press SPACE to play without gestures", self.engine.status)

        try:
            self.loop.run()
        finally:
            self.engine.close()
            cv2.destroyAllWindows()


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    print("=" * 50)
    print("GESTURE RUNNER")
    print("=" * 50)
    print("Controls (index finger):")
    print("  • Swipe Left/Right: Change lane")
    print("  • Swipe Up: Jump / Start / Restart")
    print("  • Swipe Down: Slide")
    print("Keys: SPACE start, T theme, C camera, D debug, Q quit")
    print("=" * 50)

    game = RunnerGame()
    game.run()

    print(f"\nFinal score: {game.simulation.snapshot().display_score}")


if __name__ == "__main__":
    main()
