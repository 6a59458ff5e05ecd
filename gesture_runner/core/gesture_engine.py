"""
Gesture Runner Gesture Engine
=============================
Camera capture, fingertip tracking and gesture classification for the runner.

Usage:
    from gesture_runner.core import GestureEngine

    with GestureEngine(sink=simulation) as engine:
        while playing:
            state = engine.update()      # classifies new frames, feeds the sink
            engine.render_pip(game_frame)

Camera capture and MediaPipe detection may run on a background thread, but the
thread only publishes the latest fingertip position. Classification and every
call into the sink happen inside ``update()``, on the caller's thread.
"""

import logging
import os
import threading
import time
import urllib.request
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

import cv2
import numpy as np

from .config import GestureConfig
from .gesture_classifier import CommandSink, Gesture, GestureClassifier

logger = logging.getLogger(__name__)


# =====================
# GESTURE STATE
# =====================
@dataclass
class GestureState:
    """
    Snapshot of the gesture pipeline after one ``update()``.
    This is what the game loop reads each tick.
    """
    # Time
    timestamp: float = 0.0
    delta_time: float = 0.0
    frame_count: int = 0

    # Tracking
    camera_available: bool = False
    hand_detected: bool = False
    hand_status: str = "Loading hand tracker…"

    # Fingertip position (normalized 0-1, camera orientation)
    fingertip_x: Optional[float] = None
    fingertip_y: Optional[float] = None

    # Gesture emitted during this update, if any
    gesture: Optional[Gesture] = None
    last_gesture: Optional[Gesture] = None

    # Classifier internals (anchor displacement, seconds until the next gesture may fire)
    displacement: Tuple[float, float] = (0.0, 0.0)
    cooldown_remaining: float = 0.0

    # Raw landmarks (for debug drawing)
    landmarks: Optional[Any] = None

    def fingertip_pixel(self, width: int, height: int) -> tuple:
        """Convert the normalized fingertip to pixel coordinates."""
        if self.fingertip_x is None:
            return None, None
        return int(self.fingertip_x * width), int(self.fingertip_y * height)


# =====================
# INTERNAL COMPONENTS
# =====================
class _HandTracker:
    """MediaPipe HandLandmarker wrapper returning the index fingertip."""

    def __init__(self, config: GestureConfig):
        import mediapipe as mp
        from mediapipe.tasks import python
        from mediapipe.tasks.python import vision

        self.config = config
        self._mp = mp

        if not os.path.exists(config.MODEL_PATH):
            logger.info("Downloading hand landmarker model to %s", config.MODEL_PATH)
            urllib.request.urlretrieve(config.MODEL_URL, config.MODEL_PATH)

        self.detector = vision.HandLandmarker.create_from_options(
            vision.HandLandmarkerOptions(
                base_options=python.BaseOptions(model_asset_path=config.MODEL_PATH),
                running_mode=vision.RunningMode.VIDEO,
                num_hands=1,
                min_hand_detection_confidence=config.MIN_DETECTION_CONFIDENCE,
                min_tracking_confidence=config.MIN_TRACKING_CONFIDENCE
            )
        )

    def detect(self, frame: np.ndarray, timestamp_ms: int) -> Tuple[Optional[Tuple[float, float]], Optional[Any]]:
        """Returns ((x, y), landmarks) for the first hand, or (None, None)."""
        rgb_frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        mp_image = self._mp.Image(image_format=self._mp.ImageFormat.SRGB, data=rgb_frame)
        results = self.detector.detect_for_video(mp_image, timestamp_ms)

        if not results.hand_landmarks:
            return None, None

        landmarks = results.hand_landmarks[0]
        tip = landmarks[self.config.FINGERTIP_LANDMARK]
        return (tip.x, tip.y), landmarks

    def close(self):
        self.detector.close()


# =====================
# GESTURE ENGINE
# =====================
class GestureEngine:
    """
    Landmark source plus classifier.

    If the camera or the hand model cannot be opened the engine stays usable:
    ``camera_available`` is False, the status says so, and ``update()`` simply
    never emits gestures. The game remains playable through its own
    start/restart entry points.
    """

    STATUS_LOADING = "Loading hand tracker…"
    STATUS_ACTIVE = "Tracking active"
    STATUS_UNAVAILABLE = "Camera blocked or unavailable"

    def __init__(self, config: GestureConfig = None, sink: Optional[CommandSink] = None,
                 threaded: bool = True, capture: Any = None, detector: Any = None,
                 clock: Callable[[], float] = time.monotonic):
        self.config = config or GestureConfig()
        self._threaded = threaded
        self._clock = clock
        self.classifier = GestureClassifier(self.config, sink)

        self.status = self.STATUS_LOADING
        self.camera_available = False

        # State
        self._frame_count = 0
        self._start_time = clock()
        self._last_time = self._start_time
        self._last_processed = None
        self._last_timestamp_ms = None
        self._tracker = None
        self._current_frame = None
        self._landmarks = None
        self._point = None
        self._hand_detected = False
        self._consumed_seq = 0

        # Latest detection published by the capture thread
        self._lock = threading.Lock()
        self._thread_result = None  # (frame, point, landmarks, seq)
        self._thread_running = False
        self._capture_thread = None

        # Event callbacks
        self._callbacks: Dict[str, List[Callable]] = {
            'gesture': [],
            'hand_found': [],
            'hand_lost': [],
        }

        self.cap = capture if capture is not None else cv2.VideoCapture(self.config.CAMERA_INDEX)
        if not self.cap.isOpened():
            logger.error("Cannot open camera %s", self.config.CAMERA_INDEX)
            self.status = self.STATUS_UNAVAILABLE
            return

        self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.config.CAMERA_WIDTH)
        self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.config.CAMERA_HEIGHT)

        try:
            self._tracker = detector if detector is not None else _HandTracker(self.config)
        except (OSError, RuntimeError) as e:
            logger.error("Hand tracker failed to load: %s", e)
            self.status = self.STATUS_UNAVAILABLE
            return

        self.camera_available = True
        self.status = self.STATUS_ACTIVE
        logger.info("Hand tracking active (camera %s, %d fps)", self.config.CAMERA_INDEX, self.config.MAX_FPS)

        if self._threaded:
            self._thread_running = True
            self._capture_thread = threading.Thread(target=self._capture_loop, daemon=True)
            self._capture_thread.start()

    def _frame_due(self, now: float) -> bool:
        """Throttle detection to MAX_FPS. A clock that went backwards counts as due."""
        if self._last_processed is not None:
            elapsed = now - self._last_processed
            if 0 <= elapsed < 1.0 / self.config.MAX_FPS:
                return False
        self._last_processed = now
        return True

    def _next_timestamp_ms(self, now: float) -> int:
        # VIDEO mode requires strictly increasing timestamps
        timestamp_ms = int((now - self._start_time) * 1000)
        if self._last_timestamp_ms is not None and timestamp_ms <= self._last_timestamp_ms:
            timestamp_ms = self._last_timestamp_ms + 1
        self._last_timestamp_ms = timestamp_ms
        return timestamp_ms

    def _tracking_failed(self, error: Exception):
        logger.error("Hand tracking stopped: %s", error)
        self.status = self.STATUS_UNAVAILABLE
        self._thread_running = False
        self.camera_available = False

    def _read_and_detect(self, now: float):
        """Read one frame and detect the fingertip. Returns None when nothing was read."""
        try:
            ret, frame = self.cap.read()
            if not ret:
                return None
            point, landmarks = self._tracker.detect(frame, self._next_timestamp_ms(now))
        except (cv2.error, OSError, RuntimeError, ValueError) as e:
            self._tracking_failed(e)
            return None
        return frame, point, landmarks

    def _capture_loop(self):
        """Background thread: capture frames and run detection."""
        seq = 0
        while self._thread_running:
            now = self._clock()
            if not self._frame_due(now):
                time.sleep(0.002)
                continue

            result = self._read_and_detect(now)
            if result is None:
                continue

            seq += 1
            frame, point, landmarks = result
            with self._lock:
                self._thread_result = (frame, point, landmarks, seq)

    @property
    def last_gesture(self) -> Optional[Gesture]:
        return self.classifier.last_gesture

    def set_sink(self, sink: Optional[CommandSink]):
        self.classifier.set_sink(sink)

    def on(self, event: str, callback: Callable):
        """
        Register a callback for an event.

        Events:
            - 'gesture': Called with (gesture, timestamp) on every emission
            - 'hand_found': Called with the GestureState when a hand appears
            - 'hand_lost': Called with the GestureState when the hand disappears
        """
        if event not in self._callbacks:
            raise ValueError(f"Unknown event '{event}'")
        if event == 'gesture':
            self.classifier.add_listener(callback)
        self._callbacks[event].append(callback)

    def _emit(self, event: str, state: GestureState):
        for callback in self._callbacks.get(event, []):
            callback(state)

    def update(self) -> GestureState:
        """
        Classify any newly processed frame and return the current state.

        Call this once per game tick. Each processed camera frame reaches the
        classifier exactly once.
        """
        current_time = self._clock()
        delta_time = max(0.0, current_time - self._last_time)
        self._last_time = current_time
        self._frame_count += 1

        gesture = None
        new_frame = None

        if self.camera_available:
            if self._threaded:
                with self._lock:
                    result = self._thread_result
                if result is not None and result[3] != self._consumed_seq:
                    self._consumed_seq = result[3]
                    new_frame = result[:3]
            elif self._frame_due(current_time):
                new_frame = self._read_and_detect(current_time)

        was_detected = self._hand_detected
        if new_frame is not None:
            frame, point, landmarks = new_frame
            self._current_frame = frame
            self._point = point
            self._landmarks = landmarks
            self._hand_detected = point is not None
            gesture = self.classifier.update(point, current_time)

        state = GestureState(
            timestamp=current_time,
            delta_time=delta_time,
            frame_count=self._frame_count,
            camera_available=self.camera_available,
            hand_detected=self._hand_detected,
            hand_status=self.classifier.hand_status if self.camera_available else self.status,
            fingertip_x=self._point[0] if self._point is not None else None,
            fingertip_y=self._point[1] if self._point is not None else None,
            gesture=gesture,
            last_gesture=self.classifier.last_gesture,
            displacement=self.classifier.displacement(),
            cooldown_remaining=self.classifier.cooldown_remaining(current_time),
            landmarks=self._landmarks,
        )

        if not was_detected and self._hand_detected:
            self._emit('hand_found', state)
        elif was_detected and not self._hand_detected:
            self._emit('hand_lost', state)

        return state

    def render_pip(self, game_frame: np.ndarray,
                   pip_width: int = 212, pip_height: int = 120,
                   padding: int = 10) -> np.ndarray:
        """
        Draw the mirrored camera preview in the bottom-right corner.

        Returns the game_frame (modified in place).
        """
        if self._current_frame is None:
            return game_frame

        pip_frame = cv2.flip(self._current_frame, 1)

        if self._point is not None:
            h, w = pip_frame.shape[:2]
            tip = (int((1.0 - self._point[0]) * w), int(self._point[1] * h))
            cv2.circle(pip_frame, tip, 6, (90, 90, 255), -1)

        pip_resized = cv2.resize(pip_frame, (pip_width, pip_height))

        h, w = game_frame.shape[:2]
        x = w - pip_width - padding
        y = h - pip_height - padding
        if x < 0 or y < 0:
            return game_frame

        cv2.rectangle(game_frame, (x - 2, y - 2),
                      (x + pip_width + 2, y + pip_height + 2),
                      (80, 80, 80), 2)
        game_frame[y:y + pip_height, x:x + pip_width] = pip_resized

        return game_frame

    def close(self):
        """Clean up resources."""
        if self._capture_thread is not None:
            self._thread_running = False
            self._capture_thread.join(timeout=1.0)
            self._capture_thread = None

        if self._tracker is not None and hasattr(self._tracker, 'close'):
            self._tracker.close()
        self.cap.release()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
