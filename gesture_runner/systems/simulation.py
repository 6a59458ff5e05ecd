"""
Runner Simulation
=================
Authoritative game state for the endless runner.

The simulation is deterministic given its random generator and the
(dt, timestamp) inputs it receives:

    sim = RunnerSimulation(1280, 720, rng=random.Random(7))
    sim.accept_gesture(Gesture.JUMP, t)     # WAITING -> RUNNING
    sim.update(dt)
    snapshot = sim.snapshot()

It implements the ``CommandSink`` protocol, so a ``GestureClassifier`` can
feed it directly.
"""

import logging
import math
import random
import time
from dataclasses import replace
from typing import Callable, Dict, List, Optional

from ..core.config import RunnerConfig
from ..core.gesture_classifier import Gesture
from .runner_state import (
    LANE_COUNT, Coin, Obstacle, Player, Rect, RunnerSnapshot, RunState, Theme, TrackGeometry
)

logger = logging.getLogger(__name__)


class RunnerSimulation:
    """Owns run state, player, obstacles and coins, and advances them per tick."""

    def __init__(self, width: int, height: int, theme: Theme = Theme.NORMAL,
                 rng: Optional[random.Random] = None, config: RunnerConfig = None,
                 clock: Callable[[], float] = time.monotonic):
        self.config = config or RunnerConfig()
        self.rng = rng or random.Random()
        self.theme = theme
        self._clock = clock

        self.geometry = TrackGeometry.from_viewport(width, height)
        self.player = Player()
        self.obstacles: List[Obstacle] = []
        self.coins: List[Coin] = []

        self.state = RunState.WAITING
        self.score = 0.0
        self.coin_count = 0
        self.obstacles_passed = 0
        self.speed = self.config.SPEED_START
        self.spawn_timer = 0.0
        self.next_spawn = 0.9
        self.last_event: Optional[str] = None
        self._next_coin_id = 0

        self._callbacks: Dict[str, List[Callable]] = {
            'state_changed': [],
            'coin_collected': [],
            'obstacle_spawned': [],
        }

        self._apply_layout()
        self.reset()

    # =====================
    # EVENTS
    # =====================
    def on(self, event: str, callback: Callable):
        """
        Register a callback.

        Events:
            - 'state_changed': callback(old_state, new_state)
            - 'coin_collected': callback(coin)
            - 'obstacle_spawned': callback(obstacle)
        """
        if event not in self._callbacks:
            raise ValueError(f"Unknown event '{event}'")
        self._callbacks[event].append(callback)

    def _emit(self, event: str, *args):
        for callback in self._callbacks[event]:
            callback(*args)

    def _set_state(self, new_state: RunState):
        old_state = self.state
        self.state = new_state
        if old_state != new_state:
            logger.info("Run state %s -> %s (score %d)", old_state.name, new_state.name, int(self.score))
            self.last_event = new_state.display_name
            self._emit('state_changed', old_state, new_state)

    # =====================
    # LIFECYCLE
    # =====================
    def reset(self):
        """Clear the run and put the player back in the middle lane."""
        g = self.geometry
        self.obstacles.clear()
        self.coins.clear()
        self.score = 0.0
        self.coin_count = 0
        self.obstacles_passed = 0
        self.speed = self.config.SPEED_START * g.scale
        self.spawn_timer = 0.0
        self.next_spawn = self.rng.uniform(self.config.SPAWN_MIN, self.config.SPAWN_MAX)
        self.last_event = None

        p = self.player
        p.lane = 1
        p.lane_target = 1
        p.x = g.lane_x(1)
        p.y = g.ground
        p.vy = 0.0
        p.on_ground = True
        p.sliding = False
        p.slide_time = 0.0
        p.last_action_time = -999.0

    def start(self):
        if self.state == RunState.RUNNING:
            return
        self.reset()
        self._set_state(RunState.RUNNING)

    def restart(self):
        self.reset()
        self._set_state(RunState.RUNNING)

    def game_over(self):
        if self.state != RunState.RUNNING:
            return
        self._set_state(RunState.GAME_OVER)

    def set_theme(self, theme: Theme):
        """Change the obstacle theme. Ignored mid-run."""
        if self.state == RunState.RUNNING:
            logger.debug("Theme change to %s ignored while running", theme.key)
            return
        self.theme = theme

    # =====================
    # GEOMETRY
    # =====================
    def _apply_layout(self):
        g = self.geometry
        p = self.player
        p.width = round(self.config.PLAYER_WIDTH * g.scale)
        p.stand_height = round(self.config.PLAYER_STAND_HEIGHT * g.scale)
        p.slide_height = round(self.config.PLAYER_SLIDE_HEIGHT * g.scale)

        # Never leave the player below the new ground line
        if p.on_ground:
            p.y = g.ground
            p.vy = 0.0
        else:
            p.y = min(p.y, g.ground)

    def resize(self, width: int, height: int):
        """Recompute track geometry for a new viewport size."""
        self.geometry = TrackGeometry.from_viewport(width, height)
        self._apply_layout()
        self.player.x = self.geometry.lane_x(self.player.lane_target)

        if self.state == RunState.WAITING:
            self.reset()

    def player_rect(self) -> Rect:
        return self.player.rect()

    def obstacle_rect(self, obstacle: Obstacle) -> Rect:
        return obstacle.rect(self.geometry)

    # =====================
    # COMMANDS
    # =====================
    def accept_gesture(self, gesture: Gesture, timestamp: Optional[float] = None):
        """Apply a gesture command. Commands the current state does not use are dropped."""
        # Raising the hand starts or restarts a run
        if gesture == Gesture.JUMP:
            if self.state == RunState.WAITING:
                self.start()
                return
            if self.state == RunState.GAME_OVER:
                self.restart()
                return

        if self.state != RunState.RUNNING:
            return

        if timestamp is None:
            timestamp = self._clock()

        if gesture == Gesture.MOVE_LEFT:
            self.move_lane(-1, timestamp)
        elif gesture == Gesture.MOVE_RIGHT:
            self.move_lane(1, timestamp)
        elif gesture == Gesture.JUMP:
            self.jump(timestamp)
        elif gesture == Gesture.SLIDE:
            self.slide(timestamp)

    def _can_act(self, timestamp: float) -> bool:
        # A timestamp behind the last action means the clock was reset
        elapsed = timestamp - self.player.last_action_time
        return elapsed < 0 or elapsed >= self.config.MIN_ACTION_INTERVAL

    def move_lane(self, direction: int, timestamp: float):
        if not self._can_act(timestamp):
            return
        p = self.player
        p.lane_target = max(0, min(LANE_COUNT - 1, p.lane_target + direction))
        p.last_action_time = timestamp

    def jump(self, timestamp: float):
        p = self.player
        if not self._can_act(timestamp) or not p.on_ground:
            return
        p.vy = -self.config.JUMP_VELOCITY * self.geometry.scale
        p.on_ground = False
        p.sliding = False
        p.slide_time = 0.0
        p.last_action_time = timestamp

    def slide(self, timestamp: float):
        p = self.player
        if not self._can_act(timestamp) or not p.on_ground:
            return
        p.sliding = True
        p.slide_time = self.config.SLIDE_DURATION
        p.last_action_time = timestamp

    # =====================
    # SPAWNING
    # =====================
    def spawn_obstacle(self):
        """Spawn one obstacle above the track, sometimes with a coin."""
        cfg = self.config
        g = self.geometry

        lane = self.rng.randrange(LANE_COUNT)
        kind = self.theme.pick_kind(self.rng.random())
        obstacle = Obstacle(lane=lane, y=g.top - cfg.OBSTACLE_SPAWN_OFFSET * g.scale, kind=kind)
        self.obstacles.append(obstacle)
        self._emit('obstacle_spawned', obstacle)

        if self.rng.random() < cfg.COIN_CHANCE:
            if self.rng.random() < cfg.COIN_SAME_LANE_CHANCE:
                coin_lane = lane
            else:
                coin_lane = self.rng.randrange(LANE_COUNT)
            self._next_coin_id += 1
            self.coins.append(Coin(lane=coin_lane, y=g.top - cfg.COIN_SPAWN_OFFSET * g.scale,
                                   id=self._next_coin_id))

    # =====================
    # UPDATE
    # =====================
    def update(self, dt: float):
        """Advance the run by ``dt`` seconds. Does nothing unless RUNNING."""
        if self.state != RunState.RUNNING:
            return

        cfg = self.config
        g = self.geometry
        p = self.player
        dt = max(0.0, min(cfg.MAX_DT, dt))

        self.speed = min(cfg.SPEED_MAX * g.scale, self.speed + cfg.SPEED_RAMP * g.scale * dt)
        self.score += dt * cfg.SCORE_RATE

        # Lane easing
        target_x = g.lane_x(p.lane_target)
        k = 1 - math.exp(-cfg.LANE_LERP * dt)
        p.x += (target_x - p.x) * k
        if abs(p.x - target_x) < cfg.LANE_SNAP_EPSILON:
            p.x = target_x
            p.lane = p.lane_target

        # Jump physics
        p.vy += cfg.GRAVITY * g.scale * dt
        p.y += p.vy * dt
        if p.y >= g.ground:
            p.y = g.ground
            p.vy = 0.0
            p.on_ground = True
        else:
            p.on_ground = False

        if p.sliding:
            p.slide_time -= dt
            if p.slide_time <= 0:
                p.sliding = False
                p.slide_time = 0.0

        self.spawn_timer += dt
        if self.spawn_timer >= self.next_spawn:
            self.spawn_timer = 0.0
            self.next_spawn = self.rng.uniform(cfg.SPAWN_MIN, cfg.SPAWN_MAX)
            self.spawn_obstacle()

        self._advance_entities(dt)
        self._check_collisions()
        self._collect_coins()

    def _advance_entities(self, dt: float):
        cfg = self.config
        g = self.geometry
        step = self.speed * dt

        obstacle_limit = g.height + cfg.OBSTACLE_EXIT_MARGIN * g.scale
        kept = []
        for obstacle in self.obstacles:
            obstacle.y += step
            if obstacle.y > obstacle_limit:
                continue
            if not obstacle.passed and obstacle.rect(g).y > g.ground:
                obstacle.passed = True
                self.obstacles_passed += 1
            kept.append(obstacle)
        self.obstacles[:] = kept

        coin_limit = g.height + cfg.COIN_EXIT_MARGIN * g.scale
        for coin in self.coins:
            coin.y += step
        self.coins[:] = [c for c in self.coins if c.y <= coin_limit]

    def _check_collisions(self):
        player_rect = self.player_rect()
        for obstacle in self.obstacles:
            if obstacle.passed:
                continue
            if player_rect.overlaps(self.obstacle_rect(obstacle)):
                logger.debug("Hit %s in lane %d", obstacle.kind.name, obstacle.lane)
                self.game_over()
                break

    def _collect_coins(self):
        cfg = self.config
        g = self.geometry
        player_rect = self.player_rect()
        radius = cfg.COIN_RADIUS * g.scale

        remaining = []
        for coin in self.coins:
            if player_rect.circle_overlaps(g.lane_x(coin.lane), coin.y, radius):
                self.coin_count += 1
                self.score += cfg.COIN_BONUS
                self._emit('coin_collected', coin)
            else:
                remaining.append(coin)
        self.coins[:] = remaining

    # =====================
    # SNAPSHOT
    # =====================
    def snapshot(self) -> RunnerSnapshot:
        """Copy of everything a renderer needs."""
        return RunnerSnapshot(
            state=self.state,
            theme=self.theme,
            geometry=self.geometry,
            player=replace(self.player),
            obstacles=tuple(replace(o) for o in self.obstacles),
            coins=tuple(replace(c) for c in self.coins),
            score=self.score,
            coin_count=self.coin_count,
            speed=self.speed,
            obstacles_passed=self.obstacles_passed,
            last_event=self.last_event,
        )
