"""
Test cases for the runner simulation: state machine, physics, spawning and collisions.
"""
import random
import time
import unittest

from gesture_runner.core.gesture_classifier import Gesture
from gesture_runner.systems.runner_state import (
    Coin, Obstacle, ObstacleKind, Rect, RunState, Theme, TrackGeometry
)
from gesture_runner.systems.simulation import RunnerSimulation

DT = 0.016
NO_SPAWN = 1e9


def running_sim(theme=Theme.NORMAL, seed=1):
    """A 1280x720 simulation already RUNNING with spawning disabled."""
    sim = RunnerSimulation(1280, 720, theme=theme, rng=random.Random(seed), clock=lambda: 0.0)
    sim.start()
    sim.next_spawn = NO_SPAWN
    return sim


class TestTrackGeometry(unittest.TestCase):

    def test_reference_viewport(self):
        g = TrackGeometry.from_viewport(1280, 720)
        self.assertEqual(g.scale, 1.0)
        self.assertEqual((g.top, g.bottom, g.left, g.right), (101, 662, 307, 973))
        self.assertAlmostEqual(g.lane_x(0), 418.0)
        self.assertAlmostEqual(g.lane_x(1), 640.0)
        self.assertAlmostEqual(g.lane_x(2), 862.0)

    def test_bounds_and_scale_clamp(self):
        for w, h in [(320, 240), (800, 600), (1920, 1080), (5000, 4000), (300, 2000)]:
            g = TrackGeometry.from_viewport(w, h)
            self.assertLess(g.left, g.right)
            self.assertLess(g.top, g.bottom)
            self.assertGreaterEqual(g.scale, 0.75)
            self.assertLessEqual(g.scale, 1.65)

        self.assertEqual(TrackGeometry.from_viewport(320, 240).scale, 0.75)
        self.assertEqual(TrackGeometry.from_viewport(5000, 4000).scale, 1.65)

    def test_invalid_viewport(self):
        with self.assertRaises(ValueError):
            TrackGeometry.from_viewport(0, 720)


class TestRect(unittest.TestCase):

    def test_identical_rects_overlap(self):
        r = Rect(10, 20, 30, 40)
        self.assertTrue(r.overlaps(Rect(10, 20, 30, 40)))

    def test_touching_edges_do_not_overlap(self):
        r = Rect(10, 20, 30, 40)
        self.assertFalse(r.overlaps(Rect(40, 20, 30, 40)))
        self.assertFalse(r.overlaps(Rect(10, 60, 30, 40)))
        self.assertFalse(r.overlaps(Rect(41, 61, 5, 5)))

    def test_circle_closest_point(self):
        r = Rect(0, 0, 10, 10)
        self.assertTrue(r.circle_overlaps(5, 5, 1))
        self.assertTrue(r.circle_overlaps(12, 5, 3))
        self.assertFalse(r.circle_overlaps(13, 13, 3))


class TestThemes(unittest.TestCase):

    def test_from_name(self):
        self.assertEqual(Theme.from_name("forest"), Theme.FOREST)
        self.assertEqual(Theme.from_name("CITY"), Theme.CITY)
        with self.assertRaises(ValueError):
            Theme.from_name("desert")

    def test_weighted_kind_selection(self):
        self.assertEqual(Theme.CITY.pick_kind(0.0), ObstacleKind.BARRIER)
        self.assertEqual(Theme.CITY.pick_kind(0.5), ObstacleKind.CONE)
        self.assertEqual(Theme.CITY.pick_kind(0.7), ObstacleKind.OVERHEAD)
        self.assertEqual(Theme.FOREST.pick_kind(0.9), ObstacleKind.BOULDER)
        self.assertEqual(Theme.NORMAL.kinds, Theme.CITY.kinds)

    def test_lifted_kinds(self):
        self.assertTrue(ObstacleKind.OVERHEAD.lifted)
        self.assertTrue(ObstacleKind.VINE.lifted)
        self.assertFalse(ObstacleKind.TRAIN.lifted)


class TestStateMachine(unittest.TestCase):

    def setUp(self):
        self.sim = RunnerSimulation(1280, 720, rng=random.Random(3), clock=lambda: 0.0)

    def test_starts_waiting(self):
        self.assertEqual(self.sim.state, RunState.WAITING)
        self.assertEqual(self.sim.player.lane_target, 1)
        self.assertTrue(self.sim.player.on_ground)

    def test_waiting_ignores_directional_commands(self):
        for gesture in (Gesture.MOVE_LEFT, Gesture.MOVE_RIGHT, Gesture.SLIDE):
            self.sim.accept_gesture(gesture, 1.0)
        self.assertEqual(self.sim.state, RunState.WAITING)
        self.assertEqual(self.sim.player.lane_target, 1)
        self.assertFalse(self.sim.player.sliding)

    def test_jump_starts_run(self):
        self.sim.accept_gesture(Gesture.JUMP, 1.0)
        self.assertEqual(self.sim.state, RunState.RUNNING)
        # Starting does not also jump
        self.assertTrue(self.sim.player.on_ground)

    def test_update_ignored_unless_running(self):
        self.sim.update(DT)
        self.assertEqual(self.sim.score, 0.0)

    def test_game_over_and_restart(self):
        changes = []
        self.sim.on('state_changed', lambda old, new: changes.append((old, new)))

        self.sim.start()
        self.sim.score = 123.0
        self.sim.game_over()
        self.assertEqual(self.sim.state, RunState.GAME_OVER)

        self.sim.accept_gesture(Gesture.SLIDE, 5.0)
        self.assertEqual(self.sim.state, RunState.GAME_OVER)

        self.sim.accept_gesture(Gesture.JUMP, 6.0)
        self.assertEqual(self.sim.state, RunState.RUNNING)
        self.assertEqual(self.sim.score, 0.0)

        self.assertEqual(changes, [
            (RunState.WAITING, RunState.RUNNING),
            (RunState.RUNNING, RunState.GAME_OVER),
            (RunState.GAME_OVER, RunState.RUNNING),
        ])

    def test_start_is_noop_while_running(self):
        self.sim.start()
        self.sim.score = 50.0
        self.sim.start()
        self.assertEqual(self.sim.score, 50.0)

    def test_game_over_only_from_running(self):
        self.sim.game_over()
        self.assertEqual(self.sim.state, RunState.WAITING)

    def test_reset_state(self):
        self.sim.start()
        self.sim.obstacles.append(Obstacle(lane=0, y=10.0, kind=ObstacleKind.CONE))
        self.sim.coins.append(Coin(lane=0, y=10.0))
        self.sim.player.lane_target = 2
        self.sim.restart()

        self.assertEqual(self.sim.obstacles, [])
        self.assertEqual(self.sim.coins, [])
        self.assertEqual(self.sim.speed, 620.0)
        self.assertEqual(self.sim.player.lane_target, 1)
        self.assertEqual(self.sim.player.last_action_time, -999.0)
        self.assertGreaterEqual(self.sim.next_spawn, 0.52)
        self.assertLessEqual(self.sim.next_spawn, 1.05)

    def test_set_theme_ignored_while_running(self):
        self.sim.set_theme(Theme.FOREST)
        self.assertEqual(self.sim.theme, Theme.FOREST)
        self.sim.start()
        self.sim.set_theme(Theme.CITY)
        self.assertEqual(self.sim.theme, Theme.FOREST)


class TestPlayerCommands(unittest.TestCase):

    def setUp(self):
        self.sim = running_sim()

    def test_lane_clamped(self):
        for i in range(5):
            self.sim.accept_gesture(Gesture.MOVE_LEFT, 1.0 + i)
        self.assertEqual(self.sim.player.lane_target, 0)

        for i in range(5):
            self.sim.accept_gesture(Gesture.MOVE_RIGHT, 10.0 + i)
        self.assertEqual(self.sim.player.lane_target, 2)

    def test_action_debounce(self):
        self.sim.accept_gesture(Gesture.MOVE_RIGHT, 1.0)
        self.sim.accept_gesture(Gesture.MOVE_RIGHT, 1.1)
        self.assertEqual(self.sim.player.lane_target, 2)

        self.sim.accept_gesture(Gesture.MOVE_LEFT, 1.1)
        self.assertEqual(self.sim.player.lane_target, 2)

        self.sim.accept_gesture(Gesture.MOVE_LEFT, 1.2)
        self.assertEqual(self.sim.player.lane_target, 1)

    def test_debounce_survives_clock_reset(self):
        self.sim.accept_gesture(Gesture.MOVE_RIGHT, 500.0)
        # Timestamps restart far behind the last action
        self.sim.accept_gesture(Gesture.MOVE_LEFT, 2.0)
        self.assertEqual(self.sim.player.lane_target, 1)

    def test_default_clock_is_monotonic(self):
        sim = RunnerSimulation(1280, 720)
        self.assertIs(sim._clock, time.monotonic)

    def test_jump_and_land(self):
        p = self.sim.player
        ground = self.sim.geometry.ground

        self.sim.accept_gesture(Gesture.JUMP, 1.0)
        self.assertFalse(p.on_ground)
        self.assertLess(p.vy, 0)
        self.assertGreater(abs(p.vy), 0)

        landed_at = None
        for i in range(200):
            self.sim.update(DT)
            self.assertLessEqual(p.y, ground)
            if p.on_ground:
                landed_at = i
                break

        self.assertIsNotNone(landed_at)
        self.assertEqual(p.y, ground)
        self.assertEqual(p.vy, 0.0)
        self.assertGreater(landed_at, 10)

    def test_jump_requires_ground(self):
        self.sim.accept_gesture(Gesture.JUMP, 1.0)
        self.sim.update(DT)
        vy = self.sim.player.vy
        self.sim.accept_gesture(Gesture.JUMP, 2.0)
        self.assertEqual(self.sim.player.vy, vy)

    def test_jump_cancels_slide(self):
        self.sim.accept_gesture(Gesture.SLIDE, 1.0)
        self.assertTrue(self.sim.player.sliding)
        self.sim.accept_gesture(Gesture.JUMP, 1.5)
        self.assertFalse(self.sim.player.sliding)

    def test_slide_expires(self):
        p = self.sim.player
        self.sim.accept_gesture(Gesture.SLIDE, 1.0)
        self.assertTrue(p.sliding)
        self.assertEqual(p.slide_time, 0.55)
        self.assertEqual(p.rect().h, p.slide_height)

        for _ in range(40):
            self.sim.update(DT)
        self.assertFalse(p.sliding)
        self.assertEqual(p.slide_time, 0.0)
        self.assertEqual(p.rect().h, p.stand_height)


class TestWorld(unittest.TestCase):

    def setUp(self):
        self.sim = running_sim()
        self.ground = self.sim.geometry.ground

    def test_speed_and_score(self):
        self.sim.update(DT)
        self.assertAlmostEqual(self.sim.speed, 620.0 + 26.0 * DT)
        self.assertAlmostEqual(self.sim.score, 12.0 * DT)

        self.sim.speed = 1549.99
        self.sim.update(DT)
        self.assertEqual(self.sim.speed, 1550.0)

    def test_large_dt_is_clamped(self):
        self.sim.update(1.0)
        self.assertAlmostEqual(self.sim.score, 12.0 * 0.034)

    def test_spawn(self):
        spawned = []
        self.sim.on('obstacle_spawned', spawned.append)
        self.sim.next_spawn = 0.5
        self.sim.spawn_timer = 0.49

        self.sim.update(DT)

        self.assertEqual(len(self.sim.obstacles), 1)
        self.assertEqual(spawned, self.sim.obstacles)
        self.assertEqual(self.sim.spawn_timer, 0.0)
        self.assertTrue(0.52 <= self.sim.next_spawn <= 1.05)

        o = self.sim.obstacles[0]
        self.assertIn(o.kind, Theme.NORMAL.kinds)
        self.assertIn(o.lane, (0, 1, 2))
        expected_y = self.sim.geometry.top - 140 + self.sim.speed * DT
        self.assertAlmostEqual(o.y, expected_y)

    def test_forest_spawns_forest_kinds(self):
        sim = running_sim(theme=Theme.FOREST, seed=11)
        for _ in range(50):
            sim.spawn_obstacle()
        self.assertTrue(all(o.kind in Theme.FOREST.kinds for o in sim.obstacles))
        for coin in sim.coins:
            self.assertIn(coin.lane, (0, 1, 2))
        self.assertGreater(len(sim.coins), 0)
        self.assertLess(len(sim.coins), 50)

    def test_entities_culled_below_viewport(self):
        self.sim.obstacles.append(Obstacle(lane=0, y=720 + 219.0, kind=ObstacleKind.CONE))
        self.sim.coins.append(Coin(lane=2, y=720 + 159.0, id=1))
        self.sim.update(DT)

        self.assertEqual(self.sim.obstacles, [])
        self.assertEqual(self.sim.coins, [])

    def test_passed_marker(self):
        self.sim.obstacles.append(Obstacle(lane=0, y=self.ground + 79.0, kind=ObstacleKind.BARRIER))
        self.sim.update(DT)
        self.assertTrue(self.sim.obstacles[0].passed)
        self.assertEqual(self.sim.obstacles_passed, 1)

    def test_overlapping_obstacle_ends_run(self):
        self.sim.obstacles.append(Obstacle(lane=1, y=float(self.ground), kind=ObstacleKind.BARRIER))
        self.sim.update(DT)
        self.assertEqual(self.sim.state, RunState.GAME_OVER)

    def sized_like(self, kind):
        """Give the player the collision box of an obstacle kind."""
        p = self.sim.player
        p.width = kind.base_width
        p.stand_height = kind.base_height

    def test_exact_rect_match_ends_run(self):
        self.sized_like(ObstacleKind.BARRIER)
        obstacle = Obstacle(lane=1, y=float(self.ground), kind=ObstacleKind.BARRIER)
        self.sim.obstacles.append(obstacle)
        self.assertEqual(self.sim.obstacle_rect(obstacle), self.sim.player_rect())

        # A zero-length tick leaves both boxes where they are
        self.sim.update(0.0)
        self.assertEqual(self.sim.obstacle_rect(obstacle), self.sim.player_rect())
        self.assertEqual(self.sim.state, RunState.GAME_OVER)

    def test_offset_rect_is_safe(self):
        self.sized_like(ObstacleKind.BARRIER)
        # One lane over and one pixel above the player's head
        obstacle = Obstacle(lane=2, y=self.ground - ObstacleKind.BARRIER.base_height - 1.0,
                            kind=ObstacleKind.BARRIER)
        self.sim.obstacles.append(obstacle)

        player = self.sim.player_rect()
        hit = self.sim.obstacle_rect(obstacle)
        self.assertGreater(hit.x, player.right)
        self.assertLess(hit.bottom, player.y)

        self.sim.update(0.0)
        self.assertEqual(self.sim.state, RunState.RUNNING)

    def test_obstacle_in_other_lane_is_safe(self):
        self.sim.obstacles.append(Obstacle(lane=0, y=float(self.ground), kind=ObstacleKind.BARRIER))
        self.sim.obstacles.append(Obstacle(lane=2, y=float(self.ground), kind=ObstacleKind.TRAIN))
        self.sim.update(DT)
        self.assertEqual(self.sim.state, RunState.RUNNING)

    def test_slide_under_overhead(self):
        self.sim.accept_gesture(Gesture.SLIDE, 1.0)
        self.sim.obstacles.append(Obstacle(lane=1, y=float(self.ground), kind=ObstacleKind.OVERHEAD))
        self.sim.update(DT)
        self.assertEqual(self.sim.state, RunState.RUNNING)

    def test_standing_hits_overhead(self):
        self.sim.obstacles.append(Obstacle(lane=1, y=float(self.ground), kind=ObstacleKind.VINE))
        self.sim.update(DT)
        self.assertEqual(self.sim.state, RunState.GAME_OVER)

    def test_coin_collected_once(self):
        collected = []
        self.sim.on('coin_collected', collected.append)
        self.sim.coins.append(Coin(lane=1, y=600.0, id=42))

        self.sim.update(DT)
        self.assertEqual(self.sim.coin_count, 1)
        self.assertAlmostEqual(self.sim.score, 12.0 * DT + 55)
        self.assertEqual([c.id for c in collected], [42])
        self.assertEqual(self.sim.snapshot().coins, ())

        self.sim.update(DT)
        self.assertEqual(self.sim.coin_count, 1)
        self.assertEqual(len(collected), 1)

    def test_coin_in_other_lane_stays(self):
        self.sim.coins.append(Coin(lane=0, y=600.0, id=1))
        self.sim.update(DT)
        self.assertEqual(self.sim.coin_count, 0)
        self.assertEqual(len(self.sim.coins), 1)

    def test_snapshot_is_a_copy(self):
        self.sim.obstacles.append(Obstacle(lane=0, y=10.0, kind=ObstacleKind.ROCK))
        snap = self.sim.snapshot()
        snap.player.lane_target = 0
        snap.obstacles[0].y = 999.0

        self.assertEqual(self.sim.player.lane_target, 1)
        self.assertEqual(self.sim.obstacles[0].y, 10.0)
        self.assertEqual(snap.state, RunState.RUNNING)


class TestResize(unittest.TestCase):

    def test_grounded_player_follows_ground(self):
        sim = running_sim()
        sim.resize(1280, 600)
        self.assertEqual(sim.player.y, sim.geometry.ground)
        self.assertEqual(sim.player.x, sim.geometry.lane_x(1))
        self.assertEqual(sim.state, RunState.RUNNING)

    def test_airborne_player_clamped(self):
        sim = running_sim()
        sim.accept_gesture(Gesture.JUMP, 1.0)
        for _ in range(3):
            sim.update(DT)
        y_before = sim.player.y

        sim.resize(800, 300)
        self.assertLessEqual(sim.player.y, sim.geometry.ground)
        self.assertEqual(sim.player.y, min(y_before, sim.geometry.ground))
        self.assertFalse(sim.player.on_ground)

    def test_resize_while_waiting_resets(self):
        sim = RunnerSimulation(1280, 720, rng=random.Random(5))
        sim.resize(1920, 1080)
        self.assertEqual(sim.geometry.scale, 1.5)
        self.assertAlmostEqual(sim.speed, 620.0 * 1.5)
        self.assertEqual(sim.player.width, 84)

    def test_resize_keeps_run_state(self):
        sim = running_sim()
        sim.score = 77.0
        sim.resize(1920, 1080)
        self.assertEqual(sim.score, 77.0)
        self.assertEqual(sim.speed, 620.0)


if __name__ == '__main__':
    unittest.main()
