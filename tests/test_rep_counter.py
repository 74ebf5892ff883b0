import random
import unittest

from posegen import arm_pose, squat_pose

from repcoach.pipeline import ManualClock
from repcoach.repdetect.baseline import (
    ExerciseType,
    RepCounter,
    RepPhase,
    UnknownExerciseError,
)


class RepCounterTests(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = ManualClock(0.0)
        self.counter = RepCounter(ExerciseType.SQUAT, clock=self.clock)

    def feed(self, angle: float, frames: int = 3, dt: float = 0.1):
        state = None
        for _ in range(frames):
            self.clock.advance(dt)
            state = self.counter.update([squat_pose(angle)])
        return state

    def test_initial_state(self) -> None:
        state = self.counter.state()
        self.assertEqual((state.count, state.angle, state.state), (0, 0, RepPhase.IDLE))

    def test_full_squat_counts_one_rep(self) -> None:
        state = self.feed(175.0)
        self.assertEqual(state.state, RepPhase.IDLE)
        self.assertEqual(state.angle, 175)

        state = self.feed(60.0)
        self.assertEqual(state.state, RepPhase.DOWN)
        self.assertEqual(state.count, 0)

        state = self.feed(175.0)
        self.assertEqual(state.state, RepPhase.UP)
        self.assertEqual(state.count, 1)
        self.assertAlmostEqual(state.last_rep_time, self.clock.now)

    def test_crossings_inside_debounce_window_do_not_count(self) -> None:
        self.feed(175.0)
        self.feed(60.0)
        first = self.feed(175.0)
        self.assertEqual(first.count, 1)

        self.feed(60.0, dt=0.02)
        state = self.feed(175.0, dt=0.02)
        self.assertEqual(state.count, 1)
        self.assertEqual(state.state, RepPhase.DOWN)

        state = self.feed(175.0, frames=1, dt=0.5)
        self.assertEqual(state.count, 2)

    def test_angle_is_moving_average(self) -> None:
        self.clock.advance(1.0)
        self.counter.update([squat_pose(180.0)])
        state = self.counter.update([squat_pose(90.0)])
        self.assertEqual(state.angle, 135)

    def test_missing_or_low_confidence_joints_are_ignored(self) -> None:
        self.feed(175.0)
        before = self.counter.state()
        self.assertEqual(self.counter.update([squat_pose(60.0, omit=["right_ankle"])]), before)
        self.assertEqual(self.counter.update([squat_pose(60.0, score=0.4)]), before)

    def test_empty_update_is_idempotent(self) -> None:
        self.feed(175.0)
        self.feed(60.0)
        before = self.counter.state()
        for _ in range(5):
            self.clock.advance(1.0)
            self.assertEqual(self.counter.update([]), before)
        self.assertEqual(self.counter.state(), before)

    def test_returned_state_is_a_snapshot(self) -> None:
        state = self.feed(175.0)
        state.count = 99
        self.assertEqual(self.counter.state().count, 0)

    def test_count_is_monotonic_for_random_input(self) -> None:
        rng = random.Random(7)
        last = 0
        for _ in range(500):
            self.clock.advance(rng.uniform(0.0, 0.2))
            if rng.random() < 0.1:
                state = self.counter.update([])
            else:
                state = self.counter.update([squat_pose(rng.uniform(30.0, 180.0))])
            self.assertGreaterEqual(state.count, last)
            last = state.count

    def test_reset_and_set_exercise_return_to_idle(self) -> None:
        self.feed(175.0)
        self.feed(60.0)
        self.feed(175.0)

        self.counter.reset()
        state = self.counter.state()
        self.assertEqual((state.count, state.angle, state.state), (0, 0, RepPhase.IDLE))

        self.feed(60.0)
        self.counter.set_exercise("pushup")
        state = self.counter.state()
        self.assertEqual((state.count, state.angle, state.state), (0, 0, RepPhase.IDLE))
        self.assertEqual(self.counter.exercise, ExerciseType.PUSHUP)

    def test_pushup_accepts_a_single_visible_arm(self) -> None:
        self.counter.set_exercise(ExerciseType.PUSHUP)
        for angle in (170.0, 70.0, 70.0, 70.0, 170.0, 170.0, 170.0):
            self.clock.advance(0.2)
            state = self.counter.update([arm_pose(angle, sides=("left",))])
        self.assertEqual(state.count, 1)

    def test_bicep_curl_thresholds(self) -> None:
        self.counter.set_exercise(ExerciseType.BICEP_CURL)
        for angle in (160.0, 60.0, 60.0, 60.0):
            self.clock.advance(0.2)
            state = self.counter.update([arm_pose(angle)])
        self.assertEqual(state.state, RepPhase.IDLE)
        for angle in (30.0, 30.0, 30.0, 165.0, 165.0, 165.0):
            self.clock.advance(0.2)
            state = self.counter.update([arm_pose(angle)])
        self.assertEqual(state.count, 1)

    def test_parse_exercise_names(self) -> None:
        self.assertEqual(ExerciseType.parse("Bicep-Curl"), ExerciseType.BICEP_CURL)
        self.assertEqual(ExerciseType.parse(" squat "), ExerciseType.SQUAT)
        with self.assertRaises(UnknownExerciseError):
            ExerciseType.parse("deadlift")
        with self.assertRaises(ValueError):
            RepCounter("burpee")

    def test_exercise_name(self) -> None:
        self.assertEqual(self.counter.exercise_name, "Squat")
        self.counter.set_exercise("bicep_curl")
        self.assertEqual(self.counter.exercise_name, "Bicep curl")


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
