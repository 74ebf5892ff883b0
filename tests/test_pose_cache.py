import tempfile
import unittest
from pathlib import Path

from repcoach.config import PoseConfig
from repcoach.vision import cache
from repcoach.vision.keypoints import Keypoint, Pose


class PoseRecordingTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.dir = Path(self.tmp.name)

    def test_recording_roundtrip(self) -> None:
        path = cache.recording_path(self.dir, "session1", PoseConfig())
        frames = [
            cache.PoseFrame(
                frame_index=0,
                timestamp=0.0,
                poses=[Pose(keypoints=(Keypoint(x=1.5, y=2.5, score=0.9, name="left_knee"),), score=0.8)],
            ),
            cache.PoseFrame(
                frame_index=1,
                timestamp=0.05,
                poses=[Pose(keypoints=(Keypoint(x=3.0, y=4.0),))],
            ),
            cache.PoseFrame(frame_index=2, timestamp=0.1, poses=[]),
        ]

        cache.save_pose_frames(path, frames)
        loaded = list(cache.load_pose_frames(path))
        self.assertEqual(frames, loaded)

    def test_blank_lines_are_skipped(self) -> None:
        path = self.dir / "blank.jsonl"
        path.write_text('\n{"frame_index": 0, "timestamp": 0.0, "poses": []}\n\n', encoding="utf-8")
        self.assertEqual(len(list(cache.load_pose_frames(path))), 1)

    def test_malformed_lines_raise_recording_error(self) -> None:
        path = self.dir / "bad.jsonl"
        path.write_text('{"frame_index": 0}\n', encoding="utf-8")
        with self.assertRaises(cache.RecordingError):
            list(cache.load_pose_frames(path))

        path.write_text("not json\n", encoding="utf-8")
        with self.assertRaises(cache.RecordingError):
            list(cache.load_pose_frames(path))

    def test_refuses_to_overwrite_when_asked(self) -> None:
        path = cache.save_pose_frames(self.dir / "rec.jsonl", [])
        with self.assertRaises(FileExistsError):
            cache.save_pose_frames(path, [], overwrite=False)

    def test_recording_filename_uses_pose_cache_key(self) -> None:
        pose_config = PoseConfig(model_complexity=2, smooth_landmarks=False)
        fname = cache.recording_filename("abc", pose_config)
        self.assertTrue(fname.startswith("abc_"))
        self.assertTrue(pose_config.cache_key() in fname)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
