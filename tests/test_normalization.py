import unittest

from repcoach.io.normalization import FrameTransform
from repcoach.vision.keypoints import Keypoint, Pose


class FrameTransformTests(unittest.TestCase):
    def test_normalized_size_swaps_dimensions_for_right_angles(self) -> None:
        transform = FrameTransform(width=1920, height=1080, rotation=90)
        self.assertEqual(transform.normalized_size, (1080, 1920))

    def test_point_roundtrip_for_90_degree_rotation(self) -> None:
        transform = FrameTransform(width=1920, height=1080, rotation=90)
        original = (100.0, 50.0)
        normalized = transform.to_normalized(original)
        self.assertEqual(normalized, (50.0, 1820.0))
        self.assertEqual(transform.to_original(normalized), original)

    def test_point_roundtrip_for_270_degree_rotation_with_mirror(self) -> None:
        transform = FrameTransform(width=1080, height=1920, rotation=270, mirror=True)
        original = (20.0, 30.0)
        restored = transform.to_original(transform.to_normalized(original))
        self.assertEqual(restored, original)

    def test_mirror_flips_x_only(self) -> None:
        transform = FrameTransform(width=640, height=480, mirror=True)
        self.assertEqual(transform.to_normalized((40.0, 100.0)), (600.0, 100.0))
        self.assertFalse(transform.is_identity)
        self.assertTrue(FrameTransform(width=640, height=480).is_identity)

    def test_normalize_poses_keeps_names_and_scores(self) -> None:
        transform = FrameTransform(width=100, height=200, rotation=180)
        pose = Pose(keypoints=(Keypoint(x=10.0, y=20.0, score=0.7, name="nose"),), score=0.5)
        (out,) = transform.normalize_poses([pose])
        self.assertEqual(out.keypoints[0], Keypoint(x=90.0, y=180.0, score=0.7, name="nose"))
        self.assertEqual(out.score, 0.5)
        self.assertEqual(transform.restore_poses([out])[0], pose)

    def test_invalid_rotation_raises(self) -> None:
        with self.assertRaises(ValueError):
            FrameTransform(width=100, height=200, rotation=45).to_normalized((0, 0))


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
