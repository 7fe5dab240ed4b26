import unittest

from ar_detector.display import display_scale, map_all_to_display, map_to_display
from ar_detector.orientation import CaptureOrientation
from ar_detector.types import DetectionResult


def _result(x, y, w, h, src_w, src_h) -> DetectionResult:
    return DetectionResult(
        x=x,
        y=y,
        width=w,
        height=h,
        confidence=0.9,
        class_id=0,
        label="person",
        source_image_width=src_w,
        source_image_height=src_h,
    )


class TestMapToDisplay(unittest.TestCase):
    def test_portrait_capture_swaps_source_axes(self) -> None:
        r = _result(100, 50, 40, 80, src_w=720, src_h=1280)
        scale_x, scale_y = display_scale(r, 360, 640)
        self.assertEqual(scale_x, 0.28125)
        self.assertAlmostEqual(scale_y, 640 / 720)

        rect = map_to_display(r, 360, 640)
        self.assertAlmostEqual(rect.x, 28.125)
        self.assertAlmostEqual(rect.y, 44.444444, places=5)
        self.assertAlmostEqual(rect.width, 11.25)
        self.assertAlmostEqual(rect.height, 71.111111, places=5)

    def test_quarter_turns_agree(self) -> None:
        r = _result(100, 50, 40, 80, src_w=720, src_h=1280)
        self.assertEqual(
            map_to_display(r, 360, 640, CaptureOrientation.ROTATE_90),
            map_to_display(r, 360, 640, CaptureOrientation.ROTATE_270),
        )

    def test_unrotated_capture_keeps_axes(self) -> None:
        r = _result(100, 50, 40, 80, src_w=1280, src_h=720)
        rect = map_to_display(r, 640, 360, CaptureOrientation.ROTATE_0)
        self.assertEqual((rect.x, rect.y, rect.width, rect.height), (50.0, 25.0, 20.0, 40.0))
        self.assertEqual(map_to_display(r, 640, 360, CaptureOrientation.ROTATE_180), rect)

    def test_invalid_source_size(self) -> None:
        with self.assertRaises(ValueError):
            map_to_display(_result(0, 0, 1, 1, src_w=0, src_h=100), 360, 640)

    def test_map_all_preserves_order(self) -> None:
        results = [_result(10 * i, 0, 5, 5, src_w=720, src_h=1280) for i in range(3)]
        rects = map_all_to_display(results, 360, 640)
        self.assertEqual([r.x for r in rects], [0.0, 2.8125, 5.625])


if __name__ == "__main__":
    unittest.main()
