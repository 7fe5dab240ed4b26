import unittest

import cv2
import numpy as np

from ar_detector.errors import ImageDecodeError, InvalidInputError
from ar_detector.letterbox import LetterboxConfig, letterbox, letterbox_geometry
from ar_detector.orientation import CaptureOrientation, rotate_for_capture
from ar_detector.preprocess import decode_image, preprocess_image


class TestLetterbox(unittest.TestCase):
    def test_landscape_720p_geometry(self) -> None:
        geom = letterbox_geometry(1280, 720, 640)
        self.assertEqual(geom.scale, 0.5)
        self.assertEqual(geom.resized_size, (640, 360))
        self.assertEqual(geom.pad, (0, 140))

    def test_square_input_is_untouched(self) -> None:
        img = np.random.default_rng(1).integers(0, 256, size=(64, 64, 3), dtype=np.uint8)
        lb = letterbox(img, size=64)
        self.assertEqual(lb.scale, 1.0)
        self.assertEqual(lb.pad, (0, 0))
        self.assertTrue(np.array_equal(lb.image, img))

    def test_odd_padding_goes_to_bottom(self) -> None:
        img = np.full((33, 64, 3), 200, dtype=np.uint8)
        lb = letterbox(img, size=64)
        self.assertEqual(lb.pad, (0, 15))
        self.assertEqual(lb.image.shape, (64, 64, 3))
        self.assertTrue(np.all(lb.image[:15] == 0))
        self.assertTrue(np.all(lb.image[15:48] == 200))
        self.assertTrue(np.all(lb.image[48:] == 0))

    def test_small_image_is_upscaled(self) -> None:
        img = np.full((16, 32, 3), 255, dtype=np.uint8)
        lb = letterbox(img, size=64)
        self.assertEqual(lb.scale, 2.0)
        self.assertEqual(lb.resized_size, (64, 32))
        self.assertEqual(lb.pad, (0, 16))

    def test_rejects_non_image(self) -> None:
        with self.assertRaises(InvalidInputError):
            letterbox(np.zeros((10, 10), dtype=np.uint8), size=64)
        with self.assertRaises(InvalidInputError):
            letterbox_geometry(0, 10, 64)


class TestPreprocessImage(unittest.TestCase):
    def test_720p_frame(self) -> None:
        img = np.full((720, 1280, 3), 255, dtype=np.uint8)
        prep = preprocess_image(img, LetterboxConfig(size=640))
        self.assertEqual(prep.tensor.shape, (3 * 640 * 640,))
        self.assertEqual(prep.tensor.dtype, np.float32)
        self.assertEqual(prep.scale, 0.5)
        self.assertEqual(prep.resized_size, (640, 360))
        self.assertEqual((prep.pad_x, prep.pad_y), (0, 140))
        self.assertEqual(prep.orig_size, (1280, 720))
        self.assertGreaterEqual(float(prep.tensor.min()), 0.0)
        self.assertLessEqual(float(prep.tensor.max()), 1.0)

        planes = prep.as_nchw()[0]
        self.assertEqual(planes.shape, (3, 640, 640))
        self.assertTrue(np.all(planes[:, :140, :] == 0.0))
        self.assertTrue(np.all(planes[:, 140:500, :] == 1.0))
        self.assertTrue(np.all(planes[:, 500:, :] == 0.0))

    def test_channel_planar_layout(self) -> None:
        n = 32
        img = np.zeros((n, n, 3), dtype=np.uint8)
        img[5, 3] = (255, 51, 0)
        prep = preprocess_image(img, LetterboxConfig(size=n))
        idx = 5 * n + 3
        self.assertEqual(prep.scale, 1.0)
        self.assertEqual(prep.pad, (0, 0))
        self.assertAlmostEqual(float(prep.tensor[idx]), 1.0)
        self.assertAlmostEqual(float(prep.tensor[n * n + idx]), 0.2, places=6)
        self.assertAlmostEqual(float(prep.tensor[2 * n * n + idx]), 0.0)
        self.assertEqual(int(np.count_nonzero(prep.tensor)), 2)

    def test_output_length_for_arbitrary_sizes(self) -> None:
        for w, h in [(1, 1), (17, 300), (641, 480), (99, 100)]:
            img = np.random.default_rng(w).integers(0, 256, size=(h, w, 3), dtype=np.uint8)
            prep = preprocess_image(img, LetterboxConfig(size=64))
            self.assertEqual(prep.tensor.size, 3 * 64 * 64)
            self.assertTrue(np.all((prep.tensor >= 0.0) & (prep.tensor <= 1.0)))

    def test_rejects_grayscale(self) -> None:
        with self.assertRaises(InvalidInputError):
            preprocess_image(np.zeros((10, 10, 1), dtype=np.uint8), LetterboxConfig(size=64))


    def test_pad_color_fills_the_border(self) -> None:
        img = np.zeros((20, 40, 3), dtype=np.uint8)
        prep = preprocess_image(img, LetterboxConfig(size=40, color=(255, 0, 0)))
        planes = prep.as_nchw()[0]
        self.assertEqual(prep.pad, (0, 10))
        self.assertTrue(np.all(planes[0, :10, :] == 1.0))
        self.assertTrue(np.all(planes[1:, :10, :] == 0.0))
        self.assertTrue(np.all(planes[:, 10:30, :] == 0.0))


class TestLetterboxConfig(unittest.TestCase):
    def test_defaults(self) -> None:
        cfg = LetterboxConfig()
        self.assertEqual((cfg.size, cfg.color), (640, (0, 0, 0)))

    def test_color_is_normalized_to_tuple(self) -> None:
        self.assertEqual(LetterboxConfig(size=32, color=[114, 114, 114]).color, (114, 114, 114))

    def test_rejects_bad_values(self) -> None:
        for kwargs in ({"size": 0}, {"size": -5}, {"color": (0, 0)}, {"color": (0, 0, 256)}, {"color": (0, -1, 0)}):
            with self.subTest(kwargs=kwargs):
                with self.assertRaises(ValueError):
                    LetterboxConfig(**kwargs)


class TestDecodeImage(unittest.TestCase):
    def test_png_decodes_to_rgb(self) -> None:
        bgr = np.zeros((20, 30, 3), dtype=np.uint8)
        bgr[:, :, 0] = 255  # blue in OpenCV order
        ok, buf = cv2.imencode(".png", bgr)
        self.assertTrue(ok)
        rgb = decode_image(buf.tobytes())
        self.assertEqual(rgb.shape, (20, 30, 3))
        self.assertTrue(np.all(rgb[:, :, 2] == 255))
        self.assertTrue(np.all(rgb[:, :, 0] == 0))

    def test_garbage_bytes(self) -> None:
        with self.assertRaises(ImageDecodeError):
            decode_image(b"definitely not a jpeg")

    def test_empty_bytes(self) -> None:
        with self.assertRaises(ImageDecodeError):
            decode_image(b"")


class TestRotateForCapture(unittest.TestCase):
    def test_quarter_turn_swaps_axes(self) -> None:
        img = np.zeros((20, 30, 3), dtype=np.uint8)
        self.assertEqual(rotate_for_capture(img, CaptureOrientation.ROTATE_90).shape, (30, 20, 3))
        self.assertEqual(rotate_for_capture(img, CaptureOrientation.ROTATE_270).shape, (30, 20, 3))
        self.assertEqual(rotate_for_capture(img, CaptureOrientation.ROTATE_180).shape, (20, 30, 3))
        self.assertIs(rotate_for_capture(img, CaptureOrientation.ROTATE_0), img)

    def test_clockwise_direction(self) -> None:
        img = np.zeros((2, 3, 3), dtype=np.uint8)
        img[0, 0] = 255  # top-left
        rotated = rotate_for_capture(img, CaptureOrientation.ROTATE_90)
        self.assertTrue(np.all(rotated[0, 1] == 255))  # top-right after a clockwise turn


if __name__ == "__main__":
    unittest.main()
