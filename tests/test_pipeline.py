"""
Test cases for the frame analysis worker with a fake detector.
"""
import threading
import unittest
import sys
from pathlib import Path
from typing import List

import numpy as np

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from bionic_arm.image_utils import frame_from_bgr
from bionic_arm.pipeline import FrameAnalyzer
from bionic_arm.serial_link import SerialLinkManager
from bionic_arm.serial_mock import MockSerialPlatform
from bionic_arm.types import AnalysisResult, Landmark

TIMEOUT = 5.0

DUMMY_HAND = [Landmark(0.5, 0.5, 0.0)] * 21


class FakeDetector:
    """Returns a fixed set of hands and records the images it saw."""

    def __init__(self, hands=None, error=None):
        self.hands = [DUMMY_HAND] if hands is None else hands
        self.error = error
        self.shapes = []

    def detect(self, image):
        self.shapes.append(image.shape)
        if self.error is not None:
            raise self.error
        return self.hands


def make_frame(width=64, height=48, **kwargs):
    return frame_from_bgr(np.full((height, width, 3), 128, dtype=np.uint8), **kwargs)


class TestAnalyze(unittest.TestCase):
    """Test synchronous analysis of one frame."""

    def setUp(self):
        self.results: List[AnalysisResult] = []

    def make_analyzer(self, detector, link=None):
        analyzer = FrameAnalyzer(detector, self.results.append, link=link)
        self.addCleanup(analyzer.close)
        return analyzer

    def test_result_dimensions_after_rotation(self):
        """Test that the result reports the rotated image size."""
        analyzer = self.make_analyzer(FakeDetector())
        result = analyzer.analyze(make_frame(rotation_degrees=90))

        self.assertEqual((result.image_width, result.image_height), (48, 64))
        self.assertEqual(len(result.hands), 1)
        self.assertEqual(analyzer.detector.shapes, [(64, 48, 3)])

    def test_degenerate_hand_extensions(self):
        """Test that a hand collapsed to one point gives all-zero extensions."""
        result = self.make_analyzer(FakeDetector()).analyze(make_frame())
        self.assertEqual(result.extensions.index, 0.0)
        self.assertEqual(result.extensions.thumb, 0.0)

    def test_no_hands(self):
        """Test that an empty detection gives no extensions."""
        result = self.make_analyzer(FakeDetector(hands=[])).analyze(make_frame())
        self.assertEqual(result.hands, [])
        self.assertIsNone(result.extensions)

    def test_detector_failure(self):
        """Test that a detector exception yields an empty result at the rotated size."""
        analyzer = self.make_analyzer(FakeDetector(error=RuntimeError("model crashed")))
        result = analyzer.analyze(make_frame(rotation_degrees=90))

        self.assertEqual(result.hands, [])
        self.assertEqual((result.image_width, result.image_height), (48, 64))
        self.assertIsNone(result.extensions)

    def test_prepare_failure(self):
        """Test that a frame that cannot be prepared yields an empty result at raw size."""
        detector = FakeDetector()
        result = self.make_analyzer(detector).analyze(make_frame(rotation_degrees=45))

        self.assertEqual(result.hands, [])
        self.assertEqual((result.image_width, result.image_height), (64, 48))
        self.assertEqual(detector.shapes, [])

    def test_sends_when_connected(self):
        """Test that extensions reach a connected link."""
        platform = MockSerialPlatform()
        link = SerialLinkManager(platform)
        self.addCleanup(link.close)
        link.connect().result(TIMEOUT)

        self.make_analyzer(FakeDetector(), link=link).analyze(make_frame())
        link.wait_idle(TIMEOUT)

        self.assertEqual(platform.last_port.lines, ["T:0,I:0,M:0,R:0,P:0\n"])

    def test_no_send_when_disconnected(self):
        """Test that nothing is opened or written without a connection."""
        platform = MockSerialPlatform()
        link = SerialLinkManager(platform)
        self.addCleanup(link.close)

        self.make_analyzer(FakeDetector(), link=link).analyze(make_frame())
        link.wait_idle(TIMEOUT)

        self.assertEqual(platform.ports, [])


class TestSubmit(unittest.TestCase):
    """Test the asynchronous analysis worker."""

    def setUp(self):
        self.results: List[AnalysisResult] = []

    def test_submit_delivers_result(self):
        """Test that a submitted frame produces one result."""
        analyzer = FrameAnalyzer(FakeDetector(), self.results.append)
        self.addCleanup(analyzer.close)

        analyzer.submit(make_frame())
        analyzer.wait_idle(TIMEOUT)

        self.assertEqual(len(self.results), 1)
        self.assertEqual(analyzer.frames_analyzed, 1)

    def test_only_latest_frame_analyzed(self):
        """Test that frames arriving during a slow analysis are replaced."""
        started = threading.Event()
        release = threading.Event()
        seen = []

        class SlowDetector:
            def detect(self, image):
                seen.append(int(image[0, 0, 0]))
                if not started.is_set():
                    started.set()
                    release.wait(TIMEOUT)
                return []

        analyzer = FrameAnalyzer(SlowDetector(), self.results.append)
        self.addCleanup(analyzer.close)

        frames = [frame_from_bgr(np.full((16, 16, 3), v, dtype=np.uint8)) for v in (40, 120, 200)]
        analyzer.submit(frames[0])
        self.assertTrue(started.wait(TIMEOUT))
        analyzer.submit(frames[1])
        analyzer.submit(frames[2])
        release.set()
        analyzer.wait_idle(TIMEOUT)

        self.assertEqual(len(seen), 2)
        self.assertLess(abs(seen[0] - 40), 4)
        self.assertLess(abs(seen[1] - 200), 4)
        self.assertEqual(analyzer.dropped_frames, 1)
        self.assertEqual(len(self.results), 2)

    def test_submit_after_close(self):
        """Test that frames submitted after close are ignored."""
        analyzer = FrameAnalyzer(FakeDetector(), self.results.append)
        analyzer.close()
        analyzer.close()
        self.assertIsNone(analyzer.submit(make_frame()))
        self.assertEqual(self.results, [])


if __name__ == '__main__':
    unittest.main()
