"""
Test cases for finger extension estimation with synthetic hands.
"""
import unittest
import sys
from pathlib import Path
from typing import List

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from bionic_arm.fingers import (
    distance,
    extract_finger_extensions,
    finger_extension,
    hand_extensions,
    thumb_extension,
    INDEX_JOINTS,
)
from bionic_arm.types import FingerExtensions, Landmark


def make_open_hand() -> List[Landmark]:
    """
    Create a synthetic open right hand, palm facing the camera.

    All four fingers point straight up with evenly spaced joints and the
    thumb reaches out to the side.
    """
    hand = [Landmark(0.5, 0.9, 0.0)]  # wrist
    hand += [
        Landmark(0.40, 0.80, 0.0),  # thumb cmc
        Landmark(0.35, 0.70, 0.0),  # thumb mcp
        Landmark(0.30, 0.60, 0.0),  # thumb ip
        Landmark(0.25, 0.50, 0.0),  # thumb tip
    ]
    for x in (0.42, 0.50, 0.58, 0.66):
        hand += [Landmark(x, y, 0.0) for y in (0.60, 0.50, 0.40, 0.30)]
    return hand


class TestDistance(unittest.TestCase):
    """Test landmark distance."""

    def test_distance_uses_depth(self):
        """Test that z contributes to the distance."""
        self.assertAlmostEqual(distance(Landmark(0, 0, 0), Landmark(0, 0, 0.5)), 0.5)

    def test_distance_3d(self):
        """Test a 3-4-12 style distance."""
        self.assertAlmostEqual(distance(Landmark(0, 0, 0), Landmark(0.3, 0.4, 1.2)), 1.3)


class TestThumbExtension(unittest.TestCase):
    """Test the wrist-relative thumb reach ratio."""

    def setUp(self):
        self.hand = make_open_hand()

    def test_open_thumb(self):
        """Test that a reaching thumb is well extended."""
        # tip->wrist = 0.4717, mcp->wrist = 0.25
        self.assertAlmostEqual(thumb_extension(self.hand), 88.68, places=1)

    def test_degenerate_thumb(self):
        """Test that a thumb MCP on top of the wrist gives 0."""
        self.hand[2] = self.hand[0]
        self.assertEqual(thumb_extension(self.hand), 0.0)

    def test_tucked_thumb_clamps_to_zero(self):
        """Test that a tip closer to the wrist than the MCP clamps to 0."""
        self.hand[4] = Landmark(0.45, 0.85, 0.0)
        self.assertEqual(thumb_extension(self.hand), 0.0)

    def test_far_thumb_clamps_to_hundred(self):
        """Test that a very long reach clamps to 100."""
        self.hand[4] = Landmark(-1.0, -1.0, 0.0)
        self.assertEqual(thumb_extension(self.hand), 100.0)


class TestFingerExtension(unittest.TestCase):
    """Test the path straightness ratio for the four fingers."""

    def setUp(self):
        self.hand = make_open_hand()

    def test_straight_finger(self):
        """Test that colinear, evenly spaced joints give ~100."""
        self.assertAlmostEqual(finger_extension(self.hand, *INDEX_JOINTS), 100.0, places=4)

    def test_curled_finger(self):
        """Test that a tip touching the MCP gives ~0."""
        mcp = self.hand[5]
        self.hand[6] = Landmark(mcp.x, mcp.y - 0.05, 0.02)
        self.hand[7] = Landmark(mcp.x + 0.03, mcp.y - 0.03, 0.04)
        self.hand[8] = mcp
        self.assertAlmostEqual(finger_extension(self.hand, *INDEX_JOINTS), 0.0, places=6)

    def test_half_bent_finger(self):
        """Test a finger bent into a U shape."""
        self.hand[5] = Landmark(0.0, 0.0, 0.0)
        self.hand[6] = Landmark(0.0, 0.1, 0.0)
        self.hand[7] = Landmark(0.1, 0.1, 0.0)
        self.hand[8] = Landmark(0.1, 0.0, 0.0)
        # direct 0.1 over a 0.3 path
        self.assertAlmostEqual(finger_extension(self.hand, *INDEX_JOINTS), 100.0 / 3, places=4)

    def test_zero_path_length(self):
        """Test that collapsed joints give 0 instead of dividing by zero."""
        for i in INDEX_JOINTS:
            self.hand[i] = Landmark(0.3, 0.3, 0.0)
        self.assertEqual(finger_extension(self.hand, *INDEX_JOINTS), 0.0)


class TestExtractFingerExtensions(unittest.TestCase):
    """Test extraction from detection results."""

    def test_open_hand(self):
        """Test that every value of an open hand is in range and fingers are straight."""
        ext = extract_finger_extensions([make_open_hand()])

        self.assertIsInstance(ext, FingerExtensions)
        for value in (ext.thumb, ext.index, ext.middle, ext.ring, ext.pinky):
            self.assertGreaterEqual(value, 0.0)
            self.assertLessEqual(value, 100.0)
        self.assertAlmostEqual(ext.middle, 100.0, places=4)
        self.assertAlmostEqual(ext.pinky, 100.0, places=4)

    def test_no_hands(self):
        """Test that an empty detection result gives None."""
        self.assertIsNone(extract_finger_extensions([]))

    def test_too_few_landmarks(self):
        """Test that a partial hand gives None rather than raising."""
        self.assertIsNone(extract_finger_extensions([make_open_hand()[:20]]))
        self.assertIsNone(hand_extensions([]))

    def test_only_first_hand_used(self):
        """Test that the second hand is ignored."""
        first = make_open_hand()
        first[8] = first[5]  # curl index
        ext = extract_finger_extensions([first, make_open_hand()])
        self.assertAlmostEqual(ext.index, 0.0, places=6)

    def test_degenerate_hand(self):
        """Test that a hand with every landmark in one place is all zeros."""
        ext = extract_finger_extensions([[Landmark(0.5, 0.5, 0.0)] * 21])
        self.assertEqual(ext, FingerExtensions(0.0, 0.0, 0.0, 0.0, 0.0))


if __name__ == '__main__':
    unittest.main()
