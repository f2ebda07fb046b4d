"""
Finger extension estimation from MediaPipe hand landmarks.
"""
import math
from typing import Optional, Sequence

from .types import FingerExtensions, Hand, Landmark

NUM_LANDMARKS = 21

WRIST = 0

# Thumb
THUMB_CMC = 1
THUMB_MCP = 2
THUMB_IP = 3
THUMB_TIP = 4

# (mcp, pip, dip, tip) per finger
INDEX_JOINTS = (5, 6, 7, 8)
MIDDLE_JOINTS = (9, 10, 11, 12)
RING_JOINTS = (13, 14, 15, 16)
PINKY_JOINTS = (17, 18, 19, 20)


def distance(a: Landmark, b: Landmark) -> float:
    """Euclidean distance between two landmarks in normalized 3D space."""
    return math.sqrt((a.x - b.x) ** 2 + (a.y - b.y) ** 2 + (a.z - b.z) ** 2)


def _to_percent(ratio: float) -> float:
    return max(0.0, min(100.0, ratio * 100.0))


def thumb_extension(hand: Hand) -> float:
    """
    Thumb extension as a wrist-relative reach ratio.

    The thumb mostly abducts rather than curls, so how far the tip reaches
    beyond the MCP joint (measured from the wrist) is the signal.

    Args:
        hand: 21 hand landmarks

    Returns:
        Extension percentage in [0..100]
    """
    wrist = hand[WRIST]
    mcp_to_wrist = distance(hand[THUMB_MCP], wrist)
    if mcp_to_wrist == 0:
        return 0.0

    tip_to_wrist = distance(hand[THUMB_TIP], wrist)
    return _to_percent((tip_to_wrist - mcp_to_wrist) / mcp_to_wrist)


def finger_extension(hand: Hand, mcp: int, pip: int, dip: int, tip: int) -> float:
    """
    Extension of a four-joint finger as path straightness.

    The direct MCP->tip distance equals the summed segment length only
    when the joints are colinear, so the ratio is ~1 for a straight finger
    and falls toward 0 as it curls.

    Args:
        hand: 21 hand landmarks
        mcp, pip, dip, tip: landmark indices of the finger joints

    Returns:
        Extension percentage in [0..100]
    """
    path_length = (distance(hand[mcp], hand[pip])
                   + distance(hand[pip], hand[dip])
                   + distance(hand[dip], hand[tip]))
    if path_length == 0:
        return 0.0

    return _to_percent(distance(hand[mcp], hand[tip]) / path_length)


def hand_extensions(hand: Hand) -> Optional[FingerExtensions]:
    """Extensions for a single hand, or None if it is not a full 21-point hand."""
    if hand is None or len(hand) < NUM_LANDMARKS:
        return None

    return FingerExtensions(
        thumb=thumb_extension(hand),
        index=finger_extension(hand, *INDEX_JOINTS),
        middle=finger_extension(hand, *MIDDLE_JOINTS),
        ring=finger_extension(hand, *RING_JOINTS),
        pinky=finger_extension(hand, *PINKY_JOINTS)
    )


def extract_finger_extensions(hands: Sequence[Hand]) -> Optional[FingerExtensions]:
    """
    Calculate finger extensions from a detection result.

    Only the first detected hand is used.

    Args:
        hands: Hands returned by the detector (may be empty)

    Returns:
        FingerExtensions, or None when there is no usable hand this frame
    """
    if not hands:
        return None
    return hand_extensions(hands[0])
