"""
Bionic Arm Control

Reads camera frames, detects hand landmarks, turns them into per-finger
extension percentages and streams them to a bionic arm microcontroller over
a serial link.
"""

__version__ = "0.1.0"

from .types import (
    AnalysisResult,
    FingerExtensions,
    Hand,
    HandDetector,
    Landmark,
    LinkError,
    LinkFault,
    LinkState,
    Plane,
    RawFrame,
    SerialDevice,
    SerialPlatform,
    SerialSettings,
)
from .config import load_config, Cfg
from .fingers import extract_finger_extensions, hand_extensions
from .image_utils import convert, rotate, mirror, prepare
from .overlay import HAND_CONNECTIONS, compute_transform, project
from .serial_link import SerialLinkManager, format_command
from .serial_mock import MockSerialPlatform
from .pipeline import FrameAnalyzer

__all__ = [
    "AnalysisResult",
    "FingerExtensions",
    "Hand",
    "HandDetector",
    "Landmark",
    "LinkError",
    "LinkFault",
    "LinkState",
    "Plane",
    "RawFrame",
    "SerialDevice",
    "SerialPlatform",
    "SerialSettings",
    "load_config",
    "Cfg",
    "extract_finger_extensions",
    "hand_extensions",
    "convert",
    "rotate",
    "mirror",
    "prepare",
    "HAND_CONNECTIONS",
    "compute_transform",
    "project",
    "SerialLinkManager",
    "format_command",
    "MockSerialPlatform",
    "FrameAnalyzer",
]
