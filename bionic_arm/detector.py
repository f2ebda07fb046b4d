"""
Hand landmark detection using the MediaPipe Tasks hand landmarker.
"""
import logging
from pathlib import Path
from typing import List

import mediapipe as mp
import numpy as np

from .types import Hand, Landmark

logger = logging.getLogger(__name__)


class MediaPipeHandDetector:
    """Hand landmark detector backed by a MediaPipe `hand_landmarker.task` model."""

    def __init__(self, model_path: str = "hand_landmarker.task", num_hands: int = 2,
                 min_detection_conf: float = 0.3, min_presence_conf: float = 0.3,
                 min_tracking_conf: float = 0.3):
        """
        Initialize the hand landmarker.

        Args:
            model_path: Path to the hand_landmarker.task model bundle
            num_hands: Maximum number of hands to detect
            min_detection_conf: Minimum confidence for hand detection
            min_presence_conf: Minimum confidence for hand presence
            min_tracking_conf: Minimum confidence for hand tracking
        """
        if not Path(model_path).exists():
            raise FileNotFoundError(
                f"Hand landmarker model not found: {model_path}. Download hand_landmarker.task "
                "from the MediaPipe model page and point detector.model_path at it."
            )

        options = mp.tasks.vision.HandLandmarkerOptions(
            base_options=mp.tasks.BaseOptions(model_asset_path=str(model_path)),
            running_mode=mp.tasks.vision.RunningMode.IMAGE,
            num_hands=num_hands,
            min_hand_detection_confidence=min_detection_conf,
            min_hand_presence_confidence=min_presence_conf,
            min_tracking_confidence=min_tracking_conf
        )
        self.landmarker = mp.tasks.vision.HandLandmarker.create_from_options(options)
        logger.info(f"✅ HandLandmarker initialized ({model_path}, up to {num_hands} hands)")

    def detect(self, image: np.ndarray) -> List[Hand]:
        """
        Detect hands in an RGB image.

        Args:
            image: RGB image of shape (height, width, 3)

        Returns:
            One list of 21 normalized landmarks per detected hand
        """
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=np.ascontiguousarray(image))
        result = self.landmarker.detect(mp_image)

        return [
            [Landmark(lm.x, lm.y, lm.z) for lm in hand_landmarks]
            for hand_landmarks in result.hand_landmarks
        ]

    def close(self) -> None:
        self.landmarker.close()
