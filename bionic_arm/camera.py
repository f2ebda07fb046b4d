"""
OpenCV webcam frame source.
"""
import logging
from typing import Optional

import cv2
import numpy as np

from .config import CameraConfig
from .image_utils import frame_from_bgr, mirror, rotate
from .types import RawFrame

logger = logging.getLogger(__name__)


class CameraFrameSource:
    """Reads webcam captures and hands them out as YUV_420_888 frames."""

    def __init__(self, config: CameraConfig):
        self.config = config
        self.facing = config.facing
        self.last_bgr: Optional[np.ndarray] = None

        self.cap = cv2.VideoCapture(config.index)
        self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, config.width)
        self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, config.height)
        self.cap.set(cv2.CAP_PROP_FPS, config.fps)

        if not self.cap.isOpened():
            raise RuntimeError(f"Failed to open camera {config.index}")

    def read(self) -> Optional[RawFrame]:
        ok, bgr = self.cap.read()
        if not ok:
            return None
        if bgr.shape[0] % 2 or bgr.shape[1] % 2:
            # 4:2:0 chroma needs even dimensions
            bgr = bgr[:bgr.shape[0] // 2 * 2, :bgr.shape[1] // 2 * 2]
        self.last_bgr = bgr
        return frame_from_bgr(bgr, self.config.rotation_degrees, self.facing)

    def preview(self) -> Optional[np.ndarray]:
        """Last capture as the preview shows it: upright, mirrored for front cameras."""
        if self.last_bgr is None:
            return None
        image = rotate(self.last_bgr, self.config.rotation_degrees)
        return mirror(image) if self.facing == "front" else image

    def switch_facing(self) -> str:
        self.facing = "back" if self.facing == "front" else "front"
        logger.info(f"Camera: {self.facing.upper()}")
        return self.facing

    def release(self) -> None:
        if self.cap.isOpened():
            self.cap.release()
