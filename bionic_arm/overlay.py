"""
Projection of normalized hand landmarks into a preview viewport.
"""
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import cv2
import numpy as np

from .types import Hand, Landmark

# Hand skeleton edges (MediaPipe hand model)
HAND_CONNECTIONS: Tuple[Tuple[int, int], ...] = (
    # Thumb
    (0, 1), (1, 2), (2, 3), (3, 4),
    # Index finger
    (0, 5), (5, 6), (6, 7), (7, 8),
    # Middle finger
    (0, 9), (9, 10), (10, 11), (11, 12),
    # Ring finger
    (0, 13), (13, 14), (14, 15), (15, 16),
    # Pinky
    (0, 17), (17, 18), (18, 19), (19, 20),
    # Palm
    (5, 9), (9, 13), (13, 17),
)

LANDMARK_COLOR = (0, 0, 255)  # BGR red
CONNECTION_COLOR = (0, 255, 0)


@dataclass(frozen=True)
class ViewTransform:
    """Uniform scale plus centering offset from image pixels to view pixels."""
    scale: float
    offset_x: float
    offset_y: float

    def apply(self, landmark: Landmark, image_width: int, image_height: int) -> Tuple[float, float]:
        return (landmark.x * image_width * self.scale + self.offset_x,
                landmark.y * image_height * self.scale + self.offset_y)


def compute_transform(image_width: int, image_height: int,
                      view_width: int, view_height: int) -> ViewTransform:
    """
    Aspect-fill ("fill center") transform of an image into a view.

    The image is scaled to cover the whole view and centered; the overflowing
    axis is cropped equally on both sides.

    Args:
        image_width, image_height: Analyzed image size in pixels
        view_width, view_height: Viewport size in pixels

    Returns:
        ViewTransform shared by every landmark of the frame
    """
    if min(image_width, image_height, view_width, view_height) <= 0:
        raise ValueError(
            f"invalid dimensions: image {image_width}x{image_height}, view {view_width}x{view_height}"
        )

    image_aspect = image_width / image_height
    view_aspect = view_width / view_height

    if image_aspect > view_aspect:
        # Image is wider than view, scale by height and center horizontally
        scale = view_height / image_height
        return ViewTransform(scale, (view_width - image_width * scale) / 2.0, 0.0)

    # Image is taller than view, scale by width and center vertically
    scale = view_width / image_width
    return ViewTransform(scale, 0.0, (view_height - image_height * scale) / 2.0)


def project(landmark: Landmark, image_width: int, image_height: int,
            view_width: int, view_height: int) -> Tuple[float, float]:
    """Project a single landmark into view pixel coordinates."""
    transform = compute_transform(image_width, image_height, view_width, view_height)
    return transform.apply(landmark, image_width, image_height)


def project_hand(hand: Hand, transform: ViewTransform,
                 image_width: int, image_height: int) -> List[Tuple[float, float]]:
    return [transform.apply(lm, image_width, image_height) for lm in hand]


def draw_hands(canvas: np.ndarray, hands: Sequence[Hand],
               image_width: int, image_height: int) -> np.ndarray:
    """
    Draw hand skeletons onto a view-sized canvas.

    Args:
        canvas: BGR view image to draw on (modified in place)
        hands: Detected hands in normalized image coordinates
        image_width, image_height: Size of the image the hands were detected in

    Returns:
        The canvas, for chaining
    """
    if not hands or image_width <= 0 or image_height <= 0:
        return canvas

    view_height, view_width = canvas.shape[:2]
    transform = compute_transform(image_width, image_height, view_width, view_height)

    for hand in hands:
        points = [(int(round(px)), int(round(py)))
                  for px, py in project_hand(hand, transform, image_width, image_height)]

        # Connections first so joints are drawn on top
        for start, end in HAND_CONNECTIONS:
            if start < len(points) and end < len(points):
                cv2.line(canvas, points[start], points[end], CONNECTION_COLOR, 4)

        for point in points:
            cv2.circle(canvas, point, 8, LANDMARK_COLOR, -1)

    return canvas


def fill_center(image: np.ndarray, view_width: int, view_height: int) -> np.ndarray:
    """Scale and crop an image so it fills the view, as the preview shows it."""
    height, width = image.shape[:2]
    transform = compute_transform(width, height, view_width, view_height)
    scaled_w = max(int(round(width * transform.scale)), view_width)
    scaled_h = max(int(round(height * transform.scale)), view_height)
    scaled = cv2.resize(image, (scaled_w, scaled_h))
    x0 = int(round(-transform.offset_x))
    y0 = int(round(-transform.offset_y))
    cropped = scaled[y0:y0 + view_height, x0:x0 + view_width]
    if cropped.shape[:2] != (view_height, view_width):
        # rounding can leave the crop a pixel short
        cropped = cv2.resize(cropped, (view_width, view_height))
    return cropped
