"""
Camera frame to RGB image conversion.

Camera frames arrive as YUV_420_888: a full resolution luma plane plus two
quarter resolution chroma planes, each with its own row stride and pixel
stride. The chroma planes are repacked into a layout OpenCV can decode
(YV12 when they are already packed, NV21 when they are interleaved), then
converted to RGB, rotated upright and mirrored for front cameras.
"""
import logging
from typing import Optional

import cv2
import numpy as np

from .types import Plane, RawFrame, YUV_420_888

logger = logging.getLogger(__name__)

_ROTATIONS = {
    90: cv2.ROTATE_90_CLOCKWISE,
    180: cv2.ROTATE_180,
    270: cv2.ROTATE_90_COUNTERCLOCKWISE,
}


class ConversionError(Exception):
    """A frame could not be turned into an RGB image."""


def _read_plane(plane: Plane, rows: int, cols: int) -> np.ndarray:
    """Gather a rows x cols sample grid from a plane honoring its strides."""
    data = np.frombuffer(plane.buffer, dtype=np.uint8)
    needed = (rows - 1) * plane.row_stride + (cols - 1) * plane.pixel_stride + 1
    if rows <= 0 or cols <= 0 or data.size < needed:
        raise ConversionError(
            f"plane too small: {data.size} bytes for {rows}x{cols} "
            f"(row_stride={plane.row_stride}, pixel_stride={plane.pixel_stride})"
        )
    view = np.lib.stride_tricks.as_strided(
        data, shape=(rows, cols), strides=(plane.row_stride, plane.pixel_stride)
    )
    return view.copy()


def yuv_to_rgb(frame: RawFrame) -> np.ndarray:
    """
    Decode a YUV_420_888 frame into an RGB array.

    Raises:
        ConversionError: if the planes do not describe a decodable frame
    """
    width, height = frame.width, frame.height
    if len(frame.planes) < 3:
        raise ConversionError(f"expected 3 planes, got {len(frame.planes)}")
    if width % 2 or height % 2:
        raise ConversionError(f"odd frame size {width}x{height}")

    y_plane, u_plane, v_plane = frame.planes[:3]
    cw, ch = width // 2, height // 2

    y = _read_plane(y_plane, height, width)
    u = _read_plane(u_plane, ch, cw)
    v = _read_plane(v_plane, ch, cw)

    if u_plane.pixel_stride == 1:
        # Already packed: Y, then V, then U
        yv12 = np.concatenate([y.ravel(), v.ravel(), u.ravel()])
        return cv2.cvtColor(yv12.reshape(height * 3 // 2, width), cv2.COLOR_YUV2RGB_YV12)

    # Interleaved chroma: repack sample by sample as V/U pairs
    vu = np.empty((ch, cw * 2), dtype=np.uint8)
    vu[:, 0::2] = v
    vu[:, 1::2] = u
    nv21 = np.concatenate([y.ravel(), vu.ravel()])
    return cv2.cvtColor(nv21.reshape(height * 3 // 2, width), cv2.COLOR_YUV2RGB_NV21)


def jpeg_roundtrip(image: np.ndarray, quality: int = 100) -> np.ndarray:
    """Pass an RGB image through a JPEG encode/decode cycle."""
    ok, encoded = cv2.imencode(".jpg", cv2.cvtColor(image, cv2.COLOR_RGB2BGR),
                               [cv2.IMWRITE_JPEG_QUALITY, quality])
    if not ok:
        raise ConversionError("JPEG encode failed")
    return decode_image(encoded.tobytes())


def decode_image(data: bytes) -> np.ndarray:
    """
    Decode an already-encoded image (JPEG, PNG, ...) to RGB.

    Raises:
        ConversionError: if the bytes are not a decodable image
    """
    buf = np.frombuffer(data, dtype=np.uint8)
    bgr = cv2.imdecode(buf, cv2.IMREAD_COLOR) if buf.size else None
    if bgr is None:
        raise ConversionError("could not decode image bytes")
    return cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB)


def blank_image(width: int, height: int) -> np.ndarray:
    return np.zeros((max(height, 0), max(width, 0), 3), dtype=np.uint8)


def convert(frame: RawFrame, use_jpeg: bool = False) -> np.ndarray:
    """
    Convert a raw camera frame to an RGB image.

    Never raises for a bad frame: a blank image of the frame's declared size
    is returned instead so the next frame can be processed normally.

    Args:
        frame: Raw camera frame
        use_jpeg: Decode through a quality 100 JPEG round trip

    Returns:
        RGB image of shape (height, width, 3)
    """
    try:
        if frame.pixel_format == YUV_420_888:
            image = yuv_to_rgb(frame)
            if use_jpeg:
                image = jpeg_roundtrip(image)
            return image
        if not frame.planes:
            raise ConversionError(f"no planes in {frame.pixel_format} frame")
        return decode_image(bytes(frame.planes[0].buffer))
    except (ConversionError, cv2.error) as e:
        logger.warning(f"⚠️ Frame conversion failed ({frame.width}x{frame.height}): {e}")
        return blank_image(frame.width, frame.height)


def rotate(image: np.ndarray, degrees: int) -> np.ndarray:
    """
    Rotate an image clockwise by a multiple of 90 degrees.

    Returns the same object for 0 degrees, a new array otherwise.
    """
    degrees = degrees % 360
    if degrees == 0:
        return image
    if degrees not in _ROTATIONS:
        raise ValueError(f"rotation must be a multiple of 90 degrees, got {degrees}")
    return cv2.rotate(image, _ROTATIONS[degrees])


def mirror(image: np.ndarray) -> np.ndarray:
    """Flip an image horizontally (x' = width - 1 - x)."""
    return cv2.flip(image, 1)


def prepare(frame: RawFrame, use_jpeg: bool = False) -> np.ndarray:
    """Convert, rotate upright, and mirror front camera frames to match the preview."""
    image = rotate(convert(frame, use_jpeg), frame.rotation_degrees)
    if frame.facing == "front":
        image = mirror(image)
    return image


def frame_from_bgr(bgr: np.ndarray, rotation_degrees: int = 0,
                   facing: str = "back") -> Optional[RawFrame]:
    """
    Wrap a BGR capture as a packed YUV_420_888 frame.

    Returns None if the capture has odd dimensions and cannot be subsampled.
    """
    height, width = bgr.shape[:2]
    if width % 2 or height % 2:
        return None

    i420 = cv2.cvtColor(bgr, cv2.COLOR_BGR2YUV_I420).ravel()
    y_size = width * height
    c_size = y_size // 4
    planes = [
        Plane(i420[:y_size].tobytes(), row_stride=width, pixel_stride=1),
        Plane(i420[y_size:y_size + c_size].tobytes(), row_stride=width // 2, pixel_stride=1),
        Plane(i420[y_size + c_size:].tobytes(), row_stride=width // 2, pixel_stride=1),
    ]
    return RawFrame(planes=planes, width=width, height=height,
                    rotation_degrees=rotation_degrees, facing=facing)
