"""
Type definitions for the bionic arm control system.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Literal, Optional, Protocol, Sequence, runtime_checkable

import numpy as np


@dataclass(frozen=True)
class Landmark:
    """Normalized 3D hand joint (x, y in [0..1] of the image, z relative depth)."""
    x: float
    y: float
    z: float = 0.0


# 21 landmarks indexed by anatomical position (wrist=0, thumb 1-4, ... pinky 17-20)
Hand = Sequence[Landmark]

FacingMode = Literal["front", "back"]

YUV_420_888 = "yuv_420_888"


@dataclass(frozen=True)
class FingerExtensions:
    """Per-finger extension percentages, each in [0..100]."""
    thumb: float
    index: float
    middle: float
    ring: float
    pinky: float


@dataclass
class Plane:
    """One pixel plane of a camera frame."""
    buffer: bytes
    row_stride: int
    pixel_stride: int


@dataclass
class RawFrame:
    """Camera frame as delivered by the capture layer."""
    planes: List[Plane]
    width: int
    height: int
    pixel_format: str = YUV_420_888
    rotation_degrees: int = 0
    facing: FacingMode = "back"


@dataclass(frozen=True)
class AnalysisResult:
    """Everything the renderer needs for one analyzed frame."""
    hands: List[Hand]
    image_width: int
    image_height: int
    extensions: Optional[FingerExtensions] = None


class LinkState(Enum):
    DISCONNECTED = "disconnected"
    AWAITING_PERMISSION = "awaiting_permission"
    CONNECTED = "connected"
    FAULTED = "faulted"


class LinkError(Enum):
    NO_DEVICE_FOUND = "no_device_found"
    NO_DRIVER_FOUND = "no_driver_found"
    OPEN_FAILED = "open_failed"
    PERMISSION_DENIED = "permission_denied"
    SEND_FAILED = "send_failed"


@dataclass(frozen=True)
class LinkFault:
    """Error reported to link observers."""
    error: LinkError
    message: str


@dataclass(frozen=True)
class SerialDevice:
    """A serial-capable device as enumerated by the host platform."""
    port: str
    description: str = ""
    vid: Optional[int] = None
    pid: Optional[int] = None


@dataclass(frozen=True)
class SerialSettings:
    """Line parameters for the microcontroller link."""
    baud_rate: int = 9600
    data_bits: int = 8
    stop_bits: int = 1
    parity: str = "N"
    write_timeout_s: float = 1.0


@runtime_checkable
class HandDetector(Protocol):
    """Anything that turns an RGB image into a list of hands."""

    def detect(self, image: np.ndarray) -> List[Hand]:
        """Return one 21-landmark list per detected hand (empty if none)."""
        ...


@runtime_checkable
class FrameSource(Protocol):
    """Anything that can deliver camera frames."""

    def read(self) -> Optional[RawFrame]:
        """Return the next frame, or None when the source is exhausted."""
        ...

    def release(self) -> None:
        ...


@runtime_checkable
class SerialPort(Protocol):
    """An open serial handle."""

    def write(self, data: bytes) -> Any:
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class SerialPlatform(Protocol):
    """Host services the serial link manager depends on."""

    def list_devices(self) -> List[SerialDevice]:
        """Enumerate attached serial-capable devices."""
        ...

    def has_permission(self, device: SerialDevice) -> bool:
        ...

    def request_permission(self, device: SerialDevice,
                           on_result: Callable[[SerialDevice, bool], None]) -> None:
        """Ask for access; the answer arrives later through on_result."""
        ...

    def find_driver(self, device: SerialDevice) -> Optional[str]:
        """Return a driver name for the device, or None if unsupported."""
        ...

    def open(self, device: SerialDevice, settings: SerialSettings) -> Optional[SerialPort]:
        """Open and configure the port; None if no handle could be obtained."""
        ...
