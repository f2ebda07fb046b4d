"""
Configuration management for the bionic arm controller.
"""
import yaml
from pathlib import Path
from typing import Optional, Dict, Any
from dataclasses import dataclass

from .types import SerialSettings


@dataclass
class CameraConfig:
    """Camera configuration settings."""
    index: int
    width: int
    height: int
    fps: int
    facing: str  # "front" frames are mirrored before detection
    rotation_degrees: int
    jpeg_roundtrip: bool


@dataclass
class DetectorConfig:
    """MediaPipe hand landmarker settings."""
    model_path: str
    num_hands: int
    min_detection_confidence: float
    min_presence_confidence: float
    min_tracking_confidence: float


@dataclass
class SerialConfig:
    """Serial link settings for the microcontroller."""
    baud_rate: int
    data_bits: int
    stop_bits: int
    parity: str
    write_timeout_ms: int
    port: Optional[str]  # pin a device instead of taking the first one
    auto_connect: bool
    attach_poll_ms: int

    def settings(self) -> SerialSettings:
        """Line parameters handed to the serial platform."""
        return SerialSettings(
            baud_rate=self.baud_rate,
            data_bits=self.data_bits,
            stop_bits=self.stop_bits,
            parity=self.parity,
            write_timeout_s=self.write_timeout_ms / 1000.0
        )


@dataclass
class DisplayConfig:
    """Display configuration settings."""
    show_landmarks: bool
    window_name: str
    view_width: int
    view_height: int


@dataclass
class LoggingConfig:
    level: str


@dataclass
class Cfg:
    """Main configuration class."""
    camera: CameraConfig
    detector: DetectorConfig
    serial: SerialConfig
    display: DisplayConfig
    logging: LoggingConfig


# Shipped inside the package so installed copies find it too
DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.default.yaml"


def load_config(path: Optional[str] = None) -> Cfg:
    """
    Load configuration from YAML file.

    Args:
        path: Path to config file. If None, uses config.default.yaml

    Returns:
        Configuration object with all settings
    """
    if path is None:
        path = DEFAULT_CONFIG_PATH

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r') as f:
        data = yaml.safe_load(f)

    return _dict_to_config(data)


def _dict_to_config(data: Dict[str, Any]) -> Cfg:
    """Convert dictionary to configuration object."""
    camera_data = data['camera']
    camera = CameraConfig(
        index=camera_data['index'],
        width=camera_data['width'],
        height=camera_data['height'],
        fps=camera_data['fps'],
        facing=camera_data.get('facing', 'front'),
        rotation_degrees=camera_data.get('rotation_degrees', 0),
        jpeg_roundtrip=camera_data.get('jpeg_roundtrip', False)
    )
    if camera.facing not in ("front", "back"):
        raise ValueError(f"camera.facing must be 'front' or 'back', got {camera.facing!r}")

    detector_data = data['detector']
    detector = DetectorConfig(
        model_path=detector_data['model_path'],
        num_hands=detector_data['num_hands'],
        min_detection_confidence=detector_data['min_detection_confidence'],
        min_presence_confidence=detector_data['min_presence_confidence'],
        min_tracking_confidence=detector_data['min_tracking_confidence']
    )

    serial_data = data['serial']
    serial = SerialConfig(
        baud_rate=serial_data['baud_rate'],
        data_bits=serial_data['data_bits'],
        stop_bits=serial_data['stop_bits'],
        parity=serial_data['parity'],
        write_timeout_ms=serial_data['write_timeout_ms'],
        port=serial_data.get('port'),
        auto_connect=serial_data.get('auto_connect', False),
        attach_poll_ms=serial_data.get('attach_poll_ms', 1000)
    )

    display_data = data['display']
    display = DisplayConfig(
        show_landmarks=display_data['show_landmarks'],
        window_name=display_data['window_name'],
        view_width=display_data['view_width'],
        view_height=display_data['view_height']
    )

    logging_data = data.get('logging', {})
    logging_cfg = LoggingConfig(level=logging_data.get('level', 'INFO'))

    return Cfg(
        camera=camera,
        detector=detector,
        serial=serial,
        display=display,
        logging=logging_cfg
    )
