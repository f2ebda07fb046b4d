"""
Main application for bionic arm control.
"""
import argparse
import logging
import time
from typing import Optional

import cv2
import numpy as np

from .camera import CameraFrameSource
from .config import Cfg, load_config
from .detector import MediaPipeHandDetector
from .overlay import draw_hands, fill_center
from .pipeline import FrameAnalyzer
from .serial_link import SerialLinkManager
from .serial_mock import MockSerialPlatform
from .serial_platform import PySerialPlatform
from .types import AnalysisResult, LinkFault

logger = logging.getLogger(__name__)


class BionicArmApp:
    """Camera -> hand landmarks -> finger extensions -> Arduino, with a live preview."""

    def __init__(self, config: Cfg, mock_serial: bool = False):
        """Initialize the application with configuration."""
        self.config = config
        self.latest: Optional[AnalysisResult] = None
        self.usb_status = "Not connected"

        # Choose serial platform
        if mock_serial:
            platform = MockSerialPlatform()
            print("🧪 Using mock serial platform - commands are printed, not sent")
        else:
            platform = PySerialPlatform()

        self.link = SerialLinkManager(
            platform,
            on_connection_changed=self._on_connection_changed,
            on_error=self._on_link_error,
            settings=config.serial.settings(),
            port=config.serial.port
        )

        det = config.detector
        self.detector = MediaPipeHandDetector(
            model_path=det.model_path,
            num_hands=det.num_hands,
            min_detection_conf=det.min_detection_confidence,
            min_presence_conf=det.min_presence_confidence,
            min_tracking_conf=det.min_tracking_confidence
        )

        self.analyzer = FrameAnalyzer(
            self.detector, self._on_result, link=self.link,
            use_jpeg=config.camera.jpeg_roundtrip
        )
        self.source = CameraFrameSource(config.camera)

    def _on_connection_changed(self, connected: bool) -> None:
        self.usb_status = "Arduino connected" if connected else "Arduino disconnected"

    def _on_link_error(self, fault: LinkFault) -> None:
        self.usb_status = f"Error: {fault.message}"

    def _on_result(self, result: AnalysisResult) -> None:
        self.latest = result

    def run(self) -> None:
        """Run the main application loop."""
        print(f"Starting {self.config.display.window_name}")
        print("  c = connect Arduino, d = disconnect, s = switch camera, q = quit")

        if self.config.serial.auto_connect:
            self.link.connect()

        poll_interval = self.config.serial.attach_poll_ms / 1000.0
        last_poll = time.time()

        try:
            while True:
                frame = self.source.read()
                if frame is None:
                    logger.error("Failed to read frame from camera")
                    break

                self.analyzer.submit(frame)

                now = time.time()
                if now - last_poll >= poll_interval:
                    self.link.poll_attachment()
                    last_poll = now

                cv2.imshow(self.config.display.window_name, self.render())

                key = cv2.waitKey(1) & 0xFF
                if key == ord('q'):
                    break
                elif key == ord('c'):
                    self.usb_status = "Connecting..."
                    self.link.connect()
                elif key == ord('d'):
                    self.link.disconnect()
                elif key == ord('s'):
                    self.source.switch_facing()
        finally:
            self.shutdown()

    def render(self) -> np.ndarray:
        """Compose the preview: camera image, hand skeleton and status panel."""
        display = self.config.display
        preview = self.source.preview()
        if preview is None:
            view = np.zeros((display.view_height, display.view_width, 3), dtype=np.uint8)
        else:
            view = fill_center(preview, display.view_width, display.view_height)

        result = self.latest
        if result is not None and display.show_landmarks:
            view = draw_hands(view, result.hands, result.image_width, result.image_height)

        lines = [
            "Bionic Arm Control",
            f"Camera: {'Back' if self.source.facing == 'back' else 'Front'}",
            self.usb_status,
        ]
        if result is not None and result.extensions is not None:
            ext = result.extensions
            lines.append(f"T:{int(ext.thumb)}% I:{int(ext.index)}%")
            lines.append(f"M:{int(ext.middle)}% R:{int(ext.ring)}% P:{int(ext.pinky)}%")

        color = (0, 255, 0) if self.link.is_connected else (0, 165, 255)
        for i, text in enumerate(lines):
            cv2.putText(view, text, (10, 30 + i * 25), cv2.FONT_HERSHEY_SIMPLEX, 0.6,
                        color if i == 2 else (255, 255, 255), 2)

        cv2.putText(view, f"Dropped frames: {self.analyzer.dropped_frames}",
                    (10, view.shape[0] - 20), cv2.FONT_HERSHEY_SIMPLEX, 0.5, (255, 255, 255), 1)
        return view

    def shutdown(self) -> None:
        """Release camera, workers, serial port and windows."""
        self.source.release()
        self.analyzer.close()
        self.link.close()
        self.detector.close()
        cv2.destroyAllWindows()


def main() -> None:
    """Entry point for the application."""
    parser = argparse.ArgumentParser(description="Drive a bionic arm from webcam hand tracking")
    parser.add_argument("--config", help="Path to config YAML (default: bundled config.default.yaml)")
    parser.add_argument("--mock-serial", action="store_true",
                        help="Print commands instead of sending them to a device")
    parser.add_argument("--connect", action="store_true", help="Connect to the Arduino on startup")
    parser.add_argument("--log-level", help="Override the configured log level")
    args = parser.parse_args()

    config = load_config(args.config)
    if args.connect:
        config.serial.auto_connect = True

    logging.basicConfig(
        level=(args.log_level or config.logging.level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    try:
        app = BionicArmApp(config, mock_serial=args.mock_serial)
        app.run()
    except KeyboardInterrupt:
        # run() has already released everything on its way out
        print("\nApplication interrupted by user")
    except Exception as e:
        logger.error(f"❌ Error: {e}")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
