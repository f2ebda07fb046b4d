"""
pyserial-backed host platform for the serial link manager.
"""
import logging
import os
from typing import Callable, List, Optional

import serial
from serial.tools import list_ports

from .types import SerialDevice, SerialSettings

logger = logging.getLogger(__name__)

# USB vendor IDs of common USB-serial bridges and native-USB boards
KNOWN_VENDORS = {
    0x0403: "ftdi",
    0x10C4: "cp210x",
    0x1A86: "ch34x",
    0x067B: "prolific",
    0x2341: "cdc_acm",  # Arduino
    0x2A03: "cdc_acm",  # Arduino.org
    0x239A: "cdc_acm",  # Adafruit
    0x16C0: "cdc_acm",  # Teensy
    0x2E8A: "cdc_acm",  # Raspberry Pi Pico
}

# Port names that only CDC-ACM devices get
CDC_PORT_HINTS = ("ttyACM", "usbmodem")

_BYTESIZES = {5: serial.FIVEBITS, 6: serial.SIXBITS, 7: serial.SEVENBITS, 8: serial.EIGHTBITS}
_STOPBITS = {1: serial.STOPBITS_ONE, 2: serial.STOPBITS_TWO}
_PARITIES = {"N": serial.PARITY_NONE, "E": serial.PARITY_EVEN, "O": serial.PARITY_ODD}


class PySerialPlatform:
    """Enumerates USB serial ports with pyserial and opens them."""

    def list_devices(self) -> List[SerialDevice]:
        """USB-attached serial ports, sorted by port name."""
        ports = sorted(list_ports.comports(), key=lambda p: p.device)
        return [
            SerialDevice(port=p.device, description=p.description or "", vid=p.vid, pid=p.pid)
            for p in ports
            if p.vid is not None
        ]

    def has_permission(self, device: SerialDevice) -> bool:
        # Windows COM ports are not filesystem paths
        if not os.path.exists(device.port):
            return True
        return os.access(device.port, os.R_OK | os.W_OK)

    def request_permission(self, device: SerialDevice,
                           on_result: Callable[[SerialDevice, bool], None]) -> None:
        """
        Desktop hosts have no permission prompt; access is re-checked and
        reported, with a hint when the user lacks the serial group.
        """
        granted = self.has_permission(device)
        if not granted:
            logger.warning(f"🔒 No read/write access to {device.port}. "
                           "Add your user to the 'dialout' (Linux) or 'uucp' group and log in again.")
        on_result(device, granted)

    def find_driver(self, device: SerialDevice) -> Optional[str]:
        if device.vid in KNOWN_VENDORS:
            return KNOWN_VENDORS[device.vid]
        if any(hint in device.port for hint in CDC_PORT_HINTS):
            return "cdc_acm"
        return None

    def open(self, device: SerialDevice, settings: SerialSettings) -> serial.Serial:
        """
        Open and configure a port.

        Raises:
            serial.SerialException: if the port cannot be opened
            ValueError: for unsupported line settings
        """
        return serial.Serial(
            port=device.port,
            baudrate=settings.baud_rate,
            bytesize=_BYTESIZES[settings.data_bits],
            stopbits=_STOPBITS[settings.stop_bits],
            parity=_PARITIES[settings.parity.upper()],
            timeout=settings.write_timeout_s,
            write_timeout=settings.write_timeout_s
        )
