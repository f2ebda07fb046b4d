"""
Mock serial platform for running without a microcontroller attached.
"""
from typing import Callable, List, Optional, Tuple

from .types import SerialDevice, SerialSettings

MOCK_DEVICE = SerialDevice(port="/dev/ttyMOCK0", description="Mock Arduino", vid=0x2341, pid=0x0043)


class MockSerialPort:
    """Mock port that prints lines instead of writing them."""

    def __init__(self, fail_writes: bool = False):
        """Initialize the mock port."""
        self.fail_writes = fail_writes
        self.written: List[bytes] = []
        self.closed = False
        self.close_count = 0

    def write(self, data: bytes) -> int:
        """Record a write, or fail like an unplugged device."""
        if self.closed:
            raise IOError("port is closed")
        if self.fail_writes:
            raise IOError("device not responding")
        self.written.append(data)
        print(f"[MockSerialPort] TX: {data.decode('ascii').strip()} (write #{len(self.written)})")
        return len(data)

    def close(self) -> None:
        self.closed = True
        self.close_count += 1

    @property
    def lines(self) -> List[str]:
        return [data.decode("ascii") for data in self.written]


class MockSerialPlatform:
    """
    In-memory serial platform.

    Every step of the connect sequence can be made to fail, and permission
    requests can be answered immediately or held until `answer_permission`.
    """

    def __init__(self, devices: Optional[List[SerialDevice]] = None,
                 permission: bool = True, grant: bool = True,
                 auto_answer: bool = True, driver: Optional[str] = "cdc_acm",
                 open_succeeds: bool = True, fail_writes: bool = False):
        self.devices = list(devices) if devices is not None else [MOCK_DEVICE]
        self.permission = permission
        self.grant = grant
        self.auto_answer = auto_answer
        self.driver = driver
        self.open_succeeds = open_succeeds
        self.fail_writes = fail_writes

        self.ports: List[MockSerialPort] = []
        self.opened_with: List[SerialSettings] = []
        self.permission_requests = 0
        self.pending: Optional[Tuple[SerialDevice, Callable[[SerialDevice, bool], None]]] = None

    def list_devices(self) -> List[SerialDevice]:
        return list(self.devices)

    def has_permission(self, device: SerialDevice) -> bool:
        return self.permission

    def request_permission(self, device: SerialDevice,
                           on_result: Callable[[SerialDevice, bool], None]) -> None:
        self.permission_requests += 1
        if self.auto_answer:
            self.permission = self.grant
            on_result(device, self.grant)
        else:
            self.pending = (device, on_result)

    def answer_permission(self, granted: bool) -> None:
        """Deliver the answer to a held permission request."""
        if self.pending is None:
            raise RuntimeError("no pending permission request")
        device, on_result = self.pending
        self.pending = None
        self.permission = granted
        on_result(device, granted)

    def find_driver(self, device: SerialDevice) -> Optional[str]:
        return self.driver

    def open(self, device: SerialDevice, settings: SerialSettings) -> Optional[MockSerialPort]:
        self.opened_with.append(settings)
        if not self.open_succeeds:
            return None
        port = MockSerialPort(fail_writes=self.fail_writes)
        self.ports.append(port)
        return port

    def unplug(self, port_name: str = MOCK_DEVICE.port) -> None:
        """Remove a device from enumeration, as if its cable was pulled."""
        self.devices = [d for d in self.devices if d.port != port_name]

    @property
    def last_port(self) -> Optional[MockSerialPort]:
        return self.ports[-1] if self.ports else None
