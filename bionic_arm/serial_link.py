"""
Serial link to the bionic arm microcontroller.

The manager owns the connection state machine:

    DISCONNECTED --connect--> (AWAITING_PERMISSION --granted-->) CONNECTED
    CONNECTED --send failure--> FAULTED --> DISCONNECTED
    any --detach / disconnect--> DISCONNECTED

Every transition and every write runs on the manager's own single-worker
executor, so the connection handle is only ever touched from that thread.
Callers get a Future back and are free to ignore it, or None once the
manager is closed.
"""
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional

from .latest import LatestOnly
from .types import (
    FingerExtensions,
    LinkError,
    LinkFault,
    LinkState,
    SerialDevice,
    SerialPlatform,
    SerialPort,
    SerialSettings,
)

logger = logging.getLogger(__name__)


def format_command(extensions: FingerExtensions) -> str:
    """
    Encode finger extensions as one protocol line.

    Format: "T:XX,I:XX,M:XX,R:XX,P:XX\\n" with values truncated to integers.
    """
    return (
        f"T:{int(extensions.thumb)},I:{int(extensions.index)},M:{int(extensions.middle)},"
        f"R:{int(extensions.ring)},P:{int(extensions.pinky)}\n"
    )


class SerialLinkManager:
    """Connects to the first attached serial device and streams finger commands."""

    def __init__(self, platform: SerialPlatform,
                 on_connection_changed: Optional[Callable[[bool], None]] = None,
                 on_error: Optional[Callable[[LinkFault], None]] = None,
                 settings: Optional[SerialSettings] = None,
                 port: Optional[str] = None):
        """
        Args:
            platform: Host services for enumeration, permission and opening ports
            on_connection_changed: Called with True/False on every connectivity change
            on_error: Called with a LinkFault for every reported failure
            settings: Line parameters (defaults to 9600-8-N-1, 1s write timeout)
            port: Only consider the device with this port name
        """
        self.platform = platform
        self.settings = settings or SerialSettings()
        self.port_filter = port
        self._on_connection_changed = on_connection_changed
        self._on_error = on_error

        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="serial-link")
        self._sender: LatestOnly[str] = LatestOnly(self._executor, self._write_line)

        # Owned by the worker thread
        self._state = LinkState.DISCONNECTED
        self._device: Optional[SerialDevice] = None
        self._port: Optional[SerialPort] = None
        self._connected = False
        self._closed = False
        self.lines_sent = 0

    @property
    def state(self) -> LinkState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is LinkState.CONNECTED

    @property
    def device(self) -> Optional[SerialDevice]:
        return self._device

    # Public API: each call is queued on the link worker. After close() the
    # calls are ignored and return None.

    def connect(self) -> Optional[Future]:
        """Find the first device and connect to it, asking for permission if needed."""
        return self._submit(self._connect)

    def disconnect(self) -> Optional[Future]:
        return self._submit(self._teardown, "disconnect requested")

    def on_permission_result(self, device: SerialDevice, granted: bool) -> Optional[Future]:
        """Platform callback for a permission request."""
        return self._submit(self._permission_result, device, granted)

    def on_device_detached(self, device: Optional[SerialDevice] = None) -> Optional[Future]:
        """Platform callback for an unplugged device."""
        return self._submit(self._detached, device)

    def poll_attachment(self) -> Optional[Future]:
        """Re-enumerate devices and treat a vanished connected device as detached."""
        return self._submit(self._poll_attachment)

    def send(self, extensions: FingerExtensions) -> Optional[Future]:
        """
        Queue the latest finger extensions for transmission.

        Never blocks. If an earlier command is still waiting it is replaced,
        so only the most recent snapshot reaches the device. Dropped while
        not connected.
        """
        if self._state is not LinkState.CONNECTED:
            return None
        return self._sender.offer(format_command(extensions))

    def wait_idle(self, timeout: Optional[float] = None) -> None:
        """Block until everything queued so far has run."""
        future = self._submit(lambda: None)
        if future is not None:
            future.result(timeout)

    def close(self) -> None:
        """Disconnect and retire the link worker."""
        if self._closed:
            return
        self._executor.submit(self._teardown, "link closed")
        self._closed = True
        self._executor.shutdown(wait=True)

    def _submit(self, fn, *args) -> Optional[Future]:
        if self._closed:
            logger.debug(f"Link closed, {fn.__name__} ignored")
            return None
        return self._executor.submit(fn, *args)

    # Worker-side transitions

    def _connect(self) -> None:
        if self._state is not LinkState.DISCONNECTED:
            logger.info(f"Connect ignored, link is {self._state.value}")
            return

        try:
            devices = self.platform.list_devices()
        except Exception as e:
            self._report(LinkError.NO_DEVICE_FOUND, f"Error finding device: {e}")
            return

        if self.port_filter:
            devices = [d for d in devices if d.port == self.port_filter]
        if not devices:
            self._report(LinkError.NO_DEVICE_FOUND,
                         "No USB serial devices found. Please connect your Arduino.")
            return

        device = devices[0]
        self._device = device
        logger.info(f"🔌 Found serial device {device.port} ({device.description})")

        try:
            if self.platform.has_permission(device):
                self._open(device)
                return
            self._state = LinkState.AWAITING_PERMISSION
            logger.info(f"🔒 Requesting permission for {device.port}")
            self.platform.request_permission(device, self.on_permission_result)
        except Exception as e:
            self._state = LinkState.DISCONNECTED
            self._device = None
            self._report(LinkError.NO_DEVICE_FOUND, f"Error finding device: {e}")

    def _permission_result(self, device: SerialDevice, granted: bool) -> None:
        if (self._state is not LinkState.AWAITING_PERMISSION or self._device is None
                or device.port != self._device.port):
            logger.debug(f"Stale permission result for {device.port} ignored")
            return

        if not granted:
            self._state = LinkState.DISCONNECTED
            self._device = None
            self._report(LinkError.PERMISSION_DENIED, "USB permission denied")
            return

        self._open(device)

    def _open(self, device: SerialDevice) -> None:
        try:
            driver = self.platform.find_driver(device)
        except Exception as e:
            self._state = LinkState.DISCONNECTED
            self._device = None
            self._report(LinkError.OPEN_FAILED, f"Connection failed: {e}")
            return
        if driver is None:
            self._state = LinkState.DISCONNECTED
            self._device = None
            self._report(LinkError.NO_DRIVER_FOUND, "No driver found for device")
            return

        try:
            port = self.platform.open(device, self.settings)
            reason = "Failed to open USB connection"
        except Exception as e:
            port = None
            reason = f"Connection failed: {e}"
        if port is None:
            self._state = LinkState.DISCONNECTED
            self._device = None
            self._report(LinkError.OPEN_FAILED, reason)
            return

        self._port = port
        self._device = device
        self._state = LinkState.CONNECTED
        s = self.settings
        logger.info(f"✅ Arduino connected on {device.port} via {driver} "
                    f"({s.baud_rate}-{s.data_bits}-{s.parity}-{s.stop_bits})")
        self._set_connected(True)

    def _write_line(self, line: str) -> None:
        if self._state is not LinkState.CONNECTED or self._port is None:
            return

        try:
            self._port.write(line.encode("ascii"))
        except Exception as e:
            self._state = LinkState.FAULTED
            self._report(LinkError.SEND_FAILED, f"Failed to send data: {e}")
            self._teardown("send failed")
            return

        self.lines_sent += 1
        logger.debug(f"Sent to Arduino: {line.strip()}")

    def _detached(self, device: Optional[SerialDevice]) -> None:
        if device is not None and self._device is not None and device.port != self._device.port:
            return
        self._teardown("device detached")

    def _poll_attachment(self) -> None:
        if self._state is not LinkState.CONNECTED or self._device is None:
            return
        try:
            ports = {d.port for d in self.platform.list_devices()}
        except Exception as e:
            logger.warning(f"⚠️ Device enumeration failed: {e}")
            return
        if self._device.port not in ports:
            self._teardown("device unplugged")

    def _teardown(self, reason: str) -> None:
        port, self._port = self._port, None
        if port is not None:
            try:
                port.close()
            except Exception as e:
                logger.warning(f"⚠️ Error closing serial port: {e}")

        self._state = LinkState.DISCONNECTED
        self._device = None
        if self._connected:
            logger.info(f"Arduino disconnected ({reason})")
            self._set_connected(False)

    # Observer notification

    def _set_connected(self, connected: bool) -> None:
        self._connected = connected
        if self._on_connection_changed is None:
            return
        try:
            self._on_connection_changed(connected)
        except Exception:
            logger.exception("❌ Connection observer failed")

    def _report(self, error: LinkError, message: str) -> None:
        logger.warning(f"⚠️ {message}")
        if self._on_error is None:
            return
        try:
            self._on_error(LinkFault(error=error, message=message))
        except Exception:
            logger.exception("❌ Error observer failed")
