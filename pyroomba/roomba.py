"""
Roomba Serial Control Library
=============================

A Python library for commanding an iRobot Roomba through its Open
Interface from a Raspberry Pi: serial port on the UART, BRC wake line on
a GPIO pin.

Example:
    >>> from pyroomba import PyRoomba
    >>>
    >>> # Using context manager (recommended)
    >>> with PyRoomba('/dev/serial0') as roomba:
    ...     roomba.clean()
    ...     print(roomba.get_battery())
    >>>
    >>> # Manual connection
    >>> roomba = PyRoomba('/dev/serial0')
    >>> roomba.connect()
    >>> roomba.dock()
    >>> roomba.disconnect()

Every public operation holds one lock from its first byte to its last
wait, so concurrent callers (e.g. HTTP workers) never interleave on the
serial link.

Reference: iRobot Create 2 / Roomba Open Interface Specification
"""

import logging
import threading
import time
from typing import Iterable, Optional

import serial

from .commands import (
    DEFAULT_BAUDRATE,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_PORT,
    DEFAULT_READ_TIMEOUT_S,
    DEFAULT_WAKE_PIN,
    Opcode,
    Timing,
)
from .data_types import BatteryData, DeviceStatus, SensorPacket, SensorResult, Sensors
from .exceptions import TransportError
from .protocol import SensorCodec
from .wake import PowerSequencer, WakePin


logger = logging.getLogger(__name__)


class PyRoomba:
    """
    Roomba controller.

    Provides clean, dock, power off and battery queries on top of the
    sensor codec and the power/wake sequencer.
    """

    def __init__(
        self,
        port: str = DEFAULT_PORT,
        baudrate: int = DEFAULT_BAUDRATE,
        timeout: float = DEFAULT_READ_TIMEOUT_S,
        wake_pin: Optional[WakePin] = None,
        max_attempts: Optional[int] = DEFAULT_MAX_ATTEMPTS,
        auto_connect: bool = False,
    ):
        """
        Initialize Roomba controller.

        Args:
            port: Serial port path (e.g., '/dev/serial0', '/dev/ttyUSB0')
            baudrate: Serial baudrate (default: 115200)
            timeout: Serial read timeout in seconds
            wake_pin: Pin driving the BRC line (default: BCM 23)
            max_attempts: Checksum attempts per sensor query, None for no limit
            auto_connect: Automatically connect on initialization
        """
        self.port = port
        self.baudrate = baudrate
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.wake_pin = wake_pin if wake_pin is not None else WakePin(DEFAULT_WAKE_PIN)

        self._ser: Optional[serial.Serial] = None
        self._codec: Optional[SensorCodec] = None
        self._power: Optional[PowerSequencer] = None
        self._lock = threading.RLock()

        if auto_connect:
            self.connect()

    def __enter__(self) -> 'PyRoomba':
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.disconnect()

    # =========================================================================
    # Connection Management
    # =========================================================================

    def connect(self) -> None:
        """
        Open the serial port and set up the wake pin.

        Raises:
            serial.SerialException: If the port cannot be opened
            RuntimeError: If RPi.GPIO is not available
        """
        with self._lock:
            if self.is_connected:
                return

            self.wake_pin.setup()
            channel = serial.Serial(
                self.port,
                baudrate=self.baudrate,
                timeout=self.timeout,
            )
            self.attach(channel)
            logger.info("Connected to %s at %d baud", self.port, self.baudrate)

    def attach(self, channel) -> None:
        """Drive an already opened serial channel."""
        with self._lock:
            self._ser = channel
            self._codec = SensorCodec(channel, max_attempts=self.max_attempts)
            self._power = PowerSequencer(self._codec, self.wake_pin)

    def disconnect(self) -> None:
        """Close the serial port and release the wake pin."""
        with self._lock:
            if self._ser is not None and self._ser.is_open:
                self._ser.close()
            self._ser = None
            self._codec = None
            self._power = None
            self.wake_pin.cleanup()

    @property
    def is_connected(self) -> bool:
        """Check if the serial port is open (the device may still be asleep)."""
        return self._ser is not None and self._ser.is_open

    # =========================================================================
    # Sensors
    # =========================================================================

    def read_sensors(self, packets: Iterable[SensorPacket]) -> SensorResult:
        """Query an arbitrary set of sensor packets."""
        with self._lock:
            return self._require_codec().query(packets)

    def get_battery(self) -> BatteryData:
        """
        Read battery charge and capacity.

        Returns:
            BatteryData with charge and capacity in mAh
        """
        with self._lock:
            result = self._require_codec().query([Sensors.CHARGE, Sensors.CAPACITY])
        battery = BatteryData.from_result(result)
        logger.info("Battery: %d/%d mAh", battery.charge, battery.capacity)
        return battery

    def get_status(self) -> DeviceStatus:
        """Probe OI mode and charging sources without changing anything."""
        with self._lock:
            self._require_codec()
            return self._power.probe()

    def is_on(self) -> bool:
        with self._lock:
            self._require_codec()
            return self._power.is_on()

    # =========================================================================
    # Commands
    # =========================================================================

    def clean(self) -> None:
        """Start a cleaning cycle from a freshly woken device."""
        with self._lock:
            self._restart(Timing.CLEAN_POWER_OFF)
            self._send(Opcode.CLEAN)

    def dock(self) -> None:
        """Send the robot back to its home base from a freshly woken device."""
        with self._lock:
            self._restart(Timing.DOCK_POWER_OFF)
            self._send(Opcode.DOCK)

    def power_off(self) -> None:
        """Power the device down."""
        with self._lock:
            self._send(Opcode.POWER_OFF)

    def wake(self) -> DeviceStatus:
        """Wake the device, pulsing the BRC line if it does not answer."""
        with self._lock:
            self._require_codec()
            return self._power.wake()

    def _restart(self, power_off_wait: float) -> None:
        # Power cycle a device that is already on: its mode is left over
        # from the last session.
        codec = self._require_codec()
        if self._power.is_on():
            codec.send(Opcode.POWER_OFF)
            time.sleep(power_off_wait)
        self._power.wake()
        time.sleep(Timing.AFTER_WAKE)

    def _send(self, opcode: int) -> None:
        self._require_codec().send(opcode)

    def _require_codec(self) -> SensorCodec:
        if self._codec is None:
            raise TransportError(f"Not connected to Roomba on {self.port}")
        return self._codec
