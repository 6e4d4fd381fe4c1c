"""
Power and Wake Sequencing
=========================

A Roomba that has been asleep (or switched off by opcode 133) stops
answering on its serial port. Pulsing the BRC line from a GPIO pin forces
it back through its boot sequence::

    high 100 ms -> low 500 ms -> high, wait 2 s for boot

After that the device needs an opcode to enter the Open Interface:
Start (128) normally, or Clean (135) while it sits on the dock, where
Start alone is ignored.
"""

import logging
import time

from .commands import DEFAULT_WAKE_PIN, Opcode, Timing
from .data_types import DeviceStatus, Sensors
from .exceptions import FrameError, TransportError
from .protocol import SensorCodec


logger = logging.getLogger(__name__)


class WakePin:
    """
    Digital output wired to the Roomba's BRC pin.

    RPi.GPIO is imported on :meth:`setup`, so the rest of the library can
    be used (and tested) away from a Raspberry Pi.
    """

    def __init__(self, pin: int = DEFAULT_WAKE_PIN):
        """
        Args:
            pin: BCM pin number
        """
        self.pin = pin
        self._GPIO = None

    def setup(self) -> None:
        if self._GPIO is not None:
            return
        try:
            import RPi.GPIO as GPIO  # type: ignore
        except Exception as exc:
            raise RuntimeError("RPi.GPIO is required on Raspberry Pi to drive the wake pin") from exc

        GPIO.setwarnings(False)
        GPIO.setmode(GPIO.BCM)
        GPIO.setup(self.pin, GPIO.OUT)
        self._GPIO = GPIO

    def high(self) -> None:
        self._require().output(self.pin, self._GPIO.HIGH)

    def low(self) -> None:
        self._require().output(self.pin, self._GPIO.LOW)

    def pulse(self) -> None:
        """High, low, then high again while the device boots."""
        logger.info("Pulsing wake pin %d", self.pin)
        self.high()
        time.sleep(Timing.PULSE_HIGH)
        self.low()
        time.sleep(Timing.PULSE_LOW)
        self.high()
        time.sleep(Timing.PULSE_BOOT)

    def cleanup(self) -> None:
        if self._GPIO is not None:
            self._GPIO.cleanup(self.pin)
            self._GPIO = None

    def _require(self):
        if self._GPIO is None:
            raise RuntimeError("wake pin not set up")
        return self._GPIO


class PowerSequencer:
    """Decides whether the device is awake and brings it into the OI."""

    def __init__(self, codec: SensorCodec, pin: WakePin):
        self.codec = codec
        self.pin = pin

    def is_on(self) -> bool:
        """True if the device answers an OI mode query, whatever the mode."""
        try:
            self.codec.query([Sensors.OI_MODE])
        except TransportError as exc:
            logger.info("Device not responding: %s", exc)
            return False
        except FrameError as exc:
            # answered, just not with a frame we can read
            logger.warning("Unreadable mode frame: %s", exc)
        return True

    def probe(self) -> DeviceStatus:
        """
        Read OI mode and charging sources.

        Unresponsive on transport failure. A frame that passes the checksum
        but cannot be decoded still means the device answered, so the status
        is responsive with mode and charging unknown.
        """
        try:
            result = self.codec.query([Sensors.OI_MODE, Sensors.CHARGING_SOURCES])
        except TransportError as exc:
            logger.info("Device not responding: %s", exc)
            return DeviceStatus.unresponsive()
        except FrameError as exc:
            logger.warning("Unreadable probe frame: %s", exc)
            return DeviceStatus(responsive=True)
        return DeviceStatus(
            responsive=True,
            mode=result[Sensors.OI_MODE.packet_id],
            charging=result[Sensors.CHARGING_SOURCES.packet_id],
        )

    def wake(self) -> DeviceStatus:
        """
        Wake the device and send it exactly one of Start or Clean.

        Returns:
            The status seen by the probe taken before waking
        """
        status = self.probe()
        if not status.responsive:
            self.pin.pulse()

        if status.is_charging:
            # Start is ignored on the dock
            self.codec.send(Opcode.CLEAN)
            time.sleep(Timing.CHARGING_CLEAN)
        else:
            self.codec.send(Opcode.START)
        return status
