"""
Tests for the wake pin and the power/wake sequencer.

Run with:
    pytest tests/test_wake.py -v
"""

import sys
from unittest.mock import MagicMock, Mock, call, patch

import pytest

from pyroomba import (
    DeviceState,
    PowerSequencer,
    SensorCodec,
    Sensors,
    WakePin,
)


@pytest.fixture
def sequencer(mock_serial, mock_pin):
    return PowerSequencer(SensorCodec(mock_serial), mock_pin)


@pytest.fixture
def sleeps(mock_serial):
    def record_sleep(seconds):
        mock_serial.events.append(("sleep", seconds))

    with patch('time.sleep', side_effect=record_sleep) as sleep:
        yield sleep


# =============================================================================
# WAKE PIN
# =============================================================================

class TestWakePin:
    """Test GPIO handling of the BRC line."""

    @pytest.fixture
    def gpio(self):
        gpio = MagicMock()
        rpi = MagicMock()
        rpi.GPIO = gpio
        with patch.dict(sys.modules, {'RPi': rpi, 'RPi.GPIO': gpio}):
            yield gpio

    def test_setup_configures_output(self, gpio):
        pin = WakePin(23)
        pin.setup()
        gpio.setmode.assert_called_once_with(gpio.BCM)
        gpio.setup.assert_called_once_with(23, gpio.OUT)

    def test_setup_without_rpi_gpio(self):
        with patch.dict(sys.modules, {'RPi': None, 'RPi.GPIO': None}):
            with pytest.raises(RuntimeError):
                WakePin(23).setup()

    def test_output_before_setup(self):
        with pytest.raises(RuntimeError):
            WakePin(23).high()

    def test_pulse_sequence(self, gpio):
        manager = Mock()
        gpio.output = manager.output
        pin = WakePin(23)
        pin.setup()

        with patch('pyroomba.wake.time.sleep', manager.sleep):
            pin.pulse()

        assert manager.mock_calls == [
            call.output(23, gpio.HIGH),
            call.sleep(0.1),
            call.output(23, gpio.LOW),
            call.sleep(0.5),
            call.output(23, gpio.HIGH),
            call.sleep(2.0),
        ]

    def test_cleanup_releases_pin(self, gpio):
        pin = WakePin(18)
        pin.setup()
        pin.cleanup()
        gpio.cleanup.assert_called_once_with(18)
        with pytest.raises(RuntimeError):
            pin.low()


# =============================================================================
# LIVENESS AND PROBE
# =============================================================================

class TestLiveness:
    """Test device liveness and state probes."""

    def test_is_on_when_answering(self, sequencer, mock_serial, sleeps):
        mock_serial.inject_response([(Sensors.OI_MODE, 1)])
        assert sequencer.is_on() is True
        assert mock_serial.get_all_commands() == [[148, 1, 35]]

    def test_is_on_with_mode_zero(self, sequencer, mock_serial, sleeps):
        mock_serial.inject_response([(Sensors.OI_MODE, 0)])
        assert sequencer.is_on() is True

    def test_is_off_when_silent(self, sequencer, mock_serial, sleeps):
        assert sequencer.is_on() is False

    def test_probe_reads_mode_and_charging(self, sequencer, mock_serial, sleeps):
        mock_serial.inject_response([(Sensors.OI_MODE, 2), (Sensors.CHARGING_SOURCES, 0)])
        status = sequencer.probe()
        assert status.responsive
        assert status.mode == 2
        assert status.charging == 0
        assert status.state == DeviceState.ACTIVE
        assert mock_serial.get_all_commands() == [[148, 2, 35, 34]]

    def test_probe_charging_overlay(self, sequencer, mock_serial, sleeps):
        mock_serial.inject_response([(Sensors.OI_MODE, 1), (Sensors.CHARGING_SOURCES, 2)])
        assert sequencer.probe().state == DeviceState.CHARGING

    def test_is_on_with_undecodable_frame(self, sequencer, mock_serial, sleeps):
        """A checksum-valid frame that fails to decode still means the device answered."""
        # leading junk byte shifts the decode walk; sum is still 0 mod 256
        mock_serial.inject(bytes([0, 19, 2, 35, 1, 199]))
        assert sequencer.is_on() is True

    def test_probe_undecodable_frame_is_responsive(self, sequencer, mock_serial, sleeps):
        mock_serial.inject(bytes([0, 19, 4, 35, 1, 34, 0, 163]))
        status = sequencer.probe()
        assert status.responsive
        assert status.mode is None
        assert status.charging is None
        assert status.state == DeviceState.PASSIVE

    def test_probe_silent_device(self, sequencer, mock_serial, sleeps):
        status = sequencer.probe()
        assert not status.responsive
        assert status.mode is None
        assert status.state == DeviceState.OFF


# =============================================================================
# WAKE
# =============================================================================

class TestWake:
    """Test the wake choreography."""

    def test_silent_device_pulsed_then_started(self, sequencer, mock_serial, mock_pin, sleeps):
        mock_pin.pulse.side_effect = lambda: mock_serial.events.append(("pulse",))
        sequencer.wake()

        mock_pin.pulse.assert_called_once_with()
        assert mock_serial.events == [
            ("write", [148, 2, 35, 34]),
            ("sleep", 0.1),
            ("pulse",),
            ("write", [128]),
        ]

    def test_awake_not_charging_sends_start(self, sequencer, mock_serial, mock_pin, sleeps):
        mock_serial.inject_response([(Sensors.OI_MODE, 1), (Sensors.CHARGING_SOURCES, 0)])
        sequencer.wake()

        mock_pin.pulse.assert_not_called()
        assert mock_serial.get_all_commands()[-1] == [128]
        assert [128] in mock_serial.get_all_commands()
        assert [135] not in mock_serial.get_all_commands()

    def test_charging_sends_clean_and_waits(self, sequencer, mock_serial, mock_pin, sleeps):
        mock_serial.inject_response([(Sensors.OI_MODE, 1), (Sensors.CHARGING_SOURCES, 1)])
        sequencer.wake()

        mock_pin.pulse.assert_not_called()
        assert mock_serial.events[-2:] == [("write", [135]), ("sleep", 0.3)]
        assert [128] not in mock_serial.get_all_commands()

    def test_undecodable_probe_sends_start_without_pulse(self, sequencer, mock_serial, mock_pin, sleeps):
        mock_serial.inject(bytes([0, 19, 4, 35, 1, 34, 0, 163]))
        sequencer.wake()

        mock_pin.pulse.assert_not_called()
        assert mock_serial.get_all_commands() == [[148, 2, 35, 34], [128]]

    def test_exactly_one_terminal_opcode(self, sequencer, mock_serial, sleeps):
        mock_serial.inject_response([(Sensors.OI_MODE, 0), (Sensors.CHARGING_SOURCES, 0)])
        sequencer.wake()
        opcodes = [cmd for cmd in mock_serial.get_all_commands() if cmd[0] != 148]
        assert opcodes == [[128]]

    def test_returns_probe_status(self, sequencer, mock_serial, sleeps):
        mock_serial.inject_response([(Sensors.OI_MODE, 3), (Sensors.CHARGING_SOURCES, 0)])
        status = sequencer.wake()
        assert status.mode == 3
