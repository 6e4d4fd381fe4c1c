"""Shared fixtures: a scripted serial port and frame builders."""

import threading
from collections import deque
from typing import List, Sequence, Tuple
from unittest.mock import Mock, patch

import pytest

from pyroomba import PyRoomba, SensorPacket, SensorQuery, WakePin
from pyroomba.commands import READ_CHUNK_SIZE


def make_frame(values: Sequence[Tuple[SensorPacket, int]]) -> bytes:
    """Build a valid response frame for ``[(packet, value), ...]``."""
    payload = bytearray()
    for packet, value in values:
        payload.append(packet.packet_id)
        payload.extend(value.to_bytes(packet.width, "little"))
    frame = bytearray([19, len(payload)]) + payload
    frame.append(-sum(frame) & 0xFF)
    return bytes(frame)


def split_reads(frame: bytes, rounds: int) -> List[bytes]:
    """Spread a frame over ``rounds`` non-empty reads of at most 8 bytes."""
    base, extra = divmod(len(frame), rounds)
    sizes = [base + 1] * extra + [base] * (rounds - extra)
    assert all(0 < s <= READ_CHUNK_SIZE for s in sizes)
    chunks, pos = [], 0
    for size in sizes:
        chunks.append(frame[pos:pos + size])
        pos += size
    return chunks


class MockSerial:
    """Mock serial port returning scripted reads; an empty queue reads as a timeout."""

    def __init__(self):
        self.written: List[List[int]] = []
        self.events: list = []
        self.reads = deque()
        self.read_sizes: List[int] = []
        self.is_open = True
        self._lock = threading.Lock()

    def write(self, data: bytes) -> int:
        with self._lock:
            self.written.append(list(data))
            self.events.append(("write", list(data)))
        return len(data)

    def read(self, size: int = 1) -> bytes:
        with self._lock:
            self.read_sizes.append(size)
            if not self.reads:
                return b""
            chunk = self.reads.popleft()
        if isinstance(chunk, Exception):
            raise chunk
        return chunk[:size]

    def inject(self, *chunks) -> None:
        """Queue raw reads (bytes, lists of ints, or exceptions to raise)."""
        with self._lock:
            for chunk in chunks:
                self.reads.append(bytes(chunk) if isinstance(chunk, (list, tuple)) else chunk)

    def inject_response(self, values: Sequence[Tuple[SensorPacket, int]]) -> None:
        """Queue a valid frame spread over the reads its query will issue."""
        query = SensorQuery(packet for packet, _ in values)
        self.inject(*split_reads(make_frame(values), query.read_rounds))

    def close(self):
        self.is_open = False

    def get_all_commands(self) -> List[List[int]]:
        with self._lock:
            return list(self.written)


@pytest.fixture
def mock_serial():
    """Create a mock serial port."""
    return MockSerial()


@pytest.fixture
def mock_pin():
    """Wake pin that records pulses instead of driving GPIO."""
    return Mock(spec=WakePin)


@pytest.fixture
def mock_roomba(mock_serial, mock_pin):
    """Roomba attached to the mock serial port, with sleeps recorded as events."""
    roomba = PyRoomba('/dev/test', wake_pin=mock_pin)
    roomba.attach(mock_serial)
    mock_pin.pulse.side_effect = lambda: mock_serial.events.append(("pulse",))

    def record_sleep(seconds):
        mock_serial.events.append(("sleep", seconds))

    with patch('time.sleep', side_effect=record_sleep):
        yield roomba, mock_serial
