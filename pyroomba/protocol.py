"""
Sensor Query Codec for the Roomba Open Interface
================================================

Builds Query List requests, reassembles the response frame from the
short reads the UART hands back, validates its checksum and decodes the
packet values.

Framing
-------
A response looks like::

    [19][len][id1][data1...][id2][data2...]...[checksum]

The link is half-duplex and noisy, so the bytes of one attempt are
collected over a fixed number of reads:

- First read starts with 19: trust it as the frame start and keep
  ``2 + len + 1`` bytes of it, dropping whatever trails.
- Later read starts with 19: a stray header mid-stream, drop the read.
- Anything else is appended as-is.

The assembled bytes are accepted when their sum has a zero low byte.
Otherwise the buffer is discarded and the reads are repeated.
"""

import logging
import time
from typing import Iterable, Optional, Union

import serial

from .commands import (
    DEFAULT_MAX_ATTEMPTS,
    FRAME_HEADER,
    READ_CHUNK_SIZE,
    Opcode,
    Timing,
)
from .data_types import SensorPacket, SensorQuery, SensorResult
from .exceptions import ChecksumRetriesExhausted, FrameError, TransportError


logger = logging.getLogger(__name__)


def encode_request(query: SensorQuery) -> bytes:
    """Query List request: ``[148, N, id_1 .. id_N]``."""
    return bytes([Opcode.QUERY_LIST, len(query)] + query.packet_ids)


def checksum_ok(frame: bytes) -> bool:
    """All bytes of a frame, checksum included, sum to 0 modulo 256."""
    return sum(frame) & 0xFF == 0


class FrameAssembler:
    """
    Collects the reads of one attempt into a candidate frame.

    Call :meth:`feed` once per read, in order. :meth:`reset` starts a new
    attempt, which also makes the next read the "first" one again.
    """

    def __init__(self):
        self._buffer = bytearray()
        self._rounds = 0

    def feed(self, chunk: bytes) -> None:
        if chunk and chunk[0] == FRAME_HEADER:
            if self._rounds == 0:
                length = chunk[1] if len(chunk) > 1 else 0
                self._buffer.extend(chunk[:2 + length + 1])
            # header on a later read: stray marker, ignore the read
        else:
            self._buffer.extend(chunk)
        self._rounds += 1

    def reset(self) -> None:
        self._buffer.clear()
        self._rounds = 0

    @property
    def frame(self) -> bytes:
        return bytes(self._buffer)


def decode_frame(frame: bytes, query: SensorQuery) -> SensorResult:
    """
    Decode an accepted frame into ``{packet_id: value}``.

    The walk starts after the header and length bytes and stops at the
    checksum byte. Values are unsigned, least-significant byte first.

    Raises:
        FrameError: Unknown packet id, truncated field, or a result that
            does not hold exactly one value per requested packet
    """
    result: SensorResult = {}
    end = len(frame) - 1
    i = 2
    while i < end:
        packet_id = frame[i]
        width = query.widths.get(packet_id)
        if width is None:
            raise FrameError(f"unexpected packet id {packet_id} in {list(frame)}")
        i += 1
        if i + width > end:
            raise FrameError(f"packet {packet_id} truncated in {list(frame)}")
        result[packet_id] = int.from_bytes(frame[i:i + width], "little")
        i += width

    missing = set(query.widths) - set(result)
    if missing:
        raise FrameError(f"packets {sorted(missing)} missing from {list(frame)}")
    return result


class SensorCodec:
    """
    Request/response cycles over a serial channel.

    The channel is anything with pyserial's ``read(size)`` and
    ``write(data)``; it must be opened with a read timeout so that a
    silent device yields an empty read instead of blocking forever.

    Example:
        >>> codec = SensorCodec(serial.Serial('/dev/serial0', 115200, timeout=1.0))
        >>> codec.query([Sensors.CHARGE, Sensors.CAPACITY])
        {25: 1500, 26: 2696}
    """

    def __init__(
        self,
        channel,
        max_attempts: Optional[int] = DEFAULT_MAX_ATTEMPTS,
        read_size: int = READ_CHUNK_SIZE,
    ):
        """
        Args:
            channel: Open serial port (``serial.Serial`` or compatible)
            max_attempts: Checksum attempts per query; None retries forever
            read_size: Maximum bytes requested per read
        """
        if max_attempts is not None and max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.channel = channel
        self.max_attempts = max_attempts
        self.read_size = read_size

    def send(self, *opcodes: int) -> None:
        """Write one or more command bytes."""
        self._write(bytes(opcodes))

    def query(self, packets: Union[SensorQuery, Iterable[SensorPacket]]) -> SensorResult:
        """
        Request a set of sensor packets and decode the response.

        Raises:
            TransportError: A read or write failed or timed out
            ChecksumRetriesExhausted: No frame validated within max_attempts
            FrameError: The validated frame does not match the request
        """
        query = packets if isinstance(packets, SensorQuery) else SensorQuery(packets)

        self._write(encode_request(query))
        time.sleep(Timing.QUERY_SETTLE)

        assembler = FrameAssembler()
        attempt = 0
        while True:
            attempt += 1
            for _ in range(query.read_rounds):
                assembler.feed(self._read())
            frame = assembler.frame
            if checksum_ok(frame):
                break

            logger.warning("Checksum mismatch on attempt %d: %s", attempt, list(frame))
            assembler.reset()
            if self.max_attempts is not None and attempt >= self.max_attempts:
                raise ChecksumRetriesExhausted(attempt)
            time.sleep(Timing.CHECKSUM_RETRY)

        logger.debug("received %s", list(frame))
        result = decode_frame(frame, query)
        logger.debug("decoded %s", result)
        return result

    def _write(self, data: bytes) -> None:
        try:
            self.channel.write(data)
        except (serial.SerialException, OSError) as exc:
            raise TransportError(f"serial write failed: {exc}") from exc
        logger.debug("send %s", list(data))

    def _read(self) -> bytes:
        try:
            chunk = self.channel.read(self.read_size)
        except (serial.SerialException, OSError) as exc:
            raise TransportError(f"serial read failed: {exc}") from exc
        if not chunk:
            raise TransportError("serial read timed out")
        return bytes(chunk)
