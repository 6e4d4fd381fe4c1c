"""Exceptions raised by the PyRoomba library."""


class RoombaError(Exception):
    """Base class for all device errors."""


class TransportError(RoombaError):
    """A read or write on the serial link failed or timed out."""


class ChecksumRetriesExhausted(TransportError):
    """No response frame passed the checksum within the allowed attempts."""

    def __init__(self, attempts: int):
        super().__init__(f"no valid response frame after {attempts} attempts")
        self.attempts = attempts


class FrameError(RoombaError):
    """An accepted frame does not match the sensor packets that were requested."""
