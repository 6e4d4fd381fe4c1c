"""
PyRoomba - iRobot Roomba Open Interface Library
===============================================

A Python library for driving an iRobot Roomba over its serial Open
Interface from a Raspberry Pi, plus a small HTTP service on top.

Example:
    >>> from pyroomba import PyRoomba
    >>>
    >>> with PyRoomba('/dev/serial0') as roomba:
    ...     roomba.clean()
    ...     battery = roomba.get_battery()
"""

from .roomba import PyRoomba
from .data_types import (
    SensorPacket,
    SensorQuery,
    SensorResult,
    Sensors,
    BatteryData,
    OIMode,
    DeviceState,
    DeviceStatus,
)
from .commands import (
    Opcode,
    Timing,
    FRAME_HEADER,
    READ_CHUNK_SIZE,
)
from .exceptions import (
    RoombaError,
    TransportError,
    ChecksumRetriesExhausted,
    FrameError,
)
from .protocol import SensorCodec, FrameAssembler, encode_request, decode_frame, checksum_ok
from .wake import WakePin, PowerSequencer

__version__ = "1.0.0"
__all__ = [
    "PyRoomba",
    "SensorPacket",
    "SensorQuery",
    "SensorResult",
    "Sensors",
    "BatteryData",
    "OIMode",
    "DeviceState",
    "DeviceStatus",
    "Opcode",
    "Timing",
    "FRAME_HEADER",
    "READ_CHUNK_SIZE",
    "RoombaError",
    "TransportError",
    "ChecksumRetriesExhausted",
    "FrameError",
    "SensorCodec",
    "FrameAssembler",
    "encode_request",
    "decode_frame",
    "checksum_ok",
    "WakePin",
    "PowerSequencer",
]
