"""
Data Types for iRobot Roomba (Open Interface)
=============================================

This module contains the data structures used by the PyRoomba library.
These are pure Python dataclasses with no hardware dependencies.

A sensor query names an ordered set of packets:
    148,2,25,26     - request battery charge and capacity

and the device answers with one frame:
    19,6,25,lo,hi,26,lo,hi,checksum
"""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Dict, Iterable, List, Optional, Tuple

from .commands import FRAME_OVERHEAD, READ_CHUNK_SIZE


# packet id -> decoded unsigned value
SensorResult = Dict[int, int]


@dataclass(frozen=True)
class SensorPacket:
    """
    One telemetry field in the device's sensor table.

    Attributes:
        packet_id: OI packet number (0-255)
        width: Number of data bytes on the wire (1 or 2)
    """
    packet_id: int
    width: int

    def __post_init__(self):
        if not 0 <= self.packet_id <= 255:
            raise ValueError(f"packet id out of range: {self.packet_id}")
        if self.width not in (1, 2):
            raise ValueError(f"unsupported packet width: {self.width}")

    @property
    def max_value(self) -> int:
        return (1 << (8 * self.width)) - 1


class Sensors:
    """Sensor packets used by this library."""
    CHARGING_STATE = SensorPacket(21, 1)
    VOLTAGE = SensorPacket(22, 2)        # mV
    TEMPERATURE = SensorPacket(24, 1)    # degrees C
    CHARGE = SensorPacket(25, 2)         # mAh
    CAPACITY = SensorPacket(26, 2)       # mAh
    CHARGING_SOURCES = SensorPacket(34, 1)
    OI_MODE = SensorPacket(35, 1)


class SensorQuery:
    """
    Ordered, non-empty set of sensor packets requested together.

    Example:
        >>> query = SensorQuery([Sensors.CHARGE, Sensors.CAPACITY])
        >>> query.expected_length
        9
        >>> query.read_rounds
        2
    """

    def __init__(self, packets: Iterable[SensorPacket]):
        self.packets: Tuple[SensorPacket, ...] = tuple(packets)
        if not self.packets:
            raise ValueError("a sensor query needs at least one packet")
        self.widths: Dict[int, int] = {}
        for packet in self.packets:
            if packet.packet_id in self.widths:
                raise ValueError(f"duplicate packet id in query: {packet.packet_id}")
            self.widths[packet.packet_id] = packet.width

    def __len__(self) -> int:
        return len(self.packets)

    def __iter__(self):
        return iter(self.packets)

    def __repr__(self) -> str:
        return f"SensorQuery({list(self.packet_ids)})"

    @property
    def packet_ids(self) -> List[int]:
        return [p.packet_id for p in self.packets]

    @property
    def expected_length(self) -> int:
        """Total response bytes: header, length, each id plus its data, checksum."""
        return FRAME_OVERHEAD + sum(p.width + 1 for p in self.packets)

    @property
    def read_rounds(self) -> int:
        """Number of reads issued per attempt, whatever each read returns."""
        return self.expected_length // READ_CHUNK_SIZE + 1


@dataclass
class BatteryData:
    """
    Battery telemetry read from packets 25 and 26.

    Units:
        - charge: mAh currently stored
        - capacity: mAh when full (estimated by the robot)
    """
    charge: int = 0
    capacity: int = 0

    @classmethod
    def from_result(cls, result: SensorResult) -> 'BatteryData':
        return cls(
            charge=result[Sensors.CHARGE.packet_id],
            capacity=result[Sensors.CAPACITY.packet_id],
        )

    @property
    def percent(self) -> Optional[float]:
        """Charge as a percentage of capacity, None if capacity is unknown."""
        if self.capacity <= 0:
            return None
        return 100.0 * self.charge / self.capacity

    def to_dict(self) -> Dict[str, int]:
        return {"charge": self.charge, "capacity": self.capacity}


class OIMode(IntEnum):
    """Open Interface modes reported by packet 35."""
    OFF = 0
    PASSIVE = 1
    SAFE = 2
    FULL = 3


class DeviceState(Enum):
    """Device state as inferred from a probe."""
    OFF = "off"              # no answer on the serial link
    PASSIVE = "passive"      # awake (OI Off or Passive), motion opcodes not accepted
    ACTIVE = "active"        # Safe or Full mode
    CHARGING = "charging"    # on a charging source, any mode


@dataclass
class DeviceStatus:
    """
    Result of probing the device for OI mode and charging flag.

    ``mode`` and ``charging`` are None when the device did not answer.
    Nothing here is cached; every probe builds a fresh status.
    """
    responsive: bool
    mode: Optional[int] = None
    charging: Optional[int] = None

    @classmethod
    def unresponsive(cls) -> 'DeviceStatus':
        return cls(responsive=False)

    @property
    def is_charging(self) -> bool:
        return bool(self.charging)

    @property
    def state(self) -> DeviceState:
        if not self.responsive:
            return DeviceState.OFF
        if self.is_charging:
            return DeviceState.CHARGING
        if self.mode in (OIMode.SAFE, OIMode.FULL):
            return DeviceState.ACTIVE
        # OI mode Off still answers queries; it just needs Start like Passive
        return DeviceState.PASSIVE

    def to_dict(self) -> Dict[str, object]:
        return {
            "state": self.state.value,
            "responsive": self.responsive,
            "mode": self.mode,
            "charging": self.charging,
        }
