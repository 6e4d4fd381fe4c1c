"""
Open Interface Protocol for iRobot Roomba
=========================================

This module defines the opcodes, sensor packets and timing used to talk
to a Roomba over its serial Open Interface (OI).

Protocol Overview
-----------------
Commands are single opcode bytes. Sensor values are requested with the
Query List opcode and come back as one framed response.

Input (Host → Device):
    128               - Start (enter Passive mode)
    133               - Power off
    135               - Clean (default cleaning mode)
    143               - Seek dock
    148,N,id1..idN    - Query list of N sensor packets

Output (Device → Host):
    19,len,id1,data1..,id2,data2..,checksum

Multi-byte sensor values are reconstructed least-significant byte first.
"""


class Opcode:
    """Single-byte OI commands."""
    START = 128          # Wake into Passive mode
    POWER_OFF = 133      # Power down
    CLEAN = 135          # Start default cleaning cycle
    DOCK = 143           # Seek home base
    QUERY_LIST = 148     # Request a list of sensor packets


# First byte of every query response frame
FRAME_HEADER = 19

# Bytes a frame carries besides the packets: header, length, checksum
FRAME_OVERHEAD = 3

# The UART hands back at most this many bytes per read
READ_CHUNK_SIZE = 8

# Serial link defaults
DEFAULT_PORT = "/dev/serial0"
DEFAULT_BAUDRATE = 115200
DEFAULT_READ_TIMEOUT_S = 1.0

# BCM pin wired to the Roomba's BRC (wake) line
DEFAULT_WAKE_PIN = 23

# HTTP service defaults
DEFAULT_HTTP_HOST = "0.0.0.0"
DEFAULT_HTTP_PORT = 8080

# Checksum attempts per query before giving up (None = retry forever)
DEFAULT_MAX_ATTEMPTS = 20


class Timing:
    """Blocking waits used while sequencing the device (seconds)."""
    QUERY_SETTLE = 0.1       # after sending a query, before reading
    CHECKSUM_RETRY = 0.005   # between checksum attempts
    PULSE_HIGH = 0.1         # wake pulse: first high
    PULSE_LOW = 0.5          # wake pulse: low
    PULSE_BOOT = 2.0         # wake pulse: high while the device boots
    CHARGING_CLEAN = 0.3     # after Clean issued to leave the dock
    CLEAN_POWER_OFF = 0.1    # Clean: after power off, before wake
    DOCK_POWER_OFF = 1.0     # Dock: after power off, before wake
    AFTER_WAKE = 0.1         # after wake, before the motion opcode
