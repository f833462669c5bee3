"""
API frame kinds and protocol constants.

Frame kind identifiers and wire constants for the DigiMesh API mode frame
protocol. All multi-byte integers on the wire are big-endian.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Final


class FrameKind(IntEnum):
    """
    API frame kind identifiers.

    Each frame carries its kind as the first byte after the length field.
    Outbound kinds are paired with a reply kind in the frame registry.
    """

    TRANSMIT_REQUEST = 0x90
    """Send an RF payload to a 64-bit destination."""

    TRANSMIT_STATUS = 0x8B
    """Delivery report for a transmit request."""

    AT_COMMAND = 0x08
    """Query or set a local AT parameter."""

    AT_COMMAND_RESPONSE = 0x88
    """Reply to a local AT command."""

    REMOTE_AT_COMMAND = 0x17
    """Query or set an AT parameter on a remote radio."""

    REMOTE_AT_COMMAND_RESPONSE = 0x97
    """Reply to a remote AT command."""

    NULL = 0xFF
    """No reply expected."""


class MessagingMode(IntEnum):
    """Transmit request delivery method, stored in option bits 6-7."""

    POINT_TO_POINT = 0b01
    REPEATER = 0b10
    DIGIMESH = 0b11


class CommandStatus(IntEnum):
    """Status byte carried by AT command responses."""

    OK = 0
    ERROR = 1
    INVALID_COMMAND = 2
    INVALID_PARAMETER = 3
    TX_FAILURE = 4


class ProtocolConstants:
    """
    API frame protocol constants.

    Values are taken from the DigiMesh API mode frame format. Timeouts are
    in seconds.
    """

    # ===== Framing =====

    DELIMITER: Final[int] = 0x7E
    """Start-of-frame delimiter."""

    HEADER_SIZE: Final[int] = 3
    """Delimiter plus 16-bit length field."""

    MIN_CHECKSUM_FRAME: Final[int] = 5
    """Shortest frame a checksum can be computed over."""

    MAX_FRAME_LENGTH: Final[int] = 0xFFFF
    """Largest value of the 16-bit length field."""

    # ===== Addressing =====

    BROADCAST_ADDR: Final[int] = 0xFFFF
    """64-bit broadcast destination address."""

    UNKNOWN_NETWORK_ADDR: Final[int] = 0xFFFE
    """16-bit network address placeholder written into addressed frames."""

    # ===== Per-kind header overhead (bytes subtracted from MAX_FRAME_LENGTH) =====

    TRANSMIT_REQUEST_OVERHEAD: Final[int] = 111
    """Reserved headroom for transmit request payloads."""

    AT_COMMAND_OVERHEAD: Final[int] = 4
    """Kind + frame id + two command bytes."""

    REMOTE_AT_COMMAND_OVERHEAD: Final[int] = 15
    """Kind + frame id + address + network address + options + command."""

    # ===== Reply sizes =====

    TRANSMIT_STATUS_SIZE: Final[int] = 11
    """Transmit status replies are fixed size."""

    AT_COMMAND_RESPONSE_MIN_SIZE: Final[int] = 8
    """Header through the status byte."""

    REMOTE_AT_COMMAND_RESPONSE_MIN_SIZE: Final[int] = 18
    """Header through the status byte."""

    # ===== Timing (seconds) =====

    DEFAULT_TIMEOUT: Final[float] = 20.0
    """Ambient transport read timeout."""

    AT_COMMAND_TIMEOUT: Final[float] = 0.1
    """Reply wait for local AT commands."""

    REMOTE_AT_COMMAND_TIMEOUT: Final[float] = 3.0
    """Reply wait for remote AT commands."""

    INTER_BYTE_TIMEOUT: Final[float] = 0.1
    """Silence that ends a variable-length reply."""

    DISCOVERY_TIMEOUT: Final[float] = 15.0
    """Default discovery window."""

    GUARD_TIME: Final[float] = 1.0
    """Silence required on either side of the command mode escape sequence."""

    # ===== Line mode =====

    CARRIAGE_RETURN: Final[int] = 0x0D
    """Line mode terminator."""

    ESCAPE_SEQUENCE: Final[str] = "+++"
    """Enters line command mode; sent without the AT prefix."""

    AT_PREFIX: Final[bytes] = b"AT"

    # ===== Serial Port Configuration =====

    DEFAULT_BAUD_RATE: Final[int] = 9600
    """Factory default baud rate of DigiMesh radios."""


# AT command names used by the device session

AT_SERIAL_HIGH: Final[str] = "SH"
"""Upper 32 bits of the radio's 64-bit address."""

AT_SERIAL_LOW: Final[str] = "SL"
"""Lower 32 bits of the radio's 64-bit address."""

AT_NODE_ID: Final[str] = "NI"
AT_FIRMWARE_VERSION: Final[str] = "VR"
AT_HARDWARE_VERSION: Final[str] = "HV"
AT_NODE_DISCOVER: Final[str] = "ND"
AT_EXIT_COMMAND_MODE: Final[str] = "CN"

OUTBOUND_KINDS: Final[frozenset[FrameKind]] = frozenset({
    FrameKind.TRANSMIT_REQUEST,
    FrameKind.AT_COMMAND,
    FrameKind.REMOTE_AT_COMMAND,
})
"""Frame kinds the host sends to the radio."""

INBOUND_KINDS: Final[frozenset[FrameKind]] = frozenset({
    FrameKind.TRANSMIT_STATUS,
    FrameKind.AT_COMMAND_RESPONSE,
    FrameKind.REMOTE_AT_COMMAND_RESPONSE,
    FrameKind.NULL,
})
"""Frame kinds the radio sends to the host."""
