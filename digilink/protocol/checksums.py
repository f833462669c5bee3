"""
API frame checksum calculation and validation.

The checksum covers every byte after the length field (frame kind through
the last field):
- Sum those bytes
- Keep only the lower 8 bits (modulo 256)
- Subtract from 0xFF

A frame is intact when the covered bytes plus the trailing checksum sum to
0xFF modulo 256.
"""

from __future__ import annotations

from digilink.exceptions import FrameError
from digilink.protocol.constants import ProtocolConstants


def calculate_checksum(frame: bytes | bytearray | memoryview) -> int:
    """
    Calculate the checksum for a frame without its trailing checksum byte.

    Args:
        frame: Frame from the delimiter through the last field.

    Returns:
        Checksum byte value (0-255).

    Raises:
        FrameError: If the frame is shorter than the minimum frame size.

    Example:
        >>> calculate_checksum(b"\\x7e\\x00\\x04\\x08\\x01NI")
        95
    """
    if len(frame) < ProtocolConstants.MIN_CHECKSUM_FRAME:
        raise FrameError(
            "Frame length does not meet minimum requirements",
            raw_data=bytes(frame),
        )
    return 0xFF - (sum(frame[ProtocolConstants.HEADER_SIZE:]) & 0xFF)


def append_checksum(frame: bytes | bytearray) -> bytes:
    """
    Calculate the checksum and append it to the frame.

    Args:
        frame: Frame from the delimiter through the last field.

    Returns:
        Frame with the checksum byte appended.
    """
    return bytes(frame) + bytes([calculate_checksum(frame)])


def validate_checksum(frame: bytes | bytearray | memoryview) -> bool:
    """
    Validate a complete frame including its trailing checksum byte.

    Args:
        frame: Complete frame from delimiter through checksum.

    Returns:
        True if the checksum is valid, False otherwise (including frames
        too short to carry one).
    """
    if len(frame) < ProtocolConstants.MIN_CHECKSUM_FRAME + 1:
        return False
    return (sum(frame[ProtocolConstants.HEADER_SIZE:]) & 0xFF) == 0xFF
