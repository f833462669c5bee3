"""
API frame encoding and decoding.

Wire format:

    [0x7E][LEN_HI][LEN_LO][KIND][FRAME_ID][FIELDS...][CHECKSUM]

- The length counts KIND through the last field; it excludes the delimiter,
  the length field itself and the checksum
- The checksum is 0xFF minus the low byte of the sum of KIND..last field
- FRAME_ID is a random byte per request unless the caller supplies one

Decoding is read-driven rather than length-driven: the frame reader
accumulates bytes until the line goes quiet and the buffer is then sliced at
fixed, kind-specific offsets. The declared length is not consulted and the
last accumulated byte is taken as the checksum. Offsets:

    TransmitStatus (11 bytes)
        4 frame_id, 7 retry_count, 8 deliver_status, 9 discovery_status
    AtCommandResponse
        4 frame_id, 5-6 command, 7 status, data = [8, len-1) when len > 9
    RemoteAtCommandResponse
        4 frame_id, 5-12 address, 15-16 command, 17 status,
        data = [18, len-1) when len > 18
"""

from __future__ import annotations

import logging
import random
import struct
from collections.abc import Callable

from digilink.exceptions import FrameError, PayloadError
from digilink.protocol.checksums import calculate_checksum, validate_checksum
from digilink.protocol.constants import FrameKind, ProtocolConstants
from digilink.protocol.frames import (
    AtCommand,
    AtCommandResponse,
    InboundFrame,
    NullFrame,
    OutboundFrame,
    RemoteAtCommand,
    RemoteAtCommandResponse,
    TransmitRequest,
    TransmitStatus,
)

# Module logger
logger = logging.getLogger(__name__)


def generate_frame_id() -> int:
    """Generate a random per-request frame id byte."""
    return random.getrandbits(8)


def max_payload_size(kind: FrameKind) -> int:
    """
    Get the largest payload/parameter size an outbound frame kind accepts.

    Raises:
        ValueError: If the kind is not an outbound kind.
    """
    try:
        overhead = _OVERHEAD[kind]
    except KeyError:
        raise ValueError(f"{kind!r} is not an outbound frame kind") from None
    return ProtocolConstants.MAX_FRAME_LENGTH - overhead


def _check_payload(kind: FrameKind, payload: bytes | None) -> None:
    if payload is None:
        return
    limit = max_payload_size(kind)
    if len(payload) > limit:
        raise PayloadError("Payload exceeds max size", size=len(payload), limit=limit)


# ===== Encoding =====


def _transmit_request_fields(frame: TransmitRequest) -> bytes:
    options = frame.options.to_byte() if frame.options is not None else 0
    return (
        struct.pack(
            ">QHBB",
            frame.dest_addr,
            ProtocolConstants.UNKNOWN_NETWORK_ADDR,
            frame.broadcast_radius,
            options,
        )
        + bytes(frame.payload)
    )


def _at_command_fields(frame: AtCommand) -> bytes:
    return frame.command.encode("ascii") + bytes(frame.parameter or b"")


def _remote_at_command_fields(frame: RemoteAtCommand) -> bytes:
    options = frame.options.to_byte() if frame.options is not None else 0
    return (
        struct.pack(">QHB", frame.dest_addr, ProtocolConstants.UNKNOWN_NETWORK_ADDR, options)
        + frame.command.encode("ascii")
        + bytes(frame.parameter or b"")
    )


_OVERHEAD: dict[FrameKind, int] = {
    FrameKind.TRANSMIT_REQUEST: ProtocolConstants.TRANSMIT_REQUEST_OVERHEAD,
    FrameKind.AT_COMMAND: ProtocolConstants.AT_COMMAND_OVERHEAD,
    FrameKind.REMOTE_AT_COMMAND: ProtocolConstants.REMOTE_AT_COMMAND_OVERHEAD,
}

_ENCODERS: dict[FrameKind, Callable[..., bytes]] = {
    FrameKind.TRANSMIT_REQUEST: _transmit_request_fields,
    FrameKind.AT_COMMAND: _at_command_fields,
    FrameKind.REMOTE_AT_COMMAND: _remote_at_command_fields,
}


def encode_frame(frame: OutboundFrame, frame_id: int | None = None) -> bytes:
    """
    Encode an outbound frame to wire bytes.

    Args:
        frame: Frame to encode.
        frame_id: Frame id byte; a random byte is used when None.

    Returns:
        Complete frame including delimiter, length and checksum.

    Raises:
        PayloadError: If the payload or parameter is too large for the kind.
        ValueError: If frame_id is out of range or the kind cannot be encoded.

    Example:
        >>> encode_frame(AtCommand("NI"), frame_id=0x01)
        b'~\\x00\\x04\\x08\\x01NI_'
    """
    kind = frame.kind
    encoder = _ENCODERS.get(kind)
    if encoder is None:
        raise ValueError(f"Cannot encode frame kind {kind!r}")

    payload = frame.payload if kind == FrameKind.TRANSMIT_REQUEST else frame.parameter
    _check_payload(kind, payload)

    if frame_id is None:
        frame_id = generate_frame_id()
    elif not 0 <= frame_id <= 0xFF:
        raise ValueError(f"Frame id must be 0-255, got {frame_id}")

    packet = bytearray()
    packet.append(ProtocolConstants.DELIMITER)
    packet += b"\x00\x00"  # length placeholder
    packet.append(kind)
    packet.append(frame_id)
    packet += encoder(frame)

    length = len(packet) - ProtocolConstants.HEADER_SIZE
    struct.pack_into(">H", packet, 1, length)
    packet.append(calculate_checksum(packet))

    logger.debug("Encoded %s frame id=0x%02X: %s", kind.name, frame_id, packet.hex(" "))
    return bytes(packet)


# ===== Decoding =====


def _require(buffer: bytes, minimum: int, kind: FrameKind) -> None:
    if not buffer:
        raise FrameError(f"Empty buffer while decoding {kind.name}")
    if len(buffer) < minimum:
        raise FrameError(
            f"Buffer too small for {kind.name} (need {minimum}, have {len(buffer)})",
            raw_data=buffer,
        )
    # Offsets are fixed, so a misaligned header is reported but not fatal.
    if buffer[0] != ProtocolConstants.DELIMITER:
        logger.warning("Missing frame delimiter, found 0x%02X", buffer[0])
    if buffer[3] != kind:
        logger.warning("Expected %s (0x%02X), found 0x%02X", kind.name, kind, buffer[3])
    if not validate_checksum(buffer):
        # The declared length is not honored, so trailing bytes can upset the
        # sum without affecting the offset fields.
        logger.warning("Checksum mismatch in %s frame: %s", kind.name, buffer.hex(" "))


def _decode_transmit_status(buffer: bytes) -> TransmitStatus:
    _require(buffer, ProtocolConstants.TRANSMIT_STATUS_SIZE, FrameKind.TRANSMIT_STATUS)
    return TransmitStatus(
        frame_id=buffer[4],
        retry_count=buffer[7],
        deliver_status=buffer[8],
        discovery_status=buffer[9],
        raw=buffer,
    )


def _decode_at_command_response(buffer: bytes) -> AtCommandResponse:
    _require(buffer, ProtocolConstants.AT_COMMAND_RESPONSE_MIN_SIZE, FrameKind.AT_COMMAND_RESPONSE)
    data = None
    if len(buffer) > 9:
        data = buffer[8:-1]
    return AtCommandResponse(
        frame_id=buffer[4],
        command=buffer[5:7],
        status=buffer[7],
        data=data,
        raw=buffer,
    )


def _decode_remote_at_command_response(buffer: bytes) -> RemoteAtCommandResponse:
    _require(
        buffer,
        ProtocolConstants.REMOTE_AT_COMMAND_RESPONSE_MIN_SIZE,
        FrameKind.REMOTE_AT_COMMAND_RESPONSE,
    )
    data = None
    if len(buffer) > 18:
        # A lone trailing checksum leaves an empty slice
        data = buffer[18:-1] or None
    return RemoteAtCommandResponse(
        frame_id=buffer[4],
        dest_addr=int.from_bytes(buffer[5:13], "big"),
        command=buffer[15:17],
        status=buffer[17],
        data=data,
        raw=buffer,
    )


def _decode_null(buffer: bytes) -> NullFrame:
    return NullFrame()


_DECODERS: dict[FrameKind, Callable[[bytes], InboundFrame]] = {
    FrameKind.TRANSMIT_STATUS: _decode_transmit_status,
    FrameKind.AT_COMMAND_RESPONSE: _decode_at_command_response,
    FrameKind.REMOTE_AT_COMMAND_RESPONSE: _decode_remote_at_command_response,
    FrameKind.NULL: _decode_null,
}


def decode_frame(buffer: bytes | bytearray | memoryview, expected_kind: FrameKind) -> InboundFrame:
    """
    Decode an accumulated reply buffer as the expected frame kind.

    Args:
        buffer: Raw bytes accumulated from the transport.
        expected_kind: Reply kind the buffer should hold.

    Returns:
        The typed inbound frame.

    Raises:
        FrameError: If the buffer is empty or too short for the kind.
        ValueError: If expected_kind is not an inbound kind.
    """
    decoder = _DECODERS.get(expected_kind)
    if decoder is None:
        raise ValueError(f"Cannot decode frame kind {expected_kind!r}")

    frame = decoder(bytes(buffer))
    logger.debug("Decoded %r", frame)
    return frame
