"""
Protocol layer for DigiMesh API mode communication.

This module contains the low-level protocol handling:
- Frame kinds and protocol constants
- Checksum calculation and validation
- Typed outbound and inbound frames
- Frame encoding and fixed-offset decoding
- Reply routing (expected reply kind and wait timeout)
- Read-driven reply accumulation
- Legacy line-mode commands
"""

from digilink.protocol.checksums import append_checksum, calculate_checksum, validate_checksum
from digilink.protocol.codec import decode_frame, encode_frame, generate_frame_id, max_payload_size
from digilink.protocol.constants import (
    CommandStatus,
    FrameKind,
    MessagingMode,
    ProtocolConstants,
)
from digilink.protocol.frame_reader import FrameReader
from digilink.protocol.frames import (
    AtCommand,
    AtCommandResponse,
    InboundFrame,
    NullFrame,
    OutboundFrame,
    RemoteAtCommand,
    RemoteAtCommandResponse,
    RemoteCommandOptions,
    TransmitRequest,
    TransmitRequestOptions,
    TransmitStatus,
)
from digilink.protocol.line_commands import LineCommand
from digilink.protocol.registry import (
    DEFAULT_REGISTRY,
    FrameRegistry,
    FrameRoute,
    TimeoutPolicy,
    reply_kind_for,
    route_for,
)

__all__ = [
    # Constants
    "FrameKind",
    "MessagingMode",
    "CommandStatus",
    "ProtocolConstants",
    # Checksums
    "calculate_checksum",
    "validate_checksum",
    "append_checksum",
    # Frames
    "TransmitRequest",
    "TransmitRequestOptions",
    "AtCommand",
    "RemoteAtCommand",
    "RemoteCommandOptions",
    "OutboundFrame",
    "TransmitStatus",
    "AtCommandResponse",
    "RemoteAtCommandResponse",
    "NullFrame",
    "InboundFrame",
    # Codec
    "encode_frame",
    "decode_frame",
    "generate_frame_id",
    "max_payload_size",
    # Registry
    "FrameRegistry",
    "FrameRoute",
    "TimeoutPolicy",
    "DEFAULT_REGISTRY",
    "route_for",
    "reply_kind_for",
    # Reading
    "FrameReader",
    # Line mode
    "LineCommand",
]
