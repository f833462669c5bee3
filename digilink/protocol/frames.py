"""
Typed API frames.

Outbound frames are built by the caller and encoded by the codec. Inbound
frames are produced by the codec and form a tagged union over their
``kind`` attribute, so callers can dispatch on ``frame.kind`` (or use
``match``) without downcasting.

Outbound:
- TransmitRequest: RF payload to a 64-bit destination
- AtCommand: local AT query/set
- RemoteAtCommand: AT query/set on a remote radio

Inbound:
- TransmitStatus: delivery report
- AtCommandResponse: local AT reply
- RemoteAtCommandResponse: remote AT reply
- NullFrame: no reply expected
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Union

from digilink.protocol.constants import CommandStatus, FrameKind, MessagingMode


def validate_at_command(command: str) -> str:
    """
    Check that an AT command name is exactly two ASCII characters.

    Raises:
        ValueError: If the name is not two ASCII characters.
    """
    if len(command) != 2 or not command.isascii():
        raise ValueError(f"AT command must be 2 ASCII characters, got {command!r}")
    return command


# ===== Option bit fields =====


@dataclass(frozen=True)
class TransmitRequestOptions:
    """
    Transmit request option bits.

    Bit layout:
        bit 0     disable ACK
        bit 1     disable route discovery
        bit 2     enable unicast NACK
        bit 3     enable unicast trace route
        bits 6-7  messaging mode (01 point-to-point, 10 repeater, 11 DigiMesh)
    """

    disable_ack: bool = False
    disable_route_discovery: bool = False
    enable_unicast_nack: bool = False
    enable_unicast_trace_route: bool = False
    mode: MessagingMode = MessagingMode.DIGIMESH

    def to_byte(self) -> int:
        """Compile the options into the on-wire byte."""
        value = 0
        if self.disable_ack:
            value |= 1 << 0
        if self.disable_route_discovery:
            value |= 1 << 1
        if self.enable_unicast_nack:
            value |= 1 << 2
        if self.enable_unicast_trace_route:
            value |= 1 << 3
        return (int(self.mode) << 6) | value


@dataclass(frozen=True)
class RemoteCommandOptions:
    """Remote AT command option bits. Bit 1 applies the change immediately."""

    apply_changes: bool = True

    def to_byte(self) -> int:
        """Compile the options into the on-wire byte."""
        return 0x02 if self.apply_changes else 0x00


# ===== Outbound frames =====


@dataclass(frozen=True)
class TransmitRequest:
    """
    Send an RF payload to a remote radio.

    Attributes:
        dest_addr: 64-bit destination address (BROADCAST_ADDR for broadcast).
        payload: RF data to deliver.
        broadcast_radius: Maximum hops for broadcasts (0 = network maximum).
        options: Transmit options; None encodes as 0.
    """

    kind: ClassVar[FrameKind] = FrameKind.TRANSMIT_REQUEST

    dest_addr: int
    payload: bytes
    broadcast_radius: int = 0
    options: TransmitRequestOptions | None = None


@dataclass(frozen=True)
class AtCommand:
    """
    Local AT command.

    A command without a parameter queries the setting; with a parameter it
    sets it.
    """

    kind: ClassVar[FrameKind] = FrameKind.AT_COMMAND

    command: str
    parameter: bytes | None = None

    def __post_init__(self) -> None:
        validate_at_command(self.command)


@dataclass(frozen=True)
class RemoteAtCommand:
    """AT command addressed to a remote radio."""

    kind: ClassVar[FrameKind] = FrameKind.REMOTE_AT_COMMAND

    dest_addr: int
    command: str
    parameter: bytes | None = None
    options: RemoteCommandOptions | None = None

    def __post_init__(self) -> None:
        validate_at_command(self.command)


OutboundFrame = Union[TransmitRequest, AtCommand, RemoteAtCommand]


# ===== Inbound frames =====


@dataclass(frozen=True)
class TransmitStatus:
    """Delivery report for a transmit request."""

    kind: ClassVar[FrameKind] = FrameKind.TRANSMIT_STATUS

    frame_id: int
    retry_count: int
    deliver_status: int
    discovery_status: int
    raw: bytes = field(repr=False)

    @property
    def delivered(self) -> bool:
        """Check if the radio reported successful delivery."""
        return self.deliver_status == 0


@dataclass(frozen=True)
class AtCommandResponse:
    """
    Reply to a local AT command.

    Attributes:
        frame_id: Frame id echoed by the radio.
        command: Two command bytes.
        status: Command status byte.
        data: Reply data, None when the reply carries none.
        raw: Complete accumulated reply buffer.
    """

    kind: ClassVar[FrameKind] = FrameKind.AT_COMMAND_RESPONSE

    frame_id: int
    command: bytes
    status: int
    data: bytes | None
    raw: bytes = field(repr=False)

    @property
    def command_name(self) -> str:
        """Get the command as text."""
        return self.command.decode("ascii", errors="replace")

    @property
    def ok(self) -> bool:
        """Check if the radio accepted the command."""
        return self.status == CommandStatus.OK


@dataclass(frozen=True)
class RemoteAtCommandResponse:
    """Reply to a remote AT command."""

    kind: ClassVar[FrameKind] = FrameKind.REMOTE_AT_COMMAND_RESPONSE

    frame_id: int
    dest_addr: int
    command: bytes
    status: int
    data: bytes | None
    raw: bytes = field(repr=False)

    @property
    def command_name(self) -> str:
        """Get the command as text."""
        return self.command.decode("ascii", errors="replace")

    @property
    def ok(self) -> bool:
        """Check if the remote radio accepted the command."""
        return self.status == CommandStatus.OK


@dataclass(frozen=True)
class NullFrame:
    """Placeholder reply for frames that expect none."""

    kind: ClassVar[FrameKind] = FrameKind.NULL


InboundFrame = Union[TransmitStatus, AtCommandResponse, RemoteAtCommandResponse, NullFrame]
