"""
Pydantic models for device identity, discovered peers and session settings.

Design principles:
- All models are frozen (immutable)
- Field constraints mirror the wire widths (64-bit address, 16-bit versions)
- Peers carry no reference back to the session that discovered them
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from digilink.protocol.constants import ProtocolConstants

MAX_ADDRESS = 0xFFFF_FFFF_FFFF_FFFF


class DeviceIdentity(BaseModel):
    """
    Identity of the locally attached radio.

    Example:
        >>> identity = DeviceIdentity(
        ...     address=0x0013A20041526374, node_id="GATEWAY",
        ...     firmware_version=0x9002, hardware_version=0x2241,
        ... )
        >>> identity.address_hex
        '0013A20041526374'
    """

    model_config = ConfigDict(frozen=True)

    address: int = Field(ge=0, le=MAX_ADDRESS, description="64-bit radio address")
    node_id: str = Field(description="User-assigned node identifier")
    firmware_version: int = Field(ge=0, le=0xFFFF)
    hardware_version: int = Field(ge=0, le=0xFFFF)

    @property
    def address_hex(self) -> str:
        """Get the address as 16 uppercase hex digits."""
        return f"{self.address:016X}"

    def __str__(self) -> str:
        return (
            f"{self.node_id} [{self.address_hex}] "
            f"fw=0x{self.firmware_version:04X} hw=0x{self.hardware_version:04X}"
        )


class RemotePeer(BaseModel):
    """
    A radio found by network discovery.

    Peers are immutable and hashable so a discovery result can be held in a
    set.
    """

    model_config = ConfigDict(frozen=True)

    address: int = Field(ge=0, le=MAX_ADDRESS, description="64-bit radio address")
    node_id: str = Field(default="", description="User-assigned node identifier")

    @property
    def address_hex(self) -> str:
        """Get the address as 16 uppercase hex digits."""
        return f"{self.address:016X}"

    def __str__(self) -> str:
        return f"{self.node_id or '<unnamed>'} [{self.address_hex}]"

    def __repr__(self) -> str:
        return f"RemotePeer(0x{self.address:016X}, {self.node_id!r})"


class SessionConfig(BaseModel):
    """
    Runtime settings for a device session.

    All durations are in seconds.

    Attributes:
        guard_time: Silence before and after the command mode escape sequence.
        inter_byte_timeout: Silence that ends a variable-length reply.
        discovery_timeout: Default discovery window.
        at_command_timeout: Reply wait for local AT commands.
        remote_at_command_timeout: Reply wait for remote AT commands.
        validate_frame_id: Reject replies whose frame id differs from the
            request's.
    """

    model_config = ConfigDict(frozen=True)

    guard_time: float = Field(default=ProtocolConstants.GUARD_TIME, ge=0)
    inter_byte_timeout: float = Field(default=ProtocolConstants.INTER_BYTE_TIMEOUT, gt=0)
    discovery_timeout: float = Field(default=ProtocolConstants.DISCOVERY_TIMEOUT, gt=0)
    at_command_timeout: float = Field(default=ProtocolConstants.AT_COMMAND_TIMEOUT, gt=0)
    remote_at_command_timeout: float = Field(
        default=ProtocolConstants.REMOTE_AT_COMMAND_TIMEOUT, gt=0
    )
    validate_frame_id: bool = False
