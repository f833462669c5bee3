"""
digilink - Python library for DigiMesh radio modems in API mode.

This library encodes and decodes the binary API frame protocol, and provides
a blocking device session that resolves the radio's identity, issues local
and remote AT commands, toggles line command mode and runs network
discovery.

Example:
    >>> from digilink import DigiMeshDevice
    >>>
    >>> with DigiMeshDevice.open("/dev/ttyUSB0", 9600) as device:
    ...     print(device.node_id, hex(device.address))
    ...     reply = device.at_command("ID")
    ...     peers = device.discover_nodes(timeout=5.0)
"""

from digilink.device import DigiMeshDevice, SessionMode
from digilink.discovery import DiscoveryCoordinator
from digilink.exceptions import (
    DecodeError,
    DigiLinkError,
    DiscoveryError,
    FrameError,
    InvalidModeError,
    PayloadError,
    ProtocolError,
    TimeoutError,
    TransportError,
)
from digilink.models.records import DeviceIdentity, RemotePeer, SessionConfig
from digilink.protocol.codec import decode_frame, encode_frame
from digilink.protocol.constants import FrameKind, MessagingMode, ProtocolConstants
from digilink.protocol.frames import (
    AtCommand,
    AtCommandResponse,
    NullFrame,
    RemoteAtCommand,
    RemoteAtCommandResponse,
    RemoteCommandOptions,
    TransmitRequest,
    TransmitRequestOptions,
    TransmitStatus,
)
from digilink.transport import AbstractTransport, MockTransport, SerialTransport

BROADCAST_ADDR = ProtocolConstants.BROADCAST_ADDR

__version__ = "0.1.0"
__all__ = [
    # Session
    "DigiMeshDevice",
    "SessionMode",
    "DiscoveryCoordinator",
    # Models
    "DeviceIdentity",
    "RemotePeer",
    "SessionConfig",
    # Frames
    "FrameKind",
    "MessagingMode",
    "TransmitRequest",
    "TransmitRequestOptions",
    "AtCommand",
    "RemoteAtCommand",
    "RemoteCommandOptions",
    "TransmitStatus",
    "AtCommandResponse",
    "RemoteAtCommandResponse",
    "NullFrame",
    "encode_frame",
    "decode_frame",
    "BROADCAST_ADDR",
    # Exceptions
    "DigiLinkError",
    "ProtocolError",
    "FrameError",
    "PayloadError",
    "TransportError",
    "TimeoutError",
    "DecodeError",
    "InvalidModeError",
    "DiscoveryError",
    # Transport
    "AbstractTransport",
    "SerialTransport",
    "MockTransport",
    # Version
    "__version__",
]
