"""
DigiMesh device session.

This module provides the main session interface for a locally attached
DigiMesh radio running in API mode.

The session is strictly one-request-at-a-time: every send blocks until its
reply has been read or the transport timeout has elapsed. The transport's
timeout and read cursor are mutated inside each call, so a session must not
be shared between threads without external locking.

The session tracks which mode the radio is in:
    API -> command_mode(True) -> COMMAND
    COMMAND -> command_mode(False) -> API

Example:
    >>> from digilink import DigiMeshDevice
    >>>
    >>> with DigiMeshDevice.open("/dev/ttyUSB0", 9600) as device:
    ...     print(device.identity)
    ...     for peer in device.discover_nodes(timeout=5.0):
    ...         print(peer)
"""

from __future__ import annotations

import logging
import time
from enum import Enum, auto
from typing import TYPE_CHECKING, cast

from digilink.discovery import DiscoveryCoordinator
from digilink.exceptions import (
    DecodeError,
    FrameError,
    InvalidModeError,
    TimeoutError,
    TransportError,
)
from digilink.models.records import DeviceIdentity, RemotePeer, SessionConfig
from digilink.protocol import line_commands
from digilink.protocol.codec import encode_frame, generate_frame_id
from digilink.protocol.constants import (
    AT_FIRMWARE_VERSION,
    AT_HARDWARE_VERSION,
    AT_NODE_ID,
    AT_SERIAL_HIGH,
    AT_SERIAL_LOW,
    ProtocolConstants,
)
from digilink.protocol.frame_reader import FrameReader
from digilink.protocol.frames import (
    AtCommand,
    AtCommandResponse,
    InboundFrame,
    OutboundFrame,
    RemoteAtCommand,
    RemoteAtCommandResponse,
    RemoteCommandOptions,
    TransmitRequest,
    TransmitRequestOptions,
    TransmitStatus,
)
from digilink.protocol.registry import FrameRegistry, TimeoutPolicy
from digilink.transport.serial_sync import SerialTransport

if TYPE_CHECKING:
    from types import TracebackType

    from digilink.protocol.line_commands import LineCommand
    from digilink.transport.abc import AbstractTransport

# Module logger
logger = logging.getLogger(__name__)


class SessionMode(Enum):
    """Radio operating modes as tracked by the session."""

    API = auto()
    """Binary API frames."""

    COMMAND = auto()
    """Line-mode AT command mode, entered with the escape sequence."""


class DigiMeshDevice:
    """
    Session with a locally attached DigiMesh radio.

    Construction resolves and caches the radio's address, node identifier,
    firmware version and hardware version; each is queried at most once for
    the session's lifetime.

    Attributes:
        mode: Current session mode.
        nodes: Peers found by the last successful discovery (None before).
        transport: The underlying transport.

    Example:
        >>> transport = SerialTransport("/dev/ttyUSB0")
        >>> transport.open()
        >>> device = DigiMeshDevice(transport)
        >>> reply = device.send_frame(AtCommand("ID"))
        >>> reply.data
        b'\\x7f\\xff'
    """

    def __init__(
        self,
        transport: AbstractTransport,
        config: SessionConfig | None = None,
        *,
        resolve_identity: bool = True,
    ) -> None:
        """
        Initialize the session.

        Args:
            transport: Open transport to the radio. The session owns it.
            config: Session settings (defaults when None).
            resolve_identity: Query all identity fields before returning.

        Raises:
            DecodeError: If an identity reply cannot be decoded.
            FrameError: If an identity reply is missing or malformed.
            TransportError: On I/O failure.
        """
        self._transport = transport
        self._config = config or SessionConfig()
        self._registry = FrameRegistry(
            at_command_timeout=self._config.at_command_timeout,
            remote_at_command_timeout=self._config.remote_at_command_timeout,
        )
        self._reader = FrameReader(self._config.inter_byte_timeout)
        self._mode = SessionMode.API

        self._addr_64bit: int | None = None
        self._node_id: str | None = None
        self._firmware_version: int | None = None
        self._hardware_version: int | None = None
        self._nodes: frozenset[RemotePeer] | None = None

        if resolve_identity:
            self.resolve_identity()
            logger.info("Attached to %s on %s", self.identity, transport.port_name)

    @classmethod
    def open(
        cls,
        port: str,
        baudrate: int = ProtocolConstants.DEFAULT_BAUD_RATE,
        config: SessionConfig | None = None,
    ) -> DigiMeshDevice:
        """
        Open a serial port and attach a session to the radio on it.

        The port is closed again if the session cannot be established.

        Args:
            port: Serial port path.
            baudrate: Baud rate the radio is configured for.
            config: Session settings.
        """
        transport = SerialTransport(port, baudrate)
        transport.open()
        try:
            return cls(transport, config)
        except Exception:
            transport.close()
            raise

    # ===== State =====

    @property
    def transport(self) -> AbstractTransport:
        """Get the underlying transport."""
        return self._transport

    @property
    def config(self) -> SessionConfig:
        """Get the session settings."""
        return self._config

    @property
    def mode(self) -> SessionMode:
        """Get the current session mode."""
        return self._mode

    @property
    def nodes(self) -> frozenset[RemotePeer] | None:
        """Get the peers found by the last successful discovery."""
        return self._nodes

    # ===== Identity =====

    def resolve_identity(self) -> DeviceIdentity:
        """Resolve every identity field not yet cached."""
        self.get_64bit_addr()
        self.get_node_id()
        self.get_hardware_version()
        self.get_firmware_version()
        return self.identity

    @property
    def identity(self) -> DeviceIdentity:
        """
        Get the radio's identity, resolving any field not yet cached.
        """
        return DeviceIdentity(
            address=self.get_64bit_addr(),
            node_id=self.get_node_id(),
            firmware_version=self.get_firmware_version(),
            hardware_version=self.get_hardware_version(),
        )

    def get_64bit_addr(self) -> int:
        """
        Get the radio's 64-bit address from SH (upper) and SL (lower).

        Raises:
            DecodeError: If either half is missing or not 4 bytes.
        """
        if self._addr_64bit is None:
            upper = self._query_uint(AT_SERIAL_HIGH, 4)
            lower = self._query_uint(AT_SERIAL_LOW, 4)
            self._addr_64bit = (upper << 32) | lower
        return self._addr_64bit

    def get_node_id(self) -> str:
        """
        Get the radio's node identifier (NI).

        Raises:
            DecodeError: If the reply is missing or not UTF-8.
        """
        if self._node_id is None:
            data = self._query(AT_NODE_ID)
            try:
                self._node_id = data.decode("utf-8")
            except UnicodeDecodeError as e:
                raise DecodeError(f"Node identifier is not UTF-8: {e}", command=AT_NODE_ID) from e
        return self._node_id

    def get_firmware_version(self) -> int:
        """Get the radio's firmware version (VR)."""
        if self._firmware_version is None:
            self._firmware_version = self._query_uint(AT_FIRMWARE_VERSION, 2)
        return self._firmware_version

    def get_hardware_version(self) -> int:
        """Get the radio's hardware version (HV)."""
        if self._hardware_version is None:
            self._hardware_version = self._query_uint(AT_HARDWARE_VERSION, 2)
        return self._hardware_version

    @property
    def address(self) -> int:
        return self.get_64bit_addr()

    @property
    def node_id(self) -> str:
        return self.get_node_id()

    @property
    def firmware_version(self) -> int:
        return self.get_firmware_version()

    @property
    def hardware_version(self) -> int:
        return self.get_hardware_version()

    def _query(self, command: str) -> bytes:
        reply = self.at_command(command)
        if reply.data is None:
            raise DecodeError("AT reply carried no data", command=command)
        return reply.data

    def _query_uint(self, command: str, width: int) -> int:
        data = self._query(command)
        if len(data) != width:
            raise DecodeError(
                f"Expected {width} data bytes, got {len(data)}",
                command=command,
            )
        return int.from_bytes(data, "big")

    # ===== API frames =====

    def send(self, data: bytes) -> int:
        """
        Write raw bytes to the radio.

        Returns:
            Number of bytes written.
        """
        return self._transport.write(data)

    def send_frame(self, frame: OutboundFrame) -> InboundFrame:
        """
        Send an API frame and block for its reply.

        The reply kind and the read timeout come from the frame registry. The
        transport's previous timeout is restored whether or not the reply
        could be read.

        Args:
            frame: Frame to send.

        Returns:
            The decoded reply (NullFrame for kinds that expect none).

        Raises:
            InvalidModeError: If the radio is in command mode.
            PayloadError: If the frame's payload is too large.
            FrameError: If the reply is missing or malformed, or its frame id
                does not match while frame id validation is enabled.
            TransportError: On I/O failure.
        """
        self._ensure_mode(SessionMode.API)

        frame_id = generate_frame_id()
        packet = encode_frame(frame, frame_id)
        route = self._registry.route_for(frame.kind)

        self._transport.write(packet)
        logger.debug("Sent %s frame id=0x%02X", frame.kind.name, frame_id)

        saved_timeout = self._transport.timeout
        try:
            if route.policy is TimeoutPolicy.FIXED:
                self._transport.timeout = route.timeout
            reply = self._reader.receive(self._transport.duplicate(), route.reply_kind)
        finally:
            self._transport.timeout = saved_timeout

        if self._config.validate_frame_id:
            reply_id = getattr(reply, "frame_id", frame_id)
            if reply_id != frame_id:
                raise FrameError(
                    f"Reply frame id 0x{reply_id:02X} does not match request 0x{frame_id:02X}"
                )
        return reply

    def at_command(self, command: str, parameter: bytes | None = None) -> AtCommandResponse:
        """
        Query (no parameter) or set a local AT parameter.

        Example:
            >>> device.at_command("NI", b"MY_NODE")
            >>> device.at_command("NI").data
            b'MY_NODE'
        """
        return cast(AtCommandResponse, self.send_frame(AtCommand(command, parameter)))

    def remote_at_command(
        self,
        dest_addr: int,
        command: str,
        parameter: bytes | None = None,
        apply_changes: bool = True,
    ) -> RemoteAtCommandResponse:
        """Query or set an AT parameter on a remote radio."""
        frame = RemoteAtCommand(
            dest_addr=dest_addr,
            command=command,
            parameter=parameter,
            options=RemoteCommandOptions(apply_changes=apply_changes),
        )
        return cast(RemoteAtCommandResponse, self.send_frame(frame))

    def transmit(
        self,
        dest_addr: int,
        payload: bytes,
        broadcast_radius: int = 0,
        options: TransmitRequestOptions | None = None,
    ) -> TransmitStatus:
        """Send an RF payload and wait for its delivery report."""
        frame = TransmitRequest(
            dest_addr=dest_addr,
            payload=payload,
            broadcast_radius=broadcast_radius,
            options=options,
        )
        return cast(TransmitStatus, self.send_frame(frame))

    # ===== Discovery =====

    def discover_nodes(self, timeout: float | None = None) -> frozenset[RemotePeer]:
        """
        Discover reachable peers.

        A successful run replaces the previous peer set; a failed run
        leaves it untouched.

        Args:
            timeout: Discovery window in seconds (config default when None).

        Raises:
            DiscoveryError: If no peer replied.
            InvalidModeError: If the radio is in command mode.
        """
        self._ensure_mode(SessionMode.API)
        coordinator = DiscoveryCoordinator(
            self._transport,
            self._reader,
            default_timeout=self._config.discovery_timeout,
        )
        self._nodes = coordinator.discover(timeout)
        return self._nodes

    # ===== Line mode =====

    def command_mode(self, enter: bool) -> None:
        """
        Enter or leave line command mode.

        Entering waits the guard time, writes the escape sequence and waits
        the guard time again. Leaving sends ``ATCN``.
        """
        if enter:
            time.sleep(self._config.guard_time)
            self.atcmd(line_commands.command_mode(True))
            time.sleep(self._config.guard_time)
            self._mode = SessionMode.COMMAND
            logger.info("Entered command mode")
        else:
            self.atcmd(line_commands.command_mode(False))
            self._mode = SessionMode.API
            logger.info("Left command mode")

    def atcmd(self, command: LineCommand) -> bytes:
        """
        Send a line-mode command and read its reply.

        Reads single bytes until the command's number of carriage returns has
        been seen or the line goes quiet. The tracked mode is not checked, so
        a radio left in command mode by another session can still be sent
        ``ATCN``.

        Args:
            command: Command to send.

        Returns:
            The reply bytes.

        Raises:
            TransportError: If nothing was read back, or on I/O failure.
        """
        self._transport.write(command.encode())

        rx_buf = bytearray()
        cr_count = 0
        while cr_count < command.terminator_count:
            try:
                byte = self._transport.read_byte()
            except TimeoutError:
                break
            rx_buf.append(byte)
            if byte == ProtocolConstants.CARRIAGE_RETURN:
                cr_count += 1

        if not rx_buf:
            raise TransportError(f"No reply to line command {command.command!r}")

        logger.debug("Line command %r -> %r", command.command, bytes(rx_buf))
        return bytes(rx_buf)

    # ===== Lifecycle =====

    def close(self) -> None:
        """Close the underlying transport."""
        self._transport.close()

    def _ensure_mode(self, mode: SessionMode) -> None:
        if self._mode != mode:
            raise InvalidModeError(f"Operation requires {mode.name} mode (in {self._mode.name})")

    def __enter__(self) -> DigiMeshDevice:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        addr = f"0x{self._addr_64bit:016X}" if self._addr_64bit is not None else "None"
        return f"DigiMeshDevice(mode={self._mode.name}, addr={addr}, node_id={self._node_id!r})"
