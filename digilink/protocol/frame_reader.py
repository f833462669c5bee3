"""
Read-driven reply accumulation.

Replies are not read by their declared length. Fixed-size replies
(TransmitStatus) are read with a single exact read; variable-length replies
are read one byte at a time until a single-byte read times out. The
timeout is the expected end of the message, never an error.

The first byte waits for the handle's current timeout (the reply wait chosen
by the session, or the discovery window). Once a reply has started, the
handle switches to a short inter-byte timeout so that the reply ends as soon
as the line goes quiet. The handle's timeout is restored before returning.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from digilink.exceptions import TimeoutError
from digilink.protocol.codec import decode_frame
from digilink.protocol.constants import FrameKind, ProtocolConstants
from digilink.protocol.frames import InboundFrame, NullFrame

if TYPE_CHECKING:
    from digilink.transport.abc import AbstractTransport

# Module logger
logger = logging.getLogger(__name__)


class FrameReader:
    """
    Reads and decodes a single reply from a transport.

    The reader is stateless apart from its inter-byte timeout and can be
    reused for any number of replies.

    Example:
        >>> reader = FrameReader()
        >>> reply = reader.receive(transport.duplicate(), FrameKind.AT_COMMAND_RESPONSE)
        >>> reply.command
        b'NI'
    """

    def __init__(self, inter_byte_timeout: float | None = ProtocolConstants.INTER_BYTE_TIMEOUT) -> None:
        """
        Initialize the reader.

        Args:
            inter_byte_timeout: Silence in seconds that ends a variable-length
                reply once it has started. None keeps the handle's timeout for
                every byte.
        """
        self._inter_byte_timeout = inter_byte_timeout

    @property
    def inter_byte_timeout(self) -> float | None:
        """Get the inter-byte timeout in seconds."""
        return self._inter_byte_timeout

    def receive(self, transport: AbstractTransport, expected_kind: FrameKind) -> InboundFrame:
        """
        Read one reply and decode it as the expected kind.

        Args:
            transport: Handle to read from (usually a duplicate).
            expected_kind: Inbound kind to decode.

        Returns:
            The decoded reply; NullFrame without reading for FrameKind.NULL.

        Raises:
            FrameError: If nothing was read or the reply is too short.
            TimeoutError: If a fixed-size reply does not arrive in time.
            TransportError: On any other I/O failure.
        """
        if expected_kind == FrameKind.NULL:
            return NullFrame()

        if expected_kind == FrameKind.TRANSMIT_STATUS:
            buffer = transport.read_exact(ProtocolConstants.TRANSMIT_STATUS_SIZE)
        else:
            buffer = self.read_until_quiet(transport)

        logger.debug("Read %d bytes for %s", len(buffer), expected_kind.name)
        return decode_frame(buffer, expected_kind)

    def read_until_quiet(self, transport: AbstractTransport) -> bytes:
        """
        Accumulate bytes until a single-byte read times out.

        Args:
            transport: Handle to read from.

        Returns:
            Every byte read; empty if the first read timed out.

        Raises:
            TransportError: On I/O failures other than a timeout.
        """
        buffer = bytearray()
        saved_timeout = transport.timeout
        try:
            while True:
                try:
                    byte = transport.read_byte()
                except TimeoutError:
                    break
                buffer.append(byte)
                if len(buffer) == 1 and self._inter_byte_timeout is not None:
                    transport.timeout = self._inter_byte_timeout
        finally:
            if transport.timeout != saved_timeout:
                transport.timeout = saved_timeout
        return bytes(buffer)
