"""
Network discovery.

Discovery broadcasts the ``ND`` AT command and collects one
AtCommandResponse per reachable radio until the line stays quiet for the
whole discovery window. Each reply's data segment describes one peer:

    [0:2]    16-bit network address (ignored)
    [2:10]   64-bit address, big-endian
    [10:..]  node identifier, UTF-8, NUL terminated

The coordinator holds the transport's timeout for the duration of a run and
restores it on both success and failure.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from digilink.exceptions import DecodeError, DiscoveryError, FrameError
from digilink.models.records import RemotePeer
from digilink.protocol.codec import encode_frame
from digilink.protocol.constants import AT_NODE_DISCOVER, FrameKind, ProtocolConstants
from digilink.protocol.frame_reader import FrameReader
from digilink.protocol.frames import AtCommand, AtCommandResponse

if TYPE_CHECKING:
    from digilink.transport.abc import AbstractTransport

# Module logger
logger = logging.getLogger(__name__)

_ADDRESS_SLICE = slice(2, 10)
_NODE_ID_START = 10


def parse_peer(data: bytes | None) -> RemotePeer:
    """
    Parse a discovery reply's data segment into a peer.

    Args:
        data: Data segment of an ND AtCommandResponse.

    Returns:
        The discovered peer.

    Raises:
        DecodeError: If the data is missing, too short to hold an address,
            or the node identifier is not valid UTF-8.

    Example:
        >>> parse_peer(b"\\xff\\xfe\\x00\\x13\\xa2\\x00\\x41\\x52\\x63\\x74NODE\\x00")
        RemotePeer(0x0013A20041526374, 'NODE')
    """
    if data is None:
        raise DecodeError("Discovery reply carried no data", command=AT_NODE_DISCOVER)
    if len(data) < _NODE_ID_START:
        raise DecodeError(
            f"Discovery reply too short for an address ({len(data)} bytes)",
            command=AT_NODE_DISCOVER,
        )

    address = int.from_bytes(data[_ADDRESS_SLICE], "big")
    end = data.find(0, _NODE_ID_START)
    if end == -1:
        end = len(data)

    try:
        node_id = data[_NODE_ID_START:end].decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodeError(f"Node identifier is not UTF-8: {e}", command=AT_NODE_DISCOVER) from e

    return RemotePeer(address=address, node_id=node_id)


class DiscoveryCoordinator:
    """
    Runs node discovery over a transport.

    Example:
        >>> coordinator = DiscoveryCoordinator(transport)
        >>> for peer in coordinator.discover(timeout=5.0):
        ...     print(peer)
    """

    def __init__(
        self,
        transport: AbstractTransport,
        reader: FrameReader | None = None,
        default_timeout: float = ProtocolConstants.DISCOVERY_TIMEOUT,
    ) -> None:
        """
        Initialize the coordinator.

        Args:
            transport: Transport the radio is attached to.
            reader: Reply reader; a default FrameReader when None.
            default_timeout: Discovery window used when discover() is given
                none.
        """
        self._transport = transport
        self._reader = reader or FrameReader()
        self._default_timeout = default_timeout

    def discover(self, timeout: float | None = None) -> frozenset[RemotePeer]:
        """
        Broadcast a node discover and collect the peers that answer.

        Args:
            timeout: Discovery window in seconds (default 15).

        Returns:
            Every peer that replied.

        Raises:
            DiscoveryError: If no replies were collected.
            DecodeError: If a reply's data segment cannot be parsed.
            TransportError: On I/O failures other than the closing timeout.
        """
        window = timeout if timeout is not None else self._default_timeout
        replies = self._collect(window)

        if not replies:
            logger.info("Discovery window of %.1fs closed with no replies", window)
            raise DiscoveryError()

        peers = frozenset(parse_peer(reply.data) for reply in replies)
        logger.info("Discovered %d peer(s)", len(peers))
        for peer in peers:
            logger.debug("Peer %s", peer)
        return peers

    def _collect(self, window: float) -> list[AtCommandResponse]:
        packet = encode_frame(AtCommand(AT_NODE_DISCOVER))
        self._transport.write(packet)
        logger.debug("Sent node discover, window %.1fs", window)

        replies: list[AtCommandResponse] = []
        saved_timeout = self._transport.timeout
        self._transport.timeout = window
        try:
            while True:
                try:
                    reply = self._reader.receive(
                        self._transport.duplicate(),
                        FrameKind.AT_COMMAND_RESPONSE,
                    )
                except FrameError:
                    # Nothing decodable arrived within the window
                    break
                replies.append(reply)
        finally:
            self._transport.timeout = saved_timeout

        return replies
