"""
Outbound frame routing.

Maps each outbound frame kind to the reply kind the radio answers with and
the read timeout to apply while waiting for that reply:

    TRANSMIT_REQUEST   -> TRANSMIT_STATUS             ambient timeout
    AT_COMMAND         -> AT_COMMAND_RESPONSE         100 ms
    REMOTE_AT_COMMAND  -> REMOTE_AT_COMMAND_RESPONSE  3000 ms
    anything else      -> NULL                        no read
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Final

from digilink.protocol.constants import INBOUND_KINDS, OUTBOUND_KINDS, FrameKind, ProtocolConstants


class TimeoutPolicy(Enum):
    """How the session treats the transport timeout while awaiting a reply."""

    AMBIENT = auto()
    """Keep whatever timeout the transport already has."""

    FIXED = auto()
    """Swap in the route's timeout for the duration of the wait."""

    NONE = auto()
    """No reply is read."""


@dataclass(frozen=True)
class FrameRoute:
    """
    Reply routing for an outbound frame kind.

    Attributes:
        reply_kind: Inbound kind the reply is decoded as.
        policy: Timeout handling while awaiting the reply.
        timeout: Reply wait in seconds for FIXED routes.
    """

    reply_kind: FrameKind
    policy: TimeoutPolicy
    timeout: float | None = None


NULL_ROUTE: Final[FrameRoute] = FrameRoute(FrameKind.NULL, TimeoutPolicy.NONE)

DEFAULT_ROUTES: Final[dict[FrameKind, FrameRoute]] = {
    FrameKind.TRANSMIT_REQUEST: FrameRoute(FrameKind.TRANSMIT_STATUS, TimeoutPolicy.AMBIENT),
    FrameKind.AT_COMMAND: FrameRoute(
        FrameKind.AT_COMMAND_RESPONSE,
        TimeoutPolicy.FIXED,
        ProtocolConstants.AT_COMMAND_TIMEOUT,
    ),
    FrameKind.REMOTE_AT_COMMAND: FrameRoute(
        FrameKind.REMOTE_AT_COMMAND_RESPONSE,
        TimeoutPolicy.FIXED,
        ProtocolConstants.REMOTE_AT_COMMAND_TIMEOUT,
    ),
}


class FrameRegistry:
    """
    Registry of reply routes keyed by outbound frame kind.

    Unknown kinds resolve to the null route. A registry can be built with
    overridden timeouts for slow links:

        >>> registry = FrameRegistry(remote_at_command_timeout=5.0)
        >>> registry.route_for(FrameKind.REMOTE_AT_COMMAND).timeout
        5.0
    """

    def __init__(
        self,
        at_command_timeout: float = ProtocolConstants.AT_COMMAND_TIMEOUT,
        remote_at_command_timeout: float = ProtocolConstants.REMOTE_AT_COMMAND_TIMEOUT,
    ) -> None:
        self._routes = dict(DEFAULT_ROUTES)
        self.register(
            FrameKind.AT_COMMAND,
            FrameRoute(FrameKind.AT_COMMAND_RESPONSE, TimeoutPolicy.FIXED, at_command_timeout),
        )
        self.register(
            FrameKind.REMOTE_AT_COMMAND,
            FrameRoute(
                FrameKind.REMOTE_AT_COMMAND_RESPONSE,
                TimeoutPolicy.FIXED,
                remote_at_command_timeout,
            ),
        )

    def register(self, kind: FrameKind, route: FrameRoute) -> None:
        """
        Register or replace the route for an outbound kind.

        Raises:
            ValueError: If kind is not outbound or the route's reply kind is
                not inbound.
        """
        if kind not in OUTBOUND_KINDS:
            raise ValueError(f"{kind!r} is not an outbound frame kind")
        if route.reply_kind not in INBOUND_KINDS:
            raise ValueError(f"{route.reply_kind!r} is not an inbound frame kind")
        self._routes[kind] = route

    def route_for(self, kind: FrameKind) -> FrameRoute:
        """Get the reply route for an outbound kind."""
        return self._routes.get(kind, NULL_ROUTE)

    def reply_kind_for(self, kind: FrameKind) -> FrameKind:
        """Get the reply kind for an outbound kind."""
        return self.route_for(kind).reply_kind


DEFAULT_REGISTRY: Final[FrameRegistry] = FrameRegistry()
"""Registry with the standard reply timeouts."""


def route_for(kind: FrameKind) -> FrameRoute:
    """Get the standard reply route for an outbound kind."""
    return DEFAULT_REGISTRY.route_for(kind)


def reply_kind_for(kind: FrameKind) -> FrameKind:
    """Get the standard reply kind for an outbound kind."""
    return DEFAULT_REGISTRY.reply_kind_for(kind)
