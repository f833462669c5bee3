"""
Exception hierarchy for digilink.

All exceptions inherit from DigiLinkError, providing a clean hierarchy
for error handling. The design follows these principles:

1. Protocol errors (frame layout, payload size) are distinct from transport errors
2. Transport timeouts are a distinct subclass so read loops can treat them as
   an end-of-message signal while every other I/O failure propagates
3. Identity decode errors carry the AT command whose reply could not be decoded
4. Nothing here retries; retry policy belongs to the caller
"""

from __future__ import annotations


class DigiLinkError(Exception):
    """
    Base exception for all digilink errors.

    All library-specific exceptions inherit from this class, allowing
    callers to catch all digilink errors with a single except clause.
    """

    pass


class ProtocolError(DigiLinkError):
    """
    Protocol-level error.

    Raised when the API frame protocol is violated while encoding or decoding.
    """

    pass


class FrameError(ProtocolError):
    """
    Malformed or undersized frame.

    Raised when:
    - The accumulated reply buffer is empty
    - The buffer is shorter than the minimum for the expected frame kind
    - A frame id check is enabled and the reply does not match
    - A checksum is requested over a frame too short to carry one
    """

    def __init__(
        self,
        message: str,
        *,
        raw_data: bytes | None = None,
    ) -> None:
        super().__init__(message)
        self.raw_data = raw_data

    def __str__(self) -> str:
        base = super().__str__()
        if self.raw_data:
            display = self.raw_data[:24].hex(" ")
            if len(self.raw_data) > 24:
                display += " ..."
            return f"{base} (data={display})"
        return base


class PayloadError(ProtocolError):
    """
    Outbound payload too large.

    Raised on encode when the payload does not fit in the 16-bit length
    field once the frame kind's header overhead is accounted for.
    """

    def __init__(self, message: str, *, size: int | None = None, limit: int | None = None) -> None:
        super().__init__(message)
        self.size = size
        self.limit = limit

    def __str__(self) -> str:
        base = super().__str__()
        if self.size is not None and self.limit is not None:
            return f"{base} ({self.size} > {self.limit} bytes)"
        return base


class TransportError(DigiLinkError):
    """
    Transport-level error.

    Raised for low-level transport issues:
    - Serial port errors
    - I/O errors
    - Reading from or writing to a closed transport
    """

    pass


class TimeoutError(TransportError):  # noqa: A001 - intentionally shadows builtin
    """
    Transport read timeout.

    Raised by transports when a read does not complete before the current
    read timeout. Variable-length reads use this as their terminator and
    never surface it; fixed-length reads propagate it.
    """

    def __init__(
        self,
        message: str = "Transport read timed out",
        *,
        timeout_seconds: float | None = None,
    ) -> None:
        super().__init__(message)
        self.timeout_seconds = timeout_seconds

    def __str__(self) -> str:
        base = super().__str__()
        if self.timeout_seconds is not None:
            return f"{base} (after {self.timeout_seconds:.3f}s)"
        return base


class DecodeError(DigiLinkError):
    """
    Identity field decode failure.

    Raised when an AT query reply carries no data, data of the wrong width
    for the expected integer type, or a node identifier that is not UTF-8.
    """

    def __init__(self, message: str, *, command: str | None = None) -> None:
        super().__init__(message)
        self.command = command

    def __str__(self) -> str:
        base = super().__str__()
        if self.command:
            return f"{base} (command={self.command})"
        return base


class InvalidModeError(DigiLinkError):
    """
    Operation not valid in the session's current mode.

    Raised when an API frame is sent or discovery is started while the
    radio is in line command mode.
    """

    pass


class DiscoveryError(DigiLinkError):
    """
    Network discovery collected no replies.
    """

    def __init__(self, message: str = "Could not complete discovery mode") -> None:
        super().__init__(message)
