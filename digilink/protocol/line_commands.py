"""
Legacy line-mode (transparent AT) commands.

Some configuration actions are unavailable in API mode and must be issued
as text after entering command mode with the ``+++`` escape sequence. Each
command is written as ``AT`` + name + optional parameter + CR (the escape
sequence alone is written bare) and its reply is read until the expected
number of carriage returns has been seen.
"""

from __future__ import annotations

from dataclasses import dataclass

from digilink.protocol.constants import AT_EXIT_COMMAND_MODE, AT_NODE_DISCOVER, ProtocolConstants

NODE_DISCOVER_REPLY_LINES = 10 + 1
"""Lines in a line-mode ND reply for a single node plus the closing blank line."""


@dataclass(frozen=True)
class LineCommand:
    """
    A line-mode command.

    Attributes:
        command: Command name, or the escape sequence.
        parameter: Optional parameter bytes appended after the name.
        terminator_count: Carriage returns that end the reply.
    """

    command: str
    parameter: bytes | None = None
    terminator_count: int = 1

    @property
    def is_escape(self) -> bool:
        """Check if this is the command mode escape sequence."""
        return self.command == ProtocolConstants.ESCAPE_SEQUENCE

    def encode(self) -> bytes:
        """
        Build the bytes written for this command.

        Example:
            >>> LineCommand("NI", b"MY_NODE").encode()
            b'ATNIMY_NODE\\r'
            >>> LineCommand("+++").encode()
            b'+++'
        """
        if self.is_escape:
            return self.command.encode("ascii")
        return (
            ProtocolConstants.AT_PREFIX
            + self.command.encode("ascii")
            + (self.parameter or b"")
            + bytes([ProtocolConstants.CARRIAGE_RETURN])
        )


def command_mode(enter: bool) -> LineCommand:
    """Build the command that enters (``+++``) or exits (``ATCN``) command mode."""
    if enter:
        return LineCommand(ProtocolConstants.ESCAPE_SEQUENCE)
    return LineCommand(AT_EXIT_COMMAND_MODE)


def discover(parameter: bytes | None = None) -> LineCommand:
    """Build a line-mode node discover command."""
    return LineCommand(AT_NODE_DISCOVER, parameter, NODE_DISCOVER_REPLY_LINES)


def at(command: str, parameter: bytes | None = None) -> LineCommand:
    """Build a single-line AT command."""
    return LineCommand(command, parameter)
