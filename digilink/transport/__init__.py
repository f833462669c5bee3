"""
Transport layer for API frame communication.

This package provides transport implementations for talking to a DigiMesh
radio over various physical interfaces.

Available transports:
- SerialTransport: Blocking serial port using pyserial
- MockTransport: Mock transport for testing without hardware

Example:
    >>> from digilink.transport import SerialTransport
    >>> with SerialTransport("/dev/ttyUSB0") as transport:
    ...     transport.write(frame_data)
    ...     status = transport.read_exact(11)

Testing Example:
    >>> from digilink.transport import MockTransport
    >>> mock = MockTransport()
    >>> mock.add_response(b"OK\\r")
"""

from digilink.transport.abc import AbstractTransport
from digilink.transport.mock import MockTransport, ScriptedMockTransport
from digilink.transport.serial_sync import SerialTransport

__all__ = [
    "AbstractTransport",
    "SerialTransport",
    "MockTransport",
    "ScriptedMockTransport",
]
