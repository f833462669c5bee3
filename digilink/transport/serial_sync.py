"""
Blocking serial transport using pyserial.

This module provides the primary transport implementation for talking to a
DigiMesh radio in API mode over a local serial port.

Serial Configuration:
- Baud rate: 9600 (radio factory default, configurable)
- Data bits: 8
- Parity: None
- Stop bits: 1
- Flow control: None

Example:
    >>> transport = SerialTransport("/dev/ttyUSB0")
    >>> with transport:
    ...     transport.write(frame)
    ...     reply = transport.read_exact(11)
"""

from __future__ import annotations

import serial

from digilink.exceptions import TimeoutError, TransportError
from digilink.protocol.constants import ProtocolConstants
from digilink.transport.abc import AbstractTransport


class SerialTransport(AbstractTransport):
    """
    Blocking serial transport using pyserial.

    Each handle keeps its own read timeout and applies it to the shared
    port before reading, so duplicates can wait differently on the same
    byte stream.

    Attributes:
        port_name: Serial port path (e.g., "/dev/ttyUSB0", "COM3").
        is_open: Whether the port is currently open.

    Example:
        >>> transport = SerialTransport("/dev/ttyUSB0", baudrate=9600)
        >>> transport.open()
        >>> try:
        ...     transport.write(b"\\x7e\\x00\\x04\\x08\\x01NI_")
        ...     first = transport.read_byte()
        ... finally:
        ...     transport.close()
    """

    def __init__(
        self,
        port: str,
        baudrate: int = ProtocolConstants.DEFAULT_BAUD_RATE,
        timeout: float | None = ProtocolConstants.DEFAULT_TIMEOUT,
        *,
        serial_instance: serial.Serial | None = None,
    ) -> None:
        """
        Initialize the serial transport.

        Args:
            port: Serial port path (e.g., "/dev/ttyUSB0", "COM3").
            baudrate: Baud rate (default: 9600).
            timeout: Read timeout in seconds (default: 20.0).
            serial_instance: Already-configured port to wrap instead of
                opening one.
        """
        self._port = port
        self._baudrate = baudrate
        self._timeout = timeout
        self._serial = serial_instance
        self._owns_port = serial_instance is None

    @classmethod
    def from_serial(cls, serial_instance: serial.Serial) -> SerialTransport:
        """Wrap a port the caller has already opened and configured."""
        return cls(
            serial_instance.port or "",
            serial_instance.baudrate,
            serial_instance.timeout,
            serial_instance=serial_instance,
        )

    @property
    def is_open(self) -> bool:
        """Check if the serial port is currently open."""
        return self._serial is not None and self._serial.is_open

    @property
    def port_name(self) -> str:
        """Get the serial port path."""
        return self._port

    @property
    def baudrate(self) -> int:
        """Get the configured baud rate."""
        return self._baudrate

    @property
    def timeout(self) -> float | None:
        """Get this handle's read timeout in seconds."""
        return self._timeout

    @timeout.setter
    def timeout(self, value: float | None) -> None:
        self._timeout = value

    def open(self) -> None:
        """
        Open the serial port connection with 8N1 settings and no flow control.

        Raises:
            TransportError: If the port cannot be opened.
        """
        if self.is_open:
            return

        try:
            self._serial = serial.Serial(
                port=self._port,
                baudrate=self._baudrate,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                timeout=self._timeout,
                xonxoff=False,
                rtscts=False,
                dsrdtr=False,
            )
            self._owns_port = True
        except serial.SerialException as e:
            raise TransportError(f"Failed to open serial port {self._port}: {e}") from e
        except OSError as e:
            raise TransportError(f"OS error opening {self._port}: {e}") from e

    def close(self) -> None:
        """
        Close the serial port connection.

        Only the handle that opened the port closes it; duplicates just
        detach. Safe to call multiple times.
        """
        if self._serial is not None and self._owns_port:
            self._serial.close()
        self._serial = None

    def write(self, data: bytes) -> int:
        """
        Write data to the serial port.

        Args:
            data: Bytes to transmit.

        Returns:
            Number of bytes written.

        Raises:
            TransportError: If the port is not open or write fails.
        """
        port = self._require_open()
        try:
            written = port.write(data)
            port.flush()
        except serial.SerialException as e:
            raise TransportError(f"Write failed: {e}") from e
        return written if written is not None else len(data)

    def read_exact(self, size: int) -> bytes:
        """
        Read an exact number of bytes from the serial port.

        Args:
            size: Number of bytes to read.

        Returns:
            Exactly `size` bytes.

        Raises:
            TimeoutError: If the timeout expires before all bytes arrive.
            TransportError: If the port is not open or read fails.
        """
        port = self._require_open()
        if size <= 0:
            return b""

        if port.timeout != self._timeout:
            port.timeout = self._timeout

        try:
            data = port.read(size)
        except serial.SerialException as e:
            raise TransportError(f"Read failed: {e}") from e

        if len(data) < size:
            raise TimeoutError(
                f"Timeout waiting for {size} bytes (got {len(data)})",
                timeout_seconds=self._timeout,
            )
        return data

    def duplicate(self) -> SerialTransport:
        """Create a handle sharing this port with its own timeout."""
        self._require_open()
        return SerialTransport(
            self._port,
            self._baudrate,
            self._timeout,
            serial_instance=self._serial,
        )

    def discard_buffers(self) -> None:
        """
        Discard any pending data in the port's input and output buffers.
        """
        if self._serial is not None and self._serial.is_open:
            self._serial.reset_input_buffer()
            self._serial.reset_output_buffer()

    def _require_open(self) -> serial.Serial:
        if self._serial is None or not self._serial.is_open:
            raise TransportError("Serial port is not open")
        return self._serial

    def __repr__(self) -> str:
        status = "open" if self.is_open else "closed"
        return f"SerialTransport({self._port!r}, baudrate={self._baudrate}, {status})"
