"""
Abstract transport interface for API frame communication.

This module defines the abstract base class for all transport implementations.
Transports handle the low-level byte stream to the radio over a serial port
or other physical interface.

The transport layer is responsible for:
- Opening/closing the physical connection
- Reading and writing raw bytes (blocking)
- Holding the read timeout, which callers swap and restore
- Producing duplicate handles over the same channel

Implementations:
- SerialTransport: pyserial based serial port
- MockTransport: For testing without hardware
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from types import TracebackType


class AbstractTransport(ABC):
    """
    Abstract base class for API frame transports.

    Transports provide blocking read/write operations. A read that does not
    complete within ``timeout`` seconds raises
    :class:`~digilink.exceptions.TimeoutError`, which is distinct from every
    other I/O failure (:class:`~digilink.exceptions.TransportError`).

    Transports support the context manager protocol for safe resource
    management:

        with SerialTransport("/dev/ttyUSB0") as transport:
            transport.write(frame)
            reply = transport.read_exact(11)

    Attributes:
        is_open: Whether the transport connection is currently open.
        port_name: Identifier for the transport (e.g., serial port name).
        timeout: Read timeout in seconds (None blocks forever).
    """

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """
        Check if the transport connection is currently open.

        Returns:
            True if connected and ready for I/O, False otherwise.
        """
        ...

    @property
    @abstractmethod
    def port_name(self) -> str:
        """
        Get the transport identifier.

        Returns:
            Port name or identifier string (e.g., "/dev/ttyUSB0", "COM3").
        """
        ...

    @property
    @abstractmethod
    def timeout(self) -> float | None:
        """Get the read timeout in seconds."""
        ...

    @timeout.setter
    @abstractmethod
    def timeout(self, value: float | None) -> None:
        """Set the read timeout in seconds."""
        ...

    @abstractmethod
    def open(self) -> None:
        """
        Open the transport connection.

        Raises:
            TransportError: If the connection cannot be established.
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """
        Close the transport connection.

        Safe to call multiple times (idempotent).
        """
        ...

    @abstractmethod
    def write(self, data: bytes) -> int:
        """
        Write data to the transport.

        Args:
            data: Bytes to send.

        Returns:
            Number of bytes written.

        Raises:
            TransportError: If the transport is not open or write fails.
        """
        ...

    @abstractmethod
    def read_exact(self, size: int) -> bytes:
        """
        Read an exact number of bytes from the transport.

        Blocks until exactly `size` bytes have been received or the read
        timeout expires.

        Args:
            size: Number of bytes to read.

        Returns:
            Exactly `size` bytes.

        Raises:
            TimeoutError: If the timeout expires before all bytes arrive.
            TransportError: If the transport is not open or read fails.
        """
        ...

    def read_byte(self) -> int:
        """
        Read a single byte from the transport.

        Returns:
            Single byte value (0-255).

        Raises:
            TimeoutError: If the timeout expires.
            TransportError: If the transport is not open or read fails.
        """
        return self.read_exact(1)[0]

    @abstractmethod
    def duplicate(self) -> AbstractTransport:
        """
        Create another handle over the same channel.

        The duplicate shares the underlying connection and read cursor but
        carries its own read timeout, so a reader can change its timeout
        without disturbing the original handle. Closing a duplicate does
        not close the channel.
        """
        ...

    @abstractmethod
    def discard_buffers(self) -> None:
        """
        Discard any pending data in input and output buffers.
        """
        ...

    def __enter__(self) -> AbstractTransport:
        """Context manager entry - opens the transport."""
        if not self.is_open:
            self.open()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Context manager exit - closes the transport."""
        self.close()
