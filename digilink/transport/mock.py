"""
Mock transport for testing.

This module provides a mock transport implementation that allows testing
the device session without actual hardware. Responses can be pre-configured
or dynamically generated using callback functions.

Each queued response is a *burst*: bytes the radio sends back-to-back. Once
a burst has been read completely the next single read times out, modelling
the quiet line that ends a variable-length reply, and the following read
starts the next burst.

Example:
    >>> from digilink.transport import MockTransport
    >>> from digilink import DigiMeshDevice
    >>>
    >>> mock = MockTransport()
    >>> mock.add_response(at_response("SH", b"\\x00\\x13\\xa2\\x00"))
    >>> mock.add_response(at_response("SL", b"\\x41\\x52\\x63\\x74"))
    >>> ...
    >>> device = DigiMeshDevice(mock)
"""

from __future__ import annotations

from collections import deque
from typing import Callable

from digilink.exceptions import TimeoutError, TransportError
from digilink.transport.abc import AbstractTransport


class _MockChannel:
    """State shared by a mock transport and its duplicates."""

    def __init__(self) -> None:
        self.is_open = False
        self.responses: deque[bytes] = deque()
        self.read_buffer = bytearray()
        self.quiet_pending = False
        self.written_data: list[bytes] = []
        self.timeout_history: list[float | None] = []
        self.response_callback: Callable[[bytes], bytes | None] | None = None


class MockTransport(AbstractTransport):
    """
    Mock transport for testing without hardware.

    This transport simulates serial communication by providing pre-configured
    responses. It records all written data and every timeout assignment for
    verification in tests.

    Attributes:
        written_data: List of all bytes written to the transport.
        timeout_history: Every timeout assigned on any handle, in order.

    Example:
        >>> mock = MockTransport()
        >>> mock.add_response(b"OK\\r")
        >>>
        >>> with mock:
        ...     mock.write(b"+++")
        ...     assert mock.read_exact(3) == b"OK\\r"
        ...     assert mock.written_data == [b"+++"]
    """

    def __init__(
        self,
        port_name: str = "mock://test",
        timeout: float | None = 20.0,
        *,
        auto_open: bool = True,
        _channel: _MockChannel | None = None,
    ) -> None:
        """
        Initialize the mock transport.

        Args:
            port_name: Identifier for the mock transport.
            timeout: Initial read timeout (recorded, never waited on).
            auto_open: Open the transport immediately.
        """
        self._port_name = port_name
        self._timeout = timeout
        self._channel = _channel if _channel is not None else _MockChannel()
        if _channel is None and auto_open:
            self._channel.is_open = True

    @property
    def is_open(self) -> bool:
        """Check if the mock transport is open."""
        return self._channel.is_open

    @property
    def port_name(self) -> str:
        """Get the mock port name."""
        return self._port_name

    @property
    def timeout(self) -> float | None:
        """Get this handle's read timeout."""
        return self._timeout

    @timeout.setter
    def timeout(self, value: float | None) -> None:
        self._timeout = value
        self._channel.timeout_history.append(value)

    @property
    def written_data(self) -> list[bytes]:
        """Get all data written to the transport."""
        return self._channel.written_data.copy()

    @property
    def last_written(self) -> bytes | None:
        """Get the most recently written data."""
        written = self._channel.written_data
        return written[-1] if written else None

    @property
    def timeout_history(self) -> list[float | None]:
        """Get every timeout assigned on this channel."""
        return self._channel.timeout_history.copy()

    @property
    def pending_responses(self) -> int:
        """Number of queued bursts not yet started."""
        return len(self._channel.responses)

    def add_response(self, response: bytes) -> None:
        """
        Add a response burst to the queue.

        Responses are returned in FIFO order on read operations.

        Args:
            response: Bytes to return on subsequent reads.
        """
        self._channel.responses.append(bytes(response))

    def add_responses(self, *responses: bytes) -> None:
        """
        Add multiple response bursts to the queue.

        Args:
            *responses: Multiple byte responses to add.
        """
        for response in responses:
            self.add_response(response)

    def set_response_callback(
        self,
        callback: Callable[[bytes], bytes | None] | None,
    ) -> None:
        """
        Set a callback to dynamically generate responses.

        The callback receives the written data and should return the response
        burst. If it returns None, nothing is queued for that write.

        Args:
            callback: Function that takes written bytes and returns response.
        """
        self._channel.response_callback = callback

    def clear(self) -> None:
        """Clear all written data and pending responses."""
        channel = self._channel
        channel.written_data.clear()
        channel.responses.clear()
        channel.read_buffer.clear()
        channel.timeout_history.clear()
        channel.quiet_pending = False

    def clear_written(self) -> None:
        """Clear only the written data history."""
        self._channel.written_data.clear()

    def open(self) -> None:
        """Open the mock transport."""
        if self._channel.is_open:
            raise TransportError("Mock transport already open")
        self._channel.is_open = True

    def close(self) -> None:
        """Close the mock transport."""
        self._channel.is_open = False

    def write(self, data: bytes) -> int:
        """
        Write data to the mock transport.

        Records the written data and optionally triggers response callback.

        Args:
            data: Bytes to write.

        Returns:
            Number of bytes written.

        Raises:
            TransportError: If transport is not open.
        """
        channel = self._channel
        if not channel.is_open:
            raise TransportError("Mock transport not open")

        channel.written_data.append(bytes(data))

        # A new exchange starts on a quiet line
        if not channel.read_buffer:
            channel.quiet_pending = False

        if channel.response_callback:
            response = channel.response_callback(bytes(data))
            if response is not None:
                channel.responses.append(bytes(response))

        return len(data)

    def read_byte(self) -> int:
        """
        Read a single byte.

        Returns:
            Single byte value.

        Raises:
            TimeoutError: At the end of a burst, or if no data is queued.
            TransportError: If transport is not open.
        """
        channel = self._channel
        if not channel.is_open:
            raise TransportError("Mock transport not open")

        if not channel.read_buffer:
            if channel.quiet_pending:
                channel.quiet_pending = False
                raise TimeoutError("End of mock burst", timeout_seconds=self._timeout)
            if not channel.responses:
                raise TimeoutError("No mock response available", timeout_seconds=self._timeout)
            channel.read_buffer.extend(channel.responses.popleft())
            channel.quiet_pending = True
            if not channel.read_buffer:
                channel.quiet_pending = False
                raise TimeoutError("Empty mock burst", timeout_seconds=self._timeout)

        result = channel.read_buffer[0]
        del channel.read_buffer[0]
        return result

    def read_exact(self, size: int) -> bytes:
        """
        Read exact number of bytes.

        Args:
            size: Number of bytes to read.

        Returns:
            Exactly size bytes.

        Raises:
            TimeoutError: If not enough data is available in the burst.
            TransportError: If transport is not open.
        """
        return bytes(self.read_byte() for _ in range(size))

    def duplicate(self) -> MockTransport:
        """Create a handle over the same mock channel with its own timeout."""
        return MockTransport(self._port_name, self._timeout, _channel=self._channel)

    def discard_buffers(self) -> None:
        """Discard pending data in buffers."""
        self._channel.read_buffer.clear()
        self._channel.quiet_pending = False

    def assert_written(self, expected: bytes, index: int = -1) -> None:
        """
        Assert that specific data was written.

        Args:
            expected: Expected bytes.
            index: Index in written_data list (-1 for last).

        Raises:
            AssertionError: If data doesn't match.
        """
        written = self._channel.written_data
        if not written:
            raise AssertionError("No data written to mock transport")

        actual = written[index]
        if actual != expected:
            raise AssertionError(f"Written data mismatch: expected {expected!r}, got {actual!r}")

    def assert_write_count(self, expected: int) -> None:
        """
        Assert number of write operations.

        Args:
            expected: Expected number of writes.

        Raises:
            AssertionError: If count doesn't match.
        """
        actual = len(self._channel.written_data)
        if actual != expected:
            raise AssertionError(f"Write count mismatch: expected {expected}, got {actual}")

    def __repr__(self) -> str:
        status = "open" if self.is_open else "closed"
        return f"MockTransport({self._port_name!r}, {status})"


class ScriptedMockTransport(MockTransport):
    """
    Mock transport with scripted request/response pairs.

    This variant allows defining expected request/response sequences
    for more structured testing scenarios. Each write consumes the next
    script step and queues its response.

    Example:
        >>> mock = ScriptedMockTransport()
        >>> mock.expect(response=b"OK\\r", request=b"+++")
        >>> mock.expect(response=b"OK\\r", request=b"ATCN\\r")
    """

    def __init__(self, port_name: str = "mock://scripted") -> None:
        super().__init__(port_name)
        self._script: list[tuple[bytes | None, bytes]] = []
        self._script_index = 0
        self.set_response_callback(self._next_step)

    def expect(
        self,
        response: bytes,
        request: bytes | None = None,
    ) -> None:
        """
        Add an expected request/response pair.

        Args:
            response: Response to return.
            request: Expected request (None to match any).
        """
        self._script.append((request, response))

    def _next_step(self, data: bytes) -> bytes | None:
        if self._script_index >= len(self._script):
            return None

        expected_request, response = self._script[self._script_index]
        if expected_request is not None and data != expected_request:
            raise AssertionError(
                f"Script mismatch at step {self._script_index}: "
                f"expected {expected_request!r}, got {data!r}"
            )

        self._script_index += 1
        return response

    def reset_script(self) -> None:
        """Reset script to beginning."""
        self._script_index = 0
        self.discard_buffers()

    def clear_script(self) -> None:
        """Clear all scripted expectations."""
        self._script.clear()
        self._script_index = 0
