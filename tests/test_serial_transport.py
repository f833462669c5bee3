"""Tests for SerialTransport over a pyserial loopback port."""

import pytest
import serial

from digilink.exceptions import TimeoutError, TransportError
from digilink.transport.serial_sync import SerialTransport


class TestSerialTransport:
    """Tests for SerialTransport class."""

    @pytest.fixture
    def port(self):
        """Create an open loopback port."""
        ser = serial.serial_for_url("loop://", timeout=0.05)
        yield ser
        ser.close()

    @pytest.fixture
    def transport(self, port):
        """Wrap the loopback port."""
        return SerialTransport.from_serial(port)

    def test_from_serial(self, transport):
        """Test that a wrapped port is reported open."""
        assert transport.is_open
        assert transport.port_name == "loop://"
        assert transport.timeout == 0.05

    def test_write_and_read(self, transport):
        """Test that written bytes come back on the loopback."""
        assert transport.write(b"\x7e\x00\x04") == 3
        assert transport.read_exact(3) == b"\x7e\x00\x04"

    def test_read_byte(self, transport):
        """Test reading single bytes."""
        transport.write(b"AB")
        assert transport.read_byte() == ord("A")
        assert transport.read_byte() == ord("B")

    def test_short_read_times_out(self, transport):
        """Test that a short read raises a timeout."""
        transport.write(b"A")
        with pytest.raises(TimeoutError) as exc_info:
            transport.read_exact(2)
        assert exc_info.value.timeout_seconds == 0.05

    def test_read_zero_bytes(self, transport):
        """Test that reading nothing returns empty bytes."""
        assert transport.read_exact(0) == b""

    def test_duplicate_has_own_timeout(self, transport, port):
        """Test that a duplicate applies its own timeout to the shared port."""
        dup = transport.duplicate()
        dup.timeout = 0.01

        transport.write(b"X")
        assert dup.read_byte() == ord("X")
        assert port.timeout == 0.01
        assert transport.timeout == 0.05

        with pytest.raises(TimeoutError):
            transport.read_byte()
        assert port.timeout == 0.05

    def test_duplicate_close_keeps_port_open(self, transport, port):
        """Test that closing a duplicate only detaches it."""
        dup = transport.duplicate()
        dup.close()
        assert not dup.is_open
        assert port.is_open
        assert transport.is_open

    def test_wrapped_port_not_closed(self, transport, port):
        """Test that a wrapped port stays with its owner."""
        transport.close()
        assert not transport.is_open
        assert port.is_open

    def test_closed_operations_raise(self, transport):
        """Test that I/O on a closed transport is a transport error."""
        transport.close()
        with pytest.raises(TransportError):
            transport.write(b"A")
        with pytest.raises(TransportError):
            transport.read_exact(1)
        with pytest.raises(TransportError):
            transport.duplicate()

    def test_discard_buffers(self, transport):
        """Test discarding unread input."""
        transport.write(b"stale")
        transport.read_byte()
        transport.discard_buffers()
        with pytest.raises(TimeoutError):
            transport.read_byte()

    def test_open_missing_port(self):
        """Test that an unavailable port is a transport error."""
        transport = SerialTransport("/dev/digilink-does-not-exist")
        with pytest.raises(TransportError):
            transport.open()
        assert not transport.is_open

    def test_repr(self, transport):
        """Test the debug form."""
        assert repr(transport) == "SerialTransport('loop://', baudrate=9600, open)"
