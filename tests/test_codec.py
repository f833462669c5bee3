"""Tests for API frame encoding and decoding."""

import logging
import struct

import pytest

from digilink.exceptions import FrameError, PayloadError
from digilink.protocol.checksums import append_checksum, validate_checksum
from digilink.protocol.codec import (
    decode_frame,
    encode_frame,
    generate_frame_id,
    max_payload_size,
)
from digilink.protocol.constants import FrameKind, MessagingMode
from digilink.protocol.frames import (
    AtCommand,
    AtCommandResponse,
    NullFrame,
    RemoteAtCommand,
    RemoteAtCommandResponse,
    RemoteCommandOptions,
    TransmitRequest,
    TransmitRequestOptions,
    TransmitStatus,
)

ADDR = 0x0013A20041526374
ADDR_BYTES = bytes([0x00, 0x13, 0xA2, 0x00, 0x41, 0x52, 0x63, 0x74])


def wrap(body: bytes) -> bytes:
    """Frame a body (kind onward) with delimiter, length and checksum."""
    return append_checksum(b"\x7e" + struct.pack(">H", len(body)) + body)


class TestOptions:
    """Tests for option bit fields."""

    def test_transmit_options_default_mode(self):
        """Test that the default options only set DigiMesh mode."""
        assert TransmitRequestOptions().to_byte() == 0xC0

    def test_transmit_options_bits(self):
        """Test individual option bits."""
        options = TransmitRequestOptions(
            disable_ack=True,
            enable_unicast_trace_route=True,
            mode=MessagingMode.POINT_TO_POINT,
        )
        assert options.to_byte() == 0x49

    def test_transmit_options_all_bits(self):
        """Test all flag bits together."""
        options = TransmitRequestOptions(
            disable_ack=True,
            disable_route_discovery=True,
            enable_unicast_nack=True,
            enable_unicast_trace_route=True,
            mode=MessagingMode.REPEATER,
        )
        assert options.to_byte() == 0x8F

    def test_remote_options(self):
        """Test the apply changes bit."""
        assert RemoteCommandOptions().to_byte() == 0x02
        assert RemoteCommandOptions(apply_changes=False).to_byte() == 0x00


class TestFrameConstruction:
    """Tests for outbound frame validation."""

    @pytest.mark.parametrize("name", ["N", "NID", "", "Ñ1"])
    def test_invalid_at_command_name(self, name):
        """Test that AT names must be two ASCII characters."""
        with pytest.raises(ValueError):
            AtCommand(name)

    def test_invalid_remote_at_command_name(self):
        """Test that remote AT names are validated too."""
        with pytest.raises(ValueError):
            RemoteAtCommand(ADDR, "ABC")

    def test_frame_kinds(self):
        """Test kind tags on frame classes."""
        assert AtCommand("NI").kind == FrameKind.AT_COMMAND
        assert TransmitRequest(ADDR, b"").kind == FrameKind.TRANSMIT_REQUEST
        assert RemoteAtCommand(ADDR, "NI").kind == FrameKind.REMOTE_AT_COMMAND
        assert NullFrame().kind == FrameKind.NULL


class TestEncode:
    """Tests for encode_frame."""

    def test_encode_at_query(self):
        """Test the known NI query frame."""
        frame = encode_frame(AtCommand("NI"), frame_id=0x01)
        assert frame == bytes([0x7E, 0x00, 0x04, 0x08, 0x01, 0x4E, 0x49, 0x5F])

    def test_encode_at_set(self):
        """Test that a parameter follows the command name."""
        frame = encode_frame(AtCommand("NI", b"NODE"), frame_id=0x02)
        assert frame[3] == FrameKind.AT_COMMAND
        assert frame[4] == 0x02
        assert frame[5:7] == b"NI"
        assert frame[7:-1] == b"NODE"
        assert validate_checksum(frame)

    def test_encode_transmit_request(self):
        """Test transmit request field layout."""
        frame = encode_frame(
            TransmitRequest(ADDR, b"hi", broadcast_radius=3, options=TransmitRequestOptions()),
            frame_id=0x52,
        )
        assert frame[0] == 0x7E
        assert frame[3] == 0x90
        assert frame[4] == 0x52
        assert frame[5:13] == ADDR_BYTES
        assert frame[13:15] == b"\xff\xfe"
        assert frame[15] == 3
        assert frame[16] == 0xC0
        assert frame[17:-1] == b"hi"
        assert struct.unpack(">H", frame[1:3])[0] == 16

    def test_encode_transmit_request_no_options(self):
        """Test that missing options encode as zero."""
        frame = encode_frame(TransmitRequest(ADDR, b"x"), frame_id=0)
        assert frame[16] == 0x00

    def test_encode_remote_at_command(self):
        """Test remote AT command field layout."""
        frame = encode_frame(
            RemoteAtCommand(ADDR, "D0", b"\x05", RemoteCommandOptions()),
            frame_id=0x03,
        )
        assert frame[3] == 0x17
        assert frame[4] == 0x03
        assert frame[5:13] == ADDR_BYTES
        assert frame[13:15] == b"\xff\xfe"
        assert frame[15] == 0x02
        assert frame[16:18] == b"D0"
        assert frame[18:-1] == b"\x05"
        assert struct.unpack(">H", frame[1:3])[0] == 16

    @pytest.mark.parametrize(
        "frame",
        [
            AtCommand("NI"),
            AtCommand("NI", b"A LONGER NODE NAME"),
            TransmitRequest(ADDR, bytes(range(200))),
            RemoteAtCommand(ADDR, "SH"),
        ],
    )
    def test_length_and_checksum(self, frame):
        """Test the length field and checksum of encoded frames."""
        packet = encode_frame(frame)
        length = struct.unpack(">H", packet[1:3])[0]
        assert length == len(packet) - 4
        assert (sum(packet[3:-1]) + packet[-1]) % 256 == 0xFF

    def test_random_frame_id(self):
        """Test that a frame id is generated when none is given."""
        packet = encode_frame(AtCommand("NI"))
        assert 0 <= packet[4] <= 0xFF

    def test_frame_id_out_of_range(self):
        """Test that frame ids must fit in a byte."""
        with pytest.raises(ValueError):
            encode_frame(AtCommand("NI"), frame_id=256)
        with pytest.raises(ValueError):
            encode_frame(AtCommand("NI"), frame_id=-1)

    def test_generate_frame_id(self):
        """Test generated frame ids stay within a byte."""
        assert all(0 <= generate_frame_id() <= 0xFF for _ in range(100))


class TestPayloadLimits:
    """Tests for payload size limits."""

    def test_max_payload_sizes(self):
        """Test the limits per outbound kind."""
        assert max_payload_size(FrameKind.TRANSMIT_REQUEST) == 65424
        assert max_payload_size(FrameKind.AT_COMMAND) == 65531
        assert max_payload_size(FrameKind.REMOTE_AT_COMMAND) == 65520

    def test_max_payload_size_inbound_kind(self):
        """Test that inbound kinds have no payload limit."""
        with pytest.raises(ValueError):
            max_payload_size(FrameKind.TRANSMIT_STATUS)

    def test_transmit_payload_at_limit(self):
        """Test that a payload at the limit encodes."""
        packet = encode_frame(TransmitRequest(ADDR, bytes(65424)), frame_id=1)
        assert len(packet) == 65424 + 18

    def test_transmit_payload_over_limit(self):
        """Test that an oversized payload is rejected."""
        with pytest.raises(PayloadError) as exc_info:
            encode_frame(TransmitRequest(ADDR, bytes(65425)), frame_id=1)
        assert exc_info.value.size == 65425
        assert exc_info.value.limit == 65424
        assert "Payload exceeds max size" in str(exc_info.value)

    def test_at_parameter_over_limit(self):
        """Test that an oversized AT parameter is rejected."""
        with pytest.raises(PayloadError):
            encode_frame(AtCommand("NI", bytes(65532)), frame_id=1)


class TestDecode:
    """Tests for decode_frame."""

    def test_decode_transmit_status(self):
        """Test transmit status offsets."""
        buffer = wrap(bytes([0x8B, 0x47, 0xFF, 0xFE, 0x02, 0x00, 0x01]))
        assert len(buffer) == 11

        status = decode_frame(buffer, FrameKind.TRANSMIT_STATUS)

        assert isinstance(status, TransmitStatus)
        assert status.frame_id == 0x47
        assert status.retry_count == 2
        assert status.deliver_status == 0
        assert status.discovery_status == 1
        assert status.delivered is True
        assert status.raw == buffer

    def test_decode_transmit_status_failed(self):
        """Test a failed delivery report."""
        buffer = wrap(bytes([0x8B, 0x01, 0xFF, 0xFE, 0x00, 0x25, 0x00]))
        status = decode_frame(buffer, FrameKind.TRANSMIT_STATUS)
        assert status.delivered is False

    def test_decode_at_response_with_data(self):
        """Test AT response with a data segment."""
        buffer = wrap(bytes([0x88, 0x01]) + b"NI" + b"\x00" + b"GATEWAY")

        reply = decode_frame(buffer, FrameKind.AT_COMMAND_RESPONSE)

        assert isinstance(reply, AtCommandResponse)
        assert reply.frame_id == 0x01
        assert reply.command == b"NI"
        assert reply.command_name == "NI"
        assert reply.status == 0
        assert reply.ok is True
        assert reply.data == b"GATEWAY"

    def test_decode_at_response_without_data(self):
        """Test that a reply with no data segment reads as None."""
        buffer = wrap(bytes([0x88, 0x01]) + b"NI" + b"\x00")
        assert len(buffer) == 9
        reply = decode_frame(buffer, FrameKind.AT_COMMAND_RESPONSE)
        assert reply.data is None

    def test_decode_at_response_error_status(self):
        """Test a rejected command."""
        buffer = wrap(bytes([0x88, 0x05]) + b"XX" + b"\x02")
        reply = decode_frame(buffer, FrameKind.AT_COMMAND_RESPONSE)
        assert reply.status == 2
        assert reply.ok is False

    def test_decode_at_response_minimum(self):
        """Test that eight bytes are enough for an AT response."""
        buffer = bytes([0x7E, 0x00, 0x05, 0x88, 0x01]) + b"NI" + b"\x00"
        reply = decode_frame(buffer, FrameKind.AT_COMMAND_RESPONSE)
        assert reply.status == 0
        assert reply.data is None

    def test_decode_remote_response(self):
        """Test remote AT response offsets."""
        body = bytes([0x97, 0x09]) + ADDR_BYTES + b"\xff\xfe" + b"NI" + b"\x00" + b"REMOTE"
        reply = decode_frame(wrap(body), FrameKind.REMOTE_AT_COMMAND_RESPONSE)

        assert isinstance(reply, RemoteAtCommandResponse)
        assert reply.frame_id == 0x09
        assert reply.dest_addr == ADDR
        assert reply.command == b"NI"
        assert reply.ok is True
        assert reply.data == b"REMOTE"

    def test_decode_remote_response_without_data(self):
        """Test a remote reply with no data segment."""
        body = bytes([0x97, 0x09]) + ADDR_BYTES + b"\xff\xfe" + b"D0" + b"\x00"
        reply = decode_frame(wrap(body), FrameKind.REMOTE_AT_COMMAND_RESPONSE)
        assert reply.data is None

    def test_decode_remote_address_order(self):
        """Test that the address is read big-endian from bytes 5-12."""
        body = bytes([0x97, 0x01]) + bytes(range(1, 9)) + b"\xff\xfe" + b"SH" + b"\x00\xaa"
        reply = decode_frame(wrap(body), FrameKind.REMOTE_AT_COMMAND_RESPONSE)
        assert reply.dest_addr == 0x0102030405060708

    def test_decode_null(self):
        """Test that the null kind decodes to a NullFrame."""
        assert decode_frame(b"", FrameKind.NULL) == NullFrame()

    @pytest.mark.parametrize(
        "kind",
        [
            FrameKind.TRANSMIT_STATUS,
            FrameKind.AT_COMMAND_RESPONSE,
            FrameKind.REMOTE_AT_COMMAND_RESPONSE,
        ],
    )
    def test_decode_empty_buffer(self, kind):
        """Test that an empty buffer is a frame error."""
        with pytest.raises(FrameError):
            decode_frame(b"", kind)

    def test_decode_short_at_response(self):
        """Test that an AT response under eight bytes is rejected."""
        with pytest.raises(FrameError) as exc_info:
            decode_frame(b"\x7e\x00\x05\x88\x01N", FrameKind.AT_COMMAND_RESPONSE)
        assert exc_info.value.raw_data == b"\x7e\x00\x05\x88\x01N"

    def test_decode_short_remote_response(self):
        """Test that a remote response under eighteen bytes is rejected."""
        with pytest.raises(FrameError):
            decode_frame(bytes(17), FrameKind.REMOTE_AT_COMMAND_RESPONSE)

    def test_decode_short_transmit_status(self):
        """Test that a transmit status under eleven bytes is rejected."""
        with pytest.raises(FrameError):
            decode_frame(bytes(10), FrameKind.TRANSMIT_STATUS)

    def test_decode_outbound_kind(self):
        """Test that outbound kinds cannot be decoded."""
        with pytest.raises(ValueError):
            decode_frame(b"\x7e", FrameKind.AT_COMMAND)

    def test_decode_checksum_mismatch_warns(self, caplog):
        """Test that a bad checksum is logged, not raised."""
        buffer = bytearray(wrap(bytes([0x88, 0x01]) + b"NI" + b"\x00" + b"GW"))
        buffer[-1] ^= 0xFF

        with caplog.at_level(logging.WARNING, logger="digilink.protocol.codec"):
            reply = decode_frame(bytes(buffer), FrameKind.AT_COMMAND_RESPONSE)

        assert reply.data == b"GW"
        assert "Checksum mismatch" in caplog.text

    def test_decode_kind_mismatch_warns(self, caplog):
        """Test that an unexpected kind byte is logged, not raised."""
        buffer = wrap(bytes([0x97, 0x01]) + b"NI" + b"\x00" + b"GW")

        with caplog.at_level(logging.WARNING, logger="digilink.protocol.codec"):
            reply = decode_frame(buffer, FrameKind.AT_COMMAND_RESPONSE)

        assert reply.command == b"NI"
        assert "Expected AT_COMMAND_RESPONSE" in caplog.text

    def test_decode_ignores_declared_length(self):
        """Test that data runs to the last accumulated byte, not the length field."""
        buffer = b"\x7e\x00\x06\x88\x01NI\x00GATE\x00"
        reply = decode_frame(buffer, FrameKind.AT_COMMAND_RESPONSE)
        assert reply.data == b"GATE"
        assert reply.raw == buffer

    def test_decode_remote_with_zero_length_field(self):
        """Test that a wrong length field does not affect the offsets."""
        buffer = (
            b"\x7e\x00\x00"
            + bytes([0x97, 0x01])
            + bytes(range(1, 9))
            + b"\xff\xfe"
            + b"SH"
            + b"\x00"
            + b"\x12\x34"
            + b"\x00"
        )
        reply = decode_frame(buffer, FrameKind.REMOTE_AT_COMMAND_RESPONSE)
        assert reply.dest_addr == 0x0102030405060708
        assert reply.command == b"SH"
        assert reply.data == b"\x12\x34"

    def test_decode_remote_lone_checksum_is_no_data(self):
        """Test that a single byte after the status reads as no data."""
        buffer = b"\x7e\x00\x0f" + bytes([0x97, 0x01]) + bytes(8) + b"\xff\xfeD0\x00" + b"\x5a"
        assert len(buffer) == 19
        reply = decode_frame(buffer, FrameKind.REMOTE_AT_COMMAND_RESPONSE)
        assert reply.data is None

    def test_decode_keeps_trailing_bytes(self):
        """Test that bytes past the declared frame stay in the data segment."""
        frame = wrap(bytes([0x88, 0x01]) + b"NI" + b"\x00" + b"GW")
        reply = decode_frame(frame + b"XY", FrameKind.AT_COMMAND_RESPONSE)
        assert reply.data == b"GW" + frame[-1:] + b"X"
        assert reply.raw == frame + b"XY"

    def test_encoded_command_decodes_as_reply(self):
        """Test that an AT query's command bytes land where a reply's do."""
        packet = encode_frame(AtCommand("NI"), frame_id=0x01)
        reply = decode_frame(packet + b"\x00", FrameKind.AT_COMMAND_RESPONSE)
        assert reply.command == b"NI"
        assert reply.frame_id == 0x01
