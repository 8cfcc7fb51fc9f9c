import pytest

from dexedpi.rtpmidi import (
    NAMELESS_SESSION_PACKET_SIZE,
    UNKNOWN_NAME,
    Command,
    build_feedback_packet,
    build_midi_packet,
    build_session_packet,
    build_sync_packet,
    parse_command_section,
    parse_delta_time,
    parse_end_session,
    parse_invitation,
    parse_midi_packet,
    parse_sync,
)


def collect():
    received = []
    return received, received.append


def test_invitation_round_trip():
    packet = build_session_packet(Command.INVITATION, 1234, 5678, "Studio")
    parsed = parse_invitation(packet)
    assert parsed is not None
    assert parsed.initiator_token == 1234
    assert parsed.ssrc == 5678
    assert parsed.name == "Studio"
    assert parsed.command == Command.INVITATION


def test_invitation_without_name_is_unknown():
    packet = build_session_packet(Command.INVITATION, 1, 2)
    assert len(packet) == NAMELESS_SESSION_PACKET_SIZE
    assert parse_invitation(packet).name == UNKNOWN_NAME


def test_reject_packet_wire_start():
    packet = build_session_packet(Command.INVITATION_REJECTED, 1, 2)
    assert packet[:4] == b"\xff\xffNO"


def test_invitation_rejects_other_commands_and_short_data():
    accept = build_session_packet(Command.INVITATION_ACCEPTED, 1, 2, "x")
    assert parse_invitation(accept) is None
    assert parse_invitation(b"\xff\xffIN") is None


def test_invitation_rejects_wrong_version():
    packet = bytearray(build_session_packet(Command.INVITATION, 1, 2))
    packet[7] = 3
    assert parse_invitation(bytes(packet)) is None


def test_end_session_round_trip():
    packet = build_session_packet(Command.END_SESSION, 9, 42)
    parsed = parse_end_session(packet)
    assert parsed.ssrc == 42
    assert parse_invitation(packet) is None


def test_sync_round_trip():
    packet = build_sync_packet(7, 100, 200)
    parsed = parse_sync(packet)
    assert parsed.ssrc == 7
    assert parsed.count == 1
    assert parsed.timestamps == (100, 200, 0)


def test_sync_rejects_truncated():
    packet = build_sync_packet(7, 100, 200)
    assert parse_sync(packet[:-1]) is None


def test_feedback_packet_start():
    packet = build_feedback_packet(3, 4)
    assert packet[:4] == b"\xff\xffRS"


def test_delta_time():
    assert parse_delta_time(b"\x05\x90") == (5, 1)
    assert parse_delta_time(b"\x81\x00") == (128, 2)
    assert parse_delta_time(b"\xff\xff\xff\xff\x7f")[1] == 4


def test_midi_packet_round_trip():
    received, handler = collect()
    packet = build_midi_packet(5, 0x1234, b"\x90\x3c\x64")
    header = parse_midi_packet(packet, handler)
    assert header.sequence == 5
    assert header.ssrc == 0x1234
    assert received == [b"\x90\x3c\x64"]


def test_midi_packet_long_sysex_round_trip():
    received, handler = collect()
    sysex = b"\xf0" + bytes(range(18)) + b"\xf7"
    packet = build_midi_packet(1, 2, sysex)
    assert parse_midi_packet(packet, handler) is not None
    assert received == [sysex]


def test_midi_packet_rejects_session_packets():
    received, handler = collect()
    assert parse_midi_packet(build_sync_packet(1, 2, 3), handler) is None
    assert received == []


def test_build_midi_packet_too_long():
    with pytest.raises(ValueError):
        build_midi_packet(1, 2, bytes(5000))


def test_command_section_realtime():
    received, handler = collect()
    assert parse_command_section(bytes([0x01, 0xF8]), handler)
    assert received == [b"\xf8"]


def test_command_section_ignores_undefined_realtime():
    received, handler = collect()
    assert parse_command_section(bytes([0x01, 0xF9]), handler)
    assert received == []


def test_command_section_running_status():
    received, handler = collect()
    section = bytes([0x06, 0x90, 0x3C, 0x64, 0x00, 0x3E, 0x64])
    assert parse_command_section(section, handler)
    assert received == [b"\x90\x3c\x64", b"\x3e\x64"]


def test_command_section_errors():
    received, handler = collect()
    assert not parse_command_section(b"\x01", handler)
    assert not parse_command_section(bytes([0x05, 0x90]), handler)
    assert not parse_command_section(bytes([0x02, 0x3C, 0x64]), handler)
    assert received == []


def test_segmented_sysex_first_and_cancelled():
    received, handler = collect()
    assert parse_command_section(bytes([0x04, 0xF0, 0x01, 0x02, 0xF0]), handler)
    assert received == [b"\xf0\x01\x02"]

    received, handler = collect()
    assert parse_command_section(bytes([0x03, 0xF7, 0x01, 0xF4]), handler)
    assert received == [b"\xf7"]