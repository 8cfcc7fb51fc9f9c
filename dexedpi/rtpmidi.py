"""AppleMIDI session packets and RTP-MIDI payload encoding and decoding."""

from __future__ import annotations

import logging
import struct
from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum

logger = logging.getLogger(__name__)

MessageHandler = Callable[[bytes], None]

CONTROL_PORT = 5004
MIDI_PORT = CONTROL_PORT + 1

APPLEMIDI_SIGNATURE = 0xFFFF
APPLEMIDI_VERSION = 2

RTP_MIDI_PAYLOAD_TYPE = 0x61
RTP_MIDI_VERSION = 2

MAX_NAME_LENGTH = 256
MAX_MIDI_MESSAGE = 4104
UNKNOWN_NAME = "<unknown>"

_SESSION = struct.Struct(">HHIII")
_SYNC = struct.Struct(">HHIB3xQQQ")
_FEEDBACK = struct.Struct(">HHII")
_RTP = struct.Struct(">HHII")

NAMELESS_SESSION_PACKET_SIZE = _SESSION.size
SYNC_PACKET_SIZE = _SYNC.size
RTP_HEADER_SIZE = _RTP.size

_MAX_SHORT_LENGTH = 0x0F
_MAX_LONG_LENGTH = 0x0FFF


def _command_word(text: str) -> int:
    return ord(text[0]) << 8 | ord(text[1])


class Command(IntEnum):
    """Two-letter AppleMIDI session commands."""

    INVITATION = _command_word("IN")
    INVITATION_ACCEPTED = _command_word("OK")
    INVITATION_REJECTED = _command_word("NO")
    SYNC = _command_word("CK")
    RECEIVER_FEEDBACK = _command_word("RS")
    END_SESSION = _command_word("BY")


@dataclass(frozen=True)
class SessionPacket:
    """An invitation, acceptance, rejection or end-of-session packet."""

    command: int
    version: int
    initiator_token: int
    ssrc: int
    name: str


@dataclass(frozen=True)
class SyncPacket:
    """A clock synchronisation packet."""

    ssrc: int
    count: int
    timestamps: tuple[int, int, int]


@dataclass(frozen=True)
class RTPHeader:
    """The fixed header of an RTP-MIDI packet."""

    flags: int
    sequence: int
    timestamp: int
    ssrc: int


def _read_name(data: bytes) -> str:
    if len(data) <= NAMELESS_SESSION_PACKET_SIZE:
        return UNKNOWN_NAME
    raw = data[NAMELESS_SESSION_PACKET_SIZE : NAMELESS_SESSION_PACKET_SIZE + MAX_NAME_LENGTH]
    return raw.split(b"\0", 1)[0].decode("utf-8", errors="replace")


def _parse_session(data: bytes, expected: Command) -> SessionPacket | None:
    if len(data) < NAMELESS_SESSION_PACKET_SIZE:
        return None
    signature, command, version, token, ssrc = _SESSION.unpack_from(data)
    if signature != APPLEMIDI_SIGNATURE or command != expected or version != APPLEMIDI_VERSION:
        return None
    return SessionPacket(command, version, token, ssrc, _read_name(data))


def parse_invitation(data: bytes) -> SessionPacket | None:
    """Decode an invitation packet, or return None if ``data`` is not one."""
    return _parse_session(bytes(data), Command.INVITATION)


def parse_end_session(data: bytes) -> SessionPacket | None:
    """Decode an end-of-session packet, or return None if ``data`` is not one."""
    return _parse_session(bytes(data), Command.END_SESSION)


def parse_sync(data: bytes) -> SyncPacket | None:
    """Decode a sync packet, or return None if ``data`` is not one."""
    data = bytes(data)
    if len(data) < SYNC_PACKET_SIZE:
        return None
    signature, command, ssrc, count, t0, t1, t2 = _SYNC.unpack_from(data)
    if signature != APPLEMIDI_SIGNATURE or command != Command.SYNC:
        return None
    return SyncPacket(ssrc, count, (t0, t1, t2))


def parse_delta_time(data: bytes) -> tuple[int, int]:
    """Decode a variable-length delta time; return ``(delta, bytes consumed)``."""
    delta = 0
    length = 0
    while length < 4 and length < len(data):
        byte = data[length]
        delta = (delta << 7) | (byte & 0x7F)
        length += 1
        if not byte & 0x80:
            break
    return delta, length


def _parse_sysex(data: bytes, handler: MessageHandler) -> int:
    head = data[0]
    tail = 0
    parsed = 1
    while parsed < len(data) and tail not in (0xF0, 0xF7, 0xF4):
        tail = data[parsed]
        parsed += 1

    start = 0
    length = parsed
    if head == 0xF0 and tail == 0xF0:
        # First segment of a segmented SysEx
        length -= 1
    elif head == 0xF7 and tail == 0xF0:
        # Middle segment
        start = 1
        parsed -= 2
    elif head == 0xF7 and tail == 0xF7:
        # Last segment
        start = 1
        length -= 1
    elif head == 0xF7 and tail == 0xF4:
        # Cancelled SysEx
        length = 1

    handler(bytes(data[start : start + length]))
    return parsed


def _parse_command(data: bytes, running_status: int, handler: MessageHandler) -> tuple[int, int]:
    """Parse one MIDI command; return ``(bytes consumed, running status)``."""
    byte = data[0]

    if byte >= 0xF8:
        if byte not in (0xF9, 0xFD):
            handler(bytes((byte,)))
        return 1, running_status

    parsed = 0
    if byte & 0x80:
        running_status = byte if byte < 0xF0 else 0
        parsed += 1
    else:
        if not running_status:
            return 0, running_status
        byte = running_status

    if byte < 0xF0:
        kind = byte & 0xF0
        if kind in (0x80, 0x90, 0xA0, 0xB0, 0xE0):
            parsed += 2
        elif kind in (0xC0, 0xD0):
            parsed += 1
        parsed = min(parsed, len(data))
        handler(bytes(data[:parsed]))
        return parsed, running_status

    if byte in (0xF0, 0xF7):
        return _parse_sysex(data, handler), running_status
    if byte in (0xF1, 0xF3):
        parsed += 1
    elif byte == 0xF2:
        parsed += 2
    parsed = min(parsed, len(data))
    handler(bytes(data[:parsed]))
    return parsed, running_status


def parse_command_section(data: bytes, handler: MessageHandler) -> bool:
    """Decode an RTP-MIDI command section, passing each command to ``handler``."""
    data = bytes(data)
    if len(data) < 2:
        return False

    header = data[0]
    position = 1
    remaining = len(data) - 1
    length = header & 0x0F
    if header & 0x80:
        length = (length << 8) | data[1]
        position += 1
        remaining -= 1

    if length > remaining:
        logger.error("Invalid MIDI command length")
        return False

    commands = data[position : position + length]
    offset = 0
    processed = 0
    running_status = 0
    while offset < len(commands):
        if processed or header & 0x20:
            _, consumed = parse_delta_time(commands[offset:])
            offset += consumed
        if offset < len(commands):
            consumed, running_status = _parse_command(commands[offset:], running_status, handler)
            if consumed <= 0:
                return False
            offset += consumed
            processed += 1
    return True


def parse_midi_packet(data: bytes, handler: MessageHandler) -> RTPHeader | None:
    """Decode an RTP-MIDI packet; return its header, or None if it is not valid."""
    data = bytes(data)
    if len(data) < RTP_HEADER_SIZE + 1:
        return None
    flags, sequence, timestamp, ssrc = _RTP.unpack_from(data)
    if (flags >> 14) & 0x03 != RTP_MIDI_VERSION:
        return None
    if (flags >> 8) & 0x0F != 0:
        return None
    if flags & 0xFF != RTP_MIDI_PAYLOAD_TYPE:
        return None
    if not parse_command_section(data[RTP_HEADER_SIZE:], handler):
        return None
    return RTPHeader(flags, sequence, timestamp, ssrc)


def build_session_packet(
    command: int, initiator_token: int, ssrc: int, name: str | None = None
) -> bytes:
    """Encode a session packet; ``name`` None leaves the name out."""
    packet = _SESSION.pack(
        APPLEMIDI_SIGNATURE, int(command), APPLEMIDI_VERSION, initiator_token, ssrc
    )
    if name is None:
        return packet
    encoded = name.encode("utf-8")[: MAX_NAME_LENGTH - 1]
    return packet + encoded + b"\0"


def build_sync_packet(ssrc: int, timestamp1: int, timestamp2: int) -> bytes:
    """Encode the reply (count 1) of a clock synchronisation exchange."""
    return _SYNC.pack(APPLEMIDI_SIGNATURE, Command.SYNC, ssrc, 1, timestamp1, timestamp2, 0)


def build_feedback_packet(ssrc: int, sequence: int) -> bytes:
    """Encode a receiver feedback packet acknowledging ``sequence``."""
    return _FEEDBACK.pack(
        APPLEMIDI_SIGNATURE,
        Command.RECEIVER_FEEDBACK,
        ssrc,
        ((sequence & 0xFFFF) << 16) & 0xFFFFFFFF,
    )


def build_midi_packet(sequence: int, ssrc: int, data: bytes) -> bytes:
    """Encode MIDI data as an RTP-MIDI packet without timestamps."""
    data = bytes(data)
    length = len(data)
    if length > _MAX_LONG_LENGTH:
        raise ValueError(f"MIDI data too long for one packet: {length} bytes")
    header = _RTP.pack(
        (RTP_MIDI_VERSION << 14) | RTP_MIDI_PAYLOAD_TYPE, sequence & 0xFFFF, 0, ssrc
    )
    if length < _MAX_SHORT_LENGTH:
        section = bytes((length,))
    else:
        section = bytes((0x80 | ((length >> 8) & 0x0F), length & 0xFF))
    return header + section + data