"""Tests for the VDR byte codec: fields → speed table → header → log records → assembler."""

import logging

import pytest
from pydantic import ValidationError

from vdrlog.assembler import append_record, build_file, parse_file, parse_sections, plan_append
from vdrlog.errors import (
    ChecksumMismatchError,
    InvalidInputError,
    MalformedHeaderError,
    PayloadTooLargeError,
    TooManyEntriesError,
    TruncatedError,
    UnrecognizedFormatError,
    UnsupportedVersionError,
    VDRError,
)
from vdrlog.storage.fields import (
    decode_text,
    decode_u32le,
    encode_text,
    encode_u32le,
    xor_checksum,
)
from vdrlog.storage.format import MAX_PAYLOAD_SIZE, TERMINATOR
from vdrlog.storage.header import decode_header, encode_header
from vdrlog.storage.records import (
    decode_log,
    decode_record,
    encode_entry,
    encode_record,
    pack_type_length,
    split_payload,
    unpack_type_length,
)
from vdrlog.storage.speeds import decode_speed_table, encode_speed_table
from vdrlog.utils.schema import DEFAULT_SPEED_TABLE, EventType, LogEntry, SpeedEntry

DEFAULT_SPEED_BYTES = (
    bytes([5])
    + bytes([2]) + b"DEADSLW"
    + bytes([5]) + b"SLOW   "
    + bytes([10]) + b"HALF   "
    + bytes([20]) + b"FULL   "
    + bytes([22]) + b"FLANK  "
)

# ALARM "FIRE" at 1700000000 (0x6553F100), type/length 0xA4, checksum 0x7B
FIRE_RECORD = bytes.fromhex("00f15365a4464952457b")


# ── Fixed-Width Fields ─────────────────────────────────────


class TestFields:
    def test_text_is_upper_cased_and_padded(self):
        assert encode_text("slow", 7) == b"SLOW   "

    def test_text_exact_width(self):
        assert encode_text("deadslw", 7) == b"DEADSLW"

    def test_empty_text(self):
        assert encode_text("", 7) == b"       "
        with pytest.raises(InvalidInputError, match="empty"):
            encode_text("", 7, allow_empty=False)

    def test_over_length_rejected_unless_truncating(self):
        with pytest.raises(InvalidInputError, match="field holds 7"):
            encode_text("deadslower", 7)
        assert encode_text("deadslower", 7, truncate=True) == b"DEADSLO"

    def test_non_ascii_rejected(self):
        with pytest.raises(InvalidInputError, match="ASCII"):
            encode_text("café", 7)

    def test_decode_text_strips_trailing_spaces(self):
        assert decode_text(b"SLOW   ") == "SLOW"
        assert decode_text(b" A B   ") == " A B"
        assert decode_text(b"       ") == ""

    def test_decode_text_never_fails(self):
        assert decode_text(b"\xffAB  ") == "\ufffdAB"

    def test_u32_little_endian(self):
        assert encode_u32le(1234567) == bytes([0x87, 0xD6, 0x12, 0x00])
        assert decode_u32le(bytes([0x87, 0xD6, 0x12, 0x00])) == 1234567
        assert decode_u32le(b"\x00\x01\x00\x00\x00", offset=1) == 1
        assert decode_u32le(b"\xff\xff\xff\xff") == 0xFFFFFFFF

    def test_u32_out_of_range(self):
        with pytest.raises(InvalidInputError):
            encode_u32le(2**32)
        with pytest.raises(InvalidInputError):
            encode_u32le(-1)

    def test_u32_truncated(self):
        with pytest.raises(TruncatedError):
            decode_u32le(b"\x01\x02")

    def test_xor_checksum(self):
        assert xor_checksum(b"") == 0
        assert xor_checksum(b"\x0f\xf0") == 0xFF
        assert xor_checksum(b"\xaa\xaa") == 0


# ── Speed Table ────────────────────────────────────────────


class TestSpeedTable:
    def test_default_table_bytes(self):
        assert encode_speed_table(DEFAULT_SPEED_TABLE) == DEFAULT_SPEED_BYTES

    def test_roundtrip_preserves_order(self):
        entries, end = decode_speed_table(DEFAULT_SPEED_BYTES)
        assert end == len(DEFAULT_SPEED_BYTES)
        assert [(s.knots, s.name) for s in entries] == [
            (2, "DEADSLW"), (5, "SLOW"), (10, "HALF"), (20, "FULL"), (22, "FLANK"),
        ]

    def test_empty_table(self):
        assert encode_speed_table([]) == b"\x00"
        entries, end = decode_speed_table(b"\x00")
        assert entries == []
        assert end == 1

    def test_255_entries_roundtrip(self):
        table = [SpeedEntry(knots=i, name=f"S{i}") for i in range(255)]
        data = encode_speed_table(table)
        assert len(data) == 1 + 255 * 8
        decoded, end = decode_speed_table(data)
        assert decoded == table
        assert end == len(data)

    def test_256_entries_rejected(self):
        table = [SpeedEntry(knots=1, name="X")] * 256
        with pytest.raises(TooManyEntriesError):
            encode_speed_table(table)

    def test_decode_at_offset(self):
        data = b"xx" + DEFAULT_SPEED_BYTES + b"tail"
        entries, end = decode_speed_table(data, offset=2)
        assert len(entries) == 5
        assert data[end:] == b"tail"

    def test_truncated_table(self):
        with pytest.raises(TruncatedError, match="declares 2 entries"):
            decode_speed_table(bytes([2, 5]) + b"SLOW   ")
        with pytest.raises(TruncatedError):
            decode_speed_table(b"")

    def test_name_normalized_and_knots_bounded(self):
        assert SpeedEntry(knots=3, name="slow").name == "SLOW"
        with pytest.raises(ValidationError):
            SpeedEntry(knots=256, name="FAST")

    def test_over_length_name_rejected(self):
        with pytest.raises(InvalidInputError):
            encode_speed_table([SpeedEntry(knots=3, name="VERYSLOW")])


# ── Header ─────────────────────────────────────────────────


class TestHeader:
    def test_example_vessel_layout(self):
        data = encode_header("Example Vessel", 1234567, DEFAULT_SPEED_TABLE)
        assert len(data) == 86
        assert data[:4] == b"AVDR"
        assert data[4] == 1
        assert data[5:37] == b"EXAMPLE VESSEL".ljust(32)
        assert data[37:41] == bytes([0x87, 0xD6, 0x12, 0x00])
        assert data[41:82] == DEFAULT_SPEED_BYTES
        assert data[82:] == TERMINATOR

    def test_example_vessel_roundtrip(self):
        data = encode_header("Example Vessel", 1234567, DEFAULT_SPEED_TABLE)
        header, end = decode_header(data)
        assert end == 86
        assert header.ship_name == "EXAMPLE VESSEL"
        assert header.imo_number == 1234567
        assert header.version == 1
        assert header.speeds == list(DEFAULT_SPEED_TABLE)

    def test_name_trimmed(self):
        data = encode_header("  Example Vessel \n", 9074729, [])
        header, _ = decode_header(data)
        assert header.ship_name == "EXAMPLE VESSEL"
        assert header.speeds == []

    def test_name_length_limits(self):
        encode_header("A" * 32, 1, [])
        with pytest.raises(InvalidInputError, match="at most 32"):
            encode_header("A" * 33, 1, [])

    def test_empty_name_rejected(self):
        with pytest.raises(InvalidInputError, match="empty"):
            encode_header("", 1, [])
        with pytest.raises(InvalidInputError, match="empty"):
            encode_header("   ", 1, [])

    def test_imo_must_be_positive(self):
        with pytest.raises(InvalidInputError, match="positive"):
            encode_header("Vessel", 0, [])
        with pytest.raises(InvalidInputError, match="positive"):
            encode_header("Vessel", -5, [])
        with pytest.raises(InvalidInputError, match="32 bits"):
            encode_header("Vessel", 2**32, [])

    def test_bad_magic(self):
        data = encode_header("Vessel", 1, DEFAULT_SPEED_TABLE)
        with pytest.raises(UnrecognizedFormatError):
            decode_header(b"AVRD" + data[4:])
        with pytest.raises(UnrecognizedFormatError):
            decode_header(b"AV")

    def test_unsupported_version(self):
        data = bytearray(encode_header("Vessel", 1, DEFAULT_SPEED_TABLE))
        data[4] = 2
        with pytest.raises(UnsupportedVersionError) as exc_info:
            decode_header(bytes(data))
        assert exc_info.value.version == 2
        assert exc_info.value.offset == 4

    def test_missing_terminator(self):
        data = encode_header("Vessel", 1, DEFAULT_SPEED_TABLE)
        with pytest.raises(MalformedHeaderError):
            decode_header(data[:-1] + b"\x00")
        with pytest.raises(TruncatedError, match="terminator missing"):
            decode_header(data[:-2])

    def test_truncated_fixed_part(self):
        data = encode_header("Vessel", 1, DEFAULT_SPEED_TABLE)
        with pytest.raises(TruncatedError):
            decode_header(data[:20])
        with pytest.raises(TruncatedError):
            decode_header(data[:50])

    def test_speed_lookup(self):
        header, _ = decode_header(encode_header("Vessel", 1, DEFAULT_SPEED_TABLE))
        assert header.speed("half").knots == 10
        with pytest.raises(KeyError):
            header.speed("reverse")


# ── Log Records ────────────────────────────────────────────


class TestLogRecords:
    def test_known_record_bytes(self):
        assert encode_record(1700000000, EventType.ALARM, b"FIRE") == FIRE_RECORD

    def test_type_length_byte(self):
        assert pack_type_length(EventType.ALARM, 4) == 0xA4
        assert unpack_type_length(0xA4) == (EventType.ALARM, 4)
        assert pack_type_length(EventType.CUSTOM, MAX_PAYLOAD_SIZE) == 0xFF
        assert unpack_type_length(0x00) == (EventType.NOTE, 0)

    def test_decode_known_record(self):
        data = FIRE_RECORD + TERMINATOR
        entry, end = decode_record(data, 0)
        assert entry.timestamp == 1700000000
        assert entry.event_type == EventType.ALARM
        assert entry.payload == b"FIRE"
        assert entry.offset == 0
        assert entry.checksum == 0x7B
        assert end == len(FIRE_RECORD)

    def test_terminator_ends_stream(self):
        data = FIRE_RECORD + TERMINATOR
        entry, end = decode_record(data, len(FIRE_RECORD))
        assert entry is None
        assert end == len(FIRE_RECORD)

    @pytest.mark.parametrize("event_type", list(EventType))
    def test_roundtrip_each_type(self, event_type):
        payload = bytes(range(event_type * 4))
        record = encode_record(1234, event_type, payload)
        assert len(record) == 4 + 1 + len(payload) + 1
        entry, _ = decode_record(record + TERMINATOR)
        assert (entry.timestamp, entry.event_type, entry.payload) == (1234, event_type, payload)

    def test_empty_payload(self):
        assert encode_record(0, EventType.NOTE, b"") == bytes(6)

    def test_max_payload(self):
        payload = b"\xaa" * MAX_PAYLOAD_SIZE
        entry, _ = decode_record(encode_record(5, "custom", payload) + TERMINATOR)
        assert entry.payload == payload

    def test_payload_too_large(self):
        with pytest.raises(PayloadTooLargeError):
            encode_record(5, EventType.NOTE, b"x" * (MAX_PAYLOAD_SIZE + 1))

    def test_timestamp_range(self):
        encode_record(0xFFFFFFFE, EventType.NOTE)
        with pytest.raises(InvalidInputError):
            encode_record(0xFFFFFFFF, EventType.NOTE)
        with pytest.raises(InvalidInputError):
            encode_record(-1, EventType.NOTE)

    def test_unknown_event_type(self):
        with pytest.raises(InvalidInputError):
            encode_record(1, "bogus")
        with pytest.raises(InvalidInputError):
            encode_record(1, 8)

    def test_event_type_by_name(self):
        assert encode_record(1700000000, "Alarm", b"FIRE") == FIRE_RECORD

    @pytest.mark.parametrize(
        "bit",
        [*range(0, 32), *range(32, 35), *range(40, 72)],
    )
    def test_single_bit_flip_detected(self, bit):
        """Flips in timestamp, event-type bits or payload break the checksum."""
        data = bytearray(FIRE_RECORD + TERMINATOR)
        data[bit // 8] ^= 0x80 >> (bit % 8)
        with pytest.raises(ChecksumMismatchError):
            decode_record(bytes(data))

    def test_length_bit_flip_detected(self):
        data = bytearray(FIRE_RECORD + TERMINATOR)
        data[4] ^= 0x01  # length 4 -> 5, checksum now read from the terminator
        with pytest.raises(ChecksumMismatchError) as exc_info:
            decode_record(bytes(data))
        assert exc_info.value.stored == 0xFF
        assert exc_info.value.computed == 0x01

    def test_checksum_byte_flip_detected(self):
        data = bytearray(FIRE_RECORD + TERMINATOR)
        data[9] ^= 0x10
        with pytest.raises(ChecksumMismatchError, match="stored 0x6B, computed 0x7B"):
            decode_record(bytes(data))

    def test_truncated_record(self):
        with pytest.raises(TruncatedError, match="4-byte payload"):
            decode_record(FIRE_RECORD[:7])
        with pytest.raises(TruncatedError):
            decode_record(FIRE_RECORD[:-1])
        with pytest.raises(TruncatedError, match="without terminator"):
            decode_record(b"\x01\x02")

    def test_entry_checksum_matches_encoding(self):
        entry = LogEntry(timestamp=1700000000, event_type="alarm", payload=b"FIRE")
        assert encode_entry(entry)[-1] == entry.checksum == 0x7B

    def test_split_payload(self):
        chunks = split_payload(b"x" * 70)
        assert [len(c) for c in chunks] == [31, 31, 8]
        assert b"".join(chunks) == b"x" * 70
        assert split_payload(b"") == [b""]
        with pytest.raises(ValueError):
            split_payload(b"abc", size=32)


class TestLogStream:
    def test_absent_log(self):
        section = decode_log(b"", 0)
        assert section.entries == []
        assert section.terminator_offset is None
        assert section.append_offset == 0

    def test_lone_terminator(self):
        section = decode_log(TERMINATOR)
        assert section.entries == []
        assert section.terminator_offset == 0
        assert section.trailing_bytes == 0

    def test_multiple_records(self):
        r1 = encode_record(100, EventType.SPEED, b"HALF")
        r2 = encode_record(160, EventType.HEADING, b"270")
        section = decode_log(r1 + r2 + TERMINATOR)
        assert [e.timestamp for e in section.entries] == [100, 160]
        assert [e.offset for e in section.entries] == [0, len(r1)]
        assert section.terminator_offset == len(r1 + r2)

    def test_missing_terminator(self):
        with pytest.raises(TruncatedError):
            decode_log(FIRE_RECORD)

    def test_trailing_bytes_ignored(self, caplog):
        with caplog.at_level(logging.WARNING, logger="vdrlog.storage.records"):
            section = decode_log(FIRE_RECORD + TERMINATOR + b"junk")
        assert len(section.entries) == 1
        assert section.trailing_bytes == 4
        assert "Ignoring 4 bytes" in caplog.text


# ── Assembler ──────────────────────────────────────────────


class TestAssembler:
    def test_new_file_is_header_only(self):
        data = build_file("Example Vessel", 1234567)
        assert data == encode_header("Example Vessel", 1234567, DEFAULT_SPEED_TABLE)
        vdr = parse_file(data)
        assert vdr.header.ship_name == "EXAMPLE VESSEL"
        assert len(vdr) == 0

    def test_custom_speed_table(self):
        speeds = [SpeedEntry(knots=0, name="STOP"), SpeedEntry(knots=12, name="cruise")]
        vdr = parse_file(build_file("Tug", 42, speeds))
        assert [(s.knots, s.name) for s in vdr.header.speeds] == [(0, "STOP"), (12, "CRUISE")]

    def test_first_append_keeps_header_terminator(self):
        data = append_record(build_file("Example Vessel", 1234567), 1700000000, "alarm", b"FIRE")
        assert len(data) == 86 + len(FIRE_RECORD) + 4
        assert data[82:86] == TERMINATOR
        assert data[86:96] == FIRE_RECORD
        assert data[-4:] == TERMINATOR

        vdr = parse_file(data)
        assert len(vdr) == 1
        assert vdr[0].offset == 86

    def test_second_append_overwrites_log_terminator(self):
        data = build_file("Example Vessel", 1234567)
        data = append_record(data, 1700000000, "alarm", b"FIRE")
        data = append_record(data, 1700000060, "note", b"OUT")
        assert len(data) == 86 + 10 + 9 + 4
        assert data.count(TERMINATOR) == 2

        vdr = parse_file(data)
        assert [e.offset for e in vdr.entries] == [86, 96]
        assert [e.payload for e in vdr.entries] == [b"FIRE", b"OUT"]

    def test_build_with_entries_matches_appends(self):
        entries = [
            LogEntry(timestamp=1700000000, event_type=EventType.ALARM, payload=b"FIRE"),
            LogEntry(timestamp=1700000060, event_type=EventType.NOTE, payload=b"OUT"),
        ]
        built = build_file("Example Vessel", 1234567, entries=entries)

        appended = build_file("Example Vessel", 1234567)
        for e in entries:
            appended = append_record(appended, e.timestamp, e.event_type, e.payload)
        assert built == appended

    def test_append_after_lone_terminator(self):
        data = build_file("Vessel", 7) + TERMINATOR
        offset, blob = plan_append(data, [FIRE_RECORD])
        assert offset == 86
        assert blob == FIRE_RECORD + TERMINATOR

    def test_append_refuses_corrupt_file(self):
        data = bytearray(append_record(build_file("Vessel", 7), 1, "note", b"A"))
        data[-6] ^= 0x01
        with pytest.raises(ChecksumMismatchError):
            append_record(bytes(data), 2, "note", b"B")

    def test_corrupt_record_reports_offset(self):
        data = build_file("Vessel", 7)
        for i in range(3):
            data = append_record(data, 1000 + i, "position", b"POS%d" % i)
        vdr, _ = parse_sections(data)
        target = vdr[1].offset

        corrupt = bytearray(data)
        corrupt[target + 6] ^= 0x04
        with pytest.raises(ChecksumMismatchError) as exc_info:
            parse_file(bytes(corrupt))
        assert exc_info.value.offset == target

    def test_errors_share_base_class(self):
        with pytest.raises(VDRError):
            parse_file(b"nope")
        with pytest.raises(ValueError):
            build_file("", 1)
