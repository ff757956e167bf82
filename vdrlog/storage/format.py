"""VDR .dat file format constants.

The file is a flat little-endian byte stream:

    "AVDR"(4) | version(1) | ship name(32) | IMO number(4, u32le)
    count(1) | [knots(1) | name(7)] * count
    FF FF FF FF                                  — header terminator
    [timestamp(4) | type+length(1) | payload | checksum(1)] *
    FF FF FF FF                                  — log terminator

Text fields are upper-case ASCII, right-padded with spaces.
"""

# File magic and version
MAGIC = b"AVDR"  # Arduino Voyage Data Recorder
FORMAT_VERSION = 1
SUPPORTED_VERSIONS = (1,)

# Field widths in bytes
MAGIC_SIZE = 4
VERSION_SIZE = 1
SHIP_NAME_SIZE = 32
U32_SIZE = 4
SPEED_COUNT_SIZE = 1
SPEED_NAME_SIZE = 7
SPEED_ENTRY_SIZE = 1 + SPEED_NAME_SIZE
MAX_SPEED_ENTRIES = 0xFF

# Sentinel closing the header section and the log section
TERMINATOR = b"\xff\xff\xff\xff"

PAD_BYTE = b" "
TEXT_ENCODING = "ascii"

# Log record type/length byte: high bits select the event type, low bits hold
# the payload length. Fixed for the lifetime of the format; changing it breaks
# every file already written.
EVENT_TYPE_BITS = 3
LENGTH_BITS = 8 - EVENT_TYPE_BITS
LENGTH_MASK = (1 << LENGTH_BITS) - 1
MAX_PAYLOAD_SIZE = LENGTH_MASK  # 31 bytes
MAX_EVENT_TYPE = (1 << EVENT_TYPE_BITS) - 1

# timestamp(4) + type/length(1) + checksum(1)
RECORD_OVERHEAD = U32_SIZE + 1 + 1

# 0xFFFFFFFF would encode to the terminator bytes
MAX_TIMESTAMP = 0xFFFFFFFE

# Default output file written by the interactive menu
DEFAULT_FILENAME = "voyage_data_recorder.dat"

# Default speed table: (knots, name), slowest to fastest
DEFAULT_SPEEDS = (
    (2, "DEADSLW"),
    (5, "SLOW"),
    (10, "HALF"),
    (20, "FULL"),
    (22, "FLANK"),
)
