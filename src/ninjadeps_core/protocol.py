"""ninja_deps on-disk protocol constants.

Single source of truth for the magic, schema versions and record layouts.
Everything in the file is little endian and aligned to four bytes.
"""

# File magic: 12 literal bytes followed by a u32 schema version
MAGIC = b"# ninjadeps\n"
MAGIC_LEN = 12

HEADER_FMT = "<12sI"
HEADER_LEN = 16

SUPPORTED_VERSIONS = (3, 4)

# Record tag: [Kind(bit 31) | PayloadLength(bits 0-30)]
TAG_FMT = "<I"
TAG_LEN = 4
TAG_DEPS_BIT = 0x80000000
TAG_SIZE_MASK = 0x7FFFFFFF

U32_FMT = "<I"
U64_FMT = "<Q"
U32_LEN = 4

# Path record trailer: u32 checksum == ~path_id
CHECKSUM_LEN = 4
CHECKSUM_MASK = 0xFFFFFFFF

# Dependency record: u32 target, then mtime (seconds u32 in v3, nanoseconds u64 in v4)
TARGET_LEN = 4
TIMESTAMP_WIDTH = {3: 4, 4: 8}

# Raw mtime markers
MTIME_MISSING = 0
MTIME_ZERO = 1

# Checksum policies
CHECKSUM_IGNORE = "ignore"
CHECKSUM_WARN = "warn"
CHECKSUM_STRICT = "strict"
CHECKSUM_POLICIES = (CHECKSUM_IGNORE, CHECKSUM_WARN, CHECKSUM_STRICT)
DEFAULT_CHECKSUM_POLICY = CHECKSUM_IGNORE

# Writer-side recompaction threshold (reported by consumers, never performed)
RECOMPACT_MIN_RECORDS = 1000
RECOMPACT_DEAD_FRACTION = 2 / 3
