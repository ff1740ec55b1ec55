"""Streaming decoder for ninja_deps logs.

The log is append-only: a 16 byte header, then records framed by a u32 tag
whose high bit gives the record kind and whose low 31 bits give the payload
length. Path ids are never stored; they are assigned in read order.

The decoder reports every record in file order. Later dependency records
for the same target supersede earlier ones, but resolving that is left to
the consumer.
"""
from __future__ import annotations

import enum
import struct
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, Union
from warnings import warn

from ninjadeps_core.errors import ChecksumWarning, FormatError
from ninjadeps_core.protocol import (
    CHECKSUM_IGNORE,
    CHECKSUM_LEN,
    CHECKSUM_MASK,
    CHECKSUM_POLICIES,
    CHECKSUM_STRICT,
    CHECKSUM_WARN,
    DEFAULT_CHECKSUM_POLICY,
    HEADER_FMT,
    HEADER_LEN,
    MAGIC,
    MAGIC_LEN,
    MTIME_MISSING,
    MTIME_ZERO,
    SUPPORTED_VERSIONS,
    TAG_DEPS_BIT,
    TAG_LEN,
    TAG_SIZE_MASK,
    TARGET_LEN,
    TIMESTAMP_WIDTH,
    U32_LEN,
)
from ninjadeps_core.records import (
    END_OF_STREAM,
    DependencyIds,
    DependencyRecord,
    PathRecord,
    _EndOfStream,
)
from ninjadeps_core.source import ByteSource

Record = Union[PathRecord, DependencyRecord]


class DecoderState(enum.Enum):
    UNOPENED = "unopened"
    HEADER_VALIDATED = "header_validated"
    STREAMING = "streaming"
    DONE = "done"
    FAILED = "failed"


class DepsDecoder:
    """Forward-only reader over one ByteSource.

    Each decoder owns its cursor and path counter, so several decoders may
    read the same source independently.
    """

    def __init__(self, source, checksum_policy: str = DEFAULT_CHECKSUM_POLICY):
        if checksum_policy not in CHECKSUM_POLICIES:
            raise ValueError(
                f"checksum_policy must be one of {', '.join(CHECKSUM_POLICIES)}, got {checksum_policy!r}"
            )
        self.source = source if isinstance(source, ByteSource) else ByteSource(source)
        self.checksum_policy = checksum_policy
        self.state = DecoderState.UNOPENED
        self.schema_version: int | None = None
        self.timestamp_width = 0
        self.cursor = 0
        self.next_path_id = 0
        self._error: FormatError | None = None

    def __iter__(self) -> Iterator[Record]:
        while True:
            record = self.read_next()
            if record is END_OF_STREAM:
                return
            yield record

    def _read_header(self) -> None:
        if len(self.source) < MAGIC_LEN or self.source.raw(0, MAGIC_LEN) != MAGIC:
            raise FormatError("not a recognized dependency file", 0)
        if len(self.source) < HEADER_LEN:
            raise FormatError("truncated header", MAGIC_LEN)

        _, version = struct.unpack(HEADER_FMT, self.source.raw(0, HEADER_LEN))
        if version not in SUPPORTED_VERSIONS:
            raise FormatError(f"unsupported schema version {version}", MAGIC_LEN)

        self.schema_version = version
        self.timestamp_width = TIMESTAMP_WIDTH[version]
        self.cursor = HEADER_LEN
        self.state = DecoderState.HEADER_VALIDATED

    def read_next(self) -> Record | _EndOfStream:
        """Decode the record at the cursor, or return END_OF_STREAM."""
        if self.state is DecoderState.FAILED:
            raise self._error
        if self.state is DecoderState.DONE:
            return END_OF_STREAM

        try:
            if self.state is DecoderState.UNOPENED:
                self._read_header()
            if self.cursor == len(self.source):
                self.state = DecoderState.DONE
                return END_OF_STREAM
            record = self._read_record()
        except FormatError as e:
            self.state = DecoderState.FAILED
            self._error = e
            raise

        self.state = DecoderState.STREAMING
        return record

    def _read_record(self) -> Record:
        start = self.cursor
        tag = self.source.u32(start)
        size = tag & TAG_SIZE_MASK
        payload = start + TAG_LEN

        if size % 4:
            raise FormatError(f"record payload length {size} is not a multiple of 4", start)
        # Tag claims more than the file holds: torn append
        self.source.require(payload, size)

        if tag & TAG_DEPS_BIT:
            record = self._read_deps(payload, size)
        else:
            record = self._read_path(payload, size)

        self.cursor = payload + size
        return record

    def _read_path(self, payload: int, size: int) -> PathRecord:
        if size < CHECKSUM_LEN:
            raise FormatError(f"path record too short ({size} bytes)", payload)

        path_id = self.next_path_id
        text = self.source.text(payload, size - CHECKSUM_LEN)

        if self.checksum_policy != CHECKSUM_IGNORE:
            checksum = self.source.u32(payload + size - CHECKSUM_LEN)
            expected = ~path_id & CHECKSUM_MASK
            if checksum != expected:
                msg = f"path {path_id} checksum {checksum:#010x} != {expected:#010x}"
                if self.checksum_policy == CHECKSUM_STRICT:
                    raise FormatError(msg, payload + size - CHECKSUM_LEN)
                if self.checksum_policy == CHECKSUM_WARN:
                    warn(msg, ChecksumWarning)

        self.next_path_id += 1
        return PathRecord(path_id, text)

    def _read_deps(self, payload: int, size: int) -> DependencyRecord:
        fixed = TARGET_LEN + self.timestamp_width
        if size < fixed:
            raise FormatError(f"dependency record too short ({size} bytes)", payload)

        target = self.source.u32(payload)
        ts_off = payload + TARGET_LEN
        raw_ts = self.source.u32(ts_off) if self.timestamp_width == 4 else self.source.u64(ts_off)
        if raw_ts == MTIME_MISSING:
            timestamp = None
        elif raw_ts == MTIME_ZERO:
            timestamp = 0
        else:
            timestamp = raw_ts

        ids_len = size - fixed
        if ids_len % U32_LEN:
            raise FormatError(f"dependency list length {ids_len} is not a multiple of 4", payload + fixed)

        ids = DependencyIds(self.source, payload + fixed, ids_len // U32_LEN)
        return DependencyRecord(target, timestamp, ids)


@contextmanager
def open_decoder(path: Path, **options) -> Iterator[DepsDecoder]:
    """Map ``path`` and yield a decoder over it; the mapping is released on exit."""
    with ByteSource.open(path) as source:
        yield DepsDecoder(source, **options)


def iter_records(path: Path, **options) -> Iterator[Record]:
    """Yield every record of ``path``; the file stays mapped until the generator finishes."""
    with open_decoder(path, **options) as decoder:
        yield from decoder


def decode_all(path: Path, on_record: Callable[[Record], None], **options) -> int:
    """Feed every record of ``path`` to ``on_record`` and return the record count.

    Dependency views are only readable inside the callback.
    """
    count = 0
    with open_decoder(path, **options) as decoder:
        while True:
            record = decoder.read_next()
            if record is END_OF_STREAM:
                break
            on_record(record)
            count += 1
    return count
