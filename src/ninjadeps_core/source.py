"""Read-only byte source over a whole deps log."""
from __future__ import annotations

import mmap
import os
import struct
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from ninjadeps_core.errors import FormatError, ResourceError
from ninjadeps_core.protocol import U32_FMT, U32_LEN, U64_FMT


class ByteSource:
    """Random-access little-endian reads over an immutable buffer.

    The buffer is either ``bytes`` or a read-only ``mmap``. Every read is
    bounds checked: reading past the end raises ``FormatError`` instead of
    returning short data.
    """

    def __init__(self, data):
        if isinstance(data, (bytearray, memoryview)):
            data = bytes(data)
        self._data = data
        self._length = len(data)

    def __len__(self) -> int:
        return self._length

    @property
    def closed(self) -> bool:
        return isinstance(self._data, mmap.mmap) and self._data.closed

    def require(self, offset: int, count: int) -> None:
        if offset < 0 or count < 0 or offset + count > self._length:
            raise FormatError(
                f"truncated record: need {count} bytes, {max(self._length - offset, 0)} remain",
                offset,
            )

    def u32(self, offset: int) -> int:
        self.require(offset, 4)
        return struct.unpack_from(U32_FMT, self._data, offset)[0]

    def u64(self, offset: int) -> int:
        self.require(offset, 8)
        return struct.unpack_from(U64_FMT, self._data, offset)[0]

    def raw(self, offset: int, count: int) -> bytes:
        self.require(offset, count)
        return self._data[offset:offset + count]

    def text(self, offset: int, limit: int) -> str:
        """Decode UTF-8 starting at ``offset`` up to the first NUL within ``limit`` bytes."""
        self.require(offset, limit)
        end = self._data.find(b"\x00", offset, offset + limit)
        if end == -1:
            end = offset + limit
        try:
            return self._data[offset:end].decode("utf-8")
        except UnicodeDecodeError as e:
            raise FormatError(f"path is not valid UTF-8: {e.reason}", offset) from e

    def iter_u32(self, offset: int, count: int) -> Iterator[int]:
        self.require(offset, count * U32_LEN)
        for i in range(count):
            yield struct.unpack_from(U32_FMT, self._data, offset + i * U32_LEN)[0]

    @classmethod
    @contextmanager
    def open(cls, path: Path) -> Iterator["ByteSource"]:
        """Map ``path`` read-only for the duration of the ``with`` block."""
        path = Path(path)
        try:
            f = open(path, "rb")
        except OSError as e:
            raise ResourceError(f"cannot open deps log {path}: {e.strerror or e}") from e

        with f:
            try:
                size = os.fstat(f.fileno()).st_size
                # mmap refuses zero-length files
                data = mmap.mmap(f.fileno(), 0, access=mmap.ACCESS_READ) if size else b""
            except (OSError, ValueError) as e:
                raise ResourceError(f"cannot map deps log {path}: {e}") from e

            try:
                yield cls(data)
            finally:
                if isinstance(data, mmap.mmap):
                    data.close()
