"""Record shapes produced by the decoder."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

from ninjadeps_core.protocol import U32_LEN
from ninjadeps_core.source import ByteSource


class DependencyIds:
    """Bounded view of u32 path ids inside a ByteSource.

    Nothing is copied until an element is read. The view is only valid while
    its source is open; call ``to_list()`` to keep the ids afterwards.
    """

    __slots__ = ("_source", "_start", "_count")

    def __init__(self, source: ByteSource, start: int, count: int):
        self._source = source
        self._start = start
        self._count = count

    def _check_open(self) -> None:
        if self._source.closed:
            raise ValueError("dependency view used after its source was released")

    def __len__(self) -> int:
        return self._count

    def __getitem__(self, index: int) -> int:
        if isinstance(index, slice):
            return [self[i] for i in range(*index.indices(self._count))]
        if index < 0:
            index += self._count
        if not 0 <= index < self._count:
            raise IndexError("dependency index out of range")
        self._check_open()
        return self._source.u32(self._start + index * U32_LEN)

    def __iter__(self) -> Iterator[int]:
        self._check_open()
        return self._source.iter_u32(self._start, self._count)

    def __eq__(self, other) -> bool:
        if isinstance(other, DependencyIds):
            return self.to_list() == other.to_list()
        if isinstance(other, (list, tuple)):
            return self.to_list() == list(other)
        return NotImplemented

    def __repr__(self) -> str:
        if self._source.closed:
            return f"DependencyIds(<released>, count={self._count})"
        return f"DependencyIds({self.to_list()!r})"

    def to_list(self) -> list[int]:
        return list(self)


@dataclass(frozen=True)
class PathRecord:
    id: int
    text: str


@dataclass(frozen=True)
class DependencyRecord:
    """Current dependency set of ``target_id``.

    ``timestamp`` is ``None`` when the target did not exist. Its unit depends
    on the schema version (seconds for v3, nanoseconds for v4) and its epoch
    is whatever the writing platform used.
    """

    target_id: int
    timestamp: int | None
    dependency_ids: DependencyIds


class _EndOfStream:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "END_OF_STREAM"


END_OF_STREAM = _EndOfStream()
