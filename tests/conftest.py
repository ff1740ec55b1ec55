"""Helpers for building deps logs in memory.

Layouts are packed by hand so the tests do not depend on any writer code.
"""
import struct

import pytest

MAGIC = b"# ninjadeps\n"


def header(version=4, magic=MAGIC):
    return magic + struct.pack("<I", version)


def path_rec(text, pid, checksum=None):
    raw = text.encode("utf-8")
    raw += b"\x00" * (-len(raw) % 4)
    if checksum is None:
        checksum = ~pid & 0xFFFFFFFF
    payload = raw + struct.pack("<I", checksum)
    return struct.pack("<I", len(payload)) + payload


def deps_rec(target, raw_mtime, ids, version=4):
    ts = struct.pack("<I", raw_mtime) if version == 3 else struct.pack("<Q", raw_mtime)
    payload = struct.pack("<I", target) + ts + b"".join(struct.pack("<I", i) for i in ids)
    return struct.pack("<I", 0x80000000 | len(payload)) + payload


def raw_rec(payload, deps=False):
    tag = len(payload) | (0x80000000 if deps else 0)
    return struct.pack("<I", tag) + payload


@pytest.fixture
def basic_log():
    """128 paths then one deps record, schema v4."""
    parts = [header(4)]
    for i in range(128):
        parts.append(path_rec(f"out/obj_{i}.o" if i else "src/main.cc", i))
    parts.append(deps_rec(0, 1_700_000_000_123_456_789, [1, 2, 3, 127]))
    return b"".join(parts)


@pytest.fixture
def write_log(tmp_path):
    def _write(data, name="build.ninja_deps"):
        p = tmp_path / name
        p.write_bytes(data)
        return p
    return _write
