import random
import struct
import sys
from pathlib import Path

from ninjadeps_core.protocol import (
    CHECKSUM_MASK,
    HEADER_FMT,
    MAGIC,
    MTIME_ZERO,
    TAG_DEPS_BIT,
    TAG_FMT,
    TIMESTAMP_WIDTH,
)

# --- CONFIGURATION ---
HEADERS_PER_SOURCE = 8


class DepsLogWriter:
    """Append-only writer used to produce demo and test logs.

    Path ids are implicit, so the writer tracks them the same way a reader does.
    """

    def __init__(self, file_handle, version=4):
        self.f = file_handle
        self.version = version
        self.ids = {}
        self.f.write(struct.pack(HEADER_FMT, MAGIC, version))

    def path(self, text, checksum=None):
        if text in self.ids:
            return self.ids[text]
        pid = len(self.ids)
        raw = text.encode("utf-8")
        raw += b"\x00" * (-len(raw) % 4)
        if checksum is None:
            checksum = ~pid & CHECKSUM_MASK
        payload = raw + struct.pack("<I", checksum)
        self.f.write(struct.pack(TAG_FMT, len(payload)) + payload)
        self.ids[text] = pid
        return pid

    def deps(self, target, mtime, inputs):
        tid = self.path(target)
        ids = [self.path(p) for p in inputs]
        ts_fmt = "<I" if TIMESTAMP_WIDTH[self.version] == 4 else "<Q"
        raw_mtime = 0 if mtime is None else (MTIME_ZERO if mtime == 0 else mtime)
        payload = struct.pack("<I", tid) + struct.pack(ts_fmt, raw_mtime) + struct.pack(f"<{len(ids)}I", *ids)
        self.f.write(struct.pack(TAG_FMT, TAG_DEPS_BIT | len(payload)) + payload)


def generate_basic(out_file, version=4):
    """128 paths followed by a single deps record for the first source."""
    out = Path(out_file)
    out.parent.mkdir(parents=True, exist_ok=True)
    with open(out, "wb") as f:
        w = DepsLogWriter(f, version=version)
        for i in range(127):
            w.path(f"include/header_{i:03d}.h")
        w.path("src/main.cc")
        w.deps("src/main.cc", 1_700_000_000_000_000_000 if version == 4 else 1_700_000_000,
               [f"include/header_{i:03d}.h" for i in range(HEADERS_PER_SOURCE)])
    print(f"GENERATED: {out}")
    return out


def generate_session(out_file, version=4, sources=20, rebuilds=3):
    """A log with several build passes, so earlier deps records go dead."""
    out = Path(out_file)
    out.parent.mkdir(parents=True, exist_ok=True)
    rng = random.Random(sources * 31 + rebuilds)
    headers = [f"include/h{i}.h" for i in range(sources * 2)]
    with open(out, "wb") as f:
        w = DepsLogWriter(f, version=version)
        mtime = 1_000
        for _ in range(rebuilds):
            for s in range(sources):
                mtime += 1
                w.deps(f"src/s{s}.cc", mtime, rng.sample(headers, HEADERS_PER_SOURCE))
    print(f"GENERATED: {out}")
    return out


if __name__ == "__main__":
    # Usage:
    #   python tools/sim_deps.py OUT_FILE [--v3] [--session]
    args = [a for a in sys.argv[1:] if a]

    def pop_flag(arg_list, flag):
        """Remove a boolean flag from an argv-style list."""
        if flag in arg_list:
            return True, [a for a in arg_list if a != flag]
        return False, arg_list

    v3, args = pop_flag(args, "--v3")
    session, args = pop_flag(args, "--session")
    out = args[0] if args else "basic.ninja_deps"
    version = 3 if v3 else 4

    if session:
        generate_session(out, version=version)
    else:
        generate_basic(out, version=version)
