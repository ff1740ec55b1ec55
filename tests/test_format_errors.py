import struct
import warnings

import pytest

from conftest import deps_rec, header, path_rec, raw_rec
from ninjadeps_core import ChecksumWarning, DecoderState, DepsDecoder, FormatError, PathRecord


@pytest.mark.parametrize(
    "magic",
    [b"# ninjadeps\r", b"# NINJADEPS\n", b"#ninjadeps\n\x00", b"\x00" * 12],
)
def test_bad_magic(magic):
    with pytest.raises(FormatError, match="not a recognized dependency file"):
        DepsDecoder(header(magic=magic)).read_next()


def test_bad_magic_reported_before_version():
    # Version field is truncated too, but the magic is checked first
    with pytest.raises(FormatError, match="not a recognized"):
        DepsDecoder(b"# ninjadepz\n\x04").read_next()


@pytest.mark.parametrize("data", [b"", b"# ninja"])
def test_too_short_for_magic(data):
    with pytest.raises(FormatError, match="not a recognized"):
        DepsDecoder(data).read_next()


def test_truncated_version():
    with pytest.raises(FormatError, match="truncated header"):
        DepsDecoder(b"# ninjadeps\n\x04\x00").read_next()


@pytest.mark.parametrize("version", [0, 1, 2, 5, 0xFFFFFFFF])
def test_unsupported_version(version):
    dec = DepsDecoder(header(version) + path_rec("a", 0))
    with pytest.raises(FormatError, match="unsupported schema version"):
        dec.read_next()
    assert dec.state is DecoderState.FAILED


def test_truncated_payload():
    data = header() + path_rec("a.cc", 0) + deps_rec(0, 5, [0, 0, 0])
    with pytest.raises(FormatError, match="truncated"):
        list(DepsDecoder(data[:-4]))


def test_truncated_tag():
    data = header() + path_rec("a.cc", 0) + b"\x08\x00"
    dec = DepsDecoder(data)
    assert dec.read_next() == PathRecord(0, "a.cc")
    with pytest.raises(FormatError, match="truncated"):
        dec.read_next()


def test_huge_tag_does_not_read_out_of_bounds():
    data = header() + struct.pack("<I", 0x7FFFFFFC) + b"abcd"
    with pytest.raises(FormatError, match="truncated"):
        DepsDecoder(data).read_next()


def test_size_not_multiple_of_four():
    data = header() + struct.pack("<I", 6) + b"ab\x00\x00\x00\x00"
    with pytest.raises(FormatError, match="multiple of 4"):
        DepsDecoder(data).read_next()


def test_path_record_without_room_for_checksum():
    data = header() + struct.pack("<I", 0)
    with pytest.raises(FormatError, match="too short"):
        DepsDecoder(data).read_next()


def test_deps_record_shorter_than_fixed_fields():
    # v4 needs 12 bytes of target + mtime
    data = header(4) + raw_rec(struct.pack("<II", 0, 5), deps=True)
    with pytest.raises(FormatError, match="too short"):
        DepsDecoder(data).read_next()


def test_dependency_count_follows_payload_length():
    # v3: target(4) + mtime(4), then one id
    data = header(3) + raw_rec(struct.pack("<III", 0, 5, 9), deps=True)
    rec = DepsDecoder(data).read_next()
    assert rec.dependency_ids.to_list() == [9]

    # v4: the same 12 bytes are only target + mtime
    data = header(4) + raw_rec(struct.pack("<III", 0, 5, 9), deps=True)
    rec = DepsDecoder(data).read_next()
    assert rec.timestamp == 9 << 32 | 5
    assert len(rec.dependency_ids) == 0


def test_failure_is_terminal():
    data = header() + path_rec("a", 0) + struct.pack("<I", 64)
    dec = DepsDecoder(data)
    dec.read_next()
    with pytest.raises(FormatError) as first:
        dec.read_next()
    with pytest.raises(FormatError) as second:
        dec.read_next()
    assert second.value is first.value
    assert dec.state is DecoderState.FAILED


def test_records_before_error_are_delivered():
    data = header() + path_rec("a", 0) + path_rec("b", 1) + struct.pack("<I", 64)
    seen = []
    with pytest.raises(FormatError):
        for rec in DepsDecoder(data):
            seen.append(rec)
    assert seen == [PathRecord(0, "a"), PathRecord(1, "b")]


def test_format_error_carries_offset():
    data = header() + struct.pack("<I", 64)
    with pytest.raises(FormatError) as exc:
        DepsDecoder(data).read_next()
    assert exc.value.offset == 20
    assert isinstance(exc.value, ValueError)


def _bad_checksum_log():
    return header() + path_rec("a", 0) + path_rec("b", 1, checksum=12345)


def test_checksum_ignored_by_default():
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        records = list(DepsDecoder(_bad_checksum_log()))
    assert records[1] == PathRecord(1, "b")


def test_checksum_warn_policy():
    with pytest.warns(ChecksumWarning, match="path 1 checksum"):
        records = list(DepsDecoder(_bad_checksum_log(), checksum_policy="warn"))
    assert len(records) == 2


def test_checksum_strict_policy():
    dec = DepsDecoder(_bad_checksum_log(), checksum_policy="strict")
    assert dec.read_next() == PathRecord(0, "a")
    with pytest.raises(FormatError, match="checksum"):
        dec.read_next()


def test_checksum_strict_accepts_valid_log(basic_log):
    assert len(list(DepsDecoder(basic_log, checksum_policy="strict"))) == 129
