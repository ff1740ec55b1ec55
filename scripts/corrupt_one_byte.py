import sys
from pathlib import Path

from ninjadeps_core.protocol import HEADER_LEN, MAGIC_LEN


def main():
    if len(sys.argv) < 2:
        print("Usage: corrupt_one_byte.py <file> [offset]")
        raise SystemExit(2)

    p = Path(sys.argv[1])
    b = bytearray(p.read_bytes())
    if len(b) < HEADER_LEN + 8:
        print("File too small to corrupt safely.")
        raise SystemExit(2)

    # Default: flip the low byte of the schema version, right after the magic.
    idx = int(sys.argv[2]) if len(sys.argv) > 2 else MAGIC_LEN
    b[idx] ^= 0x01
    p.write_bytes(bytes(b))
    print(f"Corrupted 1 byte at offset {idx} in {p}")

if __name__ == "__main__":
    main()
