"""Error taxonomy for dependency log decoding."""
from __future__ import annotations


class NinjaDepsError(Exception):
    """Base class for every error raised while reading a deps log."""


class FormatError(NinjaDepsError, ValueError):
    """The bytes are not a well-formed deps log.

    Fatal to the current decode pass. ``offset`` is the byte position where
    the problem was detected, when known.
    """

    def __init__(self, message: str, offset: int | None = None):
        self.offset = offset
        if offset is not None:
            message = f"{message} (at offset {offset})"
        super().__init__(message)


class ResourceError(NinjaDepsError, OSError):
    """The deps log could not be opened or mapped."""


class ChecksumWarning(UserWarning):
    """A path record's checksum does not match its implicit id."""
