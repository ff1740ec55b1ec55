"""ninjadeps core - ninja_deps log decoding."""
from .decoder import DecoderState, DepsDecoder, decode_all, iter_records, open_decoder
from .errors import ChecksumWarning, FormatError, NinjaDepsError, ResourceError
from .records import END_OF_STREAM, DependencyIds, DependencyRecord, PathRecord
from .source import ByteSource

__all__ = [
    "ByteSource",
    "ChecksumWarning",
    "DecoderState",
    "DependencyIds",
    "DependencyRecord",
    "DepsDecoder",
    "END_OF_STREAM",
    "FormatError",
    "NinjaDepsError",
    "PathRecord",
    "ResourceError",
    "decode_all",
    "iter_records",
    "open_decoder",
]
