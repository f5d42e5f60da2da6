"""
GSD (Global Symbol Directory) decoding.

Each sub-record is 8 bytes::

    +0  word  Radix-50 name, first half
    +2  word  Radix-50 name, second half
    +4  byte  flags
    +5  byte  type
    +6  word  value (length, address or offset, depending on type)
"""

import logging
from typing import Sequence

from .errors import TruncatedError
from .object_reader import ObjectCursor
from .types import (
    GSD_RECORD_SIZE, GSDType, GLOBAL_SYMBOL_FLAGS, PSECT_FLAGS, FlagLabel,
    DecodeResult, Diagnostic, Severity, Entry,
    ModuleName, CSect, InternalSymbol, TransferAddress, GlobalSymbol,
    PSect, Ident, VSect, Unknown,
)

logger = logging.getLogger(__name__)

# name, flags and type must be present before a sub-record is decoded
GSD_MIN_RECORD_SIZE = 6

# Types whose value word carries meaning
_VALUE_TYPES = frozenset((GSDType.CSECT, GSDType.TRANSFER, GSDType.PSECT, GSDType.VSECT))


def render_flags(flags: int, labels: Sequence[FlagLabel]) -> str:
    """
    Render a flag byte from bit 7 down to bit 0.

    A set bit contributes its ``on`` label, a clear bit its ``off`` label;
    bits with no label for their value are left out.
    """
    parts = []
    for bit in range(7, -1, -1):
        label = labels[bit].on if flags & (1 << bit) else labels[bit].off
        if label:
            parts.append(label)
    return "+".join(parts)


def _decode_record(cursor: ObjectCursor) -> Entry:
    location = cursor.position
    name = cursor.read_symbol()
    flags = cursor.read_byte()
    type_code = cursor.read_byte()

    if type_code in _VALUE_TYPES:
        value = cursor.read_word()
    else:
        # the value word is unused; a short final record simply ends here
        cursor.skip(min(2, cursor.remaining))
        value = None

    if type_code == GSDType.MODNAME:
        return ModuleName(name, location=location)
    if type_code == GSDType.CSECT:
        return CSect(name, value, location=location)
    if type_code == GSDType.INTSYM:
        return InternalSymbol(name, location=location)
    if type_code == GSDType.TRANSFER:
        return TransferAddress(name, value, location=location)
    if type_code == GSDType.GBLSYM:
        return GlobalSymbol(name, flags, location=location)
    if type_code == GSDType.PSECT:
        return PSect(name, value, flags, location=location)
    if type_code == GSDType.IDENT:
        return Ident(name, location=location)
    if type_code == GSDType.VSECT:
        return VSect(name, value, location=location)

    logger.debug(f"Unknown GSD type {type_code:03o} for [{name}] at {location:06o}")
    return Unknown(name, type_code, location=location)


def decode_gsd(image: bytes, offset: int, length: int) -> DecodeResult:
    """
    Decode the GSD sub-records in ``image[offset:offset + length]``.

    Unknown sub-record types decode to ``Unknown`` and decoding continues at
    the next 8-byte record. A truncated record stops decoding of the block
    with a fatal diagnostic; records decoded before it are kept.
    """
    result = DecodeResult()
    cursor = ObjectCursor(image, offset, offset + length)

    try:
        while not cursor.at_end():
            start = cursor.position
            if cursor.remaining < GSD_MIN_RECORD_SIZE:
                raise TruncatedError("GSD record is truncated.", start)
            result.entries.append(_decode_record(cursor))
            # fixed stride whatever the type
            cursor.position = min(start + GSD_RECORD_SIZE, cursor.end)
    except TruncatedError as e:
        logger.debug(f"GSD decode stopped: {e}")
        result.diagnostic = Diagnostic(Severity.FATAL, "GSD record is truncated.", e.offset)

    logger.debug(f"Decoded {len(result.entries)} GSD entries at {offset:06o}")
    return result
