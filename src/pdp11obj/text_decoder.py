"""
TXT block decoding: a load address word followed by data words.
"""

import logging

from .errors import TruncatedError
from .object_reader import ObjectCursor
from .types import TextBlock, DecodeResult, Diagnostic, Severity

logger = logging.getLogger(__name__)

WORDS_PER_LINE = 8


def decode_text(image: bytes, offset: int, length: int) -> DecodeResult:
    """
    Decode a TXT payload.

    A payload shorter than the load address word is a fatal diagnostic. An
    odd trailing byte after the last whole word is dropped without comment.
    """
    result = DecodeResult()
    cursor = ObjectCursor(image, offset, offset + length)

    try:
        load_address = cursor.read_word()
    except TruncatedError:
        result.diagnostic = Diagnostic(Severity.FATAL, "This TXT record is truncated.", offset)
        return result

    data_offset = cursor.position
    words = []
    while cursor.remaining >= 2:
        words.append(cursor.read_word())

    if cursor.remaining:
        logger.debug(f"Dropping odd trailing byte at {cursor.position:06o}")

    result.entries.append(TextBlock(load_address, words, location=offset, data_offset=data_offset))
    return result
