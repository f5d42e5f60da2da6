"""
Radix-50 symbol decoding.

Three characters are packed into one 16-bit word as ``c0*1600 + c1*40 + c2``
over a fixed 40-character alphabet; a symbol name is two such words.
"""

import struct

RAD50_ALPHABET = " ABCDEFGHIJKLMNOPQRSTUVWXYZ$.%0123456789"

_SYMBOL = struct.Struct('<HH')


def decode_word(word: int) -> str:
    """
    Decode one Radix-50 word into three characters.

    The word is not range checked. Values of 64000 and above still decode;
    the leading character wraps modulo 40.
    """
    chars = [' '] * 3
    for j in range(3):
        chars[2 - j] = RAD50_ALPHABET[word % 40]
        word //= 40
    return ''.join(chars)


def decode_symbol(image, offset: int) -> str:
    """Decode the two-word symbol name at ``image[offset:offset + 4]``"""
    first, second = _SYMBOL.unpack_from(image, offset)
    return decode_word(first) + decode_word(second)
