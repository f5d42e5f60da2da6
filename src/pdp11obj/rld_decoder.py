"""
RLD (Relocation Directory) decoding.

Every entry starts with a command/displacement word:

    bits 0-6   entry type (1..017)
    bit  7     byte modification flag
    bits 8-15  displacement into the most recent TXT block

Types 1..016 are fixed layouts described by ``RLD_KINDS``: an optional
Radix-50 symbol (4 bytes) followed by an optional constant word. Type 017 is
a complex relocation: a bytecode program for a small stack machine, ending
with a store operation.

The displacement counts from the TXT block's type word, i.e. from
``last_text_block_offset + 4``, so the target printed for an entry is the
file offset of the byte or word a loader would patch.
"""

import logging
from typing import List, Tuple

from .errors import (
    ObjectFormatError, TruncatedError, InvalidOpcodeError, UnknownRelocationError,
)
from .object_reader import ObjectCursor
from .types import (
    RLDHeader, RLDType, RLD_KINDS, RLD_TYPE_MASK, RLD_BYTE_FLAG, ComplexOpcode,
    ComplexOp, ComplexRelocation, RelocationEntry, DecodeResult, Diagnostic, Severity,
)

logger = logging.getLogger(__name__)

DISPLACEMENT_BASE_OFFSET = 4

_VALID_OPCODES = frozenset(int(op) for op in ComplexOpcode)


def decode_complex_op(cursor: ObjectCursor) -> Tuple[ComplexOp, int]:
    """
    Decode one complex relocation operation.

    Returns:
        (operation, number of bytes consumed including the opcode)

    Raises:
        InvalidOpcodeError: opcode outside the defined set
        TruncatedError: the opcode or an operand runs past the record
    """
    start = cursor.position
    code = cursor.read_byte()
    if code not in _VALID_OPCODES:
        raise InvalidOpcodeError(code, start)

    opcode = ComplexOpcode(code)
    if opcode == ComplexOpcode.PUSH_SYMBOL:
        op = ComplexOp(opcode, symbol=cursor.read_symbol(), location=start)
    elif opcode == ComplexOpcode.PUSH_SECTION:
        section = cursor.read_byte()
        op = ComplexOp(opcode, section=section, constant=cursor.read_word(), location=start)
    elif opcode == ComplexOpcode.PUSH_CONSTANT:
        op = ComplexOp(opcode, constant=cursor.read_word(), location=start)
    else:
        op = ComplexOp(opcode, location=start)

    return op, cursor.position - start


def decode_complex_program(cursor: ObjectCursor) -> List[ComplexOp]:
    """Decode operations up to and including the terminating store"""
    ops = []
    while True:
        op, _ = decode_complex_op(cursor)
        ops.append(op)
        if op.terminates:
            return ops


def _decode_entry(cursor: ObjectCursor, displacement_base: int):
    start = cursor.position
    header = cursor.read_structure(RLDHeader)
    type_code = header.command & RLD_TYPE_MASK
    byte = bool(header.command & RLD_BYTE_FLAG)
    displacement = header.displacement
    target = displacement_base + displacement

    if type_code == RLDType.COMPLEX:
        ops = decode_complex_program(cursor)
        return ComplexRelocation(displacement, byte, ops, target=target, location=start)

    if not 1 <= type_code < len(RLD_KINDS):
        raise UnknownRelocationError(type_code, start)

    kind = RLD_KINDS[type_code]
    cursor.require(4 * kind.has_symbol + 2 * kind.has_constant, "RLD entry")
    symbol = cursor.read_symbol() if kind.has_symbol else None
    constant = cursor.read_word() if kind.has_constant else None

    return RelocationEntry(
        type_code,
        symbol=symbol,
        constant=constant,
        displacement=displacement,
        byte=byte,
        target=target if kind.has_displacement else None,
        location=start,
    )


def decode_rld(image: bytes, offset: int, length: int, last_text_block_offset: int) -> DecodeResult:
    """
    Decode the RLD entries in ``image[offset:offset + length]``.

    Args:
        last_text_block_offset: start offset of the most recent TXT block,
            the base for every displacement in this block

    Any decode error (truncation, bad opcode, unknown type) stops the whole
    block with a fatal diagnostic; entries decoded before it are kept.
    """
    result = DecodeResult()
    cursor = ObjectCursor(image, offset, offset + length)
    displacement_base = last_text_block_offset + DISPLACEMENT_BASE_OFFSET

    try:
        while not cursor.at_end():
            result.entries.append(_decode_entry(cursor, displacement_base))
    except TruncatedError as e:
        logger.debug(f"RLD decode stopped: {e}")
        result.diagnostic = Diagnostic(Severity.FATAL, "RLD record is truncated.", e.offset)
    except ObjectFormatError as e:
        logger.debug(f"RLD decode stopped at {e.offset:06o}: {e.message}")
        result.diagnostic = Diagnostic(Severity.FATAL, e.message, e.offset)

    logger.debug(f"Decoded {len(result.entries)} RLD entries at {offset:06o} "
                 f"(displacement base {displacement_base:06o})")
    return result
