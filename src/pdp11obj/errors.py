"""
Decode errors raised inside the record decoders.

They never escape a decoder: the decoder that catches one turns it into a
fatal Diagnostic and returns whatever it had decoded so far.
"""

from typing import Optional


class ObjectFormatError(Exception):
    """Base class for malformed object data"""

    def __init__(self, message: str, offset: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.offset = offset


class TruncatedError(ObjectFormatError):
    """Read past the end of the current record"""


class InvalidOpcodeError(ObjectFormatError):
    """Unrecognised complex relocation opcode"""

    def __init__(self, opcode: int, offset: Optional[int] = None):
        super().__init__(f"Invalid complex relocation opcode {opcode:03o}.", offset)
        self.opcode = opcode


class UnknownRelocationError(ObjectFormatError):
    """RLD entry type outside 1..15"""

    def __init__(self, type_code: int, offset: Optional[int] = None):
        super().__init__(f"Unknown RLD entry type {type_code:03o}.", offset)
        self.type_code = type_code
