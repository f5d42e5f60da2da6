import ctypes
from collections import namedtuple
from enum import IntEnum
from typing import List, Optional

# =============================================================================
# Object Module Constants and Enums
# =============================================================================

BLOCK_SENTINEL = 1
BLOCK_HEADER_SIZE = 6
GSD_RECORD_SIZE = 8


class RecordType(IntEnum):
    """Formatted binary block type codes"""
    GSD = 1         # Global symbol directory
    ENDGSD = 2      # End of GSD
    TXT = 3         # Text (code/data) block
    RLD = 4         # Relocation directory
    ISD = 5         # Internal symbol directory
    ENDMOD = 6      # End of module
    LIB = 7         # Library header
    LIBEND = 8      # Library end


# Indexed by block type code; code 0 has no name
RECORD_TYPE_NAMES = (
    None,
    "GSD",
    "ENDGSD",
    "TXT",
    "RLD",
    "ISD",
    "ENDMOD",
    "LIB",
    "LIBEND",
)


class GSDType(IntEnum):
    """GSD sub-record type codes"""
    MODNAME = 0     # Module name
    CSECT = 1       # Control section name
    INTSYM = 2      # Internal symbol name
    TRANSFER = 3    # Transfer address
    GBLSYM = 4      # Global symbol name
    PSECT = 5       # Program section name
    IDENT = 6       # Program version identification
    VSECT = 7       # Mapped array declaration


class RLDType(IntEnum):
    """RLD entry type codes (low 7 bits of the command byte)"""
    INTERNAL = 0o1
    GLOBAL = 0o2
    INTERNAL_DISPLACED = 0o3
    GLOBAL_DISPLACED = 0o4
    GLOBAL_ADDITIVE = 0o5
    GLOBAL_ADDITIVE_DISPLACED = 0o6
    LOCATION_COUNTER_DEFINITION = 0o7
    LOCATION_COUNTER_MODIFICATION = 0o10
    PROGRAM_LIMITS = 0o11
    PSECT = 0o12
    PSECT_DISPLACED = 0o14
    PSECT_ADDITIVE = 0o15
    PSECT_ADDITIVE_DISPLACED = 0o16
    COMPLEX = 0o17


RLD_TYPE_MASK = 0o177
RLD_BYTE_FLAG = 0o200


class ComplexOpcode(IntEnum):
    """Complex relocation stack machine opcodes"""
    NOP = 0o0
    ADD = 0o1
    SUB = 0o2
    MUL = 0o3
    DIV = 0o4
    AND = 0o5
    OR = 0o6
    XOR = 0o7
    NEG = 0o10
    COM = 0o11
    STORE = 0o12
    STORE_DISPLACED = 0o13
    PUSH_SYMBOL = 0o16
    PUSH_SECTION = 0o17
    PUSH_CONSTANT = 0o20


COMPLEX_OPCODE_NAMES = {
    ComplexOpcode.NOP: "Nop",
    ComplexOpcode.ADD: "Add",
    ComplexOpcode.SUB: "Subtract",
    ComplexOpcode.MUL: "Multiply",
    ComplexOpcode.DIV: "Divide",
    ComplexOpcode.AND: "And",
    ComplexOpcode.OR: "Or",
    ComplexOpcode.XOR: "Xor",
    ComplexOpcode.NEG: "Negate",
    ComplexOpcode.COM: "Complement",
    ComplexOpcode.STORE: "Store",
    ComplexOpcode.STORE_DISPLACED: "Store Displaced",
    ComplexOpcode.PUSH_SYMBOL: "Push Global",
    ComplexOpcode.PUSH_SECTION: "Push Relocatable",
    ComplexOpcode.PUSH_CONSTANT: "Push Constant",
}

STORE_OPCODES = frozenset((ComplexOpcode.STORE, ComplexOpcode.STORE_DISPLACED))


class Severity(IntEnum):
    """Diagnostic severity"""
    WARNING = 1     # reported, processing continues
    FATAL = 2       # reported, the current record stream stops


# =============================================================================
# Fixed Lookup Tables
# =============================================================================

# (on, off) label per bit, indexed by bit number 0..7
FlagLabel = namedtuple('FlagLabel', ['on', 'off'])

GLOBAL_SYMBOL_FLAGS = (
    FlagLabel("WEAK", None),    # bit 0
    FlagLabel(None, None),      # bit 1
    FlagLabel(None, None),      # bit 2
    FlagLabel("DEF", "REF"),    # bit 3
    FlagLabel(None, None),      # bit 4
    FlagLabel("REL", "ABS"),    # bit 5
    FlagLabel(None, None),      # bit 6
    FlagLabel(None, None),      # bit 7
)

PSECT_FLAGS = (
    FlagLabel("SAV", None),     # bit 0
    FlagLabel(None, None),      # bit 1
    FlagLabel("OVR", "CON"),    # bit 2
    FlagLabel(None, None),      # bit 3
    FlagLabel("R/O", "R/W"),    # bit 4
    FlagLabel("REL", "ABS"),    # bit 5
    FlagLabel("GBL", "LCL"),    # bit 6
    FlagLabel("D", "I"),        # bit 7
)

RLDKind = namedtuple('RLDKind', ['name', 'has_symbol', 'has_constant', 'has_displacement'])

# Indexed by RLD type code 0..14; type 15 (complex) is decoded separately.
# Slot 013 carries a displacement mark although the type is unused. The value
# is kept as found in the format tables.
RLD_KINDS = (
    RLDKind(None, False, False, False),
    RLDKind("Internal Relocation", False, True, True),
    RLDKind("Global Relocation", True, False, True),
    RLDKind("Internal Displaced Relocation", False, True, True),
    RLDKind("Global Displaced Relocation", True, False, True),
    RLDKind("Global Additive Relocation", True, True, True),
    RLDKind("Global Additive Displaced Relocation", True, True, True),
    RLDKind("Location Counter Definition", True, True, False),
    RLDKind("Location Counter Modification", False, True, False),
    RLDKind("Program Limits", False, False, True),
    RLDKind("PSECT Relocation", True, False, True),
    RLDKind(None, False, False, True),
    RLDKind("PSECT Displaced Relocation", True, False, True),
    RLDKind("PSECT Additive Relocation", True, True, True),
    RLDKind("PSECT Additive Displaced Relocation", True, True, True),
)


# =============================================================================
# ctypes Structure Definitions (on-disk layouts, little endian)
# =============================================================================

class BlockHeader(ctypes.LittleEndianStructure):
    """Formatted binary block header"""
    _pack_ = 1
    _fields_ = [
        ('sentinel', ctypes.c_uint16),  # Always 000001
        ('length', ctypes.c_uint16),    # Bytes from sentinel up to the checksum byte
        ('type', ctypes.c_uint16),      # Block type code
    ]


class RLDHeader(ctypes.LittleEndianStructure):
    """RLD entry command/displacement word"""
    _pack_ = 1
    _fields_ = [
        ('command', ctypes.c_uint8),       # Type code plus byte flag
        ('displacement', ctypes.c_uint8),  # Byte offset into the preceding TXT block
    ]


# =============================================================================
# Decoded Entries
# =============================================================================

class Entry:
    """
    Base class for decoded object entries.

    Equality and repr cover the fields listed in ``_fields``; ``location``
    (the file offset the entry was decoded from) is informational only.
    """

    _fields = ()

    def __init__(self, location: Optional[int] = None):
        self.location = location

    def __eq__(self, other):
        if type(self) is not type(other):
            return NotImplemented
        return all(getattr(self, f) == getattr(other, f) for f in self._fields)

    __hash__ = None

    def __repr__(self):
        args = ", ".join(f"{f}={getattr(self, f)!r}" for f in self._fields)
        return f"{self.__class__.__name__}({args})"


# --- GSD entries ---

class ModuleName(Entry):
    _fields = ('name',)

    def __init__(self, name, location=None):
        super().__init__(location)
        self.name = name


class CSect(Entry):
    _fields = ('name', 'max_length')

    def __init__(self, name, max_length, location=None):
        super().__init__(location)
        self.name = name
        self.max_length = max_length


class InternalSymbol(Entry):
    _fields = ('name',)

    def __init__(self, name, location=None):
        super().__init__(location)
        self.name = name


class TransferAddress(Entry):
    _fields = ('name', 'offset')

    def __init__(self, name, offset, location=None):
        super().__init__(location)
        self.name = name
        self.offset = offset


class GlobalSymbol(Entry):
    _fields = ('name', 'flags')

    def __init__(self, name, flags, location=None):
        super().__init__(location)
        self.name = name
        self.flags = flags


class PSect(Entry):
    _fields = ('name', 'max_length', 'flags')

    def __init__(self, name, max_length, flags, location=None):
        super().__init__(location)
        self.name = name
        self.max_length = max_length
        self.flags = flags


class Ident(Entry):
    _fields = ('name',)

    def __init__(self, name, location=None):
        super().__init__(location)
        self.name = name


class VSect(Entry):
    _fields = ('name', 'length')

    def __init__(self, name, length, location=None):
        super().__init__(location)
        self.name = name
        self.length = length


class Unknown(Entry):
    """GSD sub-record with an unrecognised type code"""
    _fields = ('name', 'type_code')

    def __init__(self, name, type_code, location=None):
        super().__init__(location)
        self.name = name
        self.type_code = type_code


# --- TXT ---

class TextBlock(Entry):
    """
    Decoded TXT payload.

    ``location`` is the offset of the load address word, ``data_offset`` the
    offset of the first data word.
    """
    _fields = ('load_address', 'words')

    def __init__(self, load_address, words, location=None, data_offset=None):
        super().__init__(location)
        self.load_address = load_address
        self.words = list(words)
        self.data_offset = data_offset


# --- RLD entries ---

class ComplexOp(Entry):
    """One operation of a complex relocation program"""
    _fields = ('opcode', 'symbol', 'section', 'constant')

    def __init__(self, opcode, symbol=None, section=None, constant=None, location=None):
        super().__init__(location)
        self.opcode = ComplexOpcode(opcode)
        self.symbol = symbol
        self.section = section
        self.constant = constant

    @property
    def name(self) -> str:
        return COMPLEX_OPCODE_NAMES[self.opcode]

    @property
    def terminates(self) -> bool:
        return self.opcode in STORE_OPCODES


class RelocationEntry(Entry):
    """One of the fixed-layout RLD entry kinds (types 1..14)"""
    _fields = ('type_code', 'symbol', 'constant', 'displacement', 'byte')

    def __init__(self, type_code, symbol=None, constant=None, displacement=0,
                 byte=False, target=None, location=None):
        super().__init__(location)
        self.type_code = type_code
        self.symbol = symbol
        self.constant = constant
        self.displacement = displacement
        self.byte = byte
        self.target = target

    @property
    def kind(self) -> RLDKind:
        return RLD_KINDS[self.type_code]


class ComplexRelocation(Entry):
    """RLD type 017: a stack machine program ending in a store"""
    _fields = ('displacement', 'byte', 'ops')

    def __init__(self, displacement, byte, ops, target=None, location=None):
        super().__init__(location)
        self.displacement = displacement
        self.byte = byte
        self.ops = list(ops)
        self.target = target

    @property
    def type_code(self) -> int:
        return RLDType.COMPLEX


# =============================================================================
# Scan Results
# =============================================================================

class Diagnostic:
    """An inline warning or fatal decode error"""

    def __init__(self, severity: Severity, message: str, offset: Optional[int] = None):
        self.severity = severity
        self.message = message
        self.offset = offset

    @property
    def fatal(self) -> bool:
        return self.severity == Severity.FATAL

    def __repr__(self):
        return f"Diagnostic({self.severity.name}, {self.message!r}, offset={self.offset!r})"


class DecodeResult:
    """Entries decoded from one block, plus the diagnostic that stopped decoding"""

    def __init__(self, entries: Optional[List[Entry]] = None,
                 diagnostic: Optional[Diagnostic] = None):
        self.entries = entries if entries is not None else []
        self.diagnostic = diagnostic

    @property
    def complete(self) -> bool:
        return self.diagnostic is None or not self.diagnostic.fatal

    def __repr__(self):
        return f"DecodeResult({self.entries!r}, diagnostic={self.diagnostic!r})"


class Block:
    """A framed block located in the object image"""

    def __init__(self, start_offset: int, declared_length: int, type_code: int):
        self.start_offset = start_offset
        self.declared_length = declared_length
        self.type_code = type_code

    @property
    def type_name(self) -> Optional[str]:
        if 0 <= self.type_code < len(RECORD_TYPE_NAMES):
            return RECORD_TYPE_NAMES[self.type_code]
        return None

    @property
    def payload_offset(self) -> int:
        return self.start_offset + BLOCK_HEADER_SIZE

    @property
    def payload_length(self) -> int:
        return max(0, self.declared_length - BLOCK_HEADER_SIZE)

    @property
    def end_offset(self) -> int:
        """Offset of the first byte after the checksum"""
        return self.start_offset + self.declared_length + 1

    def __repr__(self):
        return (f"Block(start={self.start_offset:06o}, length={self.declared_length:06o}, "
                f"type={self.type_code:06o})")


class ScannedBlock:
    """A block with its checksum diagnostic and decoded payload"""

    def __init__(self, block: Block, checksum_diagnostic: Optional[Diagnostic] = None,
                 payload: Optional[DecodeResult] = None):
        self.block = block
        self.checksum_diagnostic = checksum_diagnostic
        self.payload = payload

    @property
    def diagnostics(self) -> List[Diagnostic]:
        found = []
        if self.checksum_diagnostic:
            found.append(self.checksum_diagnostic)
        if self.payload and self.payload.diagnostic:
            found.append(self.payload.diagnostic)
        return found


class ScanResult:
    """Every block scanned from an image, and why scanning stopped (if it failed)"""

    def __init__(self):
        self.blocks: List[ScannedBlock] = []
        self.stop_diagnostic: Optional[Diagnostic] = None

    @property
    def diagnostics(self) -> List[Diagnostic]:
        found = []
        for scanned in self.blocks:
            found.extend(scanned.diagnostics)
        if self.stop_diagnostic:
            found.append(self.stop_diagnostic)
        return found
