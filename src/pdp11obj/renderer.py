"""
Text rendering of scan results.

All offsets, lengths and addresses are octal, zero-padded to six digits.
Diagnostics are rendered inline, prefixed ``?OBJ -``, directly after the
lines they interrupt.
"""

from typing import Callable, Dict, Iterator, List

from .gsd_decoder import render_flags
from .text_decoder import WORDS_PER_LINE
from .types import (
    GLOBAL_SYMBOL_FLAGS, PSECT_FLAGS, ComplexOpcode,
    Block, ScanResult, ScannedBlock, Diagnostic, DecodeResult, Entry,
    ModuleName, CSect, InternalSymbol, TransferAddress, GlobalSymbol,
    PSect, Ident, VSect, Unknown, TextBlock, ComplexOp, RelocationEntry,
    ComplexRelocation,
)
from .utils import octal

DIAGNOSTIC_PREFIX = "?OBJ - "


def render_diagnostic(diagnostic: Diagnostic) -> str:
    return DIAGNOSTIC_PREFIX + diagnostic.message


def render_block(block: Block) -> str:
    line = (f"{octal(block.start_offset)} | Length {octal(block.declared_length)} "
            f"Type {octal(block.type_code)}")
    if block.type_name:
        line += f" {block.type_name}"
    return line


# =============================================================================
# GSD
# =============================================================================

def _prefix(entry: Entry) -> str:
    return f"{octal(entry.location or 0)} |  "


def _render_module_name(entry: ModuleName) -> List[str]:
    return [f"{_prefix(entry)}GSD Module Name [{entry.name}]"]


def _render_csect(entry: CSect) -> List[str]:
    return [f"{_prefix(entry)}GSD CSECT [{entry.name}] Maximum Length {octal(entry.max_length)}"]


def _render_internal_symbol(entry: InternalSymbol) -> List[str]:
    return [f"{_prefix(entry)}GSD Internal Symbol [{entry.name}]"]


def _render_transfer(entry: TransferAddress) -> List[str]:
    return [f"{_prefix(entry)}GSD Transfer Address [{entry.name}]+{octal(entry.offset)}"]


def _render_global_symbol(entry: GlobalSymbol) -> List[str]:
    line = f"{_prefix(entry)}GSD Global Symbol [{entry.name}]"
    flags = render_flags(entry.flags, GLOBAL_SYMBOL_FLAGS)
    return [f"{line} {flags}" if flags else line]


def _render_psect(entry: PSect) -> List[str]:
    line = f"{_prefix(entry)}GSD PSECT [{entry.name}] Maximum Length {octal(entry.max_length)}"
    flags = render_flags(entry.flags, PSECT_FLAGS)
    return [f"{line} {flags}" if flags else line]


def _render_ident(entry: Ident) -> List[str]:
    return [f"{_prefix(entry)}GSD Program Version [{entry.name}]"]


def _render_vsect(entry: VSect) -> List[str]:
    return [f"{_prefix(entry)}Mapped Array [{entry.name}] Length {octal(entry.length)}"]


def _render_unknown(entry: Unknown) -> List[str]:
    return [f"{_prefix(entry)}Unknown GSD Record [{entry.name}] Type {entry.type_code:03o}"]


# =============================================================================
# TXT
# =============================================================================

def _render_text(entry: TextBlock) -> List[str]:
    lines = [f"{_prefix(entry)}Load Address {octal(entry.load_address)}"]
    for i in range(0, len(entry.words), WORDS_PER_LINE):
        chunk = entry.words[i:i + WORDS_PER_LINE]
        words = " ".join(octal(w) for w in chunk)
        lines.append(f"{octal(entry.data_offset + 2 * i)} |  {words}")
    return lines


# =============================================================================
# RLD
# =============================================================================

def render_complex_op(op: ComplexOp) -> str:
    line = f"{_prefix(op)} {op.name}"
    if op.opcode == ComplexOpcode.PUSH_SYMBOL:
        line += f" [{op.symbol}]"
    elif op.opcode == ComplexOpcode.PUSH_SECTION:
        line += f" Section {op.section:03o} Constant {octal(op.constant)}"
    elif op.opcode == ComplexOpcode.PUSH_CONSTANT:
        line += f" {octal(op.constant)}"
    return line


def _render_relocation(entry: RelocationEntry) -> List[str]:
    name = entry.kind.name or f"Type {entry.type_code:03o}"
    line = f"{_prefix(entry)}RLD {name}"
    if entry.symbol is not None:
        line += f" [{entry.symbol}]"
    if entry.constant is not None:
        line += f" Constant {octal(entry.constant)}"
    if entry.target is not None:
        line += f" Target {octal(entry.target)}"
    if entry.byte:
        line += " Byte"
    return [line]


def _render_complex(entry: ComplexRelocation) -> List[str]:
    line = f"{_prefix(entry)}RLD Complex Relocation Target {octal(entry.target)}"
    if entry.byte:
        line += " Byte"
    return [line] + [render_complex_op(op) for op in entry.ops]


_RENDERERS: Dict[type, Callable[..., List[str]]] = {
    ModuleName: _render_module_name,
    CSect: _render_csect,
    InternalSymbol: _render_internal_symbol,
    TransferAddress: _render_transfer,
    GlobalSymbol: _render_global_symbol,
    PSect: _render_psect,
    Ident: _render_ident,
    VSect: _render_vsect,
    Unknown: _render_unknown,
    TextBlock: _render_text,
    RelocationEntry: _render_relocation,
    ComplexRelocation: _render_complex,
}


def render_entry(entry: Entry) -> List[str]:
    return _RENDERERS[type(entry)](entry)


def render_payload(payload: DecodeResult) -> Iterator[str]:
    for entry in payload.entries:
        yield from render_entry(entry)
    if payload.diagnostic:
        yield render_diagnostic(payload.diagnostic)


def render_scanned_block(scanned: ScannedBlock) -> Iterator[str]:
    yield render_block(scanned.block)
    if scanned.checksum_diagnostic:
        yield render_diagnostic(scanned.checksum_diagnostic)
    if scanned.payload:
        yield from render_payload(scanned.payload)


def render_scan(result: ScanResult) -> Iterator[str]:
    """All output lines for a scan, in file order"""
    for scanned in result.blocks:
        yield from render_scanned_block(scanned)
    if result.stop_diagnostic:
        yield render_diagnostic(result.stop_diagnostic)
