#!/usr/bin/env python3
"""
RLD 解码测试，包括复杂重定位
"""

import os
import sys
import unittest

# 添加src目录到Python路径
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))
sys.path.insert(0, os.path.dirname(__file__))

from pdp11obj.object_reader import ObjectCursor
from pdp11obj.renderer import render_payload
from pdp11obj.rld_decoder import decode_rld, decode_complex_op, decode_complex_program
from pdp11obj.errors import InvalidOpcodeError, TruncatedError
from pdp11obj.types import (
    RLD_KINDS, RLDType, ComplexOpcode, ComplexOp, ComplexRelocation,
    RelocationEntry, Severity,
)

from objbuilder import rld_header, rad50_name, word, push_constant, push_symbol, push_section

LAST_TXT = 0o100
BASE = LAST_TXT + 4


def decode(payload):
    return decode_rld(payload, 0, len(payload), LAST_TXT)


ADD = bytes((ComplexOpcode.ADD,))
STORE = bytes((ComplexOpcode.STORE,))


class TestRelocationTable(unittest.TestCase):
    def test_fifteen_rows(self):
        self.assertEqual(len(RLD_KINDS), 15)

    def test_unused_rows(self):
        self.assertIsNone(RLD_KINDS[0].name)
        self.assertIsNone(RLD_KINDS[0o13].name)
        # kept exactly as found in the format tables
        self.assertTrue(RLD_KINDS[0o13].has_displacement)
        self.assertFalse(RLD_KINDS[0o13].has_symbol)
        self.assertFalse(RLD_KINDS[0o13].has_constant)

    def test_layouts(self):
        self.assertEqual(RLD_KINDS[RLDType.INTERNAL][1:], (False, True, True))
        self.assertEqual(RLD_KINDS[RLDType.GLOBAL][1:], (True, False, True))
        self.assertEqual(RLD_KINDS[RLDType.GLOBAL_ADDITIVE_DISPLACED][1:], (True, True, True))
        self.assertEqual(RLD_KINDS[RLDType.LOCATION_COUNTER_DEFINITION][1:], (True, True, False))
        self.assertEqual(RLD_KINDS[RLDType.LOCATION_COUNTER_MODIFICATION][1:], (False, True, False))
        self.assertEqual(RLD_KINDS[RLDType.PROGRAM_LIMITS][1:], (False, False, True))
        self.assertEqual(RLD_KINDS[RLDType.PSECT_ADDITIVE][1:], (True, True, True))


class TestFixedEntries(unittest.TestCase):
    def test_internal_relocation(self):
        result = decode(rld_header(1, 0o10) + word(0o1000))
        self.assertIsNone(result.diagnostic)
        entry, = result.entries
        self.assertEqual(entry, RelocationEntry(1, constant=0o1000, displacement=0o10))
        self.assertEqual(entry.target, BASE + 0o10)
        self.assertEqual(entry.kind.name, "Internal Relocation")

    def test_global_relocation_byte(self):
        result = decode(rld_header(2, 6, byte=True) + rad50_name("PRINT"))
        entry, = result.entries
        self.assertEqual(entry, RelocationEntry(2, symbol="PRINT ", displacement=6, byte=True))
        self.assertEqual(entry.target, BASE + 6)

    def test_displacement_is_unsigned(self):
        result = decode(rld_header(1, 0o377) + word(0))
        self.assertEqual(result.entries[0].target, BASE + 0o377)

    def test_sequence_of_entries(self):
        payload = (rld_header(5, 4) + rad50_name("EXT") + word(2)
                   + rld_header(7) + rad50_name(". ABS.") + word(0o200)
                   + rld_header(0o10) + word(0o400)
                   + rld_header(0o11, 0o12)
                   + rld_header(0o14, 2) + rad50_name("CODE"))
        result = decode(payload)
        self.assertIsNone(result.diagnostic)
        self.assertEqual(result.entries, [
            RelocationEntry(5, symbol="EXT   ", constant=2, displacement=4),
            RelocationEntry(7, symbol=". ABS.", constant=0o200),
            RelocationEntry(0o10, constant=0o400),
            RelocationEntry(0o11, displacement=0o12),
            RelocationEntry(0o14, symbol="CODE  ", displacement=2),
        ])
        self.assertEqual([e.location for e in result.entries], [0, 8, 16, 20, 22])
        self.assertEqual([e.target for e in result.entries],
                         [BASE + 4, None, None, BASE + 0o12, BASE + 2])

    def test_unused_type_still_decodes(self):
        result = decode(rld_header(0o13, 2))
        self.assertEqual(result.entries, [RelocationEntry(0o13, displacement=2)])
        self.assertEqual(list(render_payload(result)),
                         ["000000 |  RLD Type 013 Target 000106"])

    def test_truncated_entry(self):
        payload = rld_header(1, 0) + word(1) + rld_header(5, 0) + rad50_name("EXT")
        result = decode(payload)
        self.assertEqual(result.entries, [RelocationEntry(1, constant=1)])
        self.assertEqual(result.diagnostic.severity, Severity.FATAL)
        self.assertEqual(result.diagnostic.message, "RLD record is truncated.")

    def test_odd_trailing_byte(self):
        result = decode(rld_header(0o11, 0) + b'\x01')
        self.assertEqual(len(result.entries), 1)
        self.assertTrue(result.diagnostic.fatal)

    def test_unknown_type_stops_block(self):
        for type_code in (0, 0o20, 0o177):
            with self.subTest(type_code=type_code):
                payload = rld_header(0o11) + rld_header(type_code) + rld_header(0o11)
                result = decode(payload)
                self.assertEqual(len(result.entries), 1)
                self.assertEqual(result.diagnostic.message,
                                 f"Unknown RLD entry type {type_code:03o}.")
                self.assertEqual(result.diagnostic.offset, 2)


class TestComplexRelocation(unittest.TestCase):
    PROGRAM = push_constant(5) + push_constant(3) + ADD + STORE

    def test_single_step_consumption(self):
        cursor = ObjectCursor(self.PROGRAM + b'\xAA\xBB')
        steps = []
        while True:
            op, consumed = decode_complex_op(cursor)
            steps.append((op, consumed))
            if op.terminates:
                break
        self.assertEqual(steps, [
            (ComplexOp(ComplexOpcode.PUSH_CONSTANT, constant=5), 3),
            (ComplexOp(ComplexOpcode.PUSH_CONSTANT, constant=3), 3),
            (ComplexOp(ComplexOpcode.ADD), 1),
            (ComplexOp(ComplexOpcode.STORE), 1),
        ])
        self.assertEqual(cursor.consumed, 8)
        self.assertEqual(cursor.remaining, 2)

    def test_program_stops_at_store(self):
        cursor = ObjectCursor(self.PROGRAM + STORE)
        ops = decode_complex_program(cursor)
        self.assertEqual([op.opcode for op in ops], [
            ComplexOpcode.PUSH_CONSTANT, ComplexOpcode.PUSH_CONSTANT,
            ComplexOpcode.ADD, ComplexOpcode.STORE,
        ])
        self.assertEqual(cursor.position, 8)

    def test_entry_followed_by_another(self):
        payload = rld_header(0o17, 4) + self.PROGRAM + rld_header(0o11, 6)
        result = decode(payload)
        self.assertIsNone(result.diagnostic)
        complex_entry, limits = result.entries
        self.assertEqual(complex_entry, ComplexRelocation(4, False, [
            ComplexOp(ComplexOpcode.PUSH_CONSTANT, constant=5),
            ComplexOp(ComplexOpcode.PUSH_CONSTANT, constant=3),
            ComplexOp(ComplexOpcode.ADD),
            ComplexOp(ComplexOpcode.STORE),
        ]))
        self.assertEqual(complex_entry.target, BASE + 4)
        self.assertEqual(limits, RelocationEntry(0o11, displacement=6))
        self.assertEqual(limits.location, 10)

    def test_operands(self):
        program = (push_symbol("G1") + push_section(2, 0o100) + bytes((0o2, 0o3, 0o4, 0o5, 0o6, 0o7,
                                                                      0o10, 0o11, 0o0, 0o13)))
        ops = decode_complex_program(ObjectCursor(program))
        self.assertEqual(ops[0], ComplexOp(ComplexOpcode.PUSH_SYMBOL, symbol="G1    "))
        self.assertEqual(ops[1], ComplexOp(ComplexOpcode.PUSH_SECTION, section=2, constant=0o100))
        self.assertEqual([op.opcode for op in ops[2:]], [
            ComplexOpcode.SUB, ComplexOpcode.MUL, ComplexOpcode.DIV, ComplexOpcode.AND,
            ComplexOpcode.OR, ComplexOpcode.XOR, ComplexOpcode.NEG, ComplexOpcode.COM,
            ComplexOpcode.NOP, ComplexOpcode.STORE_DISPLACED,
        ])

    def test_invalid_opcode(self):
        for code in (0o14, 0o15, 0o21, 0o377):
            with self.subTest(code=code):
                with self.assertRaises(InvalidOpcodeError) as cm:
                    decode_complex_op(ObjectCursor(bytes((code,))))
                self.assertEqual(cm.exception.opcode, code)

    def test_invalid_opcode_stops_whole_block(self):
        payload = (rld_header(0o11) + rld_header(0o17) + push_constant(1) + bytes((0o14,))
                   + STORE + rld_header(0o11))
        result = decode(payload)
        self.assertEqual(result.entries, [RelocationEntry(0o11)])
        self.assertEqual(result.diagnostic.message, "Invalid complex relocation opcode 014.")
        self.assertEqual(result.diagnostic.offset, 7)

    def test_truncated_operand(self):
        with self.assertRaises(TruncatedError):
            decode_complex_op(ObjectCursor(bytes((0o20, 5))))
        result = decode(rld_header(0o17) + push_symbol("ABC")[:3])
        self.assertEqual(result.entries, [])
        self.assertEqual(result.diagnostic.message, "RLD record is truncated.")

    def test_missing_store(self):
        result = decode(rld_header(0o17) + push_constant(1))
        self.assertEqual(result.entries, [])
        self.assertTrue(result.diagnostic.fatal)

    def test_rendering(self):
        payload = rld_header(0o17, 2, byte=True) + push_symbol("SYM") + push_section(1, 4) + ADD + STORE
        self.assertEqual(list(render_payload(decode(payload))), [
            "000000 |  RLD Complex Relocation Target 000106 Byte",
            "000002 |   Push Global [SYM   ]",
            "000007 |   Push Relocatable Section 001 Constant 000004",
            "000013 |   Add",
            "000014 |   Store",
        ])


if __name__ == '__main__':
    unittest.main()
