#!/usr/bin/env python3
"""
Block Scanner Module for pdp11obj
=================================

Walks the formatted-binary block stream of an object image.

Every block has the layout::

    +0  word  000001
    +2  word  length (sentinel through last payload byte)
    +4  word  block type
    +6  ...   payload
        byte  checksum (block byte-sum is 0 mod 256)

The scanner validates framing and checksums, remembers where the most
recent TXT block started, and hands each GSD, TXT and RLD payload to its
decoder.
"""

import logging
from typing import Optional

from .errors import TruncatedError
from .gsd_decoder import decode_gsd
from .object_reader import read_structure, word_at
from .rld_decoder import decode_rld
from .text_decoder import decode_text
from .types import (
    BLOCK_SENTINEL, BlockHeader, RecordType,
    Block, ScannedBlock, ScanResult, Diagnostic, Severity, DecodeResult,
)

logger = logging.getLogger(__name__)


def block_checksum(image: bytes, block: Block) -> int:
    """Byte-sum of the block from sentinel through checksum byte, mod 256"""
    return sum(image[block.start_offset:block.end_offset]) & 0xFF


class BlockScanner:
    """
    单遍扫描目标映像中的所有块

    State is private to one ``scan()`` call: the cursor position and the
    offset of the last TXT block, which is passed explicitly to every RLD
    decode.
    """

    def __init__(self, image: bytes):
        self.image = bytes(image)
        self.position = 0
        self.last_text_block_offset = 0

    def scan(self) -> ScanResult:
        """
        Scan every block from the start of the image.

        Returns:
            ScanResult with one ScannedBlock per framed block, and the
            diagnostic that stopped the scan if framing failed
        """
        self.position = 0
        self.last_text_block_offset = 0
        result = ScanResult()
        image = self.image

        while len(image) - self.position >= 2 and word_at(image, self.position) == BLOCK_SENTINEL:
            start = self.position

            try:
                header = read_structure(image, start, BlockHeader)
            except TruncatedError:
                result.stop_diagnostic = Diagnostic(
                    Severity.FATAL, f"Block at {start:06o} has a truncated header.", start)
                break

            block = Block(start, header.length, header.type)
            if block.end_offset > len(image):
                result.stop_diagnostic = Diagnostic(
                    Severity.FATAL, f"Block at {start:06o} is truncated.", start)
                break

            logger.debug(f"Block at {start:06o}: length {block.declared_length:06o} "
                         f"type {block.type_code:06o} {block.type_name or ''}")

            checksum_diagnostic = None
            if block_checksum(image, block):
                checksum_diagnostic = Diagnostic(
                    Severity.WARNING, "Block has an incorrect checksum.", start)

            payload = self._decode_payload(block)
            result.blocks.append(ScannedBlock(block, checksum_diagnostic, payload))

            self.position = block.end_offset

        if result.stop_diagnostic:
            logger.debug(f"Scan stopped: {result.stop_diagnostic.message}")
        logger.info(f"Scanned {len(result.blocks)} blocks, {len(result.diagnostics)} diagnostics")
        return result

    def _decode_payload(self, block: Block) -> Optional[DecodeResult]:
        offset = block.payload_offset
        length = block.payload_length

        if block.type_code == RecordType.GSD:
            return decode_gsd(self.image, offset, length)

        if block.type_code == RecordType.TXT:
            self.last_text_block_offset = block.start_offset
            return decode_text(self.image, offset, length)

        if block.type_code == RecordType.RLD:
            return decode_rld(self.image, offset, length, self.last_text_block_offset)

        return None


def scan(image: bytes) -> ScanResult:
    """Scan an object image"""
    return BlockScanner(image).scan()
