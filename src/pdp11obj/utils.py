#!/usr/bin/env python3
"""
Utilities Module
================

Shared helpers for pdp11obj:
- Octal formatting used by every rendered line
- Logging configuration
"""

import logging


def octal(value: int, width: int = 6) -> str:
    """Zero-padded octal, six digits by default (one PDP-11 word)"""
    return f"{value:0{width}o}"


def setup_logging(debug: bool):
    """Setup logging configuration"""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(levelname)s: %(message)s',
        force=True
    )
