#!/usr/bin/env python3
"""
pdp11obj - PDP-11 Object Module Dumper
======================================

Decodes and prints the contents of a PDP-11 formatted-binary object module:
block framing and checksums, the global symbol directory, text blocks and
relocation directories (including complex relocation programs).

The tool is read-only. It describes what a loader would do with each
record; it never links or relocates anything.

CLI Usage:
    pdp11obj module.obj
    pdp11obj -d module.obj

Module Usage:
    import pdp11obj

    with open('module.obj', 'rb') as f:
        print(pdp11obj.dump_object(f.read()))

    result = pdp11obj.scan(data)
    for scanned in result.blocks:
        print(scanned.block, scanned.payload)

Exit status is 1 for a usage error or an unreadable or empty file, and 0
otherwise. Decode diagnostics are printed inline and do not change it.
"""

import sys
import argparse
import logging
from typing import List, Optional, Union

from .block_scanner import scan
from .object_reader import load_object
from .renderer import render_scan
from .utils import setup_logging

# Configure logging
logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1


def dump_lines(data: Union[bytes, bytearray]) -> List[str]:
    """Render an in-memory object image as a list of output lines"""
    return list(render_scan(scan(bytes(data))))


def dump_object(data: Union[bytes, bytearray]) -> str:
    """
    Render an in-memory object image.

    Args:
        data: The object module contents

    Returns:
        The dump text, one line per record, diagnostics inline

    Example:
        >>> with open('module.obj', 'rb') as f:
        ...     print(dump_object(f.read()))
    """
    lines = dump_lines(data)
    return "\n".join(lines) + "\n" if lines else ""


class _ArgumentParser(argparse.ArgumentParser):
    """argparse with exit status 1 on usage errors"""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(EXIT_FAILURE, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog='pdp11obj',
        description='pdp11obj - Dump the contents of a PDP-11 object module',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Dump an object module
  pdp11obj hello.obj

  # With debug logging on stderr
  pdp11obj -d hello.obj
        """
    )

    parser.add_argument('object_file',
                        help='Object module file path')
    parser.add_argument('-d', '--debug', action='store_true',
                        help='Enable debug output')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the object dumper"""
    args = build_parser().parse_args(argv)

    # Setup logging
    setup_logging(args.debug)

    try:
        result = load_object(args.object_file)
        if not result.ok:
            logger.error(result.error)
            return EXIT_FAILURE

        for line in render_scan(scan(result.image)):
            print(line)

        return EXIT_OK

    except KeyboardInterrupt:
        logger.info("Operation cancelled by user")
        return EXIT_FAILURE
    except BrokenPipeError:
        # output piped into head or similar
        return EXIT_OK
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        if args.debug:
            import traceback
            traceback.print_exc()
        return EXIT_FAILURE


if __name__ == '__main__':
    sys.exit(main())
