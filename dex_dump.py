#!/usr/bin/env python3
"""
Dumps a DEX file as an annotated listing in which every byte of the file
appears exactly once, either under a decoded field or in an Unknown section.

Usage: dex-dump classes.dex [--level 3] [--indent '  '] [-v]
"""

import argparse
import logging
import sys

from dexparser import DexParseError, RenderOptions, read_dex_file
from parsers.dex_file_parser import dump_dex

logger = logging.getLogger('dex_dump')


def main(argv=None):
    ap = argparse.ArgumentParser(description="Dump a DEX file as an annotated byte listing")
    ap.add_argument("path", help="path to .dex file")
    ap.add_argument("--level", type=int, default=3, help="initial indentation level (default: 3)")
    ap.add_argument("--indent", default="  ", help="indentation string repeated per level")
    ap.add_argument("-v", "--verbose", action="store_true", help="log claimed sections and gaps")
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if args.level < 0:
        ap.error("--level must be non-negative")

    try:
        data = read_dex_file(args.path)
    except OSError as e:
        logger.error("Cannot read %s: %s", args.path, e)
        return 1

    try:
        lines = dump_dex(data, RenderOptions(level=args.level, indent=args.indent))
    except DexParseError as e:
        logger.error("Failed to parse %s: %s", args.path, e)
        return 1

    print('\n'.join(lines))
    return 0


if __name__ == '__main__':
    sys.exit(main())
