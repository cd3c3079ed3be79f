"""
DEX Format Parsers

This package contains the field catalog for the DEX container format and the
driver that claims its sections.
"""

from .dex_file_parser import (
    DexFileParser, parse_dex, dump_dex, make_string_id_formatter, make_type_id_formatter,
    HEADER_SPEC, MAP_ITEM_TYPES
)

__all__ = [
    'DexFileParser',
    'parse_dex',
    'dump_dex',
    'make_string_id_formatter',
    'make_type_id_formatter',
    'HEADER_SPEC',
    'MAP_ITEM_TYPES',
]
