"""
DEX Parser - Declarative binary structure decoding for DEX format files
"""

from .errors import DexParseError, BufferOverrun, MalformedVarint, UnresolvedCountReference
from .decoders import fixed_bytes, ushort, uint, uleb128, uleb128p1, utf8, zero_terminated_span, make_enum
from .field_spec import Scalar, Repeated, FieldSpec
from .struct_parser import ParsedItem, ParsedStruct, parse, struct_size, make_array
from .binary_curator import BinaryCurator, Section, GapSection, OffsetSet, add_missing_sections
from .dex_renderer import (
    FormatHints, RenderOptions, format_generic_value, format_header_value, derive_prefix,
    hexify, render_sections, render_sections_to_string
)
from .loader import read_dex_file

__all__ = [
    'DexParseError',
    'BufferOverrun',
    'MalformedVarint',
    'UnresolvedCountReference',
    'fixed_bytes',
    'ushort',
    'uint',
    'uleb128',
    'uleb128p1',
    'utf8',
    'zero_terminated_span',
    'make_enum',
    'Scalar',
    'Repeated',
    'FieldSpec',
    'ParsedItem',
    'ParsedStruct',
    'parse',
    'struct_size',
    'make_array',
    'BinaryCurator',
    'Section',
    'GapSection',
    'OffsetSet',
    'add_missing_sections',
    'FormatHints',
    'RenderOptions',
    'format_generic_value',
    'format_header_value',
    'derive_prefix',
    'hexify',
    'render_sections',
    'render_sections_to_string',
    'read_dex_file',
]
