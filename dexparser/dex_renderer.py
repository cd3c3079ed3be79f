"""
Rendering module for parsed sections.

This module provides the "View" layer in the Model-View separation. It takes
the merged section list and renders it as an annotated listing: a banner per
section, then one entry per field pairing the raw bytes with a label.

Labels come from a formatter callback:

    formatter(name, value, state) -> (text, hints, new_state)

``state`` starts as None for every field listing and is threaded from one
field to the next, so a formatter can make decisions based on the fields
it has already seen.
"""

from dataclasses import dataclass, replace
from typing import Any, Callable, List, Optional, Sequence, Tuple

from .binary_curator import Section
from .struct_parser import ParsedItem


@dataclass
class FormatHints:
    collapse: bool = False  # label and raw bytes on one line
    newline: bool = False  # blank line before this field


Formatter = Callable[[str, Any, Any], Tuple[str, FormatHints, Any]]


def format_generic_value(name: str, value: Any, state: Any) -> Tuple[str, FormatHints, Any]:
    """
    Default label: ``name: value``.

    Integers whose field name mentions "offset" are shown in hex unless zero.
    Byte spans show their length; other values show the bare name.
    """
    hints = FormatHints()

    if isinstance(value, int) and not isinstance(value, bool) \
            and 'offset' in name.lower() and value > 0:
        text = f"{name}: 0x{value:x}"
    elif isinstance(value, (int, str)):
        text = f"{name}: {value}"
    elif isinstance(value, (bytes, bytearray)):
        text = f"{name}: <{len(value)} bytes>"
    else:
        text = name

    return text, hints, state


def derive_prefix(name: str) -> str:
    """Leading run of lowercase letters, e.g. 'stringIdsSize' -> 'string'."""
    for i, c in enumerate(name):
        if not c.islower():
            return name[:i]
    return name


def format_header_value(name: str, value: Any, state: Optional[str]) -> Tuple[str, FormatHints, str]:
    """Generic label, with a blank line between groups of fields sharing a prefix."""
    text, hints, _ = format_generic_value(name, value, None)

    prefix = derive_prefix(name)
    hints.newline = state is not None and prefix != state

    return text, hints, prefix


@dataclass
class RenderOptions:
    level: int = 0
    indent: str = '  '
    collapse: bool = False
    formatter: Optional[Formatter] = format_generic_value

    def __post_init__(self):
        if self.level < 0:
            raise ValueError(f"Render level must be non-negative, got {self.level}")


def make_indents(level: int, indent: str = '  ') -> str:
    return indent * level


def hexify(data: bytes) -> str:
    """Renders bytes as ``0x4d, 0x5a,`` (note the trailing comma)."""
    return ', '.join(f"0x{b:02x}" for b in data) + ','


def format_items(items: Sequence[ParsedItem], options: RenderOptions) -> List[str]:
    lines = []

    indents = make_indents(options.level, options.indent)
    formatter = options.formatter
    state = None

    for item in items:
        if item.is_array:
            # Array elements always render collapsed, one level deeper
            child_options = replace(options, level=options.level + 1, collapse=True)
            for index, child in enumerate(item.value):
                lines.append(f"{indents}{options.indent}// {item.name}[{index}]")
                lines.extend(format_items(child.items, child_options))
            continue

        if formatter is None:
            lines.append(indents + hexify(item.raw_data))
            continue

        text, hints, state = formatter(item.name, item.value, state)

        if hints.newline:
            lines.append('')

        if options.collapse or hints.collapse:
            lines.append(f"{indents}{hexify(item.raw_data)} // {text}")
        else:
            lines.append(f"{indents}// {text}")
            lines.append(indents + hexify(item.raw_data))

    return lines


def render_sections(sections: Sequence[Section], options: Optional[RenderOptions] = None) -> List[str]:
    """
    Renders every section in order: a banner naming the section and its
    offset, then its field listing. Sections carrying their own formatter
    use it instead of the one in ``options``.
    """
    if options is None:
        options = RenderOptions()

    lines = []
    indents = make_indents(options.level, options.indent)

    for section in sections:
        if section.is_empty:
            continue
        if lines:
            lines.append('')

        offset = f"0x{section.start:x}" if section.start != 0 else '0'
        lines.extend([
            indents + '//',
            f"{indents}// Offset {offset}: {section.name}",
            indents + '//',
            '',
        ])

        section_options = options
        if section.formatter is not None:
            section_options = replace(options, formatter=section.formatter)
        lines.extend(format_items(section.struct.items, section_options))

    return lines


def render_sections_to_string(sections: Sequence[Section], options: Optional[RenderOptions] = None) -> str:
    """Like render_sections, but returns a single string."""
    return '\n'.join(render_sections(sections, options))
