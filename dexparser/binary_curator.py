"""
Section bookkeeping for lossless dumps.

The core idea is to "curate" a byte buffer by claiming known structures as
named sections. get_sections() returns the claimed sections in file order with
Unknown gap sections synthesized in between, so every byte of the file shows
up in the listing exactly once.

LOSSLESS DATA PHILOSOPHY:
========================

1. Claimed sections are printed in full, field by field, with raw bytes.
2. Bytes nobody claimed are never dropped; they become gap sections.
3. Overlapping claims break the one-owner-per-byte rule. They are logged
   as warnings and left in place so the overlap stays visible.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, List, Optional, Sequence

from .decoders import fixed_bytes
from .field_spec import FieldSpec, Scalar
from .struct_parser import ParsedStruct, parse

logger = logging.getLogger(__name__)

GAP_SECTION_NAME = 'Unknown'


# --- Section Classes ---
@dataclass
class Section:
    """A named top-level parsed struct, anchored at its first item."""
    name: str
    struct: ParsedStruct
    formatter: Optional[Callable] = None

    @property
    def start(self) -> int:
        return self.struct.items[0].offset

    @property
    def size(self) -> int:
        return self.struct.size

    @property
    def end(self) -> int:
        return self.start + self.size

    @property
    def is_empty(self) -> bool:
        return not self.struct.items


@dataclass
class GapSection(Section):
    """Filler covering bytes that no claimed section accounts for."""
    pass


def make_gap_section(data: bytes, start: int, size: int) -> GapSection:
    logger.debug("Unclaimed gap at 0x%x, %d bytes", start, size)
    struct = parse(data, [Scalar('data', fixed_bytes(size))], start)
    return GapSection(GAP_SECTION_NAME, struct)


def add_missing_sections(data: bytes, sections: List[Section]) -> List[Section]:
    """
    Sorts ``sections`` by start offset in place and inserts gap sections so
    the list covers ``[0, len(data))``.

    Sections without items have no anchor and are removed. The sort is
    stable, so sections sharing a start offset keep their claim order.
    Returns ``sections`` for convenience.
    """
    for section in [s for s in sections if s.is_empty]:
        logger.debug("Skipping empty section '%s'", section.name)
    sections[:] = [s for s in sections if not s.is_empty]
    sections.sort(key=lambda s: s.start)

    merged: List[Section] = []
    previous_end = 0
    previous_name = None
    for section in sections:
        if section.start > previous_end:
            merged.append(make_gap_section(data, previous_end, section.start - previous_end))
        elif section.start < previous_end:
            logger.warning(
                "Section '%s' at 0x%x overlaps '%s' ending at 0x%x",
                section.name, section.start, previous_name, previous_end)
        merged.append(section)
        if section.end >= previous_end:
            previous_end = section.end
            previous_name = section.name

    if previous_end < len(data):
        merged.append(make_gap_section(data, previous_end, len(data) - previous_end))

    sections[:] = merged
    return sections


# --- Offset Collection ---
class OffsetSet:
    """
    Insertion-ordered set of offsets.

    Items referenced from several places (a code item shared by two methods,
    a type list shared by two prototypes) must be parsed once, in the order
    they were first discovered.
    """
    def __init__(self, offsets: Iterable[int] = ()):
        self._offsets = {}
        for offset in offsets:
            self.add(offset)

    def add(self, offset: int):
        self._offsets.setdefault(offset, None)

    def __contains__(self, offset) -> bool:
        return offset in self._offsets

    def __iter__(self) -> Iterator[int]:
        return iter(self._offsets)

    def __len__(self) -> int:
        return len(self._offsets)

    def __repr__(self):
        return f"OffsetSet([{', '.join(f'0x{o:x}' for o in self._offsets)}])"


# --- The Main Curator Class ---
class BinaryCurator:
    """
    Collects the sections claimed from one buffer and produces the complete,
    gap-filled section list.
    """
    def __init__(self, data: bytes):
        self.data = data
        self.sections: List[Section] = []

    def claim(self, name: str, specs: Sequence[FieldSpec], offset: int = 0,
              formatter: Optional[Callable] = None) -> ParsedStruct:
        """
        Parses ``specs`` at ``offset`` and records the result as a section.

        Returns the parsed struct so callers can follow offsets stored in it.
        """
        struct = parse(self.data, specs, offset)
        self.claim_struct(name, struct, formatter)
        return struct

    def claim_struct(self, name: str, struct: ParsedStruct, formatter: Optional[Callable] = None):
        if struct.items:
            logger.debug("Claimed '%s' at 0x%x, %d bytes", name, struct.offset, struct.size)
        self.sections.append(Section(name, struct, formatter))

    def get_sections(self) -> List[Section]:
        """Returns all sections, claimed and unclaimed, in file order."""
        return add_missing_sections(self.data, list(self.sections))
