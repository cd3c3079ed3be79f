"""
Interprets a list of field specs against a buffer.

``parse`` walks the specs with a single forward cursor, so the items of one
struct are always byte-contiguous. Repeated specs recurse once per element
and collapse into a single array item; a repeated spec with a count of zero
leaves no trace at all.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from .errors import DexParseError, UnresolvedCountReference
from .field_spec import FieldSpec, Repeated, Scalar

@dataclass(frozen=True)
class ParsedItem:
    """One decoded field. For arrays, ``value`` is a list of ParsedStruct."""
    name: str
    value: Any
    raw_data: bytes
    offset: int

    @property
    def size(self) -> int:
        return len(self.raw_data)

    @property
    def end(self) -> int:
        return self.offset + self.size

    @property
    def is_array(self) -> bool:
        return isinstance(self.value, list)


@dataclass
class ParsedStruct:
    items: List[ParsedItem] = field(default_factory=list)
    params: Dict[str, Any] = field(default_factory=dict)

    @property
    def offset(self) -> Optional[int]:
        return self.items[0].offset if self.items else None

    @property
    def size(self) -> int:
        return struct_size(self)

    def __getitem__(self, name: str) -> Any:
        return self.params[name]


def struct_size(struct: ParsedStruct) -> int:
    return sum(item.size for item in struct.items)


def resolve_count(count, params: Dict[str, Any], offset: int, name: str) -> int:
    if isinstance(count, str):
        if count not in params:
            raise UnresolvedCountReference(
                f"Count source '{count}' has not been decoded", offset, name)
        value = params[count]
        if isinstance(value, bool) or not isinstance(value, int):
            raise UnresolvedCountReference(
                f"Count source '{count}' is not an integer ({type(value).__name__})",
                offset, name)
    else:
        value = count

    if value < 0:
        raise UnresolvedCountReference(f"Negative element count {value}", offset, name)
    return value


def make_array(name: str, structs: List[ParsedStruct], offset: Optional[int] = None) -> ParsedStruct:
    """
    Wraps ``structs`` into a struct holding one array item.

    The array is anchored at ``offset`` when given, else at its first child.
    An empty list produces a struct without items.
    """
    result = ParsedStruct()
    result.params[name] = [s.params for s in structs]
    if not structs:
        return result

    if offset is None:
        offset = next((s.offset for s in structs if s.items), 0)
    raw_data = b''.join(item.raw_data for s in structs for item in s.items)
    result.items.append(ParsedItem(name, list(structs), raw_data, offset))
    return result


def append_array(target: ParsedStruct, name: str, structs: List[ParsedStruct], offset: int):
    if not structs:
        return

    array = make_array(name, structs, offset)
    target.items.extend(array.items)
    target.params[name] = array.params[name]


def parse(data: bytes, specs: Sequence[FieldSpec], offset: int = 0) -> ParsedStruct:
    """
    Decodes ``specs`` from ``data`` starting at ``offset``.

    Raises a DexParseError subclass on the first field that cannot be
    decoded; the error names that field and its absolute offset.
    """
    struct = ParsedStruct()
    cursor = offset

    for spec in specs:
        try:
            if isinstance(spec, Scalar):
                value, size = spec.decoder(data, cursor)
                struct.items.append(ParsedItem(spec.name, value, bytes(data[cursor:cursor + size]), cursor))
                struct.params[spec.name] = value
                cursor += size
            elif isinstance(spec, Repeated):
                count = resolve_count(spec.count, struct.params, cursor, spec.name)
                elements = []
                start = cursor
                for _ in range(count):
                    element = parse(data, spec.elements, cursor)
                    elements.append(element)
                    cursor += struct_size(element)
                append_array(struct, spec.name, elements, start)
            else:
                raise TypeError(f"Unknown field spec: {spec!r}")
        except DexParseError as e:
            if e.field_name is None:
                e.field_name = spec.name
            raise

    return struct
