"""
Exceptions raised while decoding a DEX image.

Every error is fatal for the parse that raised it. Each one carries the
absolute byte offset where decoding failed and, once the struct parser has
seen it, the name of the field being decoded.
"""

from typing import Optional


class DexParseError(Exception):
    """Base class for all decoding failures."""

    def __init__(self, message: str, offset: int, field_name: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.offset = offset
        self.field_name = field_name

    def __str__(self):
        where = f"offset 0x{self.offset:x}"
        if self.field_name is not None:
            where = f"field '{self.field_name}' at {where}"
        return f"{self.message} ({where})"


class BufferOverrun(DexParseError):
    """A decoder would read past the end of the buffer."""


class MalformedVarint(DexParseError):
    """A LEB128 sequence runs off the end of the buffer without a terminating byte."""


class UnresolvedCountReference(DexParseError):
    """A repeated field names a count that is missing, not an integer, or negative."""
