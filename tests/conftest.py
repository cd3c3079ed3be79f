import struct

import pytest

MAP_OFFSET = 0xcc
FILE_SIZE = 0xf8


def build_dex() -> bytes:
    """
    A small but complete DEX image: one class with one direct method whose
    code item has a debug info item, plus a map list and alignment padding.

        0x00  header              0xa9  padding (3)
        0x70  string ids (2)      0xac  code item
        0x78  type ids (1)        0xbe  debug info item
        0x7c  class defs (1)      0xc3  class data
        0x9c  string data (2)     0xcb  padding (1)
        0xcc  map list (3 items)  0xf4  trailing bytes (4)
    """
    data = bytearray(FILE_SIZE)

    struct.pack_into(
        '<8sI20s20I', data, 0,
        b'dex\n035\x00', 0, bytes(20),
        FILE_SIZE, 0x70, 0x12345678,
        0, 0,            # link
        MAP_OFFSET,
        2, 0x70,         # string ids
        1, 0x78,         # type ids
        0, 0,            # proto ids
        0, 0,            # field ids
        0, 0,            # method ids
        1, 0x7c,         # class defs
        FILE_SIZE - 0x9c, 0x9c,
    )

    struct.pack_into('<II', data, 0x70, 0x9c, 0xa3)
    struct.pack_into('<I', data, 0x78, 0)
    struct.pack_into('<8I', data, 0x7c, 0, 1, 0xffffffff, 0, 0xffffffff, 0, 0xc3, 0)

    data[0x9c:0xa3] = b'\x05LFoo;\x00'
    data[0xa3:0xa9] = b'\x04main\x00'
    data[0xa9:0xac] = b'\xaa\xaa\xaa'

    struct.pack_into('<HHHHIIH', data, 0xac, 1, 0, 0, 0, 0xbe, 1, 0x000e)
    data[0xbe:0xc3] = b'\x01\x00\x07\x0e\x00'
    data[0xc3:0xcb] = b'\x00\x00\x01\x00' + b'\x00\x09\xac\x01'
    data[0xcb] = 0xbb

    struct.pack_into('<I', data, MAP_OFFSET, 3)
    struct.pack_into('<HHII', data, MAP_OFFSET + 4, 0x0000, 0, 1, 0)
    struct.pack_into('<HHII', data, MAP_OFFSET + 16, 0x1000, 0, 1, MAP_OFFSET)
    struct.pack_into('<HHII', data, MAP_OFFSET + 28, 0x7777, 0, 1, 0)

    data[0xf4:0xf8] = b'\xde\xad\xbe\xef'
    return bytes(data)


@pytest.fixture
def dex_data() -> bytes:
    return build_dex()
