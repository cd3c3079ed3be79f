import struct

import pytest

from dexparser import (
    BufferOverrun, ParsedStruct, Repeated, Scalar, UnresolvedCountReference, fixed_bytes,
    make_array, parse, struct_size, uint, uleb128, ushort
)

ITEMS_SPEC = [
    Scalar('count', uint),
    Repeated('items', 'count', [Scalar('v', ushort)]),
    Scalar('tail', ushort),
]


def test_scalars_are_contiguous():
    data = b'\xff\xff' + struct.pack('<IHI', 7, 8, 9)
    result = parse(data, [Scalar('a', uint), Scalar('b', ushort), Scalar('c', uint)], 2)

    assert [(i.name, i.value, i.offset, i.size) for i in result.items] == [
        ('a', 7, 2, 4),
        ('b', 8, 6, 2),
        ('c', 9, 8, 4),
    ]
    assert result.params == {'a': 7, 'b': 8, 'c': 9}
    assert result.offset == 2
    assert struct_size(result) == 10


def test_raw_data_matches_consumed_length():
    data = b'\xac\x02' + b'\x05'
    result = parse(data, [Scalar('big', uleb128), Scalar('small', uleb128)])
    assert result.items[0].raw_data == b'\xac\x02'
    assert result.items[1].raw_data == b'\x05'
    assert result['big'] == 300


def test_repeated_with_count_reference():
    data = struct.pack('<IHHH', 2, 1, 2, 0xbeef)
    result = parse(data, ITEMS_SPEC)

    assert [i.name for i in result.items] == ['count', 'items', 'tail']
    array = result.items[1]
    assert array.is_array
    assert array.offset == 4
    assert array.raw_data == b'\x01\x00\x02\x00'
    assert [child.params for child in array.value] == [{'v': 1}, {'v': 2}]
    assert [child.offset for child in array.value] == [4, 6]
    assert result['items'] == [{'v': 1}, {'v': 2}]
    assert result.items[2].offset == 8
    assert result['tail'] == 0xbeef


def test_zero_count_contributes_nothing():
    data = struct.pack('<IH', 0, 7)
    result = parse(data, ITEMS_SPEC)

    assert [i.name for i in result.items] == ['count', 'tail']
    assert 'items' not in result.params
    assert result.items[1].offset == 4
    assert result.size == 6


def test_literal_count():
    data = bytes(range(6))
    result = parse(data, [Repeated('pairs', 3, [Scalar('pair', fixed_bytes(2))])])
    assert len(result.items) == 1
    assert [c['pair'] for c in result.items[0].value] == [b'\x00\x01', b'\x02\x03', b'\x04\x05']


def test_nested_arrays():
    spec = [
        Scalar('outer', ushort),
        Repeated('groups', 'outer', [
            Scalar('inner', uleb128),
            Repeated('values', 'inner', [Scalar('value', uleb128)]),
        ]),
    ]
    data = struct.pack('<H', 2) + b'\x02\x0a\x0b' + b'\x00'
    result = parse(data, spec)

    assert result['groups'] == [{'inner': 2, 'values': [{'value': 10}, {'value': 11}]}, {'inner': 0}]
    assert result.size == len(data)
    second = result.items[1].value[1]
    assert [i.name for i in second.items] == ['inner']


def test_array_values_are_stored_as_child_tables():
    data = struct.pack('<HH', 3, 0)
    result = parse(data, [Repeated('header', 1, [Scalar('n', ushort)]), Scalar('pad', ushort)])
    assert result['header'][0]['n'] == 3
    assert result['pad'] == 0


def test_unresolved_count_reference():
    with pytest.raises(UnresolvedCountReference) as excinfo:
        parse(b'\x00' * 8, [Scalar('a', uint), Repeated('items', 'missing', [Scalar('v', ushort)])])
    assert excinfo.value.field_name == 'items'
    assert excinfo.value.offset == 4
    assert "missing" in str(excinfo.value)


def test_count_reference_must_be_an_integer():
    spec = [
        Repeated('arr', 1, [Scalar('v', ushort)]),
        Repeated('items', 'arr', [Scalar('v', ushort)]),
    ]
    with pytest.raises(UnresolvedCountReference, match="not an integer"):
        parse(b'\x01\x00\x00\x00', spec)


def test_negative_count_reference():
    spec = [Scalar('n', lambda data, offset: (-1, 1)), Repeated('items', 'n', [Scalar('v', ushort)])]
    with pytest.raises(UnresolvedCountReference, match="Negative"):
        parse(b'\x00', spec)


def test_negative_literal_count_is_rejected():
    with pytest.raises(ValueError):
        Repeated('items', -1, [Scalar('v', ushort)])


def test_overrun_reports_field_and_offset():
    with pytest.raises(BufferOverrun) as excinfo:
        parse(b'\x00' * 6, [Scalar('a', uint), Scalar('b', uint)])
    assert excinfo.value.field_name == 'b'
    assert excinfo.value.offset == 4
    assert "field 'b' at offset 0x4" in str(excinfo.value)


def test_overrun_inside_array_names_innermost_field():
    data = struct.pack('<IH', 2, 1)
    with pytest.raises(BufferOverrun) as excinfo:
        parse(data, ITEMS_SPEC)
    assert excinfo.value.field_name == 'v'
    assert excinfo.value.offset == 6


def test_make_array():
    data = b'\x01\x00\xff\x02\x00'
    structs = [parse(data, [Scalar('v', ushort)], 0), parse(data, [Scalar('v', ushort)], 3)]
    result = make_array('values', structs)

    assert len(result.items) == 1
    assert result.items[0].offset == 0
    assert result.items[0].raw_data == b'\x01\x00\x02\x00'
    assert result['values'] == [{'v': 1}, {'v': 2}]


def test_make_array_empty():
    result = make_array('values', [])
    assert result.items == []
    assert result.params == {'values': []}
    assert result.offset is None


def test_specs_are_reusable():
    data = struct.pack('<IHH', 1, 5, 6)
    first = parse(data, ITEMS_SPEC)
    second = parse(data, ITEMS_SPEC)
    assert first == second
    assert isinstance(first, ParsedStruct)
