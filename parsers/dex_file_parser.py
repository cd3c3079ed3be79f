# dex_file_parser.py - Field catalog and section driver for Android DEX files
from typing import Any, List, Optional, Tuple

from dexparser import (
    BinaryCurator, DexParseError, FormatHints, OffsetSet, ParsedStruct, Repeated,
    RenderOptions, Scalar, Section, fixed_bytes, format_header_value, make_array,
    make_enum, parse, render_sections, uint, uleb128, uleb128p1, ushort, utf8,
    zero_terminated_span
)

# --- Field Catalog ---
HEADER_SPEC = [
    Scalar('magic', fixed_bytes(8)),
    Scalar('checksum', uint),
    Scalar('signature', fixed_bytes(20)),
    Scalar('fileSize', uint),
    Scalar('headerSize', uint),
    Scalar('endianTag', uint),
    Scalar('linkSize', uint),
    Scalar('linkOffset', uint),
    Scalar('mapOffset', uint),
    Scalar('stringIdsSize', uint),
    Scalar('stringIdsOffset', uint),
    Scalar('typeIdsSize', uint),
    Scalar('typeIdsOffset', uint),
    Scalar('protoIdsSize', uint),
    Scalar('protoIdsOffset', uint),
    Scalar('fieldIdsSize', uint),
    Scalar('fieldIdsOffset', uint),
    Scalar('methodIdsSize', uint),
    Scalar('methodIdsOffset', uint),
    Scalar('classDefsSize', uint),
    Scalar('classDefsOffset', uint),
    Scalar('dataSize', uint),
    Scalar('dataOffset', uint),
]

STRING_ID_SPEC = [Scalar('offset', uint)]
STRING_DATA_SPEC = [Scalar('string', utf8)]
TYPE_ID_SPEC = [Scalar('index', uint)]

PROTO_ID_SPEC = [
    Scalar('shortyIndex', uint),
    Scalar('returnTypeIndex', uint),
    Scalar('parametersOffset', uint),
]

FIELD_ID_SPEC = [
    Scalar('classIndex', ushort),
    Scalar('typeIndex', ushort),
    Scalar('nameIndex', uint),
]

METHOD_ID_SPEC = [
    Scalar('classIndex', ushort),
    Scalar('protoIndex', ushort),
    Scalar('nameIndex', uint),
]

CLASS_DEF_SPEC = [
    Scalar('classIndex', uint),
    Scalar('accessFlags', uint),
    Scalar('superClassIndex', uint),
    Scalar('interfacesOffset', uint),
    Scalar('sourceFileIndex', uint),
    Scalar('annotationsOffset', uint),
    Scalar('classDataOffset', uint),
    Scalar('staticValuesOffset', uint),
]

TYPE_LIST_SPEC = [
    Scalar('size', uint),
    Repeated('list', 'size', [Scalar('typeIndex', ushort)]),
]

ENCODED_FIELD_SPEC = [
    Scalar('fieldIndexDiff', uleb128),
    Scalar('accessFlags', uleb128),
]

ENCODED_METHOD_SPEC = [
    Scalar('methodIndexDiff', uleb128),
    Scalar('accessFlags', uleb128),
    Scalar('codeOffset', uleb128),
]

CLASS_DATA_SPEC = [
    Scalar('staticFieldsSize', uleb128),
    Scalar('instanceFieldsSize', uleb128),
    Scalar('directMethodsSize', uleb128),
    Scalar('virtualMethodsSize', uleb128),
    Repeated('staticFields', 'staticFieldsSize', ENCODED_FIELD_SPEC),
    Repeated('instanceFields', 'instanceFieldsSize', ENCODED_FIELD_SPEC),
    Repeated('directMethods', 'directMethodsSize', ENCODED_METHOD_SPEC),
    Repeated('virtualMethods', 'virtualMethodsSize', ENCODED_METHOD_SPEC),
]

# Try blocks and handlers after insns are left unclaimed
CODE_ITEM_SPEC = [
    Scalar('registersSize', ushort),
    Scalar('insSize', ushort),
    Scalar('outsSize', ushort),
    Scalar('triesSize', ushort),
    Scalar('debugInfoOffset', uint),
    Scalar('insnsSize', uint),
    Repeated('insns', 'insnsSize', [Scalar('insn', ushort)]),
]

DEBUG_INFO_SPEC = [
    Scalar('lineStart', uleb128),
    Scalar('parametersSize', uleb128),
    Repeated('parameterNames', 'parametersSize', [Scalar('nameIndex', uleb128p1)]),
    Scalar('opcodes', zero_terminated_span),
]

MAP_ITEM_TYPES = {
    0x0000: 'TYPE_HEADER_ITEM',
    0x0001: 'TYPE_STRING_ID_ITEM',
    0x0002: 'TYPE_TYPE_ID_ITEM',
    0x0003: 'TYPE_PROTO_ID_ITEM',
    0x0004: 'TYPE_FIELD_ID_ITEM',
    0x0005: 'TYPE_METHOD_ID_ITEM',
    0x0006: 'TYPE_CLASS_DEF_ITEM',
    0x0007: 'TYPE_CALL_SITE_ID_ITEM',
    0x0008: 'TYPE_METHOD_HANDLE_ITEM',
    0x1000: 'TYPE_MAP_LIST',
    0x1001: 'TYPE_TYPE_LIST',
    0x1002: 'TYPE_ANNOTATION_SET_REF_LIST',
    0x1003: 'TYPE_ANNOTATION_SET_ITEM',
    0x2000: 'TYPE_CLASS_DATA_ITEM',
    0x2001: 'TYPE_CODE_ITEM',
    0x2002: 'TYPE_STRING_DATA_ITEM',
    0x2003: 'TYPE_DEBUG_INFO_ITEM',
    0x2004: 'TYPE_ANNOTATION_ITEM',
    0x2005: 'TYPE_ENCODED_ARRAY_ITEM',
    0x2006: 'TYPE_ANNOTATIONS_DIRECTORY_ITEM',
    0xF000: 'TYPE_HIDDENAPI_CLASS_DATA_ITEM',
}

MAP_SPEC = [
    Scalar('size', uint),
    Repeated('items', 'size', [
        Scalar('type', make_enum(ushort, MAP_ITEM_TYPES)),
        Scalar('unused', ushort),
        Scalar('size', uint),
        Scalar('offset', uint),
    ]),
]


# --- Formatters ---
def read_string(data: bytes, offset: int) -> str:
    try:
        return utf8(data, offset)[0]
    except DexParseError as e:
        return f"[UNREADABLE STRING: {e}]"


def make_string_id_formatter(data: bytes):
    """Labels each string ID with the text it points at."""
    def format_string_id(name: str, value: Any, state: Any) -> Tuple[str, FormatHints, Any]:
        return f"{name} = '{read_string(data, value)}'", FormatHints(collapse=True), state
    return format_string_id


def make_type_id_formatter(data: bytes, string_ids_offset: int):
    """Labels each type ID with its descriptor, looked up through the string ID table."""
    def format_type_id(name: str, value: Any, state: Any) -> Tuple[str, FormatHints, Any]:
        try:
            string_offset = uint(data, string_ids_offset + value * 4)[0]
            text = read_string(data, string_offset)
        except DexParseError as e:
            text = f"[UNREADABLE STRING: {e}]"
        return f"{name} = '{text}'", FormatHints(collapse=True), state
    return format_type_id


# --- Main Parser ---
class DexFileParser:
    """
    Claims every structure of a DEX image that can be located from the
    header, following offsets from the ID tables into the data section.

    Regions nothing points at (annotations, encoded arrays, try blocks,
    alignment padding) end up as Unknown gap sections.
    """

    def __init__(self, data: bytes):
        self.data = data
        self.curator = BinaryCurator(self.data)
        self.header: Optional[ParsedStruct] = None

    def parse(self) -> List[Section]:
        header = self.curator.claim('Header', HEADER_SPEC, 0, format_header_value)
        self.header = header

        string_ids = self._claim_table('String IDs', 'stringIds', STRING_ID_SPEC,
                                       make_string_id_formatter(self.data))
        self._claim_table('Type IDs', 'typeIds', TYPE_ID_SPEC,
                          make_type_id_formatter(self.data, header['stringIdsOffset']))
        proto_ids = self._claim_table('Proto IDs', 'protoIds', PROTO_ID_SPEC)
        self._claim_table('Field IDs', 'fieldIds', FIELD_ID_SPEC)
        self._claim_table('Method IDs', 'methodIds', METHOD_ID_SPEC)
        class_defs = self._claim_table('Class defs', 'classDefs', CLASS_DEF_SPEC)

        self._claim_strings([s['offset'] for s in string_ids])

        if header['mapOffset'] != 0:
            self.curator.claim('Map', MAP_SPEC, header['mapOffset'])

        type_list_offsets = OffsetSet()
        for proto in proto_ids:
            if proto['parametersOffset'] != 0:
                type_list_offsets.add(proto['parametersOffset'])
        for class_def in class_defs:
            if class_def['interfacesOffset'] != 0:
                type_list_offsets.add(class_def['interfacesOffset'])
        for index, offset in enumerate(type_list_offsets):
            self.curator.claim(f"Type list {index}", TYPE_LIST_SPEC, offset)

        code_offsets = OffsetSet()
        claimed_class_data = OffsetSet()
        for index, class_def in enumerate(class_defs):
            offset = class_def['classDataOffset']
            if offset == 0 or offset in claimed_class_data:
                continue
            claimed_class_data.add(offset)
            class_data = self.curator.claim(f"Class data for class {index}", CLASS_DATA_SPEC, offset)
            for method in class_data.params.get('directMethods', []) + class_data.params.get('virtualMethods', []):
                if method['codeOffset'] != 0:
                    code_offsets.add(method['codeOffset'])

        debug_info_offsets = OffsetSet()
        for index, offset in enumerate(code_offsets):
            code_item = self.curator.claim(f"Code item {index}", CODE_ITEM_SPEC, offset)
            if code_item['debugInfoOffset'] != 0:
                debug_info_offsets.add(code_item['debugInfoOffset'])

        for index, offset in enumerate(debug_info_offsets):
            self.curator.claim(f"Debug info item {index}", DEBUG_INFO_SPEC, offset)

        return self.curator.get_sections()

    def _claim_table(self, title: str, name: str, element_spec, formatter=None) -> List[dict]:
        """Claims one fixed-size ID table described by the header; returns its element values."""
        size = self.header[f"{name}Size"]
        offset = self.header[f"{name}Offset"]
        if offset == 0 or size == 0:
            return []

        table = self.curator.claim(title, [Repeated(name, size, element_spec)], offset, formatter)
        return table.params.get(name, [])

    def _claim_strings(self, offsets: List[int]):
        """
        Claims string data items. Each contiguous run of strings becomes one
        Strings section so a section never spans bytes it does not own.
        """
        run: List[ParsedStruct] = []
        for offset in sorted(OffsetSet(o for o in offsets if o != 0)):
            if run and offset != run[-1].offset + run[-1].size:
                self.curator.claim_struct('Strings', make_array('strings', run))
                run = []
            run.append(parse(self.data, STRING_DATA_SPEC, offset))
        if run:
            self.curator.claim_struct('Strings', make_array('strings', run))


def parse_dex(data: bytes) -> List[Section]:
    """Parses a whole DEX image into a gap-free, ordered section list."""
    return DexFileParser(data).parse()


def dump_dex(data: bytes, options: Optional[RenderOptions] = None) -> List[str]:
    return render_sections(parse_dex(data), options)
