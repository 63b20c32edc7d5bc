from dataclasses import dataclass
from typing import Any, Optional

from .binreader import BinaryReader
from .containers import PairList, read_count, read_sized_array, read_sized_map
from .enums import NONE_NAME, STRUCT_GUID_SIZE, TextHistoryType
from .exceptions import DepthExceeded, LengthMismatch, UnknownTag

MAX_DEPTH = 64


@dataclass(frozen=True)
class ObjectReference:
    level_name: str
    path_name: str


@dataclass(frozen=True)
class SoftObjectReference:
    reference: ObjectReference
    sub_path_index: int


@dataclass(frozen=True)
class Text:
    flags: int
    history_type: TextHistoryType
    has_culture_invariant_string: Optional[bool] = None
    text_data: Optional[str] = None
    namespace: Optional[str] = None
    key: Optional[str] = None
    source_string: Optional[str] = None


@dataclass(frozen=True)
class Property:
    name: str
    type: str
    size: int
    index: int
    value: Any


@dataclass(frozen=True)
class ByteValue:
    enum_name: str
    value: Any


@dataclass(frozen=True)
class EnumValue:
    enum_name: str
    value: str


@dataclass(frozen=True)
class ArrayValue:
    element_type: str
    elements: tuple
    struct_type: Optional[str] = None
    struct_guid: Optional[bytes] = None


@dataclass(frozen=True)
class SetValue:
    element_type: str
    removed_count: int
    elements: tuple


@dataclass(frozen=True)
class MapValue:
    key_type: str
    value_type: str
    removed_count: int
    entries: PairList


@dataclass(frozen=True)
class StructValue:
    struct_type: str
    guid: bytes
    value: Any


@dataclass(frozen=True)
class Vector:
    x: float
    y: float
    z: float


@dataclass(frozen=True)
class IntVector:
    x: int
    y: int
    z: int


@dataclass(frozen=True)
class Quat:
    x: float
    y: float
    z: float
    w: float


@dataclass(frozen=True)
class LinearColor:
    r: float
    g: float
    b: float
    a: float


@dataclass(frozen=True)
class Box:
    min: Vector
    max: Vector
    is_valid: bool


@dataclass(frozen=True)
class FluidBox:
    value: float


@dataclass(frozen=True)
class InventoryItem:
    unknown: int
    item_name: str
    item_state: ObjectReference


@dataclass(frozen=True)
class RailroadTrackPosition:
    reference: ObjectReference
    offset: float
    forward: float


def read_object_reference(reader):
    return ObjectReference(reader.adastring(), reader.adastring())


def read_soft_object_reference(reader):
    return SoftObjectReference(read_object_reference(reader), reader.uint32())


def read_text(reader):
    offset = reader.tell()
    flags = reader.uint32()
    history_type = reader.int8()

    if history_type == TextHistoryType.NONE:
        has_culture_invariant_string = reader.bool32()
        return Text(
            flags=flags,
            history_type=TextHistoryType.NONE,
            has_culture_invariant_string=has_culture_invariant_string,
            text_data=reader.adastring() if has_culture_invariant_string else None,
        )

    if history_type == TextHistoryType.BASE:
        return Text(
            flags=flags,
            history_type=TextHistoryType.BASE,
            namespace=reader.adastring(),
            key=reader.adastring(),
            source_string=reader.adastring(),
        )

    raise UnknownTag(f"Unknown text history type {history_type}.", offset)


# Struct values

def read_vector(reader):
    return Vector(*reader.floats(3))


def read_int_vector(reader):
    return IntVector(reader.int32(), reader.int32(), reader.int32())


def read_quat(reader):
    return Quat(*reader.floats(4))


def read_linear_color(reader):
    return LinearColor(*reader.floats(4))


def read_box(reader):
    return Box(read_vector(reader), read_vector(reader), reader.bool8())


def read_fluid_box(reader):
    return FluidBox(reader.float32())


def read_inventory_item(reader):
    return InventoryItem(reader.int32(), reader.adastring(), read_object_reference(reader))


def read_railroad_track_position(reader):
    return RailroadTrackPosition(read_object_reference(reader), reader.float32(), reader.float32())


STRUCT_READERS = {
    "Box": read_box,
    "FluidBox": read_fluid_box,
    "InventoryItem": read_inventory_item,
    "LinearColor": read_linear_color,
    "Quat": read_quat,
    "RailroadTrackPosition": read_railroad_track_position,
    "Vector": read_vector,
}


def read_struct_value(reader, struct_type, max_depth=MAX_DEPTH):
    """
    Read a struct of the built-in shape named by `struct_type`, or a nested
    property list for any other struct type.
    """
    try:
        read = STRUCT_READERS[struct_type]
    except KeyError:
        return read_property_list(reader, max_depth - 1)
    return read(reader)


# Container elements

ELEMENT_READERS = {
    "BoolProperty": BinaryReader.bool8,
    "ByteProperty": BinaryReader.uint8,
    "DoubleProperty": BinaryReader.float64,
    "EnumProperty": BinaryReader.adastring,
    "FloatProperty": BinaryReader.float32,
    "Int64Property": BinaryReader.int64,
    "Int8Property": BinaryReader.int8,
    "IntProperty": BinaryReader.int32,
    "InterfaceProperty": read_object_reference,
    "NameProperty": BinaryReader.adastring,
    "ObjectProperty": read_object_reference,
    "SoftObjectProperty": read_soft_object_reference,
    "StrProperty": BinaryReader.adastring,
    "TextProperty": read_text,
    "UInt32Property": BinaryReader.uint32,
    "UInt64Property": BinaryReader.uint64,
}


def _read_opaque_struct(reader):
    return reader.read(16)


def _element_reader(reader, element_type, struct_reader=None):
    if element_type == "StructProperty" and struct_reader is not None:
        return struct_reader
    try:
        return ELEMENT_READERS[element_type]
    except KeyError:
        raise UnknownTag(f"Unknown element type {element_type!r}.", reader.tell())


def _check_size(reader, declared_size, start_offset, what):
    actual_size = reader.tell() - start_offset
    if actual_size != declared_size:
        raise LengthMismatch(f"{what} declares {declared_size} bytes but {actual_size} were decoded.", reader.tell())


# Property payloads. Each reader is called after the property's name, type,
# size and index have been read.

def _scalar(read):
    def read_scalar_property(reader, type_, size, max_depth):
        reader.skip(1)
        start_offset = reader.tell()
        value = read(reader)
        _check_size(reader, size, start_offset, type_)
        return value

    return read_scalar_property


def _read_bool_property(reader, type_, size, max_depth):
    value = reader.bool8()
    reader.skip(1)
    _check_size(reader, size, reader.tell(), type_)
    return value


def _read_byte_property(reader, type_, size, max_depth):
    enum_name = reader.adastring()
    reader.skip(1)
    start_offset = reader.tell()
    value = \
        reader.int8() if enum_name == NONE_NAME else \
        reader.adastring()
    _check_size(reader, size, start_offset, type_)
    return ByteValue(enum_name, value)


def _read_enum_property(reader, type_, size, max_depth):
    enum_name = reader.adastring()
    reader.skip(1)
    start_offset = reader.tell()
    value = reader.adastring()
    _check_size(reader, size, start_offset, type_)
    return EnumValue(enum_name, value)


def _read_struct_array(reader, element_type, max_depth):
    count = read_count(reader)

    with reader.record("struct array header"):
        reader.adastring()
        inner_type = reader.adastring()
        if inner_type != "StructProperty":
            raise UnknownTag(f"Struct array header has type {inner_type!r}.", reader.tell())
        inner_size = reader.int32()
        reader.int32()
        struct_type = reader.adastring()
        struct_guid = reader.read(STRUCT_GUID_SIZE)

    start_offset = reader.tell()
    elements = tuple(
        read_struct_value(reader, struct_type, max_depth)
        for _ in range(count)
    )
    _check_size(reader, inner_size, start_offset, f"Array of {struct_type}")
    return ArrayValue(element_type, elements, struct_type, struct_guid)


def _read_array_property(reader, type_, size, max_depth):
    element_type = reader.adastring()
    reader.skip(1)
    start_offset = reader.tell()
    if element_type == "StructProperty":
        value = _read_struct_array(reader, element_type, max_depth)
    else:
        read_element = _element_reader(reader, element_type)
        value = ArrayValue(element_type, read_sized_array(reader, read_element))
    _check_size(reader, size, start_offset, type_)
    return value


def _read_set_property(reader, type_, size, max_depth):
    element_type = reader.adastring()
    reader.skip(1)
    start_offset = reader.tell()
    read_element = _element_reader(reader, element_type, struct_reader=_read_opaque_struct)
    removed_count = reader.int32()
    value = SetValue(element_type, removed_count, read_sized_array(reader, read_element))
    _check_size(reader, size, start_offset, type_)
    return value


def _read_map_property(reader, type_, size, max_depth):
    key_type = reader.adastring()
    value_type = reader.adastring()
    reader.skip(1)
    start_offset = reader.tell()
    read_key = _element_reader(reader, key_type, struct_reader=read_int_vector)
    if value_type == "StructProperty":
        read_value, value_args = read_property_list, (max_depth - 1,)
    else:
        read_value, value_args = _element_reader(reader, value_type), ()
    removed_count = reader.int32()
    entries = read_sized_map(reader, read_key, read_value, value_args=value_args)
    _check_size(reader, size, start_offset, type_)
    return MapValue(key_type, value_type, removed_count, entries)


def _read_struct_property(reader, type_, size, max_depth):
    struct_type = reader.adastring()
    guid = reader.read(STRUCT_GUID_SIZE)
    start_offset = reader.tell()
    value = read_struct_value(reader, struct_type, max_depth)
    _check_size(reader, size, start_offset, f"{type_} {struct_type}")
    return StructValue(struct_type, guid, value)


PROPERTY_READERS = {
    "ArrayProperty": _read_array_property,
    "BoolProperty": _read_bool_property,
    "ByteProperty": _read_byte_property,
    "DoubleProperty": _scalar(BinaryReader.float64),
    "EnumProperty": _read_enum_property,
    "FloatProperty": _scalar(BinaryReader.float32),
    "Int64Property": _scalar(BinaryReader.int64),
    "Int8Property": _scalar(BinaryReader.int8),
    "IntProperty": _scalar(BinaryReader.int32),
    "InterfaceProperty": _scalar(read_object_reference),
    "MapProperty": _read_map_property,
    "NameProperty": _scalar(BinaryReader.adastring),
    "ObjectProperty": _scalar(read_object_reference),
    "SetProperty": _read_set_property,
    "SoftObjectProperty": _scalar(read_soft_object_reference),
    "StrProperty": _scalar(BinaryReader.adastring),
    "StructProperty": _read_struct_property,
    "TextProperty": _scalar(read_text),
    "UInt32Property": _scalar(BinaryReader.uint32),
    "UInt64Property": _scalar(BinaryReader.uint64),
}


def read_property(reader, max_depth=MAX_DEPTH):
    """
    Read one property, or return None if it is the "None" sentinel that ends
    a property list.
    """
    start_offset = reader.tell()
    name = reader.adastring()
    if name == NONE_NAME:
        return None

    with reader.record(f"property {name!r}", start_offset):
        type_offset = reader.tell()
        type_ = reader.adastring()
        size = reader.int32()
        index = reader.int32()
        try:
            read_value = PROPERTY_READERS[type_]
        except KeyError:
            raise UnknownTag(f"Unknown property type {type_!r}.", type_offset)
        value = read_value(reader, type_, size, max_depth)

    return Property(name, type_, size, index, value)


def read_property_list(reader, max_depth=MAX_DEPTH):
    """
    Read properties up to and including the "None" sentinel. The sentinel is
    not part of the result.
    """
    if max_depth < 1:
        raise DepthExceeded("Property lists are nested too deeply.", reader.tell())

    properties = []
    while (prop := read_property(reader, max_depth)) is not None:
        properties.append(prop)
    return tuple(properties)
