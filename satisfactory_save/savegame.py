import logging
from dataclasses import dataclass
from typing import ClassVar, Optional

from .binreader import BinaryReaderBuffer, BinaryReaderIterable
from .compression import read_chunks, reassemble
from .containers import read_count, read_sized_array
from .enums import OBJECT_TRAILER_SIZE, ObjectType
from .exceptions import IntegrityMismatch, LengthMismatch, UnknownTag
from .properties import MAX_DEPTH, ObjectReference, read_object_reference, read_property_list

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MD5Hash:
    is_valid: bool
    bytes: Optional[bytes]


@dataclass(frozen=True)
class Header:
    version: int
    save_version: int
    build_version: int
    map_name: str
    map_options: str
    session_name: str
    seconds_played: int
    save_timestamp: int
    session_visibility: int
    editor_object_version: int
    mod_metadata: str
    mod_flags: int
    save_identifier: str
    is_partitioned_world: bool
    md5_hash: MD5Hash
    is_creative_mode_enabled: bool


@dataclass(frozen=True)
class Transform:
    rotation: tuple
    translation: tuple
    scale: tuple


@dataclass(frozen=True)
class ActorHeader:
    object_type: ClassVar[ObjectType] = ObjectType.ACTOR

    type_path: str
    root_object: str
    instance_name: str
    need_transform: bool
    transform: Transform
    was_placed_in_level: bool


@dataclass(frozen=True)
class ComponentHeader:
    object_type: ClassVar[ObjectType] = ObjectType.COMPONENT

    type_path: str
    root_object: str
    instance_name: str
    parent_actor_name: str


@dataclass(frozen=True)
class ActorObject:
    size: int
    parent_reference: ObjectReference
    components: tuple
    properties: tuple
    trailer: bytes


@dataclass(frozen=True)
class ComponentObject:
    size: int
    properties: tuple
    trailer: bytes


@dataclass(frozen=True)
class Level:
    sublevel_name: Optional[str]
    object_headers: tuple
    collectables: tuple
    objects: tuple
    collections_2: tuple

    @property
    def is_persistent(self):
        return self.sublevel_name is None


@dataclass(frozen=True)
class SaveBody:
    levels: tuple
    persistent_level: Level
    object_references: tuple


def _check_declared_size(reader, declared_size, start_offset, what):
    actual_size = reader.tell() - start_offset
    if actual_size != declared_size:
        raise LengthMismatch(f"{what} declare {declared_size} bytes but {actual_size} were decoded.", reader.tell())


def read_md5_hash(reader):
    is_valid = reader.bool32()
    return MD5Hash(is_valid, reader.read(16) if is_valid else None)


def read_header(reader):
    """
    Read the metadata header that precedes the compressed chunks.
    """
    with reader.record("save header"):
        return Header(
            version=reader.int32(),
            save_version=reader.int32(),
            build_version=reader.int32(),
            map_name=reader.adastring(),
            map_options=reader.adastring(),
            session_name=reader.adastring(),
            seconds_played=reader.int32(),
            save_timestamp=reader.int64(),
            session_visibility=reader.int8(),
            editor_object_version=reader.int32(),
            mod_metadata=reader.adastring(),
            mod_flags=reader.int32(),
            save_identifier=reader.adastring(),
            is_partitioned_world=reader.bool32(),
            md5_hash=read_md5_hash(reader),
            is_creative_mode_enabled=reader.bool32(),
        )


def read_transform(reader):
    return Transform(reader.floats(4), reader.floats(3), reader.floats(3))


def read_actor_header(reader):
    return ActorHeader(
        type_path=reader.adastring(),
        root_object=reader.adastring(),
        instance_name=reader.adastring(),
        need_transform=reader.bool32(),
        transform=read_transform(reader),
        was_placed_in_level=reader.bool32(),
    )


def read_component_header(reader):
    return ComponentHeader(
        type_path=reader.adastring(),
        root_object=reader.adastring(),
        instance_name=reader.adastring(),
        parent_actor_name=reader.adastring(),
    )


HEADER_READERS = {
    ObjectType.ACTOR: read_actor_header,
    ObjectType.COMPONENT: read_component_header,
}


def read_object_header(reader):
    offset = reader.tell()
    object_type = reader.int32()
    try:
        read = HEADER_READERS[object_type]
    except KeyError:
        raise UnknownTag(f"Unknown object header type {object_type}.", offset)
    return read(reader)


def _read_actor_object(reader, size, max_depth):
    return ActorObject(
        size=size,
        parent_reference=read_object_reference(reader),
        components=read_sized_array(reader, read_object_reference),
        properties=read_property_list(reader, max_depth),
        trailer=reader.read(OBJECT_TRAILER_SIZE),
    )


def _read_component_object(reader, size, max_depth):
    return ComponentObject(
        size=size,
        properties=read_property_list(reader, max_depth),
        trailer=reader.read(OBJECT_TRAILER_SIZE),
    )


OBJECT_READERS = {
    ObjectType.ACTOR: _read_actor_object,
    ObjectType.COMPONENT: _read_component_object,
}


def read_object(reader, object_type, max_depth=MAX_DEPTH):
    """
    Read one object. The object bytes carry no type of their own, so
    `object_type` must come from the header at the same position.
    """
    size = reader.int32()
    start_offset = reader.tell()
    obj = OBJECT_READERS[object_type](reader, size, max_depth)
    _check_declared_size(reader, size, start_offset, f"{object_type.name.title()} object")
    return obj


def read_objects(reader, object_headers, max_depth=MAX_DEPTH):
    objects = []
    for i, header in enumerate(object_headers):
        with reader.record(f"object {i} ({header.instance_name!r})"):
            objects.append(read_object(reader, header.object_type, max_depth))
    return tuple(objects)


def read_level(reader, persistent, max_depth=MAX_DEPTH):
    """
    Read a level: headers first, then the objects they describe.
    """
    with reader.record("persistent level" if persistent else "sublevel"):
        sublevel_name = None if persistent else reader.adastring()

        headers_size = reader.int64()
        headers_start_offset = reader.tell()
        object_headers = read_sized_array(reader, read_object_header)
        collectables = read_sized_array(reader, read_object_reference)
        _check_declared_size(reader, headers_size, headers_start_offset, "Level headers")

        objects_size = reader.int64()
        objects_start_offset = reader.tell()
        object_count = read_count(reader)
        if object_count != len(object_headers):
            raise LengthMismatch(f"Level has {len(object_headers)} object headers but {object_count} objects.", reader.tell())
        objects = read_objects(reader, object_headers, max_depth)
        _check_declared_size(reader, objects_size, objects_start_offset, "Level objects")

        collections_2 = read_sized_array(reader, read_object_reference)

    logger.debug("Decoded level %r with %d objects", sublevel_name, len(objects))
    return Level(
        sublevel_name=sublevel_name,
        object_headers=object_headers,
        collectables=collectables,
        objects=objects,
        collections_2=collections_2,
    )


def read_body(reader, max_depth=MAX_DEPTH):
    body_size = reader.int64()
    if body_size != reader.remaining():
        raise IntegrityMismatch(f"Body declares {body_size} bytes but {reader.remaining()} follow.", reader.tell())

    sublevel_count = read_count(reader)
    levels = tuple(
        read_level(reader, persistent=False, max_depth=max_depth)
        for _ in range(sublevel_count)
    )
    persistent_level = read_level(reader, persistent=True, max_depth=max_depth)
    with reader.record("object references"):
        object_references = read_sized_array(reader, read_object_reference)

    if not reader.at_eof():
        raise LengthMismatch(f"Junk at the end of body: {reader.remaining()} bytes.", reader.tell())

    return SaveBody(levels, persistent_level, object_references)


def parse_body(data, max_depth=MAX_DEPTH):
    return read_body(BinaryReaderBuffer(data), max_depth)


class Savegame:
    def __init__(self, filename=None):
        self.filename = filename
        self.header = None
        self.chunks = None
        self.data = None
        self.body = None

    def read_compressed(self, chunks, on_chunk=None):
        """
        Read the metadata header and every compressed chunk record.

        @param chunks: Iterable of raw byte chunks of the savegame
        @param on_chunk: Called with each chunk record as it is read
        """
        reader = BinaryReaderIterable(chunks)
        self.header = read_header(reader)
        self.chunks = list(read_chunks(reader, on_chunk))

    def decompress(self, max_workers=None):
        self.data = reassemble(self.chunks, max_workers=max_workers)

    def decode(self, max_depth=MAX_DEPTH):
        self.body = parse_body(self.data, max_depth)

    def parse(self, chunks, max_workers=None, on_chunk=None, max_depth=MAX_DEPTH):
        self.read_compressed(chunks, on_chunk)
        self.decompress(max_workers)
        self.decode(max_depth)

    def read(self, fp, **kwargs):
        """
        Read savegame.

        @param fp: Filepointer to read (should already be open)
        @type fp: File-like object
        """
        self.parse(iter(lambda: fp.read(65536), b""), **kwargs)


def parse_savegame(chunks, max_workers=None, on_chunk=None, max_depth=MAX_DEPTH):
    savegame = Savegame()
    savegame.parse(chunks, max_workers=max_workers, on_chunk=on_chunk, max_depth=max_depth)
    return savegame
