import enum

CHUNK_MAGIC = 0x9E2A83C1
ARCHIVE_HEADER_V2 = 0x22222222
MAX_CHUNK_SIZE = 131072

STRUCT_GUID_SIZE = 17
OBJECT_TRAILER_SIZE = 16

NONE_NAME = "None"


class StringEncoding(enum.Enum):
    EMPTY = 0
    UTF8 = 1
    UTF16 = 2


class ObjectType(enum.IntEnum):
    COMPONENT = 0
    ACTOR = 1


class TextHistoryType(enum.IntEnum):
    NONE = -1
    BASE = 0
