import dataclasses
import enum
import math

from .containers import PairList


def jsonable(value):
    """
    Convert a decoded value into something strict `json.dumps` accepts.

    Bytes become hex strings, enums their names, non-finite floats the
    strings "NaN", "Infinity" and "-Infinity", and pair lists lists of
    [key, value] pairs so that duplicate keys survive.
    """
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            field.name: jsonable(getattr(value, field.name))
            for field in dataclasses.fields(value)
            if field.repr
        }
    if isinstance(value, enum.Enum):
        return value.name
    if isinstance(value, str):
        return str(value)
    if isinstance(value, (bytes, bytearray)):
        return value.hex()
    if isinstance(value, PairList):
        return [[jsonable(k), jsonable(v)] for k, v in value]
    if isinstance(value, (tuple, list)):
        return [jsonable(item) for item in value]
    if isinstance(value, float) and not math.isfinite(value):
        return \
            "NaN" if math.isnan(value) else \
            "Infinity" if value > 0 else \
            "-Infinity"
    return value


def export_savegame(savegame):
    chunks = savegame.chunks or []
    return {
        "header": jsonable(savegame.header),
        "chunks": {
            "count": len(chunks),
            "compressed_size": sum(chunk.compressed_size for chunk in chunks),
            "uncompressed_size": sum(chunk.uncompressed_size for chunk in chunks),
        },
        "body": jsonable(savegame.body),
    }
