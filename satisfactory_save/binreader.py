import contextlib
import struct

from .adastring import read_adastring
from .exceptions import TruncatedInput, ValidationException


def adabool(value):
    """
    The one boolean rule of the format: any nonzero integer is true.
    """
    return value != 0


class BinaryReader:
    """
    Read little-endian binary data, keeping track of the absolute offset.
    """

    def read(self, amount):
        raise NotImplementedError

    def tell(self):
        raise NotImplementedError

    def at_eof(self):
        raise NotImplementedError

    def remaining(self):
        raise NotImplementedError

    def skip(self, amount):
        self.read(amount)

    @contextlib.contextmanager
    def record(self, description, start_offset=None):
        """
        Attach `description` to any decode failure raised inside the block.
        """
        if start_offset is None:
            start_offset = self.tell()
        try:
            yield
        except ValidationException as e:
            e.add_record(description, start_offset)
            raise

    def _truncated(self, amount, available):
        return TruncatedInput(f"Unexpected end-of-file: needed {amount} bytes, {available} available.", self.tell())

    def int8(self):
        return struct.unpack("<b", self.read(1))[0]

    def uint8(self):
        return struct.unpack("<B", self.read(1))[0]

    def int32(self):
        return struct.unpack("<i", self.read(4))[0]

    def uint32(self):
        return struct.unpack("<I", self.read(4))[0]

    def int64(self):
        return struct.unpack("<q", self.read(8))[0]

    def uint64(self):
        return struct.unpack("<Q", self.read(8))[0]

    def float32(self):
        return struct.unpack("<f", self.read(4))[0]

    def float64(self):
        return struct.unpack("<d", self.read(8))[0]

    def bool8(self):
        return adabool(self.uint8())

    def bool32(self):
        return adabool(self.int32())

    def floats(self, count):
        return struct.unpack(f"<{count}f", self.read(4 * count))

    def adastring(self):
        return read_adastring(self)


class BinaryReaderIterable(BinaryReader):
    """
    Read binary data from an iterable of byte chunks, such as
    `iter(lambda: f.read(65536), b'')`.
    """

    def __init__(self, iterable):
        self._it = iter(iterable)
        self._chunk = b""
        self._chunk_offset = 0
        self._offset = 0

    def _fill(self):
        while self._chunk_offset == len(self._chunk):
            try:
                self._chunk = next(self._it)
            except StopIteration:
                return False
            self._chunk_offset = 0
        return True

    def read(self, amount):
        parts = []
        remaining = amount
        while remaining:
            if not self._fill():
                raise self._truncated(amount, amount - remaining)
            to_take = min(remaining, len(self._chunk) - self._chunk_offset)
            parts.append(self._chunk[self._chunk_offset:self._chunk_offset + to_take])
            self._chunk_offset += to_take
            self._offset += to_take
            remaining -= to_take
        return b"".join(parts)

    def tell(self):
        return self._offset

    def at_eof(self):
        return not self._fill()

    def remaining(self):
        """
        Number of bytes left. This reads the rest of the iterable into memory.
        """
        self._chunk = self._chunk[self._chunk_offset:] + b"".join(self._it)
        self._chunk_offset = 0
        return len(self._chunk)


class BinaryReaderBuffer(BinaryReader):
    """
    Read binary data from bytes already in memory.
    """

    def __init__(self, data, offset=0):
        self._data = data
        self._offset = offset

    def read(self, amount):
        end = self._offset + amount
        if end > len(self._data):
            raise self._truncated(amount, len(self._data) - self._offset)
        data = bytes(self._data[self._offset:end])
        self._offset = end
        return data

    def tell(self):
        return self._offset

    def at_eof(self):
        return self._offset >= len(self._data)

    def remaining(self):
        return len(self._data) - self._offset
