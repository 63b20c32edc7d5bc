from .enums import StringEncoding
from .exceptions import LengthMismatch


class AdaString(str):
    """
    A decoded length-prefixed string.

    Compares and hashes as its text, so a UTF-8 and a UTF-16 string with the
    same characters are equal to each other and to the plain literal. The
    encoding it was stored with and its raw payload (without terminator) are
    kept alongside.
    """

    def __new__(cls, value="", encoding=None, raw=None):
        self = super().__new__(cls, value)
        self.encoding = \
            encoding if encoding is not None else \
            StringEncoding.UTF8 if value else \
            StringEncoding.EMPTY
        self.raw = \
            raw if raw is not None else \
            value.encode("utf-16-le") if self.encoding == StringEncoding.UTF16 else \
            value.encode("utf-8")
        return self

    def __getnewargs__(self):
        return (str(self), self.encoding, self.raw)

    def __repr__(self):
        return f"AdaString({str.__repr__(self)}, {self.encoding.name})"


def read_adastring(reader):
    """
    Read a signed-length-prefixed string.

    Positive length: that many UTF-8 bytes, then one null byte. Negative
    length: that many UTF-16 code units, then two null bytes. Zero: empty,
    nothing follows the prefix.
    """
    length = reader.int32()
    start_offset = reader.tell()

    if length == 0:
        return AdaString()

    if length > 0:
        data = reader.read(length + 1)
        payload = data[:-1]
        if data[-1:] != b"\0" or b"\0" in payload:
            raise LengthMismatch(f"UTF-8 string does not end after the {length} bytes its prefix declares.", start_offset)
        return AdaString(payload.decode("utf-8", errors="replace"), StringEncoding.UTF8, payload)

    units = -length
    data = reader.read(units * 2 + 2)
    payload = data[:-2]
    if data[-2:] != b"\0\0" or any(payload[i:i + 2] == b"\0\0" for i in range(0, len(payload), 2)):
        raise LengthMismatch(f"UTF-16 string does not end after the {units} code units its prefix declares.", start_offset)
    return AdaString(payload.decode("utf-16-le", errors="replace"), StringEncoding.UTF16, payload)
