from .exceptions import LengthMismatch


class PairList(tuple):
    """
    Key/value pairs of a decoded map, every pair kept in read order.

    Keys are not deduplicated; lookups return the first occurrence.
    """

    def keys(self):
        return [key for key, _ in self]

    def values(self):
        return [value for _, value in self]

    def items(self):
        return list(self)

    def get(self, key, default=None):
        for k, value in self:
            if k == key:
                return value
        return default


def read_count(reader, count_size=4):
    offset = reader.tell()
    count = \
        reader.int32() if count_size == 4 else \
        reader.int64() if count_size == 8 else \
        None
    if count is None:
        raise ValueError(f"Unsupported count size {count_size}")
    if count < 0:
        raise LengthMismatch(f"Negative element count {count}.", offset)
    return count


def read_sized_array(reader, read_element, *args, count_size=4):
    """
    Read a signed count of `count_size` bytes (4 or 8), then that many
    elements with `read_element(reader, *args)`.
    """
    count = read_count(reader, count_size)
    return tuple(
        read_element(reader, *args)
        for _ in range(count)
    )


def read_sized_map(reader, read_key, read_value, key_args=(), value_args=()):
    """
    Read a 32-bit count, then that many key/value pairs.
    """
    count = read_count(reader)
    return PairList(
        (read_key(reader, *key_args), read_value(reader, *value_args))
        for _ in range(count)
    )
