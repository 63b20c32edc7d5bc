class ValidationException(Exception):
    """
    Base class of every decode failure.

    `offset` is the absolute position in the stream being decoded when the
    failure was detected. `records` lists the enclosing records, innermost
    first, as (description, start offset) pairs.
    """

    def __init__(self, message, offset=None):
        super().__init__(message)
        self.message = message
        self.offset = offset
        self.records = []

    def add_record(self, description, start_offset):
        self.records.append((description, start_offset))

    def __str__(self):
        text = self.message
        if self.offset is not None:
            text += f" (at offset 0x{self.offset:X})"
        for description, start_offset in self.records:
            text += f"\n  in {description} starting at 0x{start_offset:X}"
        return text


class TruncatedInput(ValidationException):
    pass


class EndOfChunks(ValidationException):
    pass


class LengthMismatch(ValidationException):
    pass


class UnknownTag(ValidationException):
    pass


class SizeAssertionFailed(ValidationException):
    pass


class IntegrityMismatch(ValidationException):
    pass


class DecompressionFailed(ValidationException):
    pass


class DepthExceeded(ValidationException):
    pass
