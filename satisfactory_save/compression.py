import logging
import zlib
from dataclasses import dataclass, field
from multiprocessing.pool import ThreadPool
from typing import Optional

from .enums import ARCHIVE_HEADER_V2, CHUNK_MAGIC, MAX_CHUNK_SIZE
from .exceptions import (
    DecompressionFailed,
    EndOfChunks,
    IntegrityMismatch,
    LengthMismatch,
    SizeAssertionFailed,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Chunk:
    offset: int
    archive_header: int
    max_chunk_size: int
    compression_algorithm: Optional[int]
    compressed_size: int
    uncompressed_size: int
    payload: bytes = field(repr=False)


def _read_chunk(reader):
    if reader.at_eof():
        raise EndOfChunks("No further chunk records.", reader.tell())

    offset = reader.tell()
    with reader.record("compressed chunk record"):
        magic = reader.uint32()
        if magic != CHUNK_MAGIC:
            raise SizeAssertionFailed(f"Invalid chunk magic 0x{magic:08X}.", offset)

        archive_header = reader.uint32()
        max_chunk_size = reader.int64()
        if max_chunk_size != MAX_CHUNK_SIZE:
            raise SizeAssertionFailed(f"Maximum chunk size is {max_chunk_size}, expected {MAX_CHUNK_SIZE}.", reader.tell() - 8)

        compression_algorithm = \
            reader.int8() if archive_header == ARCHIVE_HEADER_V2 else \
            None

        compressed_size = reader.int64()
        uncompressed_size = reader.int64()
        compressed_size_dup = reader.int64()
        uncompressed_size_dup = reader.int64()

        # Neither copy is trusted over the other
        if compressed_size != compressed_size_dup:
            raise IntegrityMismatch(f"Compressed size {compressed_size} != duplicate {compressed_size_dup}.", reader.tell())
        if uncompressed_size != uncompressed_size_dup:
            raise IntegrityMismatch(f"Uncompressed size {uncompressed_size} != duplicate {uncompressed_size_dup}.", reader.tell())
        if compressed_size < 0 or uncompressed_size < 0:
            raise LengthMismatch(f"Negative chunk size {compressed_size}/{uncompressed_size}.", reader.tell())

        payload = reader.read(compressed_size)

    logger.debug("Read chunk at 0x%X: %d compressed, %d uncompressed bytes", offset, compressed_size, uncompressed_size)
    return Chunk(
        offset=offset,
        archive_header=archive_header,
        max_chunk_size=max_chunk_size,
        compression_algorithm=compression_algorithm,
        compressed_size=compressed_size,
        uncompressed_size=uncompressed_size,
        payload=payload,
    )


def read_next_chunk(reader):
    """
    Read one compressed chunk record, or return None if the input ends
    exactly where the next record would begin.
    """
    try:
        return _read_chunk(reader)
    except EndOfChunks:
        return None


def read_chunks(reader, on_chunk=None):
    while (chunk := read_next_chunk(reader)) is not None:
        if on_chunk is not None:
            on_chunk(chunk)
        yield chunk


def decompress_chunk(chunk):
    """
    Inflate one chunk's payload, which must be exactly one zlib stream
    producing exactly `uncompressed_size` bytes.
    """
    dobj = zlib.decompressobj()
    try:
        # One byte over the declared size is enough to detect an overrun
        data = dobj.decompress(chunk.payload, chunk.uncompressed_size + 1)
    except zlib.error as e:
        raise DecompressionFailed(f"Chunk could not be decompressed: {e}", chunk.offset) from e
    if len(data) > chunk.uncompressed_size or dobj.unconsumed_tail:
        raise IntegrityMismatch(f"Chunk inflates to more than its declared {chunk.uncompressed_size} bytes.", chunk.offset)
    if not dobj.eof:
        raise DecompressionFailed("Chunk compressed stream is truncated.", chunk.offset)
    if dobj.unused_data:
        raise DecompressionFailed(f"{len(dobj.unused_data)} bytes follow the chunk's compressed stream.", chunk.offset)
    if len(data) != chunk.uncompressed_size:
        raise IntegrityMismatch(f"Chunk inflates to {len(data)} bytes, declared {chunk.uncompressed_size}.", chunk.offset)

    logger.debug("Decompressed chunk at 0x%X into %d bytes", chunk.offset, len(data))
    return data


def reassemble(chunks, max_workers=None):
    """
    Decompress every chunk and concatenate the results in chunk order.

    With `max_workers` above one the chunks are decompressed on a thread
    pool; the output order is still the order of `chunks`.
    """
    chunks = list(chunks)
    expected_size = sum(chunk.uncompressed_size for chunk in chunks)

    if max_workers is None or max_workers <= 1 or len(chunks) <= 1:
        parts = [decompress_chunk(chunk) for chunk in chunks]
    else:
        pool = ThreadPool(processes=max_workers)
        try:
            parts = pool.map(decompress_chunk, chunks)
        finally:
            pool.close()
            pool.join()

    data = b"".join(parts)
    if len(data) != expected_size:
        raise IntegrityMismatch(
            f"Decompressed {len(data)} bytes from {len(chunks)} chunks, declared total is {expected_size}.",
            chunks[-1].offset if chunks else 0,
        )

    logger.debug("Reassembled %d chunks into %d bytes", len(chunks), len(data))
    return data
