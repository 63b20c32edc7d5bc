# This file is part of satisfactory-save.
# satisfactory-save is free software; you can redistribute it and/or modify it under the terms of the GNU General Public License as published by the Free Software Foundation, version 2.
# satisfactory-save is distributed in the hope that it will be useful, but WITHOUT ANY WARRANTY; without even the implied warranty of MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.
# See the GNU General Public License for more details. You should have received a copy of the GNU General Public License along with satisfactory-save. If not, see <http://www.gnu.org/licenses/>.

from .adastring import AdaString, read_adastring
from .binreader import BinaryReaderBuffer, BinaryReaderIterable
from .compression import Chunk, decompress_chunk, read_chunks, read_next_chunk, reassemble
from .containers import PairList, read_sized_array, read_sized_map
from .exceptions import (
    DecompressionFailed,
    DepthExceeded,
    EndOfChunks,
    IntegrityMismatch,
    LengthMismatch,
    SizeAssertionFailed,
    TruncatedInput,
    UnknownTag,
    ValidationException,
)
from .properties import read_property, read_property_list
from .savegame import Savegame, parse_body, parse_savegame, read_body, read_header, read_level

# On release this is replaced by the release's corresponding git tag
__version__ = '0.0.0.dev0'
