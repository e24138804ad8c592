from typing import Union

from loguru import logger

from .constants import CHUNK_HEADER_SIZE, chunk_name
from .cursor import ByteCursor
from .errors import InvalidChunkType, TruncatedBuffer


class ChunkHeader:
    """
    Object which contains a Resource Chunk.
    This is an implementation of the `ResChunk_header`.

    Reading a header consumes the whole chunk from the parent cursor: the
    chunk contents are available through `self.data`, a cursor bounded by the
    declared chunk size and positioned right after the 8 header bytes.
    Anything a chunk parser leaves unread is skipped that way.

    The parameter `expected_type` can be used to immediately check the header
    for the type or raise an [InvalidChunkType][axmldecode.errors.InvalidChunkType].
    This is useful if you know what type of chunk must follow.

    See http://androidxref.com/9.0.0_r3/xref/frameworks/base/libs/androidfw/include/androidfw/ResourceTypes.h#196
    """

    SIZE = CHUNK_HEADER_SIZE

    def __init__(
        self,
        buff: ByteCursor,
        expected_type: Union[int, None] = None
    ) -> None:
        """
        :raises TruncatedBuffer: if the header or the declared chunk does not fit
        :raises InvalidChunkType: if the header fields are inconsistent
        :param buff: the cursor set to the position where the header starts.
        :param int expected_type: the type of the header which is expected.
        """
        self.start = buff.absolute()
        local_start = buff.tell()

        self._type = buff.read_u16()
        self._header_size = buff.read_u16()
        self._size = buff.read_u32()
        logger.debug(f"ChunkHeader: {self!r}")

        if expected_type is not None and self._type != expected_type:
            raise InvalidChunkType(
                "Header type is not equal the expected type",
                offset=self.start,
                chunk_type=self._type,
                expected=chunk_name(expected_type),
                found=chunk_name(self._type),
            )

        if self._header_size < self.SIZE:
            raise InvalidChunkType(
                "declared header size ({}) is smaller than required size of {}".format(
                    self._header_size, self.SIZE
                ),
                offset=self.start,
                chunk_type=self._type,
            )
        if self._size < self._header_size:
            raise InvalidChunkType(
                "declared chunk size ({}) is smaller than header size ({})".format(
                    self._size, self._header_size
                ),
                offset=self.start,
                chunk_type=self._type,
            )

        available = buff.size - local_start
        if self._size > available:
            raise TruncatedBuffer(
                "declared chunk size ({}) exceeds the {} bytes left".format(
                    self._size, available
                ),
                offset=self.start,
                chunk_type=self._type,
            )

        buff.seek(local_start)
        self.data = buff.slice(self._size)
        self.data.seek(self.SIZE)

    @property
    def type(self) -> int:
        """
        Type identifier for this chunk
        """
        return self._type

    @property
    def header_size(self) -> int:
        """
        Size of the chunk header (in bytes).  Adding this value to
        the address of the chunk allows you to find its associated data
        (if any).
        """
        return self._header_size

    @property
    def size(self) -> int:
        """
        Total size of this chunk (in bytes), header included.
        """
        return self._size

    @property
    def end(self) -> int:
        """
        Absolute offset where the chunk ends: `start + size`.
        """
        return self.start + self._size

    @property
    def name(self) -> str:
        return chunk_name(self._type)

    def __repr__(self):
        return "<ChunkHeader idx='0x{:08x}' type='{}' header_size='{}' size='{}'>".format(
            self.start, self.name, self._header_size, self._size
        )
