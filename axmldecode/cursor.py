from struct import unpack_from
from typing import Union

from .errors import TruncatedBuffer


class ByteCursor:
    """
    Sequential little-endian reader over an immutable buffer.

    Every read is bounds checked and raises
    [TruncatedBuffer][axmldecode.errors.TruncatedBuffer] instead of returning
    short data. A cursor created with `slice()` shares the parent's memory and
    reports absolute offsets, so errors point into the original file.
    """

    __slots__ = ("buf", "pos", "base")

    def __init__(self, data: Union[bytes, bytearray, memoryview], base: int = 0) -> None:
        self.buf = memoryview(data)
        self.pos = 0
        self.base = base

    def __repr__(self):
        return "<ByteCursor base=0x{:08x} pos=0x{:x} size=0x{:x}>".format(
            self.base, self.pos, len(self.buf)
        )

    @property
    def size(self) -> int:
        return len(self.buf)

    def tell(self) -> int:
        return self.pos

    def absolute(self) -> int:
        """Offset of the current position inside the outermost buffer"""
        return self.base + self.pos

    def remaining(self) -> int:
        return len(self.buf) - self.pos

    def at_end(self) -> bool:
        return self.pos >= len(self.buf)

    def _require(self, n: int) -> None:
        if n < 0 or self.pos + n > len(self.buf):
            raise TruncatedBuffer(
                "Can not read {} bytes, only {} left".format(n, self.remaining()),
                offset=self.absolute(),
            )

    def seek(self, offset: int) -> None:
        if offset < 0 or offset > len(self.buf):
            raise TruncatedBuffer(
                "Can not seek to 0x{:x}, buffer size is 0x{:x}".format(offset, len(self.buf)),
                offset=self.base + offset,
            )
        self.pos = offset

    def skip(self, n: int) -> None:
        self.seek(self.pos + n)

    def _unpack(self, fmt: str, n: int) -> int:
        self._require(n)
        (value,) = unpack_from(fmt, self.buf, self.pos)
        self.pos += n
        return value

    def read_u8(self) -> int:
        return self._unpack("<B", 1)

    def read_u16(self) -> int:
        return self._unpack("<H", 2)

    def read_u32(self) -> int:
        return self._unpack("<I", 4)

    def read_i32(self) -> int:
        return self._unpack("<i", 4)

    def read_bytes(self, n: int) -> bytes:
        self._require(n)
        data = self.buf[self.pos : self.pos + n].tobytes()
        self.pos += n
        return data

    def slice(self, n: int) -> "ByteCursor":
        """
        Return a cursor over the next `n` bytes and advance past them.
        No data is copied.
        """
        self._require(n)
        child = ByteCursor(self.buf[self.pos : self.pos + n], base=self.absolute())
        self.pos += n
        return child
