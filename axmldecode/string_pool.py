from typing import Union

from loguru import logger

from .chunk import ChunkHeader
from .constants import NO_INDEX, SORTED_FLAG, STRING_POOL_HEADER_SIZE, UTF8_FLAG
from .cursor import ByteCursor
from .errors import InvalidChunkType, MalformedStringLength, StringIndexOutOfRange


class StringPool:
    """
    StringPool is a CHUNK inside an AXML File: `ResStringPool_header`
    It contains all strings, which are used by referencing to ID's

    All strings are decoded when the pool is built; the pool is read-only
    afterwards. Style spans are not decoded, the style offset table is only
    stepped over.

    See http://androidxref.com/9.0.0_r3/xref/frameworks/base/libs/androidfw/include/androidfw/ResourceTypes.h#436
    """

    def __init__(self, header: ChunkHeader) -> None:
        """
        :param header: a [ChunkHeader][axmldecode.chunk.ChunkHeader] of type
            `RES_STRING_POOL_TYPE`, its cursor positioned after the common header
        """
        self.header = header
        buff = header.data

        if header.header_size < STRING_POOL_HEADER_SIZE:
            raise InvalidChunkType(
                "String pool header size is smaller than {}".format(STRING_POOL_HEADER_SIZE),
                offset=header.start,
                chunk_type=header.type,
                expected=STRING_POOL_HEADER_SIZE,
                found=header.header_size,
            )

        self.stringCount = buff.read_u32()
        self.styleCount = buff.read_u32()
        self.flags = buff.read_u32()
        self.isUTF8 = (self.flags & UTF8_FLAG) != 0
        self.isSorted = (self.flags & SORTED_FLAG) != 0
        # Both offsets are counted from the beginning of the chunk
        self.stringsOffset = buff.read_u32()
        self.stylesOffset = buff.read_u32()

        logger.debug(f"stringCount: {self.stringCount}")
        logger.debug(f"styleCount: {self.styleCount}")
        logger.debug(f"flags: {self.flags}, isUTF8: {self.isUTF8}")
        logger.debug(f"stringsOffset: {self.stringsOffset}")
        logger.debug(f"stylesOffset: {self.stylesOffset}")

        if self.styleCount == 0 and self.stylesOffset > 0:
            logger.info(
                "Styles Offset given, but styleCount is zero. "
                "This is not a problem but could indicate packers."
            )

        # The offset table starts right after the (possibly extended) header
        buff.seek(header.header_size)
        offsets = [buff.read_u32() for _ in range(self.stringCount)]
        # Style offsets are only stepped over, spans are not decoded
        buff.skip(4 * self.styleCount)

        end = buff.size
        if self.styleCount != 0 and self.stringsOffset < self.stylesOffset < end:
            end = self.stylesOffset
        buff.seek(self.stringsOffset)
        self._data = buff.slice(end - self.stringsOffset)

        if (end - self.stringsOffset) % 4 != 0:
            logger.warning("Size of strings is not aligned by four bytes.")

        self._strings = []
        for i, offset in enumerate(offsets):
            if offset >= self._data.size:
                raise MalformedStringLength(
                    "String {} starts outside of the string data".format(i),
                    offset=self._data.base + offset,
                    chunk_type=header.type,
                    expected="< {}".format(self._data.size),
                    found=offset,
                )
            if self.isUTF8:
                string = self._decode8(offset)
            else:
                string = self._decode16(offset)
            logger.debug(f"string[{i}] @ {offset}: {string!r}")
            self._strings.append(string)

    def __repr__(self):
        return "<StringPool #strings={}, #styles={}, UTF8={}>".format(
            self.stringCount, self.styleCount, self.isUTF8
        )

    def __getitem__(self, idx: int) -> str:
        return self.get(idx)

    def __len__(self):
        return len(self._strings)

    def __iter__(self):
        return iter(self._strings)

    def get(self, idx: int) -> str:
        """
        Return the string at the index in the string table

        :param idx: index in the string table
        :raises StringIndexOutOfRange: if the index is not inside the pool
        :return: the string
        """
        if idx < 0 or idx >= len(self._strings):
            raise StringIndexOutOfRange(
                "String index {} is out of range".format(idx),
                offset=self.header.start,
                expected="0 <= index < {}".format(len(self._strings)),
                found=idx,
            )
        return self._strings[idx]

    def get_optional(self, idx: int) -> Union[str, None]:
        """
        Like `get`, but the "no string" index (-1) gives `None`
        """
        if idx == NO_INDEX:
            return None
        return self.get(idx)

    def _check_length(self, buff: ByteCursor, encoded_bytes: int) -> None:
        if encoded_bytes > buff.remaining():
            raise MalformedStringLength(
                "String of {} bytes exceeds the string pool".format(encoded_bytes),
                offset=buff.absolute(),
                chunk_type=self.header.type,
                expected="<= {}".format(buff.remaining()),
                found=encoded_bytes,
            )

    def _decode8(self, offset: int) -> str:
        """
        Decode an UTF-8 String at the given offset

        :param offset: offset of the string inside the data
        :return: the decoded string
        """
        buff = self._data
        buff.seek(offset)
        # UTF-8 Strings contain two lengths, as they might differ:
        # 1) the UTF-16 length
        str_len = self._decode_length(buff, 1)
        # 2) the utf-8 string length
        encoded_bytes = self._decode_length(buff, 1)

        self._check_length(buff, encoded_bytes)
        data = buff.read_bytes(encoded_bytes)

        if buff.remaining() >= 1 and buff.read_u8() != 0:
            logger.warning(
                "UTF-8 String is not null terminated! At offset={}".format(offset)
            )

        return self._decode_bytes(data, 'utf-8', str_len)

    def _decode16(self, offset: int) -> str:
        """
        Decode an UTF-16 String at the given offset

        :param offset: offset of the string inside the data
        :return: the decoded string
        """
        buff = self._data
        buff.seek(offset)
        str_len = self._decode_length(buff, 2)

        # The len is the string len in utf-16 units
        encoded_bytes = str_len * 2

        self._check_length(buff, encoded_bytes)
        data = buff.read_bytes(encoded_bytes)

        if buff.remaining() >= 2 and buff.read_u16() != 0:
            logger.warning(
                "UTF-16 String is not null terminated! At offset={}".format(offset)
            )

        return self._decode_bytes(data, 'utf-16-le', str_len)

    @staticmethod
    def _decode_bytes(data: bytes, encoding: str, str_len: int) -> str:
        """
        Generic decoding with length check.
        Invalid sequences (lone surrogates, broken UTF-8) are replaced.

        :param data: bytes
        :param encoding: encoding name ("utf-8" or "utf-16-le")
        :param str_len: length of the decoded string, in UTF-16 units
        :return: the decoded bytes
        """
        string = data.decode(encoding, 'replace')
        if len(string.encode('utf-16-le', 'surrogatepass')) // 2 != str_len:
            logger.warning("invalid decoded string length")
        return string

    @staticmethod
    def _decode_length(buff: ByteCursor, sizeof_char: int) -> int:
        """
        Generic Length Decoding at offset of string

        The method works for both 8 and 16 bit Strings.
        If the high bit of the first unit is set, the length takes two units:
        the first one without its high bit is the high part.

        :param buff: cursor positioned on the length
        :param sizeof_char: number of bytes per char (1 = 8bit, 2 = 16bit)
        :returns: the length
        """
        read = buff.read_u8 if sizeof_char == 1 else buff.read_u16
        highbit = 0x80 << (8 * (sizeof_char - 1))

        length = read()
        if (length & highbit) != 0:
            length = ((length & ~highbit) << (8 * sizeof_char)) | read()
        return length

    def show(self) -> None:
        """
        Print some information on stdout about the string table
        """
        print(
            "StringPool(stringsCount=0x%x, "
            "stringsOffset=0x%x, "
            "stylesCount=0x%x, "
            "stylesOffset=0x%x, "
            "flags=0x%x"
            ")"
            % (
                self.stringCount,
                self.stringsOffset,
                self.styleCount,
                self.stylesOffset,
                self.flags,
            )
        )

        if self.stringCount > 0:
            print()
            print("String Table: ")
            for i, s in enumerate(self):
                print("{:08d} {}".format(i, repr(s)))
