from typing import Union


class ResParserError(Exception):
    """
    Base exception for everything that can go wrong while decoding AXML.

    The optional keyword arguments are kept as attributes and appended to the
    message, so a malformed manifest can be located without a debugger.
    """

    def __init__(
        self,
        message: str,
        offset: Union[int, None] = None,
        chunk_type: Union[int, None] = None,
        expected=None,
        found=None,
    ) -> None:
        self.message = message
        self.offset = offset
        self.chunk_type = chunk_type
        self.expected = expected
        self.found = found
        super().__init__(self._format())

    def _format(self) -> str:
        parts = [self.message]
        if self.offset is not None:
            parts.append("offset=0x{:08x}".format(self.offset))
        if self.chunk_type is not None:
            parts.append("chunk_type=0x{:04x}".format(self.chunk_type))
        if self.expected is not None or self.found is not None:
            parts.append("expected={!r} found={!r}".format(self.expected, self.found))
        return ", ".join(parts)


class TruncatedBuffer(ResParserError):
    """A read went past the end of the buffer or of the enclosing chunk"""


class InvalidChunkType(ResParserError):
    """Chunk header fields are inconsistent, or the chunk is not the one required here"""


class StringIndexOutOfRange(ResParserError):
    """A string pool index outside the pool was dereferenced"""


class MalformedStringLength(ResParserError):
    """A string declares more bytes than its chunk holds"""


class UnbalancedNamespace(ResParserError):
    """Namespace start/end chunks do not nest"""


class UnbalancedElement(ResParserError):
    """Element start/end chunks do not nest"""


class UnsupportedTypedValue(ResParserError):
    """A typed value has a type tag (or unit) that can not be rendered"""


class NoRootElement(ResParserError):
    """The document ended without a single element"""


class ManifestNotFound(ResParserError):
    """The archive does not contain a manifest entry"""
