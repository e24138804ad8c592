"""
Decoder for Android binary XML (AXML), the compiled format of
`AndroidManifest.xml` inside APK files.
"""

__version__ = "0.1.0"

from .decoder import AXMLDecoder, decode
from .document import Attribute, Document, Element, Namespace, Text
from .errors import (
    InvalidChunkType,
    MalformedStringLength,
    ManifestNotFound,
    NoRootElement,
    ResParserError,
    StringIndexOutOfRange,
    TruncatedBuffer,
    UnbalancedElement,
    UnbalancedNamespace,
    UnsupportedTypedValue,
)
from .serializer import to_xml


def decode_to_xml(raw_buff: bytes, pretty: bool = False) -> bytes:
    """
    Decode an AXML buffer and render it as UTF-8 encoded XML.
    Nothing is rendered unless the whole buffer decodes.
    """
    return to_xml(decode(raw_buff), pretty=pretty)
