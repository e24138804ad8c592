from loguru import logger

from .chunk import ChunkHeader
from .constants import (
    ATTRIBUTE_SIZE,
    CHUNK_HEADER_SIZE,
    RES_STRING_POOL_TYPE,
    RES_XML_CDATA_TYPE,
    RES_XML_END_ELEMENT_TYPE,
    RES_XML_END_NAMESPACE_TYPE,
    RES_XML_RESOURCE_MAP_TYPE,
    RES_XML_START_ELEMENT_TYPE,
    RES_XML_START_NAMESPACE_TYPE,
    RES_XML_TYPE,
    XML_NODE_HEADER_SIZE,
)
from .cursor import ByteCursor
from .document import Attribute, Document, Element, Namespace, Text
from .errors import (
    InvalidChunkType,
    NoRootElement,
    UnbalancedElement,
    UnbalancedNamespace,
)
from .resource_map import ResourceMap
from .string_pool import StringPool
from .typed_value import TypedValue, format_value


class AXMLDecoder:
    """
    `AXMLDecoder` reads through all chunks in an AXML file and rebuilds the
    element tree as a [Document][axmldecode.document.Document].

    An AXML file is a file which contains multiple chunks of data, defined
    by the `ResChunk_header`.
    There is no real file magic but as the size of the first header is fixed
    and the `type` of the `ResChunk_header` is set to `RES_XML_TYPE`, a file
    will usually start with `0x03000800`.

    The decoder keeps no state between calls to `decode`, one instance can
    be used for any number of files. Decoding either succeeds completely or
    raises a [ResParserError][axmldecode.errors.ResParserError].

    See http://androidxref.com/9.0.0_r3/xref/frameworks/base/libs/androidfw/include/androidfw/ResourceTypes.h#563
    """

    def decode(self, raw_buff: bytes) -> Document:
        logger.debug(f"AXMLDecoder: {len(raw_buff)} bytes")

        # This would be even stranger, if an AXML file is larger than 4GB...
        # But this is not possible as the maximum chunk size is a unsigned 4 byte int.
        if len(raw_buff) > 0xFFFFFFFF:
            raise InvalidChunkType(
                "Filesize is too large to be a valid AXML file! Filesize: {}".format(len(raw_buff))
            )

        if bytes(raw_buff[:5]) == b"<?xml":
            # Can be a common error: the file is not an AXML but a plain XML
            logger.warning("Input starts with '<?xml'! Are you trying to parse a plain XML file?")

        buff = ByteCursor(raw_buff)
        axml_header = ChunkHeader(buff)
        logger.debug("FIRST HEADER {}".format(axml_header))

        if axml_header.header_size != CHUNK_HEADER_SIZE:
            raise InvalidChunkType(
                "This does not look like an AXML file. header size does not equal 8",
                offset=axml_header.start,
                chunk_type=axml_header.type,
                expected=CHUNK_HEADER_SIZE,
                found=axml_header.header_size,
            )

        if axml_header.size < buff.size:
            # The file can still be parsed up to the point where the chunk should end.
            logger.warning(
                "Declared filesize ({}) is smaller than total file size ({}). "
                "Was something appended to the file? Trying to parse it anyways.".format(
                    axml_header.size, buff.size
                )
            )

        # Not that severe of an error, we have plenty files where this is not
        # set correctly
        if axml_header.type != RES_XML_TYPE:
            logger.warning(
                "AXML file has an unusual resource type! "
                "But we try to parse it anyways. Resource Type: 0x{:04x}".format(
                    axml_header.type
                )
            )

        body = axml_header.data
        # The STRING POOL must come first
        header = ChunkHeader(body, expected_type=RES_STRING_POOL_TYPE)
        logger.debug("STRING_POOL {}".format(header))
        builder = _TreeBuilder(StringPool(header))

        while not body.at_end():
            builder.feed(ChunkHeader(body))

        return builder.finish()


class _TreeBuilder:
    """
    State of a single decode pass: the namespace and element stacks.

    Chunks are fed one by one; nesting is tracked with explicit stacks so
    deeply nested documents do not recurse.
    """

    def __init__(self, strings: StringPool) -> None:
        self.sb = strings
        self.resource_map = ResourceMap()
        self.namespaces = []
        # Namespaces started since the last element start, declared on the next element
        self.pending_namespaces = []
        self.elements = []
        self.root = None

    def feed(self, h: ChunkHeader) -> None:
        # Special chunk: Resource Map. This chunk might be contained inside
        # the file, after the string pool.
        if h.type == RES_XML_RESOURCE_MAP_TYPE:
            logger.debug("AXML contains a RESOURCE MAP")
            if self.resource_map:
                logger.warning("Second resource map found, it replaces the first one.")
            self.resource_map = ResourceMap(h)
            return

        handler = {
            RES_XML_START_NAMESPACE_TYPE: self._start_namespace,
            RES_XML_END_NAMESPACE_TYPE: self._end_namespace,
            RES_XML_START_ELEMENT_TYPE: self._start_element,
            RES_XML_END_ELEMENT_TYPE: self._end_element,
            RES_XML_CDATA_TYPE: self._cdata,
        }.get(h.type)

        if handler is None:
            # unknown chunk types might cause problems, but we can skip them!
            # Reading the header already moved the cursor past the whole chunk.
            logger.info(
                "Unknown chunk {} at 0x{:08x}, skipping {} bytes".format(h.name, h.start, h.size)
            )
            return

        # Check that we read a correct header
        if h.header_size < XML_NODE_HEADER_SIZE:
            raise InvalidChunkType(
                "XML node chunk header is smaller than {}".format(XML_NODE_HEADER_SIZE),
                offset=h.start,
                chunk_type=h.type,
                expected=XML_NODE_HEADER_SIZE,
                found=h.header_size,
            )

        # Line Number of the source file, only used as meta information
        line_number = h.data.read_u32()
        # Comment_Index (usually 0xFFFFFFFF)
        comment_index = h.data.read_i32()
        h.data.seek(h.header_size)
        logger.debug(f"{h.name}: line={line_number} comment={comment_index}")

        handler(h, line_number, comment_index)

    def _read_namespace(self, h: ChunkHeader, line_number: int) -> Namespace:
        prefix = h.data.read_i32()
        uri = h.data.read_i32()
        s_prefix = self.sb.get_optional(prefix) or ""
        s_uri = self.sb.get_optional(uri) or ""
        return Namespace(prefix, uri, s_prefix, s_uri, line_number)

    def _start_namespace(self, h: ChunkHeader, line_number: int, comment_index: int) -> None:
        ns = self._read_namespace(h, line_number)
        logger.debug(
            "Start of Namespace mapping: prefix {}: '{}' --> uri {}: '{}'".format(
                ns.prefix_index, ns.prefix, ns.uri_index, ns.uri
            )
        )
        if comment_index != -1:
            logger.info("Dropping comment at namespace chunk: '{}'".format(self.sb.get(comment_index)))
        if ns.uri == "":
            logger.warning(
                "Namespace prefix '{}' resolves to empty URI. "
                "This might be a packer.".format(ns.prefix)
            )
        self.namespaces.append(ns)
        self.pending_namespaces.append(ns)

    def _end_namespace(self, h: ChunkHeader, line_number: int, comment_index: int) -> None:
        ns = self._read_namespace(h, line_number)
        if not self.namespaces:
            raise UnbalancedNamespace(
                "Reached a NAMESPACE_END without any open namespace",
                offset=h.start,
                chunk_type=h.type,
                found=(ns.prefix, ns.uri),
            )
        top = self.namespaces[-1]
        if top.key != ns.key:
            raise UnbalancedNamespace(
                "NAMESPACE_END does not match the innermost open namespace",
                offset=h.start,
                chunk_type=h.type,
                expected=(top.prefix, top.uri),
                found=(ns.prefix, ns.uri),
            )
        self.namespaces.pop()
        if top in self.pending_namespaces:
            # no element was opened inside this namespace scope
            self.pending_namespaces.remove(top)

    def _start_element(self, h: ChunkHeader, line_number: int, comment_index: int) -> None:
        buff = h.data
        namespace_index = buff.read_i32()
        name_index = buff.read_i32()
        at_start = buff.read_u16()
        at_size = buff.read_u16()
        at_count = buff.read_u16()
        id_index = buff.read_u16()
        class_index = buff.read_u16()
        style_index = buff.read_u16()
        logger.debug(
            f"namespace: {namespace_index}, name: {name_index}, "
            f"at_start: {at_start}, at_size: {at_size}, at_count: {at_count}"
        )

        elem = Element(
            namespace_index,
            name_index,
            self.sb.get_optional(namespace_index),
            self.sb.get(name_index),
            line_number=line_number,
            comment=self.sb.get_optional(comment_index),
        )
        elem.id_index = id_index
        elem.class_index = class_index
        elem.style_index = style_index

        if at_count and at_size < ATTRIBUTE_SIZE:
            raise InvalidChunkType(
                "Attribute size is smaller than {}".format(ATTRIBUTE_SIZE),
                offset=h.start,
                chunk_type=h.type,
                expected=ATTRIBUTE_SIZE,
                found=at_size,
            )

        # attributeStart is counted from the end of the node header
        for i in range(at_count):
            buff.seek(h.header_size + at_start + i * at_size)
            elem.attributes.append(self._read_attribute(buff))

        elem.namespaces = self.pending_namespaces
        self.pending_namespaces = []

        if self.elements:
            self.elements[-1].children.append(elem)
        elif self.root is None:
            self.root = elem
        else:
            raise UnbalancedElement(
                "Second root element",
                offset=h.start,
                chunk_type=h.type,
                expected=None,
                found=elem.tag,
            )
        self.elements.append(elem)
        logger.debug("START_TAG: {} (line={})".format(elem.tag, line_number))

    def _read_attribute(self, buff: ByteCursor) -> Attribute:
        namespace_index = buff.read_i32()
        name_index = buff.read_i32()
        raw_value_index = buff.read_i32()
        typed_value = TypedValue.read(buff)

        name = self.sb.get(name_index)
        resource_id = self.resource_map.get(name_index)
        if not name and resource_id is not None:
            # Attach the HEX Number, so for multiple missing attributes we do not run
            # into problems.
            name = "UNKNOWN_SYSTEM_ATTRIBUTE_{:08x}".format(resource_id)

        raw_value = self.sb.get_optional(raw_value_index)
        if raw_value is not None:
            value = raw_value
        else:
            value = format_value(typed_value, self.sb.get)

        attr = Attribute(
            namespace_index,
            name_index,
            raw_value_index,
            typed_value,
            self.sb.get_optional(namespace_index),
            name,
            value,
            resource_id,
        )
        logger.debug("found an attribute: {!r}".format(attr))
        return attr

    def _end_element(self, h: ChunkHeader, line_number: int, comment_index: int) -> None:
        namespace_index = h.data.read_i32()
        name_index = h.data.read_i32()
        name = self.sb.get(name_index)

        if not self.elements:
            raise UnbalancedElement(
                "Too many END_TAG! No open element to close",
                offset=h.start,
                chunk_type=h.type,
                found=name,
            )
        elem = self.elements[-1]
        if (elem.namespace_index, elem.name_index) != (namespace_index, name_index):
            raise UnbalancedElement(
                "Closing tag does not match current stack at line {}".format(line_number),
                offset=h.start,
                chunk_type=h.type,
                expected=elem.tag,
                found=name,
            )
        self.elements.pop()
        logger.debug("END_TAG: {} (line={})".format(elem.tag, line_number))

    def _cdata(self, h: ChunkHeader, line_number: int, comment_index: int) -> None:
        # The CDATA field is like an attribute.
        # It contains an index into the String pool
        # as well as a typed value.
        # usually, this typed value is set to UNDEFINED
        data_index = h.data.read_i32()
        typed_value = TypedValue.read(h.data)

        if data_index != -1:
            text = self.sb.get(data_index)
        else:
            text = format_value(typed_value, self.sb.get)

        if not self.elements:
            logger.warning("Text {!r} outside of the root element is dropped".format(text))
            return
        self.elements[-1].children.append(Text(data_index, text, line_number))

    def finish(self) -> Document:
        if self.elements:
            elem = self.elements[-1]
            raise UnbalancedElement(
                "Element '{}' opened at line {} is never closed".format(elem.tag, elem.line_number),
                expected=elem.tag,
            )
        if self.namespaces:
            ns = self.namespaces[-1]
            raise UnbalancedNamespace(
                "Namespace mapping '{}' --> '{}' is never closed".format(ns.prefix, ns.uri),
                expected=(ns.prefix, ns.uri),
            )
        if self.root is None:
            raise NoRootElement("Document does not contain any element")

        return Document(self.root, self.sb, self.resource_map)


def decode(raw_buff: bytes) -> Document:
    """
    Decode a complete AXML buffer.

    :raises ResParserError: if the buffer is malformed
    """
    return AXMLDecoder().decode(raw_buff)
