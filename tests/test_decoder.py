from struct import pack

import pytest

from axmldecode import AXMLDecoder, decode, decode_to_xml
from axmldecode.constants import (
    RES_XML_START_ELEMENT_TYPE,
    TYPE_INT_DEC,
    TYPE_STRING,
)
from axmldecode.document import Element, Text
from axmldecode.errors import (
    InvalidChunkType,
    NoRootElement,
    ResParserError,
    StringIndexOutOfRange,
    TruncatedBuffer,
    UnbalancedElement,
    UnbalancedNamespace,
    UnsupportedTypedValue,
)
from axml_builder import ANDROID_NS, MANIFEST_XML, AXMLBuilder, chunk, manifest_builder


def minimal_manifest():
    b = AXMLBuilder()
    b.element("manifest", [(None, "package", "com.example")])
    return b


def test_minimal_manifest_end_to_end():
    assert decode_to_xml(minimal_manifest().build()) == b'<manifest package="com.example"/>'


def test_manifest_tree(manifest):
    doc = decode(manifest)
    root = doc.root
    assert root.name == "manifest"
    assert root.namespace is None
    assert [ns.prefix for ns in root.namespaces] == ["android"]
    assert root.get("package") == "com.example"
    assert root.get("versionCode", ANDROID_NS) == "42"
    assert [e.name for e in root.elements()] == ["uses-sdk", "application"]
    assert [e.name for e in doc.iter()] == ["manifest", "uses-sdk", "application", "activity"]

    version = root.attributes[0]
    assert version.resource_id == 0x0101021B
    assert version.typed_value.type == TYPE_INT_DEC
    assert version.raw_value_index == -1

    package = root.attributes[1]
    assert package.resource_id is None
    assert package.typed_value.type == TYPE_STRING


@pytest.mark.parametrize("fixture", ["manifest", "manifest_utf8"])
def test_manifest_xml(fixture, request):
    assert decode_to_xml(request.getfixturevalue(fixture)) == MANIFEST_XML


def test_decoding_is_deterministic(manifest):
    decoder = AXMLDecoder()
    first = decode_to_xml(manifest)
    assert decoder.decode(manifest).root.name == "manifest"
    assert decode_to_xml(manifest) == first
    assert decode_to_xml(bytes(manifest)) == first


def test_decoder_instance_is_reusable(manifest):
    decoder = AXMLDecoder()
    one = decoder.decode(minimal_manifest().build())
    two = decoder.decode(manifest)
    assert one.root.attributes[0].value == "com.example"
    assert len(two.root.children) == 2


def test_every_truncated_prefix_fails_cleanly(manifest):
    for n in range(len(manifest)):
        with pytest.raises(TruncatedBuffer):
            decode(manifest[:n])


def test_trailing_data_is_ignored(manifest, log_messages):
    assert decode_to_xml(manifest + b"\x00" * 16) == MANIFEST_XML
    assert any("smaller than total file size" in m for m in log_messages)


def _without_chunk(builder, data):
    builder.chunks.remove(data)
    return builder.build()


def test_missing_root_end_element():
    b = manifest_builder()
    end = b.chunks[-2]
    with pytest.raises(UnbalancedElement):
        decode(_without_chunk(b, end))


def test_missing_inner_end_element():
    b = manifest_builder()
    end_application = b.chunks[-3]
    with pytest.raises(UnbalancedElement) as exc:
        decode(_without_chunk(b, end_application))
    assert exc.value.expected == "application"
    assert exc.value.found == "manifest"


def test_missing_end_namespace():
    b = manifest_builder()
    with pytest.raises(UnbalancedNamespace):
        decode(_without_chunk(b, b.chunks[-1]))


def test_namespaces_closed_out_of_order():
    b = AXMLBuilder()
    b.start_namespace("a", "urn:a")
    b.start_namespace("b", "urn:b")
    b.element("root")
    b.end_namespace("a", "urn:a")
    b.end_namespace("b", "urn:b")
    with pytest.raises(UnbalancedNamespace):
        decode(b.build())


def test_end_namespace_without_start():
    b = AXMLBuilder()
    b.element("root")
    b.end_namespace("a", "urn:a")
    with pytest.raises(UnbalancedNamespace):
        decode(b.build())


def test_end_element_without_start():
    b = AXMLBuilder()
    b.element("root")
    b.end_element("root")
    with pytest.raises(UnbalancedElement):
        decode(b.build())


def test_second_root_element():
    b = AXMLBuilder()
    b.element("one")
    b.element("two")
    with pytest.raises(UnbalancedElement):
        decode(b.build())


def test_document_without_elements():
    b = AXMLBuilder(["unused"])
    with pytest.raises(NoRootElement):
        decode(b.build())


@pytest.mark.parametrize("chunk_type", [0x0777, 0x0105, 0x0000])
def test_unknown_chunk_is_skipped(chunk_type):
    b = manifest_builder()
    expected = decode_to_xml(b.build())
    b.chunks.insert(3, chunk(chunk_type, b"", b"\xAA" * 12))
    b.chunks.insert(0, chunk(chunk_type, b"\x01\x02\x03\x04", b""))
    assert decode_to_xml(b.build()) == expected


def test_string_index_equal_to_pool_size():
    b = AXMLBuilder(["root"])
    ext = pack("<iiHHHHHH", -1, 1, 20, 20, 0, 0, 0, 0)
    b.add(b.node(RES_XML_START_ELEMENT_TYPE, ext))
    with pytest.raises(StringIndexOutOfRange):
        decode(b.build())


def test_unsupported_attribute_type():
    b = AXMLBuilder()
    b.element("root", [(None, "weird", (0x09, 1))])
    with pytest.raises(UnsupportedTypedValue):
        decode(b.build())


def test_raw_string_wins_over_typed_value():
    b = AXMLBuilder()
    raw = b.idx("0x10")
    record = pack("<iiiHBBI", -1, b.idx("value"), raw, 8, 0, TYPE_INT_DEC, 16)
    ext = pack("<iiHHHHHH", -1, b.idx("root"), 20, 20, 1, 0, 0, 0) + record
    b.add(b.node(RES_XML_START_ELEMENT_TYPE, ext))
    b.end_element("root")
    assert decode(b.build()).root.attributes[0].value == "0x10"


def test_first_chunk_must_be_string_pool():
    b = minimal_manifest()
    data = b.build()
    pool_size = len(b.string_pool())
    body = data[8 + pool_size:] + data[8:8 + pool_size]
    with pytest.raises(InvalidChunkType):
        decode(data[:8] + body)


def test_root_header_size_must_be_eight():
    data = bytearray(minimal_manifest().build())
    data[2] = 12
    with pytest.raises(InvalidChunkType):
        decode(bytes(data))


def test_header_size_larger_than_chunk():
    b = AXMLBuilder()
    b.add(pack("<HHI", 0x0777, 32, 16) + b"\x00" * 8)
    with pytest.raises(InvalidChunkType):
        decode(b.build())


def test_xml_node_header_too_small():
    b = AXMLBuilder()
    b.add(chunk(RES_XML_START_ELEMENT_TYPE, b"", b"\x00" * 28))
    with pytest.raises(InvalidChunkType):
        decode(b.build())


def test_unusual_root_type_is_tolerated(log_messages):
    data = bytearray(minimal_manifest().build())
    data[0] = 0x02
    assert decode_to_xml(bytes(data)) == b'<manifest package="com.example"/>'
    assert any("unusual resource type" in m for m in log_messages)


def test_all_errors_share_a_base(manifest):
    with pytest.raises(ResParserError):
        decode(manifest[:20])


def test_text_nodes_keep_document_order():
    b = AXMLBuilder()
    b.start_element("root")
    b.cdata("before")
    b.element("child")
    b.cdata("after")
    b.end_element("root")
    root = decode(b.build()).root
    assert [type(c) for c in root.children] == [Text, Element, Text]
    assert root.text == "beforeafter"


def test_text_outside_root_is_dropped(log_messages):
    b = AXMLBuilder()
    b.cdata("stray")
    b.element("root")
    assert decode_to_xml(b.build()) == b"<root/>"
    assert any("stray" in m for m in log_messages)


def test_empty_attribute_name_uses_resource_id():
    b = AXMLBuilder([""], resource_ids=[0x01010003])
    b.element("root", [(ANDROID_NS, "", "x")])
    attr = decode(b.build()).root.attributes[0]
    assert attr.name == "UNKNOWN_SYSTEM_ATTRIBUTE_01010003"
    assert attr.namespace == ANDROID_NS


def test_element_comment_and_line_number():
    b = AXMLBuilder()
    b.start_element("root")
    b.add(b.node(RES_XML_START_ELEMENT_TYPE,
                 pack("<iiHHHHHH", -1, b.idx("child"), 20, 20, 0, 0, 0, 0),
                 line=7, comment=b.idx("a comment")))
    b.end_element("child")
    b.end_element("root")
    child = decode(b.build()).root.elements()[0]
    assert child.line_number == 7
    assert child.comment == "a comment"


def test_deep_nesting_does_not_recurse():
    depth = 5000
    b = AXMLBuilder()
    for _ in range(depth):
        b.start_element("n")
    for _ in range(depth):
        b.end_element("n")
    doc = decode(b.build())
    assert sum(1 for _ in doc.iter()) == depth
    assert decode_to_xml(b.build()) == b"<n>" * (depth - 1) + b"<n/>" + b"</n>" * (depth - 1)
