from struct import pack

import pytest

from axmldecode.chunk import ChunkHeader
from axmldecode.constants import RES_XML_RESOURCE_MAP_TYPE
from axmldecode.cursor import ByteCursor
from axmldecode.errors import InvalidChunkType
from axmldecode.resource_map import ResourceMap
from axml_builder import chunk


def map_from(data):
    return ResourceMap(ChunkHeader(ByteCursor(data), expected_type=RES_XML_RESOURCE_MAP_TYPE))


def test_ids_in_order():
    rmap = map_from(chunk(RES_XML_RESOURCE_MAP_TYPE, b"", pack("<3I", 0x0101021B, 0x0101020C, 0x01010003)))
    assert rmap.ids == [0x0101021B, 0x0101020C, 0x01010003]
    assert len(rmap) == 3
    assert rmap.get(1) == 0x0101020C
    assert rmap.get(3) is None
    assert rmap.get(-1) is None


def test_absent_map_is_empty():
    rmap = ResourceMap()
    assert not rmap
    assert rmap.get(0) is None


def test_unaligned_body():
    with pytest.raises(InvalidChunkType):
        map_from(chunk(RES_XML_RESOURCE_MAP_TYPE, b"", b"\x01\x02\x03\x04\x05\x06"))
