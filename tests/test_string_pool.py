from struct import pack

import pytest

from axmldecode.chunk import ChunkHeader
from axmldecode.constants import RES_STRING_POOL_TYPE
from axmldecode.cursor import ByteCursor
from axmldecode.errors import InvalidChunkType, MalformedStringLength, StringIndexOutOfRange
from axmldecode.string_pool import StringPool
from axml_builder import AXMLBuilder, chunk

STRINGS = ["", "manifest", "Grüße", "日本語", "emoji \U0001F600", "x" * 200]


def pool_from(data):
    return StringPool(ChunkHeader(ByteCursor(data), expected_type=RES_STRING_POOL_TYPE))


@pytest.mark.parametrize("utf8", [False, True])
def test_decodes_all_entries_in_order(utf8):
    pool = pool_from(AXMLBuilder(STRINGS, utf8=utf8).string_pool())
    assert pool.isUTF8 is utf8
    assert len(pool) == len(STRINGS)
    assert list(pool) == STRINGS
    assert pool[1] == "manifest"


def test_long_utf16_string_uses_two_length_units():
    long = "a" * 0x9000
    pool = pool_from(AXMLBuilder([long]).string_pool())
    assert pool[0] == long


def test_index_equal_to_size_is_out_of_range():
    pool = pool_from(AXMLBuilder(STRINGS).string_pool())
    with pytest.raises(StringIndexOutOfRange):
        pool.get(len(STRINGS))
    with pytest.raises(StringIndexOutOfRange):
        pool.get(-2)


def test_optional_lookup_maps_sentinel_to_none():
    pool = pool_from(AXMLBuilder(STRINGS).string_pool())
    assert pool.get_optional(-1) is None
    assert pool.get_optional(1) == "manifest"


def test_lone_surrogate_is_replaced():
    # length 1, a lone high surrogate, terminator
    data = pack("<H", 1) + b"\x00\xd8" + b"\x00\x00"
    header = pack("<IIIII", 1, 0, 0, 28 + 4, 0)
    pool = pool_from(chunk(RES_STRING_POOL_TYPE, header, pack("<I", 0) + data))
    assert pool[0] == "\ufffd"


def test_declared_length_beyond_chunk():
    # claims 100 UTF-16 units but only 4 bytes follow
    data = pack("<H", 100) + b"a\x00b\x00"
    header = pack("<IIIII", 1, 0, 0, 28 + 4, 0)
    with pytest.raises(MalformedStringLength):
        pool_from(chunk(RES_STRING_POOL_TYPE, header, pack("<I", 0) + data))


def test_styles_are_skipped():
    data = pack("<H", 1) + "a".encode("utf-16-le") + b"\x00\x00"
    # one string, one style: offsets table holds both, then strings, then the style span
    styles_start = 28 + 8 + len(data)
    header = pack("<IIIII", 1, 1, 0, 28 + 8, styles_start)
    spans = pack("<iII", 0, 0, 0) + pack("<i", -1)
    body = pack("<II", 0, 0) + data + spans
    pool = pool_from(chunk(RES_STRING_POOL_TYPE, header, body))
    assert list(pool) == ["a"]
    assert pool.styleCount == 1


def test_short_header_is_rejected():
    data = chunk(RES_STRING_POOL_TYPE, pack("<III", 0, 0, 0))
    with pytest.raises(InvalidChunkType):
        pool_from(data)


def test_show_prints_table(capsys):
    pool_from(AXMLBuilder(["manifest"]).string_pool()).show()
    out = capsys.readouterr().out
    assert "String Table" in out
    assert "'manifest'" in out


def test_entry_offset_beyond_string_data():
    data = pack("<H", 1) + "a".encode("utf-16-le") + b"\x00\x00"
    header = pack("<IIIII", 2, 0, 0, 28 + 8, 0)
    # the second entry points past the end of the data
    body = pack("<II", 0, 100) + data + b"\x00\x00"
    with pytest.raises(MalformedStringLength) as exc:
        pool_from(chunk(RES_STRING_POOL_TYPE, header, body))
    assert exc.value.found == 100
    assert "String 1" in str(exc.value)
