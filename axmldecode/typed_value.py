from struct import pack, unpack
from typing import Callable

from loguru import logger

from .constants import (
    COMPLEX_MANTISSA_MASK,
    COMPLEX_RADIX_MASK,
    COMPLEX_RADIX_SHIFT,
    COMPLEX_UNIT_MASK,
    DIMENSION_UNITS,
    FRACTION_UNITS,
    RADIX_MULTS,
    TYPE_ATTRIBUTE,
    TYPE_DIMENSION,
    TYPE_DYNAMIC_ATTRIBUTE,
    TYPE_DYNAMIC_REFERENCE,
    TYPE_FLOAT,
    TYPE_FRACTION,
    TYPE_INT_BOOLEAN,
    TYPE_INT_COLOR_ARGB4,
    TYPE_INT_COLOR_ARGB8,
    TYPE_INT_COLOR_RGB4,
    TYPE_INT_COLOR_RGB8,
    TYPE_INT_DEC,
    TYPE_INT_HEX,
    TYPE_NAMES,
    TYPE_NULL,
    TYPE_REFERENCE,
    TYPE_STRING,
)
from .cursor import ByteCursor
from .errors import UnsupportedTypedValue


class TypedValue:
    """
    A `Res_value`: 8 bytes holding a size, a reserved byte, the data type
    and 32 bits of data.
    """

    __slots__ = ("size", "res0", "type", "data", "offset")

    def __init__(self, data_type: int, data: int, size: int = 8, res0: int = 0, offset: int = None) -> None:
        self.size = size
        self.res0 = res0
        self.type = data_type
        self.data = data
        self.offset = offset

    @classmethod
    def read(cls, buff: ByteCursor) -> "TypedValue":
        offset = buff.absolute()
        size = buff.read_u16()
        res0 = buff.read_u8()
        data_type = buff.read_u8()
        data = buff.read_u32()
        if res0 != 0:
            logger.warning(f"res0 of typed value at 0x{offset:08x} is not 0: {res0}")
        return cls(data_type, data, size=size, res0=res0, offset=offset)

    @property
    def type_name(self) -> str:
        return TYPE_NAMES.get(self.type, "TYPE_0x{:02x}".format(self.type))

    def __repr__(self):
        return "<TypedValue type={} data=0x{:08x}>".format(self.type_name, self.data)

    def __eq__(self, other):
        if not isinstance(other, TypedValue):
            return NotImplemented
        return (self.type, self.data) == (other.type, other.data)

    def __hash__(self):
        return hash((self.type, self.data))


def to_signed(data: int) -> int:
    return data - 0x100000000 if data > 0x7FFFFFFF else data


def complex_to_float(xcomplex: int) -> float:
    """
    Convert a complex unit into float.
    The mantissa is the signed top 24 bits, bits 4-5 select the radix.
    """
    mantissa = to_signed(xcomplex & COMPLEX_MANTISSA_MASK)
    return mantissa * RADIX_MULTS[(xcomplex >> COMPLEX_RADIX_SHIFT) & COMPLEX_RADIX_MASK]


def _complex_unit(value: TypedValue, units: list) -> str:
    unit = value.data & COMPLEX_UNIT_MASK
    if unit >= len(units):
        raise UnsupportedTypedValue(
            "Unknown unit {} for {}".format(unit, value.type_name),
            offset=value.offset,
            expected=units,
            found=unit,
        )
    return units[unit]


def _format_reference(value, lookup_string):
    return "@{:08x}".format(value.data)


def _format_attribute(value, lookup_string):
    return "?{:08x}".format(value.data)


def _format_string(value, lookup_string):
    return lookup_string(value.data)


def _format_float(value, lookup_string):
    return "%f" % unpack("<f", pack("<I", value.data))[0]


def _format_dimension(value, lookup_string):
    return "{:f}{}".format(complex_to_float(value.data), _complex_unit(value, DIMENSION_UNITS))


def _format_fraction(value, lookup_string):
    return "{:f}{}".format(complex_to_float(value.data) * 100, _complex_unit(value, FRACTION_UNITS))


def _format_int_dec(value, lookup_string):
    return "%d" % to_signed(value.data)


def _format_int_hex(value, lookup_string):
    return "0x%x" % value.data


def _format_boolean(value, lookup_string):
    if value.data == 0:
        return "false"
    return "true"


def _format_argb8(value, lookup_string):
    # fully opaque colors are written the short way
    if value.data >> 24 == 0xFF:
        return "#%06x" % (value.data & 0xFFFFFF)
    return "#%08x" % value.data


def _format_rgb8(value, lookup_string):
    return "#%06x" % (value.data & 0xFFFFFF)


def _nibbles(data: int, channels: int) -> str:
    # the data always holds 8 bits per channel, keep the high nibble of each
    return "".join("%x" % ((data >> (8 * i + 4)) & 0xF) for i in reversed(range(channels)))


def _format_argb4(value, lookup_string):
    return "#" + _nibbles(value.data, 4)


def _format_rgb4(value, lookup_string):
    return "#" + _nibbles(value.data, 3)


FORMATTERS = {
    TYPE_NULL: lambda value, lookup_string: "",
    TYPE_REFERENCE: _format_reference,
    TYPE_ATTRIBUTE: _format_attribute,
    TYPE_STRING: _format_string,
    TYPE_FLOAT: _format_float,
    TYPE_DIMENSION: _format_dimension,
    TYPE_FRACTION: _format_fraction,
    TYPE_DYNAMIC_REFERENCE: _format_reference,
    TYPE_DYNAMIC_ATTRIBUTE: _format_attribute,
    TYPE_INT_DEC: _format_int_dec,
    TYPE_INT_HEX: _format_int_hex,
    TYPE_INT_BOOLEAN: _format_boolean,
    TYPE_INT_COLOR_ARGB8: _format_argb8,
    TYPE_INT_COLOR_RGB8: _format_rgb8,
    TYPE_INT_COLOR_ARGB4: _format_argb4,
    TYPE_INT_COLOR_RGB4: _format_rgb4,
}


def format_value(value: TypedValue, lookup_string: Callable[[int], str]) -> str:
    """
    Format a typed value based on its type and data.

    :param value: the [TypedValue][axmldecode.typed_value.TypedValue] to render
    :param lookup_string: how to resolve strings from integer IDs
    :raises UnsupportedTypedValue: for type tags without a rendering rule
    :returns: the formatted string
    """
    logger.debug(f"format_value: {value!r}")
    formatter = FORMATTERS.get(value.type)
    if formatter is None:
        raise UnsupportedTypedValue(
            "Unsupported typed value type 0x{:02x} (data=0x{:08x})".format(value.type, value.data),
            offset=value.offset,
            found=value.type,
        )
    return formatter(value, lookup_string)
