"""
Document model produced by the decoder.

Every node keeps the raw string pool indices it was built from next to the
resolved strings, so callers can inspect the binary structure as well as
render it.
"""

from typing import Union

from .resource_map import ResourceMap
from .string_pool import StringPool
from .typed_value import TypedValue


class Namespace:
    def __init__(self, prefix_index: int, uri_index: int, prefix: str, uri: str, line_number: int = 0) -> None:
        self.prefix_index = prefix_index
        self.uri_index = uri_index
        self.prefix = prefix
        self.uri = uri
        self.line_number = line_number

    @property
    def key(self) -> tuple:
        return (self.prefix_index, self.uri_index)

    def __repr__(self):
        return "<Namespace {}='{}'>".format(self.prefix, self.uri)


class Attribute:
    def __init__(
        self,
        namespace_index: int,
        name_index: int,
        raw_value_index: int,
        typed_value: TypedValue,
        namespace: Union[str, None],
        name: str,
        value: str,
        resource_id: Union[int, None] = None,
    ) -> None:
        self.namespace_index = namespace_index
        self.name_index = name_index
        self.raw_value_index = raw_value_index
        self.typed_value = typed_value
        self.namespace = namespace
        self.name = name
        self.value = value
        self.resource_id = resource_id

    def __repr__(self):
        return "<Attribute {}{}='{}'>".format(
            "{" + self.namespace + "}" if self.namespace else "", self.name, self.value
        )


class Text:
    def __init__(self, data_index: int, text: str, line_number: int = 0) -> None:
        self.data_index = data_index
        self.text = text
        self.line_number = line_number

    def __repr__(self):
        return "<Text {!r}>".format(self.text)


class Element:
    def __init__(
        self,
        namespace_index: int,
        name_index: int,
        namespace: Union[str, None],
        name: str,
        line_number: int = 0,
        comment: Union[str, None] = None,
    ) -> None:
        self.namespace_index = namespace_index
        self.name_index = name_index
        self.namespace = namespace
        self.name = name
        self.line_number = line_number
        self.comment = comment
        self.attributes = []
        # Element and Text nodes, in document order
        self.children = []
        # Namespace declarations whose scope opens at this element
        self.namespaces = []
        # 1-based attribute indices, 0 if absent
        self.id_index = 0
        self.class_index = 0
        self.style_index = 0

    @property
    def tag(self) -> str:
        if self.namespace:
            return "{{{}}}{}".format(self.namespace, self.name)
        return self.name

    @property
    def text(self) -> str:
        """All character data directly inside this element"""
        return "".join(child.text for child in self.children if isinstance(child, Text))

    def elements(self) -> list:
        return [child for child in self.children if isinstance(child, Element)]

    def get(self, name: str, namespace: Union[str, None] = None) -> Union[str, None]:
        for attr in self.attributes:
            if attr.name == name and attr.namespace == namespace:
                return attr.value
        return None

    def iter(self):
        """Depth-first walk over this element and all its descendants"""
        stack = [self]
        while stack:
            elem = stack.pop()
            yield elem
            stack.extend(reversed(elem.elements()))

    def __repr__(self):
        return "<Element {} line={} #attributes={} #children={}>".format(
            self.tag, self.line_number, len(self.attributes), len(self.children)
        )


class Document:
    """
    A fully decoded AXML file: the root element plus the tables it was
    decoded with.
    """

    def __init__(self, root: Element, strings: StringPool, resource_map: ResourceMap) -> None:
        self.root = root
        self.strings = strings
        self.resource_map = resource_map

    def iter(self):
        return self.root.iter()

    def __repr__(self):
        return "<Document root={!r}>".format(self.root)
