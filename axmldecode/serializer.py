import re
from typing import Union

from loguru import logger
from lxml import etree

from .document import Document, Element, Text

# Namespace prefixes must be NCNames, lxml refuses anything else
NCNAME = re.compile(r"^[A-Za-z_][A-Za-z0-9._-]*$")


class XMLSerializer:
    """
    Converter for a decoded [Document][axmldecode.document.Document] into a
    lxml ElementTree, which can easily be converted into XML.

    Namespace declarations are written on the element where their scope
    opens, which for a manifest is the root element.

    A Reference Implementation can be found at http://androidxref.com/9.0.0_r3/xref/frameworks/base/tools/aapt/XMLNode.cpp
    """

    __charrange = None
    __replacement = None

    def __init__(self, document: Document) -> None:
        self.document = document
        # raw namespace URI --> URI usable with lxml, or None
        self._uris = {}
        self.root = self._build()

    def _build(self) -> etree._Element:
        root = self._make_element(self.document.root, None)
        if self.document.root.comment:
            logger.warning(
                "Can not attach comment with content '{}' without root!".format(
                    self.document.root.comment
                )
            )

        # children are created as soon as their parent is, so text can go
        # to the right `text`/`tail` slot; only their subtrees wait on the stack
        stack = [(self.document.root, root)]
        while stack:
            node, elem = stack.pop()
            last = None
            for child in node.children:
                if isinstance(child, Text):
                    text = self._fix_value(child.text)
                    if last is None:
                        elem.text = (elem.text or "") + text
                    else:
                        last.tail = (last.tail or "") + text
                    continue
                if child.comment:
                    self._append_comment(elem, child.comment)
                last = self._make_element(child, elem)
                stack.append((child, last))
        return root

    def _append_comment(self, parent: etree._Element, comment: str) -> None:
        try:
            parent.append(etree.Comment(comment))
        except ValueError as e:
            logger.warning("Dropping comment '{}': {}".format(comment, e))

    def _nsmap(self, node: Element) -> dict:
        nsmap = {}
        for ns in node.namespaces:
            uri = self._fix_uri(ns.uri)
            if not uri:
                continue
            if ns.prefix and not NCNAME.match(ns.prefix):
                logger.warning(
                    "Invalid namespace prefix '{}' for '{}', dropping the declaration".format(
                        ns.prefix, ns.uri
                    )
                )
                continue
            # an empty prefix declares the default namespace
            nsmap[ns.prefix or None] = uri
        return nsmap

    def _make_element(self, node: Element, parent: Union[etree._Element, None]) -> etree._Element:
        nsmap = self._nsmap(node)
        scope = dict(parent.nsmap) if parent is not None else {}
        scope.update(nsmap)

        uri, name = self._fix_name(self._fix_uri(node.namespace), node.name, scope)
        tag = "{}{}".format(self._print_namespace(uri), name)
        if parent is None:
            elem = etree.Element(tag, nsmap=nsmap)
        else:
            elem = etree.SubElement(parent, tag, nsmap=nsmap)

        for attr in node.attributes:
            uri, name = self._fix_name(self._fix_uri(attr.namespace), attr.name, scope)
            key = "{}{}".format(self._print_namespace(uri), name)
            if key in elem.attrib:
                logger.warning("Duplicate attribute '{}'! Will overwrite!".format(key))
            elem.set(key, self._fix_value(attr.value))
        return elem

    def _fix_uri(self, uri: Union[str, None]) -> Union[str, None]:
        """
        Return the namespace URI without surrounding whitespace, or None if
        lxml does not accept it as a namespace name.

        Declarations and the names using them go through here alike, so a
        dropped namespace is dropped everywhere.
        """
        if not uri:
            return uri
        if uri not in self._uris:
            fixed = uri.strip()
            try:
                etree.Element("{{{}}}_".format(fixed), nsmap={"_": fixed})
            except ValueError as e:
                logger.warning("Invalid namespace URI '{}', dropping the namespace: {}".format(uri, e))
                fixed = None
            self._uris[uri] = fixed or None
        return self._uris[uri]

    def _fix_name(self, uri: Union[str, None], name: str, scope: dict) -> tuple:
        """
        Apply some fixes to element named and attribute names.
        Try to get conform to:
        > Like element names, attribute names are case-sensitive and must start with a letter or underscore.
        > The rest of the name can contain letters, digits, hyphens, underscores, and periods.
        See: <https://msdn.microsoft.com/en-us/library/ms256152(v=vs.110).aspx>

        In some cases, the namespace prefix is inside the name and not in the
        namespace field, the name will then look like 'android:foobar'.
        If and only if the prefix is declared in scope and the namespace field
        is empty, the prefix is stripped from the name and its URI returned.
        All other unwanted characters are replaced by underscores.

        :param uri: namespace URI as found in the AXML chunk, or None
        :param name: Name of the attribute or tag
        :param scope: prefix to URI mapping in scope at this element
        :return: a fixed version of uri and name
        """
        if ":" in name and not uri:
            embedded_prefix, new_name = name.split(":", 1)
            if embedded_prefix in scope:
                logger.info(
                    "Prefix '{}' is in namespace mapping, assume that it is a prefix.".format(
                        embedded_prefix
                    )
                )
                uri = scope[embedded_prefix]
                name = new_name
            else:
                logger.warning(
                    "Confused: name contains a unknown namespace prefix: '{}'. "
                    "This is either a broken AXML file or some attempt to break stuff.".format(
                        name
                    )
                )
        if not name or (not name[0].isalpha() and name[0] != "_"):
            logger.warning(
                "Invalid start for name '{}'. "
                "XML name must start with a letter.".format(name)
            )
            name = "_{}".format(name)
        if not re.match(r"^[a-zA-Z0-9._-]*$", name):
            logger.warning(
                "Name '{}' contains invalid characters!".format(name)
            )
            name = re.sub(r"[^a-zA-Z0-9._-]", "_", name)

        return uri, name

    def _fix_value(self, value: str) -> str:
        """
        Return a cleaned version of a value
        according to the specification:
        > Char	   ::=   	#x9 | #xA | #xD | [#x20-#xD7FF] | [#xE000-#xFFFD] | [#x10000-#x10FFFF]

        See <https://www.w3.org/TR/xml/#charsets>

        :param value: a value to clean
        :return: the cleaned value
        """
        if not self.__charrange or not self.__replacement:
            self.__charrange = re.compile(
                '^[\u0020-\uD7FF\u0009\u000A\u000D\uE000-\uFFFD\U00010000-\U0010FFFF]*$'
            )
            self.__replacement = re.compile(
                '[^\u0020-\uD7FF\u0009\u000A\u000D\uE000-\uFFFD\U00010000-\U0010FFFF]'
            )

        # Reading string until \x00. This is the same as aapt does.
        if "\x00" in value:
            logger.warning(
                "Null byte found in value at position {}: "
                "Value(hex): '{}'".format(
                    value.find("\x00"), value.encode("utf-8", "surrogatepass").hex()
                )
            )
            value = value[: value.find("\x00")]

        if not self.__charrange.match(value):
            logger.warning(
                "Invalid character in value found. Replacing with '_'."
            )
            value = self.__replacement.sub('_', value)
        return value

    @staticmethod
    def _print_namespace(uri: Union[str, None]) -> str:
        if uri:
            return "{{{}}}".format(uri)
        return ""

    def get_xml(self, pretty: bool = True) -> bytes:
        """
        Get the XML as an UTF-8 string

        :returns: bytes encoded as UTF-8
        """
        return etree.tostring(self.root, encoding="utf-8", pretty_print=pretty)

    def get_xml_obj(self) -> etree._Element:
        """
        Get the XML as an ElementTree object

        :returns: `lxml.etree.Element` object
        """
        return self.root


def to_xml(document: Document, pretty: bool = False) -> bytes:
    """
    Render a decoded document as UTF-8 encoded XML.
    """
    return XMLSerializer(document).get_xml(pretty=pretty)
