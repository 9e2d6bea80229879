#!/usr/bin/env python
from collections.abc import Iterable
from typing import ClassVar
from typing import Dict
from typing import List
from typing import Optional
from typing import Union

from lxml import etree
from lxml.etree import _Element

from caldavclient.lib.namespace import nsmap
from caldavclient.lib.python_utilities import to_unicode


class BaseElement:
    children: Optional[List["BaseElement"]] = None
    tag: ClassVar[Optional[str]] = None
    value: Optional[str] = None
    attributes: Optional[dict] = None

    def __init__(
        self, name: Optional[str] = None, value: Union[str, bytes, None] = None
    ) -> None:
        self.children = []
        self.attributes = {}
        value = to_unicode(value)
        self.value = None
        if name is not None:
            self.attributes["name"] = name
        if value is not None:
            self.value = value

    def __add__(
        self, other: Union["BaseElement", Iterable["BaseElement"]]
    ) -> "BaseElement":
        return self.append(other)

    def __str__(self) -> str:
        utf8 = etree.tostring(
            self.xmlelement(), encoding="utf-8", xml_declaration=True, pretty_print=True
        )
        return str(utf8, "utf-8")

    def __repr__(self) -> str:
        return "<%s>" % self.__class__.__name__

    def xmlelement(self, prefixes: Optional[Dict[str, str]] = None) -> _Element:
        """
        Renders the element tree.  ``prefixes`` maps namespace prefixes
        to namespace URIs and decides how the tags are spelled on the
        wire; the namespaces themselves never change.
        """
        if self.tag is None:
            raise ValueError("Unexpected value None for self.tag")

        root = etree.Element(self.tag, nsmap=prefixes or nsmap)
        self._fill(root)
        return root

    def _fill(self, node: _Element) -> None:
        if self.value is not None:
            node.text = self.value
        for k in self.attributes:
            node.set(k, self.attributes[k])
        for c in self.children:
            c._fill(etree.SubElement(node, c.tag))

    def append(
        self, element: Union["BaseElement", Iterable["BaseElement"]]
    ) -> "BaseElement":
        if isinstance(element, Iterable):
            self.children.extend(element)
        else:
            self.children.append(element)

        return self


class NamedBaseElement(BaseElement):
    def __init__(self, name: Optional[str] = None) -> None:
        super(NamedBaseElement, self).__init__(name=name)

    def _fill(self, node: _Element) -> None:
        if self.attributes.get("name") is None:
            raise ValueError("name attribute must be defined")
        super(NamedBaseElement, self)._fill(node)


class ValuedBaseElement(BaseElement):
    def __init__(self, value: Union[str, bytes, None] = None) -> None:
        super(ValuedBaseElement, self).__init__(value=value)
