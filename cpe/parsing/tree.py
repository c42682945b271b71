# -*- coding: utf-8 -*-
"""
Structural tree for UBL documents
=================================
• build_tree()  → RawNode of the ``Invoice`` root, ``cbc:``/``cac:`` stripped
• as_list()     → the single "scalar or sequence" coercion used by every reader

A tag that occurs once under its parent is stored as a single
:class:`RawNode`; repeated sibling tags are stored as a tuple in document
order.  Readers never branch on that shape themselves, they go through
:func:`as_list` (or the :class:`RawNode` accessors built on it).
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from lxml import etree

from .errors import MalformedXmlError, UnsupportedRootError

log = logging.getLogger(__name__)

ROOT_TAG = "Invoice"
TEXT_KEY = "_"

UBL_NS = {
    "cac": (
        "urn:oasis:names:specification:ubl:"
        "schema:xsd:CommonAggregateComponents-2"
    ),
    "cbc": (
        "urn:oasis:names:specification:ubl:"
        "schema:xsd:CommonBasicComponents-2"
    ),
}
_STRIPPED_URIS = set(UBL_NS.values())
_XML_DECL_RE = re.compile(r"^\s*<\?xml[^>]*\?>")

Children = Union["RawNode", Tuple["RawNode", ...]]


@dataclass(frozen=True)
class RawNode:
    """Immutable element of the structural tree."""

    tag: str
    text: str = ""
    attributes: Mapping[str, str] = field(default_factory=dict)
    children: Mapping[str, Children] = field(default_factory=dict)

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def all(self, name: str) -> List["RawNode"]:
        """Return every child called ``name`` (possibly empty)."""
        return as_list(self.children.get(name))

    def first(self, name: str) -> Optional["RawNode"]:
        nodes = self.all(name)
        return nodes[0] if nodes else None

    def get(self, path: str) -> Optional["RawNode"]:
        """Follow a dotted path, taking the first node at each step."""
        node: Optional[RawNode] = self
        for part in path.split("."):
            if node is None:
                return None
            node = node.first(part)
        return node

    def text_at(self, path: str) -> str:
        node = self.get(path)
        return node.text if node is not None else ""

    def attr(self, name: str) -> Optional[str]:
        return self.attributes.get(name)

    def to_dict(self) -> Union[str, Dict[str, Any]]:
        """Render the node the way xml2js does.

        A leaf without attributes becomes a bare string; a leaf with
        attributes keeps its text under ``TEXT_KEY``.
        """
        out: Dict[str, Any] = dict(self.attributes)
        if self.is_leaf:
            if not out:
                return self.text
            if self.text:
                out[TEXT_KEY] = self.text
            return out
        for name, value in self.children.items():
            if isinstance(value, tuple):
                out[name] = [child.to_dict() for child in value]
            else:
                out[name] = value.to_dict()
        return out


def as_list(value: Optional[Children]) -> List[RawNode]:
    """Coerce a child slot (absent, single or repeated) into a list."""
    if value is None:
        return []
    if isinstance(value, RawNode):
        return [value]
    return list(value)


def _local_name(el: etree._Element) -> str:
    qname = etree.QName(el)
    if qname.namespace is None or qname.namespace in _STRIPPED_URIS:
        return qname.localname
    if el.prefix and el.prefix not in UBL_NS:
        return f"{el.prefix}:{qname.localname}"
    return qname.localname


def _attributes(el: etree._Element) -> Dict[str, str]:
    attrs: Dict[str, str] = {}
    parent = el.getparent()
    inherited = parent.nsmap if parent is not None else {}
    # lxml keeps namespace declarations out of ``attrib``; ``xmlns:p`` is
    # stored as ``xmlns_p`` so it cannot clash with a child tag ``p:...``.
    for prefix, uri in el.nsmap.items():
        if inherited.get(prefix) == uri:
            continue
        attrs[f"xmlns_{prefix}" if prefix else "xmlns"] = uri
    for key, value in el.attrib.items():
        qname = etree.QName(key)
        name = qname.localname
        if qname.namespace:
            prefix = next(
                (p for p, u in el.nsmap.items() if u == qname.namespace and p),
                None,
            )
            if prefix:
                name = f"{prefix}:{name}"
        attrs[name] = value
    return attrs


def _element_children(el: etree._Element) -> Iterable[etree._Element]:
    return (child for child in el if isinstance(child.tag, str))


def _convert(el: etree._Element) -> RawNode:
    tag = _local_name(el)
    attrs = _attributes(el)
    kids = list(_element_children(el))
    if not kids:
        text = "".join(el.itertext()).strip()
        return RawNode(tag=tag, text=text, attributes=MappingProxyType(attrs))

    grouped: Dict[str, List[RawNode]] = {}
    for child in kids:
        node = _convert(child)
        grouped.setdefault(node.tag, []).append(node)
    children: Dict[str, Children] = {
        name: nodes[0] if len(nodes) == 1 else tuple(nodes)
        for name, nodes in grouped.items()
    }
    return RawNode(
        tag=tag,
        attributes=MappingProxyType(attrs),
        children=MappingProxyType(children),
    )


def _xml_parser() -> etree.XMLParser:
    # lxml parser objects must not be shared between threads.
    return etree.XMLParser(
        resolve_entities=False, no_network=True, remove_comments=True
    )


def parse_xml(xml_text: str | bytes) -> etree._Element:
    """Parse ``xml_text`` with lxml; raise :class:`MalformedXmlError`."""
    if isinstance(xml_text, str):
        # lxml rejects str input that still carries an encoding declaration.
        xml_text = _XML_DECL_RE.sub("", xml_text.lstrip("\ufeff"), count=1)
    try:
        return etree.fromstring(xml_text, parser=_xml_parser())
    except (etree.XMLSyntaxError, ValueError) as exc:
        raise MalformedXmlError(str(exc)) from exc


def build_tree(xml_text: str | bytes) -> RawNode:
    """Build the :class:`RawNode` tree of a UBL ``Invoice`` document."""
    root = parse_xml(xml_text)
    if root is None:
        raise MalformedXmlError("documento vacío")
    local = etree.QName(root).localname
    if local != ROOT_TAG:
        raise UnsupportedRootError(local)
    tree = _convert(root)
    log.debug("Built tree with %d top-level tags", len(tree.children))
    return tree


# ───────────────────── UBL readers shared by the extractors ─────────────────────
def iter_line_tax_subtotals(tree: RawNode) -> Iterable[RawNode]:
    """Yield every ``InvoiceLine/TaxTotal/TaxSubtotal`` in document order."""
    for line in tree.all("InvoiceLine"):
        for tax_total in line.all("TaxTotal"):
            yield from tax_total.all("TaxSubtotal")
