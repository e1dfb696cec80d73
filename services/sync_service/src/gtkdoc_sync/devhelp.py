"""Parse devhelp (``.devhelp`` / ``.devhelp2``) books into table-of-contents nodes."""

from __future__ import annotations

from dataclasses import dataclass, field

from lxml import etree

from gtkdoc_sync.exceptions import DevhelpError

ROOT_LINK = ""


@dataclass(frozen=True)
class TocNode:
    """One entry of the devhelp tree.

    `parent` is the link of the enclosing node (None only on the root).
    `children` is None when the entry is not a container.
    """

    name: str
    link: str
    parent: str | None = None
    children: tuple[str, ...] | None = None

    @property
    def id(self) -> str:
        return self.link


@dataclass(frozen=True)
class Keyword:
    type: str
    name: str
    link: str
    deprecated: str | None = None


@dataclass(frozen=True)
class DevhelpBook:
    title: str
    name: str | None
    link: str | None
    nodes: dict[str, TocNode] = field(default_factory=dict)
    keywords: list[Keyword] = field(default_factory=list)


def parse_devhelp(data: bytes) -> DevhelpBook:
    """
    Build the node map of a devhelp book.

    - The <book> element becomes the root node, keyed by the empty link.
    - Every <sub> below <chapters> is keyed by its link, fragment stripped.
    - When several <sub> share a file, the first one (document order) wins.
    """
    if not data or not data.strip():
        raise DevhelpError("Empty devhelp document")

    parser = etree.XMLParser(resolve_entities=False, no_network=True, remove_comments=True)
    try:
        book = etree.fromstring(data, parser=parser)
    except etree.XMLSyntaxError as exc:
        raise DevhelpError(f"Malformed devhelp document: {exc}") from exc

    if _local(book) != "book":
        raise DevhelpError(f"Expected a <book> root element, got <{_local(book)}>")

    nodes: dict[str, TocNode] = {}
    chapters = _first_child(book, "chapters")
    subs = _subs(chapters) if chapters is not None else []
    nodes[ROOT_LINK] = TocNode(
        name=book.get("title", ""),
        link=ROOT_LINK,
        parent=None,
        children=tuple(_links(subs)),
    )
    for sub in subs:
        _collect(sub, ROOT_LINK, nodes)

    return DevhelpBook(
        title=book.get("title", ""),
        name=book.get("name"),
        link=book.get("link"),
        nodes=nodes,
        keywords=_keywords(book),
    )


def _collect(element: etree._Element, parent: str, nodes: dict[str, TocNode]) -> None:
    link = file_of(element.get("link"))
    if not link:
        return
    subs = _subs(element)
    if link not in nodes:
        nodes[link] = TocNode(
            name=element.get("name", ""),
            link=link,
            parent=parent,
            children=tuple(_links(subs)) if subs else None,
        )
    for sub in subs:
        _collect(sub, link, nodes)


def _keywords(book: etree._Element) -> list[Keyword]:
    functions = _first_child(book, "functions")
    if functions is None:
        return []
    keywords: list[Keyword] = []
    for el in functions:
        tag = _local(el)
        # devhelp 1 uses <function>, devhelp 2 uses <keyword type="...">
        if tag not in {"keyword", "function"}:
            continue
        name = el.get("name")
        link = el.get("link")
        if not name or not link:
            continue
        keywords.append(
            Keyword(
                type=el.get("type", "function"),
                name=name,
                link=link,
                deprecated=el.get("deprecated"),
            )
        )
    return keywords


def _links(subs: list[etree._Element]) -> list[str]:
    links = []
    for sub in subs:
        link = file_of(sub.get("link"))
        if link:
            links.append(link)
    return links


def _subs(element: etree._Element) -> list[etree._Element]:
    return [c for c in element if isinstance(c.tag, str) and _local(c) == "sub"]


def _first_child(element: etree._Element, name: str) -> etree._Element | None:
    for c in element:
        if isinstance(c.tag, str) and _local(c) == name:
            return c
    return None


def _local(element: etree._Element) -> str:
    return etree.QName(element).localname


def file_of(link: str | None) -> str:
    if not link:
        return ""
    return link.split("#", 1)[0].strip()
