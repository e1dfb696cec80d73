"""In-memory table of contents built from a devhelp file."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from pathlib import Path
from types import MappingProxyType

from gtkdoc_sync.devhelp import ROOT_LINK, Keyword, TocNode, file_of, parse_devhelp
from gtkdoc_sync.exceptions import DevhelpError

logger = logging.getLogger(__name__)


class TocIndex:
    """Read-only lookup of devhelp nodes by file name.

    Build it once per request with `TocIndex.load()`; the node map never
    changes afterwards.
    """

    def __init__(
        self,
        nodes: Mapping[str, TocNode] | None = None,
        *,
        keywords: list[Keyword] | None = None,
        index_link: str | None = None,
    ) -> None:
        self._nodes: Mapping[str, TocNode] = MappingProxyType(dict(nodes or {}))
        self.keywords: tuple[Keyword, ...] = tuple(keywords or ())
        # File name of the book page itself (usually index.html), which is
        # keyed as the root rather than as a section.
        self.index_link = index_link or None

    @classmethod
    def load(cls, path: str | Path) -> TocIndex:
        """Parse the devhelp file at `path`.

        An unreadable or malformed file gives an empty index.
        """
        source = str(path)
        try:
            data = Path(path).read_bytes() if source else b""
        except OSError as exc:
            logger.warning("Cannot read devhelp file %r: %s", source, exc)
            return cls()
        try:
            book = parse_devhelp(data)
        except DevhelpError as exc:
            logger.warning("Cannot parse devhelp file %r: %s", source, exc)
            return cls()
        logger.debug("Loaded %d devhelp nodes from %s", len(book.nodes), source)
        return cls(book.nodes, keywords=book.keywords, index_link=file_of(book.link))

    def lookup(self, file_id: str) -> TocNode | None:
        return self._nodes.get(file_id)

    def find_keywords(self, query: str = "") -> list[Keyword]:
        """Keywords whose name contains `query`, case-insensitively, in index order."""
        needle = query.strip().lower()
        return [k for k in self.keywords if needle in k.name.lower()]

    @property
    def root(self) -> TocNode | None:
        return self._nodes.get(ROOT_LINK)

    def __contains__(self, file_id: object) -> bool:
        return file_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def walk(self, file_id: str = ROOT_LINK) -> Iterator[TocNode]:
        """Yield `file_id` and its descendants depth-first, in index order."""
        seen: set[str] = set()
        stack = [file_id]
        while stack:
            link = stack.pop()
            if link in seen:
                continue
            seen.add(link)
            node = self._nodes.get(link)
            if node is None:
                continue
            yield node
            if node.children:
                stack.extend(reversed(node.children))

    def path_to(self, file_id: str) -> list[TocNode]:
        """Nodes from the root down to `file_id` (inclusive); empty when unknown."""
        path: list[TocNode] = []
        seen: set[str] = set()
        link: str | None = file_id
        while link is not None and link not in seen:
            node = self._nodes.get(link)
            if node is None:
                return []
            seen.add(link)
            path.append(node)
            link = node.parent
        path.reverse()
        return path
