from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup, Tag

from gtkdoc_sync.exceptions import GtkdocHtmlError

MAX_DESCRIPTION = 255


@dataclass(frozen=True)
class GtkdocPage:
    title: str | None
    description: str | None
    html: str


def parse_gtkdoc_html(
    data: bytes | str,
    *,
    base_url: str,
    asset_url: str | None = None,
    aliases: Mapping[str, str] | None = None,
) -> GtkdocPage:
    """
    Extract the page body of a gtk-doc HTML file:
    - Strip the gtk-doc navigation header/footer.
    - Point links to other gtk-doc pages at their section URLs (`base_url` is
      the URL of the page being parsed).
    - Point relative images at `asset_url` when given.
    - Send links to a file named in `aliases` to the mapped URL instead
      (the book's index.html is served as the root page).
    """
    if not data or not data.strip():
        raise GtkdocHtmlError("Empty gtk-doc document")

    soup = BeautifulSoup(data, "lxml")
    body = soup.body
    if not isinstance(body, Tag):
        raise GtkdocHtmlError("gtk-doc document has no <body>")

    _strip_chrome(body)
    _rewrite_links(body, base_url, aliases or {})
    _rewrite_sources(body, asset_url or base_url)

    title = _clean_text(soup.title.get_text(" ", strip=True)) if soup.title else None
    html = "".join(str(c) for c in body.contents).strip()
    return GtkdocPage(title=title or None, description=_description(body), html=html)


def _strip_chrome(body: Tag) -> None:
    chrome = body.find_all(["script", "style"])
    chrome += body.find_all(["table", "div"], class_="navigation")
    chrome += body.find_all("div", class_="footer")
    for t in chrome:
        # Nested chrome goes away with its container.
        if not t.decomposed:
            t.decompose()


def _rewrite_links(body: Tag, base_url: str, aliases: Mapping[str, str]) -> None:
    for a in body.find_all("a", href=True):
        href = a["href"].strip()
        if not _is_relative(href):
            continue
        path, sep, fragment = href.partition("#")
        suffix = sep + fragment if sep else ""
        if path in aliases:
            a["href"] = aliases[path] + suffix
            continue
        if path.endswith(".html"):
            path = path[: -len(".html")]
        a["href"] = urljoin(base_url, path) + suffix


def _rewrite_sources(body: Tag, asset_url: str) -> None:
    for img in body.find_all("img", src=True):
        src = img["src"].strip()
        if _is_relative(src):
            img["src"] = urljoin(asset_url, src)


def _is_relative(url: str) -> bool:
    if not url or url.startswith(("#", "/")):
        return False
    parts = urlsplit(url)
    return not parts.scheme and not parts.netloc


def _description(body: Tag) -> str | None:
    purpose = body.find(class_="refpurpose")
    if isinstance(purpose, Tag):
        text = _clean_text(purpose.get_text(" ", strip=True))
    else:
        text = ""
        namediv = body.find("div", class_="refnamediv")
        if isinstance(namediv, Tag):
            p = namediv.find("p")
            if isinstance(p, Tag):
                # "GtkWidget — Base class for all widgets"
                text = _clean_text(p.get_text(" ", strip=True))
                _, dash, tail = text.partition("—")
                text = tail.strip() if dash else text
        if not text:
            p = body.find("p")
            if isinstance(p, Tag):
                text = _clean_text(p.get_text(" ", strip=True))
    if not text:
        return None
    return text[:MAX_DESCRIPTION]


def _clean_text(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()
