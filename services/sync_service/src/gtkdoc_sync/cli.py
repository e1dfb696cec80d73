from __future__ import annotations

from pathlib import Path

import typer
from sqlalchemy import select

from gtkdoc_core.db.models import GtkdocRoot
from gtkdoc_core.db.session import SessionLocal
from gtkdoc_core.logging_config import configure_logging
from gtkdoc_core.settings import settings
from gtkdoc_sync.devhelp import ROOT_LINK
from gtkdoc_sync.sections import Missing, SectionSynchronizer
from gtkdoc_sync.toc import TocIndex

app = typer.Typer(help="Mirror gtk-doc manuals (devhelp + HTML) into documentation pages.")


@app.callback()
def main(log_level: str = typer.Option(settings.log_level, help="Logging level (DEBUG, INFO, ...).")) -> None:
    configure_logging(log_level)


@app.command("add-root")
def add_root(
    url_segment: str,
    devhelp_file: Path,
    *,
    title: str | None = typer.Option(None, help="Page title. Defaults to the devhelp book title."),
) -> None:
    """Register (or repoint) a documentation root backed by a .devhelp2 file."""
    if not devhelp_file.is_file():
        raise typer.BadParameter(f"Devhelp file not found: {devhelp_file}")
    devhelp_path = str(devhelp_file.resolve())
    toc = TocIndex.load(devhelp_path)
    book_title = toc.root.name if toc.root is not None else None

    with SessionLocal() as session:
        root = session.scalar(select(GtkdocRoot).where(GtkdocRoot.url_segment == url_segment))
        if root is None:
            root = GtkdocRoot.create(url_segment=url_segment, devhelp_file=devhelp_path, title=title or book_title)
            session.add(root)
            action = "created"
        else:
            root.devhelp_file = devhelp_path
            if title or book_title:
                root.title = title or book_title
            action = "updated"
        session.commit()
        typer.echo(f"{action}: {root.link} -> {devhelp_path} ({len(toc)} nodes)")


@app.command()
def sync(url_segment: str) -> None:
    """Resolve every node of the devhelp tree, refreshing stale sections."""
    with SessionLocal() as session:
        root = _load_root(session, url_segment)
        syncer = SectionSynchronizer.for_root(session, root)
        if not len(syncer.toc):
            typer.echo(f"devhelp file {root.devhelp_file!r} is empty or unreadable", err=True)
            raise typer.Exit(code=1)

        synced = 0
        missing = 0
        for node in syncer.toc.walk():
            if node.link == ROOT_LINK:
                continue
            entry = syncer.resolve(node.link)
            if isinstance(entry, Missing):
                missing += 1
                typer.echo(f"missing: {node.link} ({entry.reason})", err=True)
            else:
                synced += 1
        session.commit()
    typer.echo(f"synced={synced} missing={missing}")


@app.command()
def tree(url_segment: str) -> None:
    """Print the devhelp tree of a documentation root."""
    with SessionLocal() as session:
        root = _load_root(session, url_segment)
        toc = TocIndex.load(root.devhelp_file)
    for node in toc.walk():
        depth = len(toc.path_to(node.link)) - 1
        label = node.link or root.link
        typer.echo(f"{'  ' * depth}{node.name} [{label}]")


@app.command()
def keywords(url_segment: str, query: str = typer.Argument("", help="Substring of the symbol name.")) -> None:
    """List devhelp symbols (functions, structs, ...) with the page that documents them."""
    with SessionLocal() as session:
        root = _load_root(session, url_segment)
        toc = TocIndex.load(root.devhelp_file)
        matches = toc.find_keywords(query)
        for keyword in matches:
            deprecated = f" (deprecated: {keyword.deprecated})" if keyword.deprecated else ""
            typer.echo(f"{keyword.type}\t{keyword.name}\t{_keyword_link(root, toc, keyword.link)}{deprecated}")
    if not matches:
        typer.echo(f"no keywords matching {query!r}", err=True)
        raise typer.Exit(code=1)


def _load_root(session, url_segment: str) -> GtkdocRoot:
    root = session.scalar(select(GtkdocRoot).where(GtkdocRoot.url_segment == url_segment))
    if root is None:
        raise typer.BadParameter(f"Unknown documentation root: {url_segment}")
    return root


def _keyword_link(root: GtkdocRoot, toc: TocIndex, link: str) -> str:
    path, sep, fragment = link.partition("#")
    suffix = sep + fragment if sep else ""
    if path == toc.index_link:
        return root.link + suffix
    return root.link + path.removesuffix(".html") + suffix


if __name__ == "__main__":
    app()
