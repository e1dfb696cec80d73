"""Keep gtk-doc sections in the database in step with the files on disk."""

from __future__ import annotations

import logging
import os
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import inspect, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gtkdoc_core.db.models import GtkdocRoot, GtkdocSection, SectionUpdate
from gtkdoc_sync.devhelp import ROOT_LINK
from gtkdoc_sync.exceptions import GtkdocHtmlError
from gtkdoc_sync.gtkdoc_html import parse_gtkdoc_html
from gtkdoc_sync.toc import TocIndex

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RootEntry:
    root: GtkdocRoot


@dataclass(frozen=True)
class SectionEntry:
    section: GtkdocSection


@dataclass(frozen=True)
class Missing:
    file_id: str
    reason: str


Entry = RootEntry | SectionEntry | Missing


def fetch_section(session: Session, root: GtkdocRoot | uuid.UUID, file_id: str) -> GtkdocSection | None:
    """Load the section stored for `file_id` under `root` (a root or its id)."""
    root_id = root.root_id if isinstance(root, GtkdocRoot) else root
    return session.scalar(
        select(GtkdocSection).where(
            GtkdocSection.root_id == root_id,
            GtkdocSection.url_segment == file_id,
        )
    )


class SectionSynchronizer:
    """
    Resolve gtk-doc file names into sections of one documentation root.

    The devhelp index drives the hierarchy: parents and children are read
    from `toc` on every call, and the matching sections are created or
    refreshed on demand. Failures come back as `Missing` / False, never as
    exceptions.
    """

    def __init__(self, session: Session, root: GtkdocRoot, toc: TocIndex) -> None:
        self.session = session
        self.root = root
        self.toc = toc

    @classmethod
    def for_root(cls, session: Session, root: GtkdocRoot) -> SectionSynchronizer:
        return cls(session, root, TocIndex.load(root.devhelp_file))

    def resolve(self, file_id: str) -> Entry:
        return self._resolve(file_id)

    def parent_of(self, file_id: str) -> Entry:
        if file_id == ROOT_LINK:
            return Missing(file_id, "the documentation root has no parent")
        node = self.toc.lookup(file_id)
        if node is None or node.parent is None:
            return Missing(file_id, "no parent in the devhelp index")
        return self._resolve(node.parent)

    def children_of(self, file_id: str) -> list[GtkdocSection] | None:
        """Child sections in index order, or None when the node is not a container."""
        node = self.toc.lookup(file_id)
        if node is None or node.children is None:
            return None
        children: list[GtkdocSection] = []
        for position, link in enumerate(node.children):
            entry = self._resolve(link, sort=position)
            if isinstance(entry, SectionEntry):
                children.append(entry.section)
            else:
                logger.warning("Skipping child %r of %r: %s", link, file_id, _reason(entry))
        return children

    def breadcrumbs(self, file_id: str) -> list[Entry]:
        """Entries from the root down to `file_id`; empty when it is not indexed."""
        return [self._resolve(node.link) for node in self.toc.path_to(file_id)]

    def is_up_to_date(self, section: GtkdocSection, title: str) -> bool:
        # A section that was never written has no last_edited.
        if title != section.title or not section.last_edited:
            return False

        db_timestamp = _timestamp(section.last_edited)
        if db_timestamp is None:
            return False

        # A missing gtk-doc file keeps the stored content rather than wiping it.
        try:
            fs_timestamp = os.stat(section.gtkdoc_file).st_mtime
        except OSError:
            return True

        return fs_timestamp < db_timestamp

    def sync(self, section: GtkdocSection, title: str, sort: int | None = None) -> bool:
        return self._sync(section, title, sort) is not None

    def _resolve(self, file_id: str, sort: int | None = None) -> Entry:
        if file_id == ROOT_LINK:
            return RootEntry(self.root)

        node = self.toc.lookup(file_id)
        if node is None:
            return Missing(file_id, f"not listed in devhelp {self.root.devhelp_file!r}")

        section = fetch_section(self.session, self.root, file_id)
        if section is None:
            section = GtkdocSection.new(self.root, file_id)

        synced = self._sync(section, node.name, sort)
        if synced is None:
            return Missing(file_id, f"cannot sync {section.gtkdoc_file!r}")
        return SectionEntry(synced)

    def _sync(self, section: GtkdocSection, title: str, sort: int | None) -> GtkdocSection | None:
        if self.is_up_to_date(section, title):
            return section

        path = section.gtkdoc_file
        try:
            data = Path(path).read_bytes()
        except OSError as exc:
            logger.warning("Cannot read gtk-doc file %r: %s", path, exc)
            return None
        try:
            page = parse_gtkdoc_html(
                data,
                base_url=section.link,
                asset_url=self.root.link + "assets/",
                aliases=self._aliases(),
            )
        except GtkdocHtmlError as exc:
            logger.warning("Cannot parse gtk-doc file %r: %s", path, exc)
            return None

        update = SectionUpdate(
            title=title,
            content=page.html,
            meta_description=page.description,
            sort=section.sort if sort is None else sort,
        )
        written = self._write(section, update)
        if written is not None:
            logger.info("Synced section %r of %r", written.url_segment, self.root.url_segment)
        return written

    def _aliases(self) -> dict[str, str]:
        index_link = self.toc.index_link
        if index_link and index_link not in self.toc:
            return {index_link: self.root.link}
        return {}

    def _write(self, section: GtkdocSection, update: SectionUpdate) -> GtkdocSection | None:
        if inspect(section).persistent:
            section.apply(update)
            self.session.flush()
            return section

        try:
            with self.session.begin_nested():
                section.apply(update)
                self.session.add(section)
        except IntegrityError:
            logger.info("Section %r was inserted concurrently; updating that row", section.url_segment)
            stored = fetch_section(self.session, self.root, section.url_segment)
            if stored is None:
                return None
            stored.apply(update)
            self.session.flush()
            return stored
        return section


def _timestamp(value: datetime | str | None) -> float | None:
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            return None
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is None:
        # SQLite hands back naive datetimes; they are stored as UTC.
        value = value.replace(tzinfo=timezone.utc)
    return value.timestamp()


def _reason(entry: Entry) -> str:
    return entry.reason if isinstance(entry, Missing) else "not a section"
