from __future__ import annotations

import os
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gtkdoc_core.db.base import Base
from gtkdoc_core.identity import root_id_for, section_id_for
from gtkdoc_core.settings import settings


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _strip_html_suffix(url_segment: str) -> str:
    stem, ext = os.path.splitext(url_segment)
    return stem if ext == ".html" else url_segment


class GtkdocRoot(Base):
    """A documentation tree mounted as a page, backed by one devhelp file."""

    __tablename__ = "gtkdoc_root"

    root_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)
    url_segment: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    devhelp_file: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    last_edited: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, default=utcnow, onupdate=utcnow
    )

    @classmethod
    def create(cls, *, url_segment: str, devhelp_file: str, title: str | None = None) -> GtkdocRoot:
        return cls(
            root_id=root_id_for(url_segment),
            url_segment=url_segment,
            title=title or url_segment,
            devhelp_file=devhelp_file,
        )

    @property
    def base_dir(self) -> str:
        """Directory holding the gtk-doc HTML files (the devhelp file's own directory)."""
        return os.path.dirname(self.devhelp_file)

    @property
    def link(self) -> str:
        return f"{settings.docs_prefix.rstrip('/')}/{self.url_segment}/"

    @property
    def relative_link(self) -> str:
        return self.link.lstrip("/")

    @property
    def absolute_link(self) -> str:
        return settings.site_url.rstrip("/") + self.link


@dataclass(frozen=True)
class SectionUpdate:
    """The fields refreshed on a section by a content sync."""

    title: str
    content: str
    meta_description: str | None
    sort: int


class GtkdocSection(Base):
    """One gtk-doc HTML file exposed as a page below its root."""

    __tablename__ = "gtkdoc_section"
    __table_args__ = (
        UniqueConstraint("root_id", "url_segment", name="uq_gtkdoc_section_root_segment"),
        Index("ix_gtkdoc_section_url_segment", "url_segment"),
    )

    section_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)
    root_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("gtkdoc_root.root_id", ondelete="CASCADE"), nullable=False
    )
    # The gtk-doc file name, .html extension included.
    url_segment: Mapped[str] = mapped_column(String(255), nullable=False)
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    meta_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    sort: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    # NULL until the first successful sync.
    last_edited: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    root: Mapped[GtkdocRoot] = relationship()

    @classmethod
    def new(cls, root: GtkdocRoot, url_segment: str) -> GtkdocSection:
        """Build an unsaved section bound to `root`."""
        return cls(
            section_id=section_id_for(root_id=root.root_id, url_segment=url_segment),
            root_id=root.root_id,
            url_segment=url_segment,
            sort=0,
            root=root,
        )

    def apply(self, update: SectionUpdate) -> None:
        self.title = update.title
        self.content = update.content
        self.meta_description = update.meta_description
        self.sort = update.sort
        self.last_edited = utcnow()

    @property
    def gtkdoc_file(self) -> str:
        return os.path.join(self.root.base_dir, self.url_segment)

    # Page-compatible accessors.

    @property
    def menu_title(self) -> str | None:
        return self.title

    @property
    def meta_title(self) -> str | None:
        return self.title

    @property
    def meta_keywords(self) -> str | None:
        return None

    @property
    def extra_meta(self) -> str | None:
        return None

    @property
    def show_in_menus(self) -> bool:
        return False

    @property
    def show_in_search(self) -> bool:
        return True

    @property
    def link(self) -> str:
        return self.root.link + _strip_html_suffix(self.url_segment)

    @property
    def relative_link(self) -> str:
        return self.root.relative_link + _strip_html_suffix(self.url_segment)

    @property
    def absolute_link(self) -> str:
        return self.root.absolute_link + _strip_html_suffix(self.url_segment)
