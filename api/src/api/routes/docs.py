"""gtk-doc page endpoints."""

from datetime import datetime
from pathlib import Path
from typing import Literal

from fastapi import APIRouter, HTTPException
from fastapi.responses import FileResponse
from pydantic import BaseModel

from api.deps import DbSession, Synchronizer
from gtkdoc_core.db.models import GtkdocSection
from gtkdoc_sync.devhelp import ROOT_LINK
from gtkdoc_sync.sections import Entry, RootEntry, SectionEntry

router = APIRouter()

# Pages go through the section endpoint; the devhelp index is not public.
NON_ASSET_SUFFIXES = frozenset({".html", ".htm", ".devhelp", ".devhelp2"})


class PageLink(BaseModel):
    """Reference to another page of the same manual."""

    kind: Literal["root", "section"]
    url_segment: str
    title: str | None
    link: str


class RootPageResponse(BaseModel):
    """The manual's landing page."""

    url_segment: str
    title: str
    content: str | None
    link: str
    absolute_link: str
    children: list[PageLink]


class SectionPageResponse(BaseModel):
    """One gtk-doc page rendered as a documentation section."""

    url_segment: str
    title: str | None
    menu_title: str | None
    meta_title: str | None
    meta_description: str | None
    content: str | None
    link: str
    relative_link: str
    absolute_link: str
    show_in_menus: bool
    show_in_search: bool
    last_edited: datetime | None
    parent: PageLink | None
    children: list[PageLink] | None
    breadcrumbs: list[PageLink]


@router.get("/{root_segment}", response_model=RootPageResponse)
@router.get("/{root_segment}/", response_model=RootPageResponse, include_in_schema=False)
def get_root_page(db: DbSession, syncer: Synchronizer) -> RootPageResponse:
    """Get the landing page of a manual with its top-level sections."""
    root = syncer.root
    children = syncer.children_of(ROOT_LINK) or []
    response = RootPageResponse(
        url_segment=root.url_segment,
        title=root.title,
        content=root.content,
        link=root.link,
        absolute_link=root.absolute_link,
        children=[_section_link(s) for s in children],
    )
    db.commit()
    return response


@router.get("/{root_segment}/assets/{asset_path:path}")
def get_asset(syncer: Synchronizer, asset_path: str) -> FileResponse:
    """Serve images and stylesheets shipped next to the gtk-doc HTML files."""
    base_dir = Path(syncer.root.base_dir).resolve()
    target = (base_dir / asset_path).resolve()
    if (
        not target.is_relative_to(base_dir)
        or target.suffix.lower() in NON_ASSET_SUFFIXES
        or not target.is_file()
    ):
        raise HTTPException(status_code=404, detail="Asset not found")
    return FileResponse(target)


@router.get("/{root_segment}/{name}", response_model=SectionPageResponse)
def get_section(db: DbSession, syncer: Synchronizer, name: str) -> SectionPageResponse:
    """Get a gtk-doc section, refreshing it from disk when stale."""
    filename = f"{name}.html"
    entry = syncer.resolve(filename)
    if not isinstance(entry, SectionEntry):
        raise HTTPException(
            status_code=404,
            detail=f"Section '{filename}' does not exist in devhelp '{syncer.root.devhelp_file}'",
        )

    section = entry.section
    children = syncer.children_of(filename)
    response = SectionPageResponse(
        url_segment=section.url_segment,
        title=section.title,
        menu_title=section.menu_title,
        meta_title=section.meta_title,
        meta_description=section.meta_description,
        content=section.content,
        link=section.link,
        relative_link=section.relative_link,
        absolute_link=section.absolute_link,
        show_in_menus=section.show_in_menus,
        show_in_search=section.show_in_search,
        last_edited=section.last_edited,
        parent=_page_link(syncer.parent_of(filename)),
        children=None if children is None else [_section_link(s) for s in children],
        breadcrumbs=[link for link in map(_page_link, syncer.breadcrumbs(filename)) if link is not None],
    )
    db.commit()
    return response


def _page_link(entry: Entry) -> PageLink | None:
    if isinstance(entry, RootEntry):
        return PageLink(kind="root", url_segment=ROOT_LINK, title=entry.root.title, link=entry.root.link)
    if isinstance(entry, SectionEntry):
        return _section_link(entry.section)
    return None


def _section_link(section: GtkdocSection) -> PageLink:
    return PageLink(kind="section", url_segment=section.url_segment, title=section.title, link=section.link)
