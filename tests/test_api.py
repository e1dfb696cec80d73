"""Tests for the documentation API."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from bs4 import BeautifulSoup
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

from api.deps import get_db
from api.main import app
from gtkdoc_core.db.models import GtkdocRoot
from gtkdoc_core.identity import root_id_for
from gtkdoc_sync.sections import fetch_section


@pytest.fixture
def client(session_factory: sessionmaker[Session], devhelp_file: Path) -> Iterator[TestClient]:
    with session_factory() as session:
        session.add(GtkdocRoot.create(url_segment="foo", devhelp_file=str(devhelp_file), title="Foo"))
        session.commit()

    def override_get_db() -> Iterator[Session]:
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_root_page_lists_top_level_sections(client: TestClient) -> None:
    response = client.get("/docs/foo")

    assert response.status_code == 200
    body = response.json()
    assert body["title"] == "Foo"
    assert body["link"] == "/docs/foo/"
    assert [c["url_segment"] for c in body["children"]] == ["intro.html", "api.html", "empty.html"]
    assert body["children"][0] == {
        "kind": "section",
        "url_segment": "intro.html",
        "title": "Overview",
        "link": "/docs/foo/intro",
    }


def test_section_page(client: TestClient) -> None:
    response = client.get("/docs/foo/FooWidget")

    assert response.status_code == 200
    body = response.json()
    assert body["url_segment"] == "FooWidget.html"
    assert body["title"] == "FooWidget"
    assert body["meta_description"] == "A widget that foos"
    assert 'href="/docs/foo/api#functions"' in body["content"]
    assert body["link"] == "/docs/foo/FooWidget"
    assert body["show_in_search"] is True
    assert body["show_in_menus"] is False
    assert body["parent"]["url_segment"] == "api.html"
    assert body["children"] is None
    assert [b["kind"] for b in body["breadcrumbs"]] == ["root", "section", "section"]


def test_section_page_with_children(client: TestClient) -> None:
    response = client.get("/docs/foo/intro")

    assert response.status_code == 200
    body = response.json()
    assert body["parent"] == {"kind": "root", "url_segment": "", "title": "Foo", "link": "/docs/foo/"}
    assert [c["title"] for c in body["children"]] == ["Getting started"]


def test_section_is_persisted(client: TestClient, session_factory: sessionmaker[Session]) -> None:
    client.get("/docs/foo/intro")

    with session_factory() as session:
        stored = fetch_section(session, root_id_for("foo"), "intro.html")
        assert stored is not None
        assert stored.title == "Overview"


def test_unknown_section_is_404(client: TestClient, devhelp_file: Path) -> None:
    response = client.get("/docs/foo/nope")

    assert response.status_code == 404
    assert response.json()["detail"] == f"Section 'nope.html' does not exist in devhelp '{devhelp_file}'"


def test_section_with_missing_file_is_404(client: TestClient) -> None:
    response = client.get("/docs/foo/gone")

    assert response.status_code == 404


def test_unknown_root_is_404(client: TestClient) -> None:
    response = client.get("/docs/bar/intro")

    assert response.status_code == 404
    assert response.json()["detail"] == "Documentation root not found"


def test_asset(client: TestClient) -> None:
    response = client.get("/docs/foo/assets/diagram.png")

    assert response.status_code == 200
    assert response.content == b"\x89PNG\r\n\x1a\n"


def test_missing_asset_is_404(client: TestClient) -> None:
    response = client.get("/docs/foo/assets/nope.png")

    assert response.status_code == 404


def test_page_links_are_served(client: TestClient) -> None:
    root_page = client.get("/docs/foo").json()

    assert client.get(root_page["link"], follow_redirects=False).status_code == 200
    for child in root_page["children"]:
        assert client.get(child["link"]).status_code == 200


def test_image_in_section_content_is_served(client: TestClient) -> None:
    content = client.get("/docs/foo/FooWidget").json()["content"]
    src = BeautifulSoup(content, "html.parser").find("img")["src"]

    assert src == "/docs/foo/assets/diagram.png"
    response = client.get(src)
    assert response.status_code == 200
    assert response.content == b"\x89PNG\r\n\x1a\n"


def test_link_to_book_index_is_served(client: TestClient, manual_dir: Path) -> None:
    (manual_dir / "getting-started.html").write_text(
        '<html><body><p>See the <a href="index.html#contents">contents</a>.</p></body></html>', encoding="utf-8"
    )
    content = client.get("/docs/foo/getting-started").json()["content"]
    href = BeautifulSoup(content, "html.parser").find("a")["href"]

    assert href == "/docs/foo/#contents"
    response = client.get(href.partition("#")[0], follow_redirects=False)
    assert response.status_code == 200
    assert response.json()["title"] == "Foo"


def test_html_page_is_not_an_asset(client: TestClient) -> None:
    response = client.get("/docs/foo/assets/FooWidget.html")

    assert response.status_code == 404
    assert response.json()["detail"] == "Asset not found"


def test_devhelp_index_is_not_an_asset(client: TestClient) -> None:
    response = client.get("/docs/foo/assets/foo.devhelp2")

    assert response.status_code == 404
    assert response.json()["detail"] == "Asset not found"


def test_asset_outside_manual_is_404(client: TestClient) -> None:
    response = client.get("/docs/foo/assets/..%2F..%2Fetc%2Fpasswd")

    assert response.status_code == 404
