"""Test setup for gtkdoc-pages."""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

os.environ.setdefault("GTKDOC_DATABASE_URL", "sqlite://")
os.environ.setdefault("API_DATABASE_URL", "sqlite://")

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from gtkdoc_core.db.base import Base
from gtkdoc_core.db.models import GtkdocRoot

DEVHELP = """<?xml version="1.0" encoding="utf-8" standalone="no"?>
<book xmlns="http://www.devhelp.net/book" title="Foo Reference Manual" link="index.html"
      author="" name="foo" version="2" language="c">
  <chapters>
    <sub name="Overview" link="intro.html">
      <sub name="Getting started" link="getting-started.html"/>
    </sub>
    <sub name="API Reference" link="api.html">
      <sub name="FooWidget" link="FooWidget.html"/>
    </sub>
    <sub name="Empty Part" link="empty.html"/>
    <sub name="Gone" link="gone.html"/>
  </chapters>
  <functions>
    <keyword type="function" name="foo_widget_new ()" link="FooWidget.html#foo-widget-new"/>
    <keyword type="struct" name="FooWidget" link="FooWidget.html#FooWidget-struct" deprecated="2.0"/>
  </functions>
</book>
"""

FOO_WIDGET = """<html>
<head><meta http-equiv="Content-Type" content="text/html; charset=UTF-8"><title>FooWidget: Foo Reference Manual</title><style>body { color: black; }</style></head>
<body bgcolor="white">
<table class="navigation" id="top" width="100%"><tr>
<td><a accesskey="h" href="index.html"><img src="home.png" alt="Home"></a></td>
</tr></table>
<div class="refentry">
<div class="refnamediv"><table width="100%"><tr><td valign="top">
<h2><span class="refentrytitle">FooWidget</span></h2>
<p>FooWidget — A widget that
   foos</p>
</td></tr></table></div>
<div class="refsect1">
<h2>Functions</h2>
<p>See <a href="api.html#functions">the API</a> and <a href="https://gitlab.gnome.org/">GitLab</a>.</p>
<p><a href="#foo-widget-new">foo_widget_new()</a></p>
<img src="diagram.png" alt="diagram">
</div>
</div>
<script>var x = 1;</script>
<div class="footer"><hr>Generated by GTK-Doc</div>
</body>
</html>
"""


def simple_page(title: str, text: str) -> str:
    return f"<html><head><title>{title}</title></head><body><p>{text}</p></body></html>"


@pytest.fixture
def manual_dir(tmp_path: Path) -> Path:
    """A gtk-doc output directory with a devhelp book; gone.html is missing on purpose."""
    root = tmp_path / "html"
    root.mkdir()
    (root / "foo.devhelp2").write_text(DEVHELP, encoding="utf-8")
    (root / "intro.html").write_text(simple_page("Overview", "Welcome to Foo."), encoding="utf-8")
    (root / "getting-started.html").write_text(simple_page("Getting started", "Install Foo."), encoding="utf-8")
    (root / "api.html").write_text(simple_page("API", "All the API."), encoding="utf-8")
    (root / "empty.html").write_text(simple_page("Empty", "Nothing here."), encoding="utf-8")
    (root / "FooWidget.html").write_text(FOO_WIDGET, encoding="utf-8")
    (root / "diagram.png").write_bytes(b"\x89PNG\r\n\x1a\n")
    return root


@pytest.fixture
def devhelp_file(manual_dir: Path) -> Path:
    return manual_dir / "foo.devhelp2"


@pytest.fixture
def engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite needs these for SAVEPOINT to behave.
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def session(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    with session_factory() as session:
        yield session


@pytest.fixture
def root(session: Session, devhelp_file: Path) -> GtkdocRoot:
    root = GtkdocRoot.create(url_segment="foo", devhelp_file=str(devhelp_file), title="Foo")
    session.add(root)
    session.commit()
    return root
