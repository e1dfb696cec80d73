"""FastAPI dependencies for database access and per-request synchronisers."""

from collections.abc import Generator
from typing import Annotated

from fastapi import Depends, HTTPException
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session, sessionmaker

from api.config import settings
from gtkdoc_core.db.models import GtkdocRoot
from gtkdoc_sync.sections import SectionSynchronizer

engine = create_engine(settings.database_url, pool_pre_ping=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Yield a database session for request handling."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


DbSession = Annotated[Session, Depends(get_db)]


def get_synchronizer(db: DbSession, root_segment: str) -> SectionSynchronizer:
    """Load the documentation root and its devhelp index for this request."""
    root = db.scalar(select(GtkdocRoot).where(GtkdocRoot.url_segment == root_segment))
    if root is None:
        raise HTTPException(status_code=404, detail="Documentation root not found")
    return SectionSynchronizer.for_root(db, root)


Synchronizer = Annotated[SectionSynchronizer, Depends(get_synchronizer)]
