from __future__ import annotations

import uuid

NAMESPACE_ROOT = uuid.UUID("5b0e7c2e-3d0f-4b7e-9a51-0c8f4f5d2a11")
NAMESPACE_SECTION = uuid.UUID("c3a9e6d4-81b2-4f0a-b7de-2e6f93a1c054")


def stable_uuid(namespace: uuid.UUID, name: str) -> uuid.UUID:
    return uuid.uuid5(namespace, name.strip())


def root_id_for(url_segment: str) -> uuid.UUID:
    return stable_uuid(NAMESPACE_ROOT, url_segment)


def section_id_for(*, root_id: uuid.UUID, url_segment: str) -> uuid.UUID:
    return stable_uuid(NAMESPACE_SECTION, f"{root_id}:{url_segment.strip()}")
