from __future__ import annotations

import uuid


def new_uuid() -> str:
    """Opaque primary key used by every top-level entity."""
    return str(uuid.uuid4())


def is_uuid(value) -> bool:
    if not isinstance(value, str):
        return False
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True
