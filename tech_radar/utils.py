"""Small shared helpers."""

import uuid
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Generate a fresh entity id."""
    return str(uuid.uuid4())
