"""Default clock and id supplier. Both are injectable into the stores."""

import uuid
from datetime import datetime, timezone


def now_iso() -> str:
    """Current UTC time as an ISO-8601 string, e.g. 2025-02-01T10:32:00Z."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def generate_id(prefix: str = "") -> str:
    return f"{prefix}{uuid.uuid4().hex[:12]}"
