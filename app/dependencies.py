"""Process-wide ProfitPlate service, built once at startup."""

from pathlib import Path
from typing import Optional

from profitplate.core.service import ProfitPlate
from profitplate.db.database import SQLiteStorage

_service: Optional[ProfitPlate] = None


def init_service(db_path: Path = None) -> ProfitPlate:
    """(Re)build the service over the SQLite store at db_path (default: DB_PATH)."""
    global _service
    _service = ProfitPlate(SQLiteStorage(db_path))
    return _service


def get_service() -> ProfitPlate:
    """FastAPI dependency returning the shared service."""
    if _service is None:
        return init_service()
    return _service
