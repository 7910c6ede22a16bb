"""Run journal: where each workflow run and its step outcomes are recorded."""

from __future__ import annotations

import os
from typing import Optional

from ..config import LedgerflowConfig, load_config
from .inmemory import InMemoryRunRepository
from .models import RunRecord, StepRecord
from .repository import RunRepository
from .sqlite import SQLiteRunRepository

_repository_instance: RunRepository | None = None

SQLITE_PREFIX = "sqlite://"


def get_repository(
    database_url: Optional[str] = None, config: Optional[LedgerflowConfig] = None
) -> RunRepository:
    """Return the process-wide run journal, creating it on first use.

    ``database_url`` falls back to ``LEDGERFLOW_DATABASE_URL`` and then to
    the loaded configuration. Only ``sqlite://<path>`` URLs are supported;
    without a URL runs are kept in memory.
    """

    global _repository_instance
    if _repository_instance is not None and database_url is None and config is None:
        return _repository_instance

    url = database_url or os.getenv("LEDGERFLOW_DATABASE_URL")
    if not url:
        url = (config or load_config()).database_url

    if not url:
        _repository_instance = InMemoryRunRepository()
    elif url.startswith(SQLITE_PREFIX):
        _repository_instance = SQLiteRunRepository(url[len(SQLITE_PREFIX):])
    else:
        raise ValueError(f"Unsupported database backend: {url}")
    return _repository_instance


__all__ = [
    "InMemoryRunRepository",
    "RunRecord",
    "RunRepository",
    "SQLiteRunRepository",
    "StepRecord",
    "get_repository",
]
