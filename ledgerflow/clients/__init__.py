"""Resource client factory and initialization."""

from __future__ import annotations

import os
from typing import Optional

from ..config import LedgerflowConfig, load_config
from .base import BaseResourceClient
from .inmemory import InMemoryResourceClient


def get_client(
    backend: Optional[str] = None,
    config: Optional[LedgerflowConfig] = None,
    token: Optional[str] = None,
) -> BaseResourceClient:
    """Factory function to get the configured resource client.

    The HTTP backend needs a bearer token; when ``token`` is not given one is
    requested with the configured client credentials.
    """

    config = config or load_config()
    backend = (backend or os.getenv("LEDGERFLOW_BACKEND") or config.backend).lower()

    if backend == "inmemory":
        client = InMemoryResourceClient()
        if config.workflow.require_verification_key:
            client.add_verification_key()
        return client
    elif backend == "http":
        from ..auth.token import fetch_token
        from .http import HttpResourceClient

        bank = config.bank
        if not bank.base_url:
            raise ValueError("BASE_URL must be configured for the http backend")
        return HttpResourceClient(
            base_url=bank.base_url,
            token=token or fetch_token(bank),
            scheme=bank.url_scheme,
            timeout=config.timeout,
        )
    else:
        raise ValueError(f"Unsupported client backend: {backend}")


__all__ = ["BaseResourceClient", "InMemoryResourceClient", "get_client"]
