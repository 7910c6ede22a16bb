"""Base resource client interface for the bank ledger."""

from __future__ import annotations

import abc
from typing import Any, Dict, List

from ..contracts import ResourceKind, ResourceSnapshot


class BaseResourceClient(metaclass=abc.ABCMeta):
    """Abstract client creating and fetching remote ledger resources.

    Implementations raise :class:`~ledgerflow.errors.TransportError` for any
    failed request. Idempotency of ``create`` is left to the remote service.
    """

    async def connect(self) -> None:
        """Open connection to the ledger (no-op by default)."""
        pass

    async def disconnect(self) -> None:
        """Close connection to the ledger (no-op by default)."""
        pass

    async def __aenter__(self) -> "BaseResourceClient":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.disconnect()

    @abc.abstractmethod
    async def create(
        self, kind: ResourceKind, params: Dict[str, Any]
    ) -> ResourceSnapshot:
        """Create a resource of ``kind`` and return its initial snapshot."""
        raise NotImplementedError

    @abc.abstractmethod
    async def get(self, kind: ResourceKind, resource_id: str) -> ResourceSnapshot:
        """Fetch the current snapshot of a resource."""
        raise NotImplementedError

    @abc.abstractmethod
    async def list(self, kind: ResourceKind) -> List[ResourceSnapshot]:
        """List resources of ``kind`` in the order the ledger returns them."""
        raise NotImplementedError
