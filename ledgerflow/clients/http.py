"""Resource client for the bank REST API using httpx."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..contracts import ResourceKind, ResourceSnapshot
from ..errors import TransportError, as_transport_error
from .base import BaseResourceClient

logger = logging.getLogger(__name__)

COLLECTIONS: Dict[ResourceKind, str] = {
    ResourceKind.CUSTOMER: "customers",
    ResourceKind.ACCOUNT: "accounts",
    ResourceKind.IDENTITY_VERIFICATION: "identity_verifications",
    ResourceKind.QUOTE: "quotes",
    ResourceKind.TRADE: "trades",
    ResourceKind.TRANSFER: "transfers",
    ResourceKind.EXTERNAL_WALLET: "external_wallets",
    ResourceKind.VERIFICATION_KEY: "verification_keys",
}


def snapshot_from_body(kind: ResourceKind, body: Dict[str, Any]) -> ResourceSnapshot:
    """Build a snapshot from a resource body returned by the API."""
    try:
        guid = body["guid"]
    except (KeyError, TypeError):
        raise TransportError(f"Malformed {kind.label} response: missing guid") from None
    # Quotes have no lifecycle; they are usable as soon as they are returned.
    state = body.get("state") or "created"
    return ResourceSnapshot(id=str(guid), kind=kind, state=state, attributes=body)


class HttpResourceClient(BaseResourceClient):
    """Talk to ``{scheme}://bank.{base_url}/api`` with a bearer token."""

    def __init__(
        self,
        base_url: str,
        token: str,
        scheme: str = "https",
        timeout: float = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = f"{scheme}://bank.{base_url}/api"
        self._token = token
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def connect(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={
                    "Authorization": f"Bearer {self._token}",
                    "Accept": "application/json",
                },
                timeout=self._timeout,
                transport=self._transport,
            )

    async def disconnect(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        await self.connect()
        try:
            response = await self._client.request(method, path, **kwargs)
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            error = as_transport_error(e)
            logger.error(f"{method} {path} failed: {error}")
            raise error from e

    async def create(
        self, kind: ResourceKind, params: Dict[str, Any]
    ) -> ResourceSnapshot:
        logger.info(f"Creating {kind.label}...")
        body = await self._request("POST", f"/{COLLECTIONS[kind]}", json=params)
        snapshot = snapshot_from_body(kind, body)
        logger.info(f"Created {kind.label} {snapshot.id}.")
        return snapshot

    async def get(self, kind: ResourceKind, resource_id: str) -> ResourceSnapshot:
        logger.info(f"Getting {kind.label}...")
        body = await self._request("GET", f"/{COLLECTIONS[kind]}/{resource_id}")
        snapshot = snapshot_from_body(kind, body)
        logger.info(f"Got {kind.label}.")
        return snapshot

    async def list(self, kind: ResourceKind) -> List[ResourceSnapshot]:
        body = await self._request("GET", f"/{COLLECTIONS[kind]}")
        objects = body.get("objects", []) if isinstance(body, dict) else body
        return [snapshot_from_body(kind, item) for item in objects]
