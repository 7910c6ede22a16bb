from __future__ import annotations

import logging

import requests

from ..config import BankConfig
from ..errors import TransportError, as_transport_error

logger = logging.getLogger(__name__)

ACCOUNTS_SCOPES = ["accounts:read", "accounts:execute"]
BANKS_SCOPES = ["banks:read", "banks:write"]
CUSTOMERS_SCOPES = ["customers:read", "customers:write", "customers:execute"]
EXTERNAL_WALLETS_SCOPES = ["external_wallets:read", "external_wallets:execute"]
IDENTITY_VERIFICATIONS_SCOPES = [
    "identity_verifications:read",
    "identity_verifications:write",
    "identity_verifications:execute",
]
PRICES_SCOPES = ["prices:read"]
QUOTES_SCOPES = ["quotes:execute"]
TRADES_SCOPES = ["trades:read", "trades:execute"]
TRANSFERS_SCOPES = ["transfers:read", "transfers:execute"]
VERIFICATION_KEYS_SCOPES = ["verification_keys:read"]

SCOPES = [
    *ACCOUNTS_SCOPES,
    *BANKS_SCOPES,
    *CUSTOMERS_SCOPES,
    *EXTERNAL_WALLETS_SCOPES,
    *IDENTITY_VERIFICATIONS_SCOPES,
    *PRICES_SCOPES,
    *QUOTES_SCOPES,
    *TRADES_SCOPES,
    *TRANSFERS_SCOPES,
    *VERIFICATION_KEYS_SCOPES,
]


def token_url(bank: BankConfig) -> str:
    return f"https://id.{bank.base_url}/oauth/token"


def fetch_token(bank: BankConfig, timeout: float = 30) -> str:
    """Request an access token using the client-credentials grant."""
    body = {
        "grant_type": "client_credentials",
        "client_id": bank.client_id,
        "client_secret": bank.client_secret,
        "scope": " ".join(SCOPES),
    }
    logger.info("Requesting access token...")
    try:
        resp = requests.post(token_url(bank), json=body, timeout=timeout)
        resp.raise_for_status()
        token = resp.json().get("access_token")
    except (requests.RequestException, ValueError) as e:
        error = as_transport_error(e)
        logger.error(f"Failed to obtain access token: {error}")
        raise error from e
    if not token:
        raise TransportError("Token response did not contain an access token")
    return token
