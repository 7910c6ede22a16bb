"""Shared constants for ledgerflow workflows."""

from __future__ import annotations

# Resource states reported by the bank API
STATE_STORING = "storing"
STATE_PENDING = "pending"
STATE_WAITING = "waiting"
STATE_CREATED = "created"
STATE_COMPLETED = "completed"
STATE_FAILED = "failed"
STATE_SETTLING = "settling"
STATE_UNVERIFIED = "unverified"
STATE_VERIFIED = "verified"

DEFAULT_TIMEOUT = 30
DEFAULT_POLL_INTERVAL = 1.0
DEFAULT_CRYPTO_ASSETS = ["BTC"]
DEFAULT_FIAT_ASSET = "USD"
DEFAULT_FIAT_DEPOSIT_AMOUNT = "1000"
DEFAULT_CRYPTO_PURCHASE_AMOUNT = "25000"
