from __future__ import annotations

import os
from decimal import Decimal
from typing import List, Literal, Optional

import yaml
from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field, field_validator

from .constants import (
    DEFAULT_CRYPTO_ASSETS,
    DEFAULT_CRYPTO_PURCHASE_AMOUNT,
    DEFAULT_FIAT_ASSET,
    DEFAULT_FIAT_DEPOSIT_AMOUNT,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_TIMEOUT,
)


class BankConfig(BaseModel):
    """Connection settings for the bank API."""

    bank_guid: Optional[str] = None
    base_url: Optional[str] = None
    url_scheme: str = "https"
    client_id: Optional[str] = None
    client_secret: Optional[str] = None


class WorkflowConfig(BaseModel):
    """Settings that shape the workflow being run."""

    fiat_asset: str = DEFAULT_FIAT_ASSET
    fiat_deposit_amount: Decimal = Decimal(DEFAULT_FIAT_DEPOSIT_AMOUNT)
    crypto_purchase_amount: Decimal = Decimal(DEFAULT_CRYPTO_PURCHASE_AMOUNT)
    fiat_withdrawal_amount: Optional[Decimal] = None
    crypto_assets: List[str] = Field(default_factory=lambda: list(DEFAULT_CRYPTO_ASSETS))
    identity_method: Literal["attested", "document_submission"] = "attested"
    require_verification_key: bool = False
    concurrent_assets: bool = False

    @field_validator("crypto_assets", mode="before")
    @classmethod
    def _split_assets(cls, v):
        if isinstance(v, str):
            v = v.split(",")
        return [a.strip().upper() for a in v if a and a.strip()]


class LedgerflowConfig(BaseModel):
    """Top-level configuration model."""

    backend: Literal["http", "inmemory"] = "http"
    bank: BankConfig = BankConfig()
    workflow: WorkflowConfig = WorkflowConfig()
    timeout: float = DEFAULT_TIMEOUT
    poll_interval: float = DEFAULT_POLL_INTERVAL
    database_url: Optional[str] = None

    @field_validator("timeout", "poll_interval")
    @classmethod
    def _positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be positive")
        return v


# Environment variables used by the bank sandbox setup scripts.
_BANK_ENV = {
    "BANK_GUID": "bank_guid",
    "BASE_URL": "base_url",
    "URL_SCHEME": "url_scheme",
    "APPLICATION_CLIENT_ID": "client_id",
    "APPLICATION_CLIENT_SECRET": "client_secret",
}


def load_config(path: Optional[str] = None) -> LedgerflowConfig:
    """Load configuration from YAML file and the environment.

    Args:
        path: Optional path to config file. Falls back to LEDGERFLOW_CONFIG env
            variable or 'config.yaml' in the current directory.

    Environment variables (including those from a ``.env`` file) take
    precedence over values read from the file.
    """

    load_dotenv(find_dotenv(usecwd=True), override=False)

    config_path = path or os.getenv("LEDGERFLOW_CONFIG", "config.yaml")
    data: dict = {}
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

    bank = dict(data.get("bank") or {})
    for env_name, field_name in _BANK_ENV.items():
        value = os.getenv(env_name)
        if value:
            bank[field_name] = value
    data["bank"] = bank

    workflow = dict(data.get("workflow") or {})
    if os.getenv("CRYPTO_ASSETS"):
        workflow["crypto_assets"] = os.environ["CRYPTO_ASSETS"]
    data["workflow"] = workflow

    if os.getenv("TIMEOUT"):
        data["timeout"] = os.environ["TIMEOUT"]
    if os.getenv("POLL_INTERVAL"):
        data["poll_interval"] = os.environ["POLL_INTERVAL"]
    if os.getenv("LEDGERFLOW_BACKEND"):
        data["backend"] = os.environ["LEDGERFLOW_BACKEND"].lower()

    config = LedgerflowConfig(**data)

    env_db_url = os.getenv("LEDGERFLOW_DATABASE_URL")
    if env_db_url:
        config.database_url = env_db_url
    return config
