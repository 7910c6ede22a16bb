import pytest
import requests

from ledgerflow.auth.token import SCOPES, fetch_token, token_url
from ledgerflow.config import BankConfig
from ledgerflow.errors import TransportError

BANK = BankConfig(base_url="sandbox.example.com", client_id="id", client_secret="secret")


class Resp:
    def __init__(self, status_code=200, body=None):
        self.status_code = status_code
        self._body = body or {}

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=None)

    def json(self):
        return self._body


def test_fetch_token_uses_client_credentials(monkeypatch):
    sent = {}

    def fake_post(url, json=None, timeout=None):
        sent["url"] = url
        sent["body"] = json
        return Resp(body={"access_token": "abc", "token_type": "bearer"})

    monkeypatch.setattr("requests.post", fake_post)

    assert fetch_token(BANK) == "abc"
    assert sent["url"] == token_url(BANK) == "https://id.sandbox.example.com/oauth/token"
    assert sent["body"]["grant_type"] == "client_credentials"
    assert sent["body"]["client_id"] == "id"
    assert sent["body"]["scope"].split(" ") == SCOPES


def test_fetch_token_failure_is_transport_error(monkeypatch):
    monkeypatch.setattr("requests.post", lambda url, json=None, timeout=None: Resp(401))

    with pytest.raises(TransportError):
        fetch_token(BANK)


def test_missing_access_token(monkeypatch):
    monkeypatch.setattr("requests.post", lambda url, json=None, timeout=None: Resp(body={}))

    with pytest.raises(TransportError):
        fetch_token(BANK)


def test_scope_covers_every_api_the_workflow_calls(monkeypatch):
    sent = {}

    def fake_post(url, json=None, timeout=None):
        sent["body"] = json
        return Resp(body={"access_token": "abc"})

    monkeypatch.setattr("requests.post", fake_post)
    fetch_token(BANK)

    scopes = sent["body"]["scope"].split(" ")
    for scope in (
        "customers:write",
        "identity_verifications:read",
        "identity_verifications:write",
        "identity_verifications:execute",
        "verification_keys:read",
        "quotes:execute",
        "trades:execute",
        "transfers:execute",
    ):
        assert scope in scopes
