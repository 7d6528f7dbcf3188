"""
Unit tests for core.security module.
Tests credential normalization, tier resolution and client IP extraction.
"""
from types import SimpleNamespace

import pytest

from gatehouse.config import settings
from gatehouse.core.security import (
    TierKeyring,
    client_ip,
    normalize_credential,
    pwd_context,
)
from gatehouse.models.session import Role


class TestNormalization:
    """Tests for credential normalization modes."""

    def test_exact_keeps_everything(self):
        assert normalize_credential(" Secret ", "exact") == " Secret "

    def test_strip_removes_surrounding_whitespace(self):
        assert normalize_credential("\tSecret \n", "strip") == "Secret"

    def test_casefold(self):
        assert normalize_credential(" SeCreT ", "casefold") == "secret"

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            normalize_credential("x", "rot13")


class TestTierKeyring:
    """Tests for resolving a credential to a role."""

    def test_resolves_each_tier(self):
        keyring = TierKeyring({Role.OWNER: "o-pass", Role.ADMIN: "a-pass", Role.USER: "u-pass"})
        assert keyring.resolve("o-pass") == Role.OWNER
        assert keyring.resolve("a-pass") == Role.ADMIN
        assert keyring.resolve("u-pass") == Role.USER
        assert keyring.resolve("nope") is None
        assert keyring.resolve("   ") is None

    def test_most_privileged_tier_wins_on_shared_secret(self):
        keyring = TierKeyring({Role.USER: "same", Role.ADMIN: "same"})
        assert keyring.resolve("same") == Role.ADMIN

    def test_missing_tier_never_matches(self):
        keyring = TierKeyring({Role.OWNER: None, Role.ADMIN: "", Role.USER: "u-pass"})
        assert keyring.configured_tiers == [Role.USER]
        assert keyring.resolve("") is None

    def test_accepts_prehashed_secret(self):
        hashed = pwd_context.hash("hashed-pass")
        keyring = TierKeyring({Role.OWNER: hashed})
        assert keyring.resolve(" hashed-pass ") == Role.OWNER

    def test_exact_mode_is_whitespace_sensitive(self):
        keyring = TierKeyring({Role.USER: "u-pass"}, mode="exact")
        assert keyring.resolve("u-pass") == Role.USER
        assert keyring.resolve(" u-pass") is None

    def test_casefold_mode(self):
        keyring = TierKeyring({Role.USER: "U-Pass"}, mode="casefold")
        assert keyring.resolve("u-pass") == Role.USER

    def test_unknown_mode_rejected(self):
        with pytest.raises(ValueError):
            TierKeyring({Role.USER: "x"}, mode="loose")


class TestClientIp:
    """Tests for client IP extraction."""

    def _conn(self, headers=None, host="127.0.0.1"):
        client = SimpleNamespace(host=host) if host else None
        return SimpleNamespace(headers=headers or {}, client=client)

    def test_header_ignored_by_default(self):
        conn = self._conn({"X-Forwarded-For": "203.0.113.7"}, host="10.0.0.5")
        assert client_ip(conn) == "10.0.0.5"

    def test_forwarded_for_first_hop_from_trusted_proxy(self, monkeypatch):
        monkeypatch.setattr(settings, "trust_forwarded_for", True)
        monkeypatch.setattr(settings, "trusted_proxies", ["10.0.0.1"])
        conn = self._conn({"X-Forwarded-For": "203.0.113.7, 10.0.0.1"}, host="10.0.0.1")
        assert client_ip(conn) == "203.0.113.7"

    def test_forwarded_for_ignored_from_untrusted_peer(self, monkeypatch):
        monkeypatch.setattr(settings, "trust_forwarded_for", True)
        monkeypatch.setattr(settings, "trusted_proxies", ["10.0.0.1"])
        conn = self._conn({"X-Forwarded-For": "203.0.113.7"}, host="10.0.0.5")
        assert client_ip(conn) == "10.0.0.5"

    def test_forwarded_for_ignored_when_disabled(self, monkeypatch):
        monkeypatch.setattr(settings, "trust_forwarded_for", False)
        monkeypatch.setattr(settings, "trusted_proxies", ["127.0.0.1"])
        conn = self._conn({"X-Forwarded-For": "203.0.113.7"})
        assert client_ip(conn) == "127.0.0.1"

    def test_no_client(self, monkeypatch):
        monkeypatch.setattr(settings, "trust_forwarded_for", True)
        assert client_ip(self._conn(host=None)) is None
