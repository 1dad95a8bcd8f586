"""
Tests for wpenv.adapters.vault — credential stores.

Covers:
  - MemoryStore set / get / delete / clear
  - Key validation and platform gating
  - Legacy hex decoding for multi-line keys
  - Tolerant status calls (has, list, load_all)
  - KeychainStore argv construction (subprocess patched)
  - Backend selection from WPENV_VAULT
"""

from __future__ import annotations

import subprocess

import pytest

from wpenv.adapters.vault import (
    KeychainStore,
    MemoryStore,
    decode_legacy_hex,
    get_default_store,
)
from wpenv.core.errors import InvalidKeyError, UnsupportedPlatformError, VaultError

PEM = "-----BEGIN CERTIFICATE-----\nMIIB\n-----END CERTIFICATE-----"


class TestMemoryStore:
    """Tests for the in-memory credential store."""

    def test_set_get(self):
        """A stored value reads back."""
        store = MemoryStore()
        store.set("DB_ROOT_PASSWORD", "pw")
        assert store.get("DB_ROOT_PASSWORD") == "pw"

    def test_get_absent(self):
        """An absent key reads as None."""
        assert MemoryStore().get("DB_ROOT_PASSWORD") is None

    def test_set_replaces(self):
        """Setting a key again replaces its value."""
        store = MemoryStore()
        store.set("OLAP", "one")
        store.set("OLAP", "two")
        assert store.get("OLAP") == "two"

    def test_multiline_round_trip(self):
        """Multi-line values survive unchanged."""
        store = MemoryStore()
        store.set("SHIB_SP_CERT", PEM)
        assert store.get("SHIB_SP_CERT") == PEM

    def test_invalid_key_rejected(self):
        """Unknown keys raise InvalidKeyError."""
        store = MemoryStore()
        with pytest.raises(InvalidKeyError, match="NOT_A_KEY"):
            store.set("NOT_A_KEY", "x")
        with pytest.raises(InvalidKeyError):
            store.get("NOT_A_KEY")
        with pytest.raises(InvalidKeyError):
            store.delete("NOT_A_KEY")

    def test_unavailable_raises_on_mutating_calls(self):
        """An unavailable store raises on reads and writes."""
        store = MemoryStore(available=False)
        with pytest.raises(UnsupportedPlatformError):
            store.set("OLAP", "x")
        with pytest.raises(UnsupportedPlatformError):
            store.get("OLAP")
        with pytest.raises(UnsupportedPlatformError):
            store.clear()

    def test_unavailable_status_calls_do_not_raise(self):
        """Status calls stay quiet when unavailable."""
        store = MemoryStore({"OLAP": "x"}, available=False)
        assert store.has("OLAP") is False
        assert store.list() == []
        assert store.load_all() == {}

    def test_has_unknown_key_is_false(self):
        """has() is False for unknown keys."""
        assert MemoryStore().has("NOT_A_KEY") is False

    def test_delete(self):
        """delete reports whether a key was removed."""
        store = MemoryStore({"OLAP": "x"})
        assert store.delete("OLAP") is True
        assert store.delete("OLAP") is False
        assert store.has("OLAP") is False

    def test_list_in_registry_order(self):
        """list follows the credential registry order."""
        store = MemoryStore({"OLAP": "x", "DB_ROOT_PASSWORD": "y"})
        assert store.list() == ["DB_ROOT_PASSWORD", "OLAP"]

    def test_clear_counts(self):
        """clear returns the number removed."""
        store = MemoryStore({"OLAP": "x", "DB_ROOT_PASSWORD": "y"})
        assert store.clear() == 2
        assert store.list() == []

    def test_load_all_decodes_hex(self):
        """load_all decodes legacy hex values."""
        store = MemoryStore({"SHIB_SP_KEY": PEM.encode().hex(), "OLAP": "abcd"})
        values = store.load_all()
        assert values["SHIB_SP_KEY"] == PEM
        assert values["OLAP"] == "abcd"


class TestDecodeLegacyHex:
    """Tests for legacy hex decoding."""

    def test_decodes_multiline_key(self):
        """Hex for a multi-line key is decoded."""
        assert decode_legacy_hex("SHIB_SP_KEY", PEM.encode().hex()) == PEM

    def test_single_line_key_untouched(self):
        """Single-line keys are never decoded."""
        assert decode_legacy_hex("OLAP_ACCT_NBR", "123456") == "123456"

    def test_odd_length_untouched(self):
        """Odd-length strings are not hex."""
        assert decode_legacy_hex("SHIB_SP_KEY", "abc") == "abc"

    def test_non_hex_untouched(self):
        """Non-hex characters leave the value alone."""
        assert decode_legacy_hex("SHIB_SP_KEY", PEM) == PEM

    def test_undecodable_hex_returned_unchanged(self):
        """Hex that is not UTF-8 is returned unchanged."""
        assert decode_legacy_hex("SHIB_SP_KEY", "ff") == "ff"


class _FakeSecurity:
    """Records ``security`` invocations and answers from a dict."""

    def __init__(self):
        self.calls: list[list[str]] = []
        self.items: dict[str, str] = {}

    def __call__(self, cmd, **kwargs):
        self.calls.append(cmd)
        assert "shell" not in kwargs
        action = cmd[1]
        account = cmd[cmd.index("-a") + 1]
        if action == "add-generic-password":
            self.items[account] = cmd[cmd.index("-w") + 1]
            return subprocess.CompletedProcess(cmd, 0, "", "")
        if action == "find-generic-password":
            if account in self.items:
                return subprocess.CompletedProcess(cmd, 0, self.items[account] + "\n", "")
            return subprocess.CompletedProcess(
                cmd, 44, "", "security: The specified item could not be found in the keychain.",
            )
        if action == "delete-generic-password":
            if self.items.pop(account, None) is not None:
                return subprocess.CompletedProcess(cmd, 0, "", "")
            return subprocess.CompletedProcess(
                cmd, 44, "", "security: The specified item could not be found in the keychain.",
            )
        raise AssertionError(f"unexpected security call: {cmd}")


@pytest.fixture
def fake_security(monkeypatch: pytest.MonkeyPatch) -> _FakeSecurity:
    fake = _FakeSecurity()
    monkeypatch.setattr("wpenv.adapters.vault.keychain.sys.platform", "darwin")
    monkeypatch.setattr("wpenv.adapters.vault.keychain.shutil.which", lambda name: "/usr/bin/security")
    monkeypatch.setattr("wpenv.adapters.vault.keychain.subprocess.run", fake)
    return fake


class TestKeychainStore:
    """Tests for the Keychain store with security patched out."""

    def test_unavailable_off_macos(self, monkeypatch: pytest.MonkeyPatch):
        """The store is unavailable off macOS."""
        monkeypatch.setattr("wpenv.adapters.vault.keychain.sys.platform", "linux")
        store = KeychainStore()
        assert store.is_available() is False
        with pytest.raises(UnsupportedPlatformError):
            store.set("OLAP", "x")
        assert store.has("OLAP") is False

    def test_set_uses_update_flag(self, fake_security: _FakeSecurity):
        """set passes -U to update in place."""
        KeychainStore().set("OLAP", "value with spaces")
        assert fake_security.calls[-1] == [
            "security", "add-generic-password",
            "-s", "wpenv", "-a", "OLAP", "-w", "value with spaces", "-U",
        ]

    def test_get_round_trip(self, fake_security: _FakeSecurity):
        """A stored value reads back."""
        store = KeychainStore()
        store.set("DB_ROOT_PASSWORD", "pw")
        assert store.get("DB_ROOT_PASSWORD") == "pw"

    def test_get_not_found(self, fake_security: _FakeSecurity):
        """A missing item reads as None."""
        assert KeychainStore().get("DB_ROOT_PASSWORD") is None

    def test_get_hex_encoded_pem(self, fake_security: _FakeSecurity):
        """A hex-encoded PEM is decoded on read."""
        fake_security.items["SHIB_SP_KEY"] = PEM.encode().hex()
        assert KeychainStore().get("SHIB_SP_KEY") == PEM

    def test_delete(self, fake_security: _FakeSecurity):
        """delete removes the item."""
        store = KeychainStore()
        store.set("OLAP", "x")
        assert store.delete("OLAP") is True
        assert store.delete("OLAP") is False

    def test_other_failure_raises(self, fake_security: _FakeSecurity, monkeypatch: pytest.MonkeyPatch):
        """Unexpected security failures raise VaultError."""
        def broken(cmd, **kwargs):
            return subprocess.CompletedProcess(cmd, 1, "", "User interaction is not allowed.")

        monkeypatch.setattr("wpenv.adapters.vault.keychain.subprocess.run", broken)
        store = KeychainStore()
        with pytest.raises(VaultError, match="not allowed"):
            store.get("OLAP")
        assert store.has("OLAP") is False
        assert store.load_all() == {}

    def test_clear_continues_past_failures(self, fake_security: _FakeSecurity, monkeypatch: pytest.MonkeyPatch):
        """clear keeps going when one delete fails."""
        store = KeychainStore()
        store.set("OLAP", "x")
        store.set("DB_ROOT_PASSWORD", "y")

        def flaky(cmd, **kwargs):
            if cmd[cmd.index("-a") + 1] == "DB_ROOT_PASSWORD":
                return subprocess.CompletedProcess(cmd, 1, "", "boom")
            return fake_security(cmd, **kwargs)

        monkeypatch.setattr("wpenv.adapters.vault.keychain.subprocess.run", flaky)
        assert store.clear() == 1


class TestGetDefaultStore:
    """Tests for backend selection."""

    def test_default_is_keychain(self, monkeypatch: pytest.MonkeyPatch):
        """The keychain is the default backend."""
        monkeypatch.delenv("WPENV_VAULT", raising=False)
        assert isinstance(get_default_store(), KeychainStore)

    def test_memory_backend(self, monkeypatch: pytest.MonkeyPatch):
        """WPENV_VAULT=memory selects the memory store."""
        monkeypatch.setenv("WPENV_VAULT", "memory")
        assert isinstance(get_default_store(), MemoryStore)

    def test_unknown_backend(self, monkeypatch: pytest.MonkeyPatch):
        """An unknown backend raises VaultError."""
        monkeypatch.setenv("WPENV_VAULT", "carrier-pigeon")
        with pytest.raises(VaultError, match="Unknown credential store"):
            get_default_store()
