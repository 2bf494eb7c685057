from __future__ import annotations

import pwd

import pytest

from thingshell import identity as identity_module
from thingshell.errors import IdentityLookupError
from thingshell.identity import LocalIdentity, resolve_local_identity


def _entry(name: str, gecos: str) -> pwd.struct_passwd:
    return pwd.struct_passwd((name, "x", 1000, 1000, gecos, f"/home/{name}", "/bin/bash"))


def test_resolves_effective_user(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(identity_module.os, "geteuid", lambda: 1000)
    monkeypatch.setattr(identity_module.pwd, "getpwuid", lambda uid: _entry("alice", "Alice Liddell,Room 1,,"))

    assert resolve_local_identity() == LocalIdentity(id=1000, account="alice", display_name="Alice Liddell")


def test_empty_gecos_falls_back_to_account(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(identity_module.pwd, "getpwuid", lambda uid: _entry("builder", ""))

    assert resolve_local_identity(1000).display_name == "builder"


def test_missing_entry_is_identity_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def _missing(uid: int) -> pwd.struct_passwd:
        raise KeyError(f"getpwuid(): uid not found: {uid}")

    monkeypatch.setattr(identity_module.pwd, "getpwuid", _missing)

    with pytest.raises(IdentityLookupError, match="uid 4242"):
        resolve_local_identity(4242)


def test_identity_is_immutable() -> None:
    identity = LocalIdentity(id=1, account="a", display_name="A")
    with pytest.raises(AttributeError):
        identity.account = "b"  # type: ignore[misc]
