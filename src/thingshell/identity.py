"""Local operating-system identity of the operator."""

from __future__ import annotations

import os
import pwd
from dataclasses import dataclass

from thingshell.errors import IdentityLookupError


@dataclass(frozen=True)
class LocalIdentity:
    """The OS account driving the terminal session."""

    id: int
    account: str
    display_name: str


def resolve_local_identity(uid: int | None = None) -> LocalIdentity:
    """Resolve the password-database entry of ``uid`` (default: effective uid)."""

    if uid is None:
        uid = os.geteuid()
    try:
        entry = pwd.getpwuid(uid)
    except KeyError as exc:
        raise IdentityLookupError(f"no password-database entry for uid {uid}") from exc

    # GECOS is "full name,room,work phone,home phone,other".
    display_name = entry.pw_gecos.split(",", 1)[0].strip() or entry.pw_name
    return LocalIdentity(id=uid, account=entry.pw_name, display_name=display_name)
