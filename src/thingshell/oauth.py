"""Two-phase OAuth2 device pairing."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any
from urllib.parse import parse_qs, urlsplit

from loguru import logger

from thingshell.errors import OAuthCompletionError, OAuthInitiationError
from thingshell.records import field_of, resolve

if TYPE_CHECKING:
    from thingshell.collaborators import DeviceFactory


class OAuthPhase(StrEnum):
    IDLE = "idle"
    AWAITING_CALLBACK = "awaiting_callback"


@dataclass(frozen=True)
class OAuthPairingState:
    """Pairing in progress between a start and a complete command."""

    kind: str | None = None
    session: Mapping[str, Any] = field(default_factory=dict)

    @property
    def phase(self) -> OAuthPhase:
        return OAuthPhase.IDLE if self.kind is None else OAuthPhase.AWAITING_CALLBACK


IDLE = OAuthPairingState()


@dataclass(frozen=True)
class OAuthRequest:
    """Synthetic inbound HTTP request carrying the provider callback."""

    url: str
    query: dict[str, str | list[str]]
    session: Mapping[str, Any]
    method: str = "GET"
    http_version: str = "1.0"
    headers: list[tuple[str, str]] = field(default_factory=list)
    raw_headers: list[str] = field(default_factory=list)

    @classmethod
    def from_callback(cls, url: str, session: Mapping[str, Any]) -> OAuthRequest:
        return cls(url=url, query=parse_query(url), session=session)


def parse_query(url: str) -> dict[str, str | list[str]]:
    """Parse the query string; repeated parameters become lists."""

    parsed = parse_qs(urlsplit(url).query, keep_blank_values=True)
    return {key: values[0] if len(values) == 1 else values for key, values in parsed.items()}


def _split_start_result(kind: str, result: Any) -> tuple[Any, Any]:
    """Return ``(redirect_url, session)`` from a record or a pair."""

    if isinstance(result, (str, bytes)):
        raise OAuthInitiationError(f"unexpected OAuth start result for {kind}: {result!r}")
    if isinstance(result, Sequence):
        if len(result) != 2:
            raise OAuthInitiationError(f"unexpected OAuth start result for {kind}: {result!r}")
        redirect, session = result
    else:
        redirect = field_of(result, "redirect_url")
        session = field_of(result, "session")
    if not redirect:
        raise OAuthInitiationError(f"OAuth start for {kind} returned no redirect URL")
    return redirect, session


class OAuthPairingCoordinator:
    """Holds pairing state across the two independently dispatched commands."""

    def __init__(self, factory: DeviceFactory) -> None:
        self._factory = factory
        self.state: OAuthPairingState = IDLE

    @property
    def phase(self) -> OAuthPhase:
        return self.state.phase

    async def start(self, kind: str) -> str:
        """Begin pairing ``kind`` and return the URL the operator must visit."""

        self.state = IDLE
        try:
            result = await resolve(self._factory.run_oauth2(kind, None))
        except Exception as exc:
            raise OAuthInitiationError(f"cannot start OAuth for {kind}: {exc}") from exc
        redirect, session = _split_start_result(kind, result)

        self.state = OAuthPairingState(kind=kind, session=session if session is not None else {})
        logger.info("oauth.start kind={}", kind)
        return str(redirect)

    async def complete(self, url: str) -> None:
        """Replay the stored session with the provider callback URL."""

        pending = self.state
        self.state = IDLE
        if pending.phase is OAuthPhase.IDLE:
            logger.warning("oauth.complete without pending pairing url={}", url)

        request = OAuthRequest.from_callback(url, pending.session)
        try:
            await resolve(self._factory.run_oauth2(pending.kind, request))
        except Exception as exc:
            raise OAuthCompletionError(f"cannot complete OAuth for {pending.kind}: {exc}") from exc
        logger.info("oauth.complete kind={}", pending.kind)
