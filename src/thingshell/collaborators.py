"""Contracts of the external collaborators the terminal session drives.

Every operation documented as deferred may return either an awaitable or a plain
value; callers go through :func:`thingshell.records.resolve`.
"""

from __future__ import annotations

from collections.abc import Awaitable, Iterable, Mapping, Sequence
from typing import Any, Protocol

from thingshell.delegate import OutputDelegate
from thingshell.identity import LocalIdentity

type Deferred[T] = Awaitable[T] | T
type Filter = Mapping[str, Any]


class Conversation(Protocol):
    """Assistant core conversation bound to one user and one output delegate."""

    def start(self) -> Any: ...

    def notify(self, *data: Any) -> Deferred[Any]: ...

    def notify_error(self, *data: Any) -> Deferred[Any]: ...

    def handle_command(self, text: str) -> Deferred[Any]: ...

    def handle_parsed_command(self, json_text: str) -> Deferred[Any]: ...

    def handle_thingtalk(self, code: str) -> Deferred[Any]: ...


class ConversationFactory(Protocol):
    def __call__(
        self,
        engine: Engine,
        conversation_id: str,
        user: LocalIdentity,
        delegate: OutputDelegate,
        options: Mapping[str, Any],
    ) -> Conversation: ...


class AppManager(Protocol):
    def get_all_apps(self) -> Deferred[Iterable[Any]]: ...

    def get_app(self, app_id: str) -> Deferred[Any | None]: ...

    def remove_app(self, app: Any) -> Deferred[Any]: ...


class DeviceFactory(Protocol):
    def run_oauth2(self, kind: str | None, request: Any | None) -> Deferred[Any]:
        """Without a request, resolve to ``(redirect_url, session)`` or a record with those fields.

        With a request, finish pairing.
        """
        ...


class DeviceManager(Protocol):
    factory: DeviceFactory

    def get_all_devices(self) -> Deferred[Iterable[Any]]: ...


class MessagingManager(Protocol):
    def get_identities(self) -> Deferred[Iterable[str]]: ...

    def get_account_for_identity(self, identity: str) -> Deferred[Any]: ...

    def search_account_by_name(self, name: str) -> Deferred[Iterable[Any]]: ...


class PermissionManager(Protocol):
    def get_all_permissions(self) -> Deferred[Iterable[Any]]: ...

    def remove_permission(self, permission_id: str) -> Deferred[Any]: ...


class DataStore(Protocol):
    """Read-only analytic queries over recorded device data."""

    def query(self, fields: Sequence[str], filters: Sequence[Filter]) -> Deferred[Any]: ...

    def get_count(self, filters: Sequence[Filter]) -> Deferred[Any]: ...

    def get_max(self, field: str, filters: Sequence[Filter]) -> Deferred[Any]: ...

    def get_min(self, field: str, filters: Sequence[Filter]) -> Deferred[Any]: ...

    def get_sum(self, field: str, filters: Sequence[Filter]) -> Deferred[Any]: ...

    def get_avg(self, field: str, filters: Sequence[Filter]) -> Deferred[Any]: ...

    def get_argmax(self, fields: Sequence[str], field: str, filters: Sequence[Filter]) -> Deferred[Any]: ...

    def get_argmin(self, fields: Sequence[str], field: str, filters: Sequence[Filter]) -> Deferred[Any]: ...


class Engine(Protocol):
    apps: AppManager
    devices: DeviceManager
    messaging: MessagingManager
    permissions: PermissionManager
    ibase: DataStore

    def close(self) -> Deferred[Any]: ...
