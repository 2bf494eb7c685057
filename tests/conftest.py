from __future__ import annotations

import asyncio
import io
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import pytest
from rich.console import Console

from thingshell.config import Settings
from thingshell.identity import LocalIdentity
from thingshell.render import Renderer
from thingshell.session import AssistantSession


@dataclass
class FakeApp:
    unique_id: str
    name: str
    description: str


class FakeAppManager:
    def __init__(self, apps: list[FakeApp]) -> None:
        self.apps = {app.unique_id: app for app in apps}
        self.removed: list[str] = []

    def get_all_apps(self) -> list[FakeApp]:
        return list(self.apps.values())

    def get_app(self, app_id: str) -> FakeApp | None:
        return self.apps.get(app_id)

    async def remove_app(self, app: FakeApp) -> None:
        await asyncio.sleep(0)
        self.removed.append(app.unique_id)
        del self.apps[app.unique_id]


@dataclass
class FakeDeviceFactory:
    redirect: str = "https://provider.example/authorize?state=abc123"
    session: dict[str, Any] = field(default_factory=lambda: {"state": "abc123"})
    start_error: Exception | None = None
    strict: bool = True
    calls: list[tuple[str | None, Any]] = field(default_factory=list)
    paired: list[str | None] = field(default_factory=list)

    async def run_oauth2(self, kind: str | None, request: Any) -> Any:
        self.calls.append((kind, request))
        await asyncio.sleep(0)
        if request is None:
            if self.start_error is not None:
                raise self.start_error
            return self.redirect, dict(self.session)
        if self.strict and request.session.get("state") != request.query.get("state"):
            raise ValueError("state mismatch")
        self.paired.append(kind)
        return None


class FakeDeviceManager:
    def __init__(self, factory: FakeDeviceFactory) -> None:
        self.factory = factory
        self.devices = [
            {"unique_id": "thermostat-1", "kind": "com.nest", "name": "Hallway", "description": "Nest thermostat"},
            {"unique_id": "light-2", "kind": "com.hue", "name": "Desk lamp", "description": "Hue bulb"},
        ]

    def get_all_devices(self) -> list[dict[str, str]]:
        return list(self.devices)


class FakeMessaging:
    def get_identities(self) -> list[str]:
        return ["phone:+15550100", "email:alice@example.com"]

    async def get_account_for_identity(self, identity: str) -> str:
        await asyncio.sleep(0)
        return f"account:{identity}"

    async def search_account_by_name(self, name: str) -> list[dict[str, str]]:
        await asyncio.sleep(0)
        return [{"name": f"{name} Smith", "account": "acct-1"}, {"name": f"{name} Jones", "account": "acct-2"}]


class FakePermissions:
    def __init__(self) -> None:
        self.permissions = {
            "perm-1": {"unique_id": "perm-1", "code": "now => @com.twitter.post()", "description": "tweet"},
        }

    def get_all_permissions(self) -> list[dict[str, str]]:
        return list(self.permissions.values())

    def remove_permission(self, permission_id: str) -> None:
        self.permissions.pop(permission_id, None)


class FakeDataStore:
    def __init__(self, delays: dict[str, float] | None = None, failing: set[str] | None = None) -> None:
        self.delays = delays or {}
        self.failing = failing or set()
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

    async def _answer(self, label: str, args: tuple[Any, ...], value: Any) -> Any:
        self.calls.append((label, args))
        await asyncio.sleep(self.delays.get(label, 0))
        if label in self.failing:
            raise RuntimeError(f"{label} unavailable")
        return value

    def query(self, fields, filters):
        return self._answer("query", (fields, filters), [{"wind_speed": 3, "location": "Palo Alto"}])

    def get_count(self, filters):
        return self._answer("count", (filters,), 2)

    def get_max(self, field, filters):
        return self._answer("max", (field, filters), 9)

    def get_min(self, field, filters):
        return self._answer("min", (field, filters), 1)

    def get_sum(self, field, filters):
        return self._answer("sum", (field, filters), 12)

    def get_avg(self, field, filters):
        return self._answer("avg", (field, filters), 4.0)

    def get_argmax(self, fields, field, filters):
        return self._answer("argmax", (fields, field, filters), ["Palo Alto", "Sunny"])

    def get_argmin(self, fields, field, filters):
        return self._answer("argmin", (fields, field, filters), ["Stanford", "Partly cloud"])


class FakeEngine:
    def __init__(self) -> None:
        self.apps = FakeAppManager(
            [
                FakeApp("app-1", "Weather alert", "notify me when it rains"),
                FakeApp("app-2", "Tweet digest", "summarize tweets daily"),
            ]
        )
        self.factory = FakeDeviceFactory()
        self.devices = FakeDeviceManager(self.factory)
        self.messaging = FakeMessaging()
        self.permissions = FakePermissions()
        self.ibase = FakeDataStore()
        self.close_calls = 0

    async def close(self) -> None:
        await asyncio.sleep(0)
        self.close_calls += 1


class FakeConversation:
    def __init__(self, engine, conversation_id, user, delegate, options) -> None:
        self.engine = engine
        self.conversation_id = conversation_id
        self.user = user
        self.delegate = delegate
        self.options = options
        self.calls: list[tuple[str, Any]] = []
        self.start_calls = 0

    def start(self) -> None:
        self.start_calls += 1

    async def notify(self, *data: Any) -> None:
        self.calls.append(("notify", data))

    async def notify_error(self, *data: Any) -> None:
        self.calls.append(("notify_error", data))

    async def handle_command(self, text: str) -> None:
        self.calls.append(("command", text))
        await asyncio.sleep(0)
        self.delegate.send_text(f"you said {text}")

    async def handle_parsed_command(self, json_text: str) -> None:
        self.calls.append(("parsed", json_text))

    async def handle_thingtalk(self, code: str) -> None:
        self.calls.append(("thingtalk", code))


@dataclass
class ExitRecorder:
    codes: list[int] = field(default_factory=list)

    def __call__(self, code: int) -> None:
        self.codes.append(code)


def captured_console() -> Console:
    return Console(file=io.StringIO(), width=200, color_system=None, force_terminal=False, highlight=False)


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def renderer() -> Renderer:
    return Renderer(captured_console())


@pytest.fixture
def output(renderer: Renderer) -> Callable[[], list[str]]:
    """Lines written to the captured terminal so far."""

    def read() -> list[str]:
        return renderer.console.file.getvalue().splitlines()

    return read


@pytest.fixture
def exit_recorder() -> ExitRecorder:
    return ExitRecorder()


@pytest.fixture
def identity() -> LocalIdentity:
    return LocalIdentity(id=1000, account="alice", display_name="Alice Liddell")


@pytest.fixture
def make_session(
    engine: FakeEngine, renderer: Renderer, identity: LocalIdentity, exit_recorder: ExitRecorder
) -> Callable[..., AssistantSession]:
    def make(**overrides: Any) -> AssistantSession:
        options: dict[str, Any] = {
            "settings": Settings(),
            "renderer": renderer,
            "identity": identity,
            "exit_process": exit_recorder,
        }
        options.update(overrides)
        return AssistantSession(engine, FakeConversation, **options)

    return make


@pytest.fixture
def session(make_session: Callable[..., AssistantSession]) -> AssistantSession:
    return make_session()


@pytest.fixture
def conversation(session: AssistantSession) -> FakeConversation:
    return session.conversation
