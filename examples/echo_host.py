"""In-memory host for trying thingshell without a real assistant.

Run from the repository root::

    PYTHONPATH=examples thingshell chat --engine echo_host:make_engine --conversation-factory echo_host:EchoConversation

Natural-language lines are echoed back; ``\\a list``, ``\\d list`` and the other
meta-commands work against the small in-memory managers below.
"""

from __future__ import annotations

import asyncio
import json
import statistics
from dataclasses import dataclass, field
from typing import Any

# ============================================================================
# ENGINE
# ============================================================================


@dataclass
class App:
    unique_id: str
    name: str
    description: str


@dataclass
class Device:
    unique_id: str
    kind: str
    name: str
    description: str


class AppManager:
    def __init__(self) -> None:
        self._apps = {
            "uuid-weather": App("uuid-weather", "Rain alert", "notify me when it is going to rain"),
            "uuid-xkcd": App("uuid-xkcd", "XKCD", "show new comics"),
        }

    def get_all_apps(self) -> list[App]:
        return list(self._apps.values())

    def get_app(self, app_id: str) -> App | None:
        return self._apps.get(app_id)

    def remove_app(self, app: App) -> None:
        self._apps.pop(app.unique_id, None)


class DeviceFactory:
    def __init__(self, devices: list[Device]) -> None:
        self._devices = devices

    async def run_oauth2(self, kind: str | None, request: Any) -> Any:
        await asyncio.sleep(0.1)
        if request is None:
            session = {"state": f"{kind}-state"}
            return f"https://oauth.example/authorize?client=thingshell&state={session['state']}", session
        if request.query.get("state") != request.session.get("state"):
            raise ValueError("OAuth state does not match")
        self._devices.append(Device(f"{kind}-1", str(kind), f"My {kind}", "paired over OAuth"))
        return None


class DeviceManager:
    def __init__(self) -> None:
        self._devices = [Device("thermostat-1", "com.nest", "Hallway", "Nest thermostat")]
        self.factory = DeviceFactory(self._devices)

    def get_all_devices(self) -> list[Device]:
        return list(self._devices)


class MessagingManager:
    def get_identities(self) -> list[str]:
        return ["email:operator@example.com"]

    async def get_account_for_identity(self, identity: str) -> str:
        await asyncio.sleep(0.05)
        return f"matrix:@{identity.split(':', 1)[-1].split('@')[0]}:example.com"

    async def search_account_by_name(self, name: str) -> list[dict[str, str]]:
        await asyncio.sleep(0.05)
        return [{"name": name.title(), "account": f"matrix:@{name.lower()}:example.com"}]


@dataclass
class PermissionManager:
    permissions: dict[str, dict[str, str]] = field(
        default_factory=lambda: {
            "perm-1": {"unique_id": "perm-1", "code": "@com.xkcd.get_comic()", "description": "read comics"}
        }
    )

    def get_all_permissions(self) -> list[dict[str, str]]:
        return list(self.permissions.values())

    def remove_permission(self, permission_id: str) -> None:
        self.permissions.pop(permission_id, None)


class DataStore:
    ROWS = [
        {"location": "Palo Alto", "weather": "Sunny", "wind_speed": 3},
        {"location": "Stanford", "weather": "Partly cloud", "wind_speed": 7},
        {"location": "Menlo Park", "weather": "Partly cloud", "wind_speed": 1},
    ]

    def _rows(self, filters: list[dict[str, Any]]) -> list[dict[str, Any]]:
        ops = {"=": lambda a, b: a == b, ">": lambda a, b: a > b, "<": lambda a, b: a < b}
        return [row for row in self.ROWS if all(ops[f["op"]](row[f["name"]], f["value"]) for f in filters)]

    async def _later(self, value: Any, delay: float) -> Any:
        await asyncio.sleep(delay)
        return value

    def query(self, fields, filters):
        return self._later([{name: row[name] for name in fields} for row in self._rows(filters)], 0.05)

    def get_count(self, filters):
        return self._later(len(self._rows(filters)), 0.01)

    def get_max(self, field, filters):
        return self._later(max(row[field] for row in self._rows(filters)), 0.03)

    def get_min(self, field, filters):
        return self._later(min(row[field] for row in self._rows(filters)), 0.02)

    def get_sum(self, field, filters):
        return self._later(sum(row[field] for row in self._rows(filters)), 0.04)

    def get_avg(self, field, filters):
        return self._later(statistics.mean(row[field] for row in self._rows(filters)), 0.01)

    def get_argmax(self, fields, field, filters):
        best = max(self._rows(filters), key=lambda row: row[field])
        return self._later([best[name] for name in fields], 0.02)

    def get_argmin(self, fields, field, filters):
        worst = min(self._rows(filters), key=lambda row: row[field])
        return self._later([worst[name] for name in fields], 0.03)


class Engine:
    def __init__(self) -> None:
        self.apps = AppManager()
        self.devices = DeviceManager()
        self.messaging = MessagingManager()
        self.permissions = PermissionManager()
        self.ibase = DataStore()

    async def close(self) -> None:
        await asyncio.sleep(0.05)


def make_engine() -> Engine:
    return Engine()


# ============================================================================
# CONVERSATION
# ============================================================================


class EchoConversation:
    """Echo text back and show a few of the output primitives."""

    def __init__(self, engine, conversation_id, user, delegate, options) -> None:
        self._delegate = delegate
        self._user = user
        self._options = options

    def start(self) -> None:
        if self._options.get("show_welcome"):
            self._delegate.send_text(f"Hello, {self._user.display_name}! Type \\? for help.")

    async def notify(self, app_id, icon, *messages) -> None:
        for message in messages:
            self._delegate.send_text(f"[{app_id}] {message}")

    async def notify_error(self, app_id, icon, error) -> None:
        self._delegate.send_text(f"[{app_id}] error: {error}")

    async def handle_command(self, text: str) -> None:
        await asyncio.sleep(0.05)
        self._delegate.send_text(f"You said: {text}")
        if text.rstrip("?").endswith("comic"):
            self._delegate.send_picture("https://imgs.xkcd.com/comics/python.png")
            self._delegate.send_rich_card({"display_title": "XKCD 353", "web_callback": "https://xkcd.com/353"})

    async def handle_parsed_command(self, json_text: str) -> None:
        payload = json.loads(json_text)
        answer = payload.get("answer", {})
        if answer.get("type") == "Choice":
            self._delegate.send_text(f"You picked option {answer.get('value')}")
            return
        self._delegate.send_button("Run again", payload)
        self._delegate.send_ask_special("yesno")

    async def handle_thingtalk(self, code: str) -> None:
        self._delegate.send_text(f"Would run: {code}")
        self._delegate.send_choice(0, "confirm", "Yes", "run it")
        self._delegate.send_choice(1, "confirm", "No", "cancel")
        self._delegate.send_link("ThingTalk reference", "https://example.com/thingtalk")
