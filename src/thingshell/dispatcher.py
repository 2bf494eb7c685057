"""Meta-command and natural-language routing."""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import TYPE_CHECKING

from loguru import logger

from thingshell.commands import HELP_TEXT, MetaCommand, NaturalLanguage, Verb, parse_line
from thingshell.diagnostics import DiagnosticResult, run_diagnostics
from thingshell.errors import NotFoundError, UnknownCommandError
from thingshell.oauth import OAuthPairingCoordinator
from thingshell.records import field_of, resolve
from thingshell.render import Renderer

if TYPE_CHECKING:
    from thingshell.collaborators import Conversation, Engine


class DispatchOutcome(Enum):
    CONTINUE = "continue"
    QUIT = "quit"


type Handler = Callable[[MetaCommand], Awaitable[DispatchOutcome | None]]
type SubHandler = Callable[[MetaCommand], Awaitable[None]]


def choice_answer(index: int) -> str:
    """Structured answer selecting the ``index``-th offered choice."""

    return json.dumps({"answer": {"type": "Choice", "value": index}})


class CommandDispatcher:
    """Route one terminal line to the assistant or to an engine manager."""

    def __init__(
        self,
        engine: Engine,
        conversation: Conversation,
        renderer: Renderer,
        oauth: OAuthPairingCoordinator | None = None,
    ) -> None:
        self._engine = engine
        self._conversation = conversation
        self._renderer = renderer
        self.oauth = oauth or OAuthPairingCoordinator(engine.devices.factory)
        self._handlers: dict[Verb, Handler] = {
            Verb.QUIT: self._quit,
            Verb.HELP: self._help,
            Verb.RAW: self._raw,
            Verb.THINGTALK: self._thingtalk,
            Verb.CHOICE: self._choice,
            Verb.APP: self._sub_dispatch({"list": self._list_apps, "stop": self._stop_app}),
            Verb.DEVICE: self._sub_dispatch(
                {
                    "list": self._list_devices,
                    "start-oauth": self._start_oauth,
                    "start-oauth2": self._start_oauth,
                    "complete-oauth": self._complete_oauth,
                    "complete-oauth2": self._complete_oauth,
                }
            ),
            Verb.MESSAGING: self._sub_dispatch(
                {"self": self._list_identities, "identity": self._lookup_identity, "search": self._search_accounts}
            ),
            Verb.PERMISSION: self._sub_dispatch({"list": self._list_permissions, "revoke": self._revoke_permission}),
            Verb.DIAGNOSTIC: self._diagnostic,
        }

    async def dispatch(self, line: str) -> DispatchOutcome:
        parsed = parse_line(line)
        if parsed is None:
            return DispatchOutcome.CONTINUE
        if isinstance(parsed, NaturalLanguage):
            await resolve(self._conversation.handle_command(parsed.text))
            return DispatchOutcome.CONTINUE

        logger.debug("dispatch.command verb={} args={}", parsed.verb, parsed.args)
        outcome = await self._handlers[parsed.verb](parsed)
        return outcome or DispatchOutcome.CONTINUE

    def _sub_dispatch(self, table: dict[str, SubHandler]) -> Handler:
        async def handle(command: MetaCommand) -> None:
            handler = table.get(command.subverb)
            if handler is None:
                raise UnknownCommandError(f"{command.verb.value} {command.subverb}")
            await handler(command)

        return handle

    async def _quit(self, _command: MetaCommand) -> DispatchOutcome:
        return DispatchOutcome.QUIT

    async def _help(self, _command: MetaCommand) -> None:
        self._renderer.info(HELP_TEXT)

    async def _raw(self, command: MetaCommand) -> None:
        await resolve(self._conversation.handle_parsed_command(command.arg(0, "json")))

    async def _thingtalk(self, command: MetaCommand) -> None:
        await resolve(self._conversation.handle_thingtalk(command.arg(0, "code")))

    async def _choice(self, command: MetaCommand) -> None:
        index = command.int_arg(0, "number")
        await resolve(self._conversation.handle_parsed_command(choice_answer(index)))

    # apps

    async def _list_apps(self, _command: MetaCommand) -> None:
        for app in await resolve(self._engine.apps.get_all_apps()):
            self._renderer.info(
                f"- {field_of(app, 'unique_id')} {field_of(app, 'name')}: {field_of(app, 'description')}"
            )

    async def _stop_app(self, command: MetaCommand) -> None:
        app_id = command.arg(1, "uuid")
        app = await resolve(self._engine.apps.get_app(app_id))
        if app is None:
            raise NotFoundError("app", app_id)
        await resolve(self._engine.apps.remove_app(app))

    # devices

    async def _list_devices(self, _command: MetaCommand) -> None:
        for device in await resolve(self._engine.devices.get_all_devices()):
            self._renderer.info(
                f"- {field_of(device, 'unique_id')} ({field_of(device, 'kind')}) "
                f"{field_of(device, 'name')}: {field_of(device, 'description')}"
            )

    async def _start_oauth(self, command: MetaCommand) -> None:
        redirect = await self.oauth.start(command.arg(1, "kind"))
        self._renderer.info(redirect)

    async def _complete_oauth(self, command: MetaCommand) -> None:
        await self.oauth.complete(command.arg(1, "url"))

    # messaging

    async def _list_identities(self, _command: MetaCommand) -> None:
        for identity in await resolve(self._engine.messaging.get_identities()):
            self._renderer.info(str(identity))

    async def _lookup_identity(self, command: MetaCommand) -> None:
        account = await resolve(self._engine.messaging.get_account_for_identity(command.arg(1, "identity")))
        self._renderer.info(str(account))

    async def _search_accounts(self, command: MetaCommand) -> None:
        accounts = await resolve(self._engine.messaging.search_account_by_name(command.arg(1, "name")))
        for account in accounts:
            self._renderer.info(f"{field_of(account, 'name')}: {field_of(account, 'account')}")

    # permissions

    async def _list_permissions(self, _command: MetaCommand) -> None:
        for permission in await resolve(self._engine.permissions.get_all_permissions()):
            self._renderer.info(
                f"- {field_of(permission, 'unique_id')}: {field_of(permission, 'code')} : "
                f"{field_of(permission, 'description')}"
            )

    async def _revoke_permission(self, command: MetaCommand) -> None:
        await resolve(self._engine.permissions.remove_permission(command.arg(1, "uuid")))

    # diagnostics

    async def _diagnostic(self, _command: MetaCommand) -> None:
        await run_diagnostics(self._engine.ibase, self._render_diagnostic)

    def _render_diagnostic(self, result: DiagnosticResult) -> None:
        if result.ok:
            self._renderer.info(f"{result.label}: {result.value}")
        else:
            self._renderer.error(f"{result.label}: {result.error}")
