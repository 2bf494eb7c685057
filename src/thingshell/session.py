"""Interactive terminal session.

One :class:`AssistantSession` owns everything a terminal conversation needs: the
operator identity, the assistant conversation, the OAuth pairing state and the
single pending operation. Lifecycle::

    session = AssistantSession(engine, conversation_factory)
    await session.run()        # start, read-dispatch-await loop, shutdown

``run`` returns only after the engine has been closed and ``exit_process`` called.
Tests drive :meth:`handle_line` directly and call :meth:`shutdown` themselves.
"""

from __future__ import annotations

import asyncio
import signal
import sys
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager, suppress
from typing import TYPE_CHECKING, Any

from loguru import logger

from thingshell.config import Settings, load_settings
from thingshell.delegate import ConsoleDelegate, OutputDelegate
from thingshell.dispatcher import CommandDispatcher, DispatchOutcome
from thingshell.errors import ThingshellError
from thingshell.identity import LocalIdentity, resolve_local_identity
from thingshell.oauth import OAuthPairingCoordinator
from thingshell.records import resolve
from thingshell.render import Renderer

if TYPE_CHECKING:
    from thingshell.collaborators import Conversation, ConversationFactory, Engine

FAREWELL = "Bye"


class AssistantSession:
    """Single-operator read-evaluate loop over one assistant conversation."""

    def __init__(
        self,
        engine: Engine,
        conversation_factory: ConversationFactory,
        *,
        settings: Settings | None = None,
        renderer: Renderer | None = None,
        delegate: OutputDelegate | None = None,
        identity: LocalIdentity | None = None,
        read_line: Callable[[str], Awaitable[str]] | None = None,
        exit_process: Callable[[int], Any] = sys.exit,
    ) -> None:
        self.engine = engine
        self.settings = settings or load_settings()
        self.renderer = renderer or Renderer()
        self.delegate = delegate or ConsoleDelegate(self.renderer)
        self.identity = identity or resolve_local_identity()
        self.conversation: Conversation = conversation_factory(
            engine,
            self.settings.conversation_id,
            self.identity,
            self.delegate,
            self.settings.conversation_options(),
        )
        self.dispatcher = CommandDispatcher(engine, self.conversation, self.renderer)
        self._read_line = read_line or self.renderer.get_user_input
        self._exit_process = exit_process
        self._serial = asyncio.Lock()
        self._pending: asyncio.Future[DispatchOutcome] | None = None
        self._read_task: asyncio.Future[str | None] | None = None
        self._started = False
        self._quit_requested = False
        self._closed = False

    @property
    def oauth(self) -> OAuthPairingCoordinator:
        return self.dispatcher.oauth

    @property
    def pending(self) -> asyncio.Future[DispatchOutcome] | None:
        """The command currently in flight, if any."""
        return self._pending

    @property
    def closed(self) -> bool:
        return self._closed

    # engine-facing surface

    def notify_all(self, *data: Any) -> Any:
        return self.conversation.notify(*data)

    def notify_error_all(self, *data: Any) -> Any:
        return self.conversation.notify_error(*data)

    def get_conversation(self, conversation_id: str) -> Conversation:
        _ = conversation_id
        return self.conversation

    # lifecycle

    async def start(self) -> None:
        if self._started:
            return
        self._started = True
        logger.info(
            "session.start conversation={} user={} uid={}",
            self.settings.conversation_id,
            self.identity.account,
            self.identity.id,
        )
        await resolve(self.conversation.start())

    async def run(self) -> None:
        """Read, dispatch and await lines until quit or interrupt."""

        await self.start()
        with self._interrupt_handler():
            while not self._quit_requested:
                line = await self._next_line()
                if line is None:
                    break
                if await self.handle_line(line) is DispatchOutcome.QUIT:
                    break
        await self.shutdown()

    def request_quit(self) -> None:
        """Interrupt handler: quit once the pending command, if any, settles."""

        self._quit_requested = True
        if self._read_task is not None:
            self._read_task.cancel()

    async def handle_line(self, line: str) -> DispatchOutcome:
        """Run one line to completion; failures become terminal messages."""

        async with self._serial:
            self._pending = asyncio.ensure_future(self.dispatcher.dispatch(line))
            try:
                return await self._pending
            except ThingshellError as exc:
                self.renderer.error(str(exc))
            except Exception as exc:
                logger.opt(exception=True).warning("session.command.error line={}", line)
                self.renderer.error(f"Command failed: {exc}")
                await self._notify_failure(exc)
            finally:
                self._pending = None
        return DispatchOutcome.CONTINUE

    async def _notify_failure(self, exc: Exception) -> None:
        # Same (app_id, icon, error) shape the engine uses; no app is involved here.
        try:
            await resolve(self.notify_error_all(None, None, exc))
        except Exception:
            logger.exception("session.notify_error.error")

    async def shutdown(self) -> None:
        """Close the engine and terminate, exactly once."""

        if self._closed:
            return
        self._closed = True
        self._quit_requested = True
        self.renderer.info(FAREWELL)
        exit_code = 0
        try:
            await resolve(self.engine.close())
        except Exception:
            logger.exception("session.shutdown.error")
            exit_code = 1
        logger.info("session.stopped exit_code={}", exit_code)
        self._exit_process(exit_code)

    async def _read_or_none(self) -> str | None:
        # Ctrl-C and Ctrl-D at the prompt must not escape the read task.
        try:
            return await self._read_line(self.settings.prompt)
        except (KeyboardInterrupt, EOFError):
            return None

    async def _next_line(self) -> str | None:
        """Next operator line, or ``None`` once the operator asked to leave."""

        self._read_task = asyncio.ensure_future(self._read_or_none())
        try:
            return await self._read_task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if self._quit_requested and (current is None or not current.cancelling()):
                return None
            raise
        finally:
            self._read_task = None

    @contextmanager
    def _interrupt_handler(self) -> Iterator[None]:
        loop = asyncio.get_running_loop()
        installed = False
        with suppress(NotImplementedError, RuntimeError, ValueError):
            loop.add_signal_handler(signal.SIGINT, self.request_quit)
            installed = True
        try:
            yield
        finally:
            if installed:
                loop.remove_signal_handler(signal.SIGINT)
