"""Terminal renderer for thingshell."""

from __future__ import annotations

from prompt_toolkit import PromptSession
from prompt_toolkit.patch_stdout import patch_stdout
from rich.console import Console
from rich.markup import escape


class Renderer:
    """Operator-facing terminal output and line input."""

    def __init__(self, console: Console | None = None) -> None:
        self.console: Console = console or Console()
        self._prompt_session: PromptSession[str] | None = None

    def info(self, message: str) -> None:
        """Render a plain line, verbatim."""
        self.console.print(message, markup=False, emoji=False, highlight=False)

    def error(self, message: str) -> None:
        """Render an error message."""
        self.console.print(f"[bold red]Error:[/bold red] {escape(message)}", emoji=False, highlight=False)

    async def get_user_input(self, prompt: str) -> str:
        """Prompt the operator for one line."""
        if self._prompt_session is None:
            self._prompt_session = PromptSession()
        with patch_stdout(raw=True):
            return await self._prompt_session.prompt_async(prompt)
