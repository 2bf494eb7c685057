"""thingshell command-line entry point."""

from __future__ import annotations

import asyncio
from contextlib import ExitStack
from pathlib import Path
from typing import IO, Annotated

import typer

from thingshell.config import Settings, load_settings
from thingshell.delegate import ConsoleDelegate, FanoutDelegate, OutputDelegate, TranscriptDelegate
from thingshell.errors import ConfigurationError, ThingshellError
from thingshell.loader import load_object
from thingshell.logging_utils import configure_logging
from thingshell.render import Renderer
from thingshell.session import AssistantSession

app = typer.Typer(
    name="thingshell",
    help="Drive a conversational assistant from the terminal.",
    add_completion=False,
)


@app.callback(invoke_without_command=True)
def main_callback(ctx: typer.Context) -> None:
    if ctx.invoked_subcommand is None:
        # Default to chat mode
        chat()


def build_session(
    settings: Settings,
    *,
    renderer: Renderer,
    transcript: IO[str] | None = None,
) -> AssistantSession:
    """Load the configured collaborators and wire one session around them."""

    if not settings.engine:
        raise ConfigurationError("no engine configured: pass --engine or set THINGSHELL_ENGINE")
    if not settings.conversation_factory:
        raise ConfigurationError(
            "no conversation factory configured: pass --conversation-factory or set THINGSHELL_CONVERSATION_FACTORY"
        )

    engine_factory = load_object(settings.engine)
    conversation_factory = load_object(settings.conversation_factory)

    delegate: OutputDelegate = ConsoleDelegate(renderer)
    if transcript is not None:
        delegate = FanoutDelegate([delegate, TranscriptDelegate(transcript)])
    return AssistantSession(
        engine_factory(),
        conversation_factory,
        settings=settings,
        renderer=renderer,
        delegate=delegate,
    )


@app.command()
def chat(
    engine: Annotated[str | None, typer.Option("--engine", help="Engine factory as module:attribute")] = None,
    conversation_factory: Annotated[
        str | None,
        typer.Option("--conversation-factory", help="Conversation factory as module:attribute"),
    ] = None,
    transcript: Annotated[
        Path | None,
        typer.Option("--transcript", help="Also write assistant output to this file as JSON lines"),
    ] = None,
    debug: Annotated[bool, typer.Option("--debug", help="Ask the assistant for debug output")] = False,
) -> None:
    """Start an interactive session with the assistant."""

    settings = load_settings(engine=engine, conversation_factory=conversation_factory, debug=debug or None)
    renderer = Renderer()
    configure_logging(profile="chat", level=settings.log_level, console=renderer.console)

    with ExitStack() as stack:
        stream = stack.enter_context(transcript.open("a", encoding="utf-8")) if transcript else None
        try:
            session = build_session(settings, renderer=renderer, transcript=stream)
        except ThingshellError as exc:
            renderer.error(f"Failed to start session: {exc}")
            raise typer.Exit(1) from exc
        asyncio.run(session.run())


if __name__ == "__main__":
    app()
