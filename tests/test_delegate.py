from __future__ import annotations

import io
import json
from dataclasses import dataclass

from thingshell.delegate import ConsoleDelegate, FanoutDelegate, TranscriptDelegate
from thingshell.render import Renderer


@dataclass
class _Card:
    display_title: str
    callback: str | None = None
    web_callback: str | None = None


def _send_everything(delegate) -> None:
    delegate.send_text("Hello! I'm your assistant.")
    delegate.send_picture("https://img.example/cat.png")
    delegate.send_rich_card(_Card("XKCD 1234", web_callback="https://xkcd.com/1234"))
    delegate.send_rich_card({"display_title": "Run app", "callback": "app:run"})
    delegate.send_choice(0, "choice", "Yes", "")
    delegate.send_link("Configure", "/devices/create")
    delegate.send_button("Tweet", {"code": ["now", "=>", "@com.twitter.post"]})
    delegate.send_ask_special("yesno")


def test_console_delegate_renders_one_line_per_primitive(renderer, output) -> None:
    _send_everything(ConsoleDelegate(renderer))

    assert output() == [
        ">> Hello! I'm your assistant.",
        ">> picture: https://img.example/cat.png",
        ">> rdl: XKCD 1234 https://xkcd.com/1234",
        ">> rdl: Run app app:run",
        ">> choice 0: Yes",
        ">> link: Configure /devices/create",
        '>> button: Tweet {"code": ["now", "=>", "@com.twitter.post"]}',
        ">> ask special yesno",
    ]


def test_console_delegate_keeps_brackets_literal(renderer, output) -> None:
    ConsoleDelegate(renderer).send_text("[bold]not markup[/bold] :smile:")
    assert output() == [">> [bold]not markup[/bold] :smile:"]


def test_console_delegate_swallows_write_failures() -> None:
    class _BrokenRenderer(Renderer):
        def info(self, message: str) -> None:
            raise BrokenPipeError("terminal gone")

    delegate = ConsoleDelegate(_BrokenRenderer())
    delegate.send_text("lost")
    delegate.send_ask_special(None)


def test_transcript_records_primitives_in_order() -> None:
    stream = io.StringIO()
    transcript = TranscriptDelegate(stream)

    _send_everything(transcript)

    assert [entry["type"] for entry in transcript.entries] == [
        "text",
        "picture",
        "rdl",
        "rdl",
        "choice",
        "link",
        "button",
        "ask_special",
    ]
    assert transcript.entries[2] == {
        "type": "rdl",
        "title": "XKCD 1234",
        "callback": None,
        "web_callback": "https://xkcd.com/1234",
    }
    written = [json.loads(line) for line in stream.getvalue().splitlines()]
    assert written == transcript.entries


def test_fanout_forwards_to_every_delegate(renderer, output) -> None:
    transcript = TranscriptDelegate()
    fanout = FanoutDelegate([ConsoleDelegate(renderer), transcript])

    fanout.send_choice(2, "choice", "Maybe", "not sure")
    fanout.send_link("Docs", "https://docs.example")

    assert output() == [">> choice 2: Maybe", ">> link: Docs https://docs.example"]
    assert transcript.entries == [
        {"type": "choice", "index": 2, "kind": "choice", "title": "Maybe", "body": "not sure"},
        {"type": "link", "title": "Docs", "url": "https://docs.example"},
    ]
