"""Output delegates for the assistant's conversational primitives.

The assistant core calls exactly one of these methods per output unit. The
dispatcher never calls them; it only hands a delegate to the conversation.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from typing import IO, Any, Protocol

from loguru import logger

from thingshell.records import field_of
from thingshell.render import Renderer

PREFIX = ">> "


class OutputDelegate(Protocol):
    """Capability interface over the fixed set of output primitives."""

    def send_text(self, message: str) -> None: ...

    def send_picture(self, url: str) -> None: ...

    def send_rich_card(self, card: Any) -> None: ...

    def send_choice(self, index: int, kind: str, title: str, body: str) -> None: ...

    def send_link(self, title: str, url: str) -> None: ...

    def send_button(self, title: str, payload: Any) -> None: ...

    def send_ask_special(self, kind: str | None) -> None: ...


def _payload_text(payload: Any) -> str:
    if isinstance(payload, str):
        return payload
    return json.dumps(payload, default=str)


class ConsoleDelegate:
    """Render each primitive as one ``>>`` line on the terminal."""

    def __init__(self, renderer: Renderer) -> None:
        self._renderer = renderer

    def send_text(self, message: str) -> None:
        self._emit(str(message))

    def send_picture(self, url: str) -> None:
        self._emit(f"picture: {url}")

    def send_rich_card(self, card: Any) -> None:
        title = field_of(card, "display_title", "")
        callback = field_of(card, "callback") or field_of(card, "web_callback")
        self._emit(f"rdl: {title} {callback}")

    def send_choice(self, index: int, kind: str, title: str, body: str) -> None:
        self._emit(f"choice {index}: {title}")

    def send_link(self, title: str, url: str) -> None:
        self._emit(f"link: {title} {url}")

    def send_button(self, title: str, payload: Any) -> None:
        self._emit(f"button: {title} {_payload_text(payload)}")

    def send_ask_special(self, kind: str | None) -> None:
        self._emit(f"ask special {kind}")

    def _emit(self, text: str) -> None:
        try:
            self._renderer.info(PREFIX + text)
        except OSError:
            logger.opt(exception=True).warning("delegate.write.error")


class TranscriptDelegate:
    """Machine-readable record of every primitive, in call order.

    Entries are kept in :attr:`entries`; when a stream is given each entry is also
    written to it as one JSON line.
    """

    def __init__(self, stream: IO[str] | None = None) -> None:
        self.entries: list[dict[str, Any]] = []
        self._stream = stream

    def send_text(self, message: str) -> None:
        self._record("text", message=message)

    def send_picture(self, url: str) -> None:
        self._record("picture", url=url)

    def send_rich_card(self, card: Any) -> None:
        self._record(
            "rdl",
            title=field_of(card, "display_title", ""),
            callback=field_of(card, "callback"),
            web_callback=field_of(card, "web_callback"),
        )

    def send_choice(self, index: int, kind: str, title: str, body: str) -> None:
        self._record("choice", index=index, kind=kind, title=title, body=body)

    def send_link(self, title: str, url: str) -> None:
        self._record("link", title=title, url=url)

    def send_button(self, title: str, payload: Any) -> None:
        self._record("button", title=title, payload=payload)

    def send_ask_special(self, kind: str | None) -> None:
        self._record("ask_special", kind=kind)

    def _record(self, kind: str, **fields: Any) -> None:
        entry = {"type": kind, **fields}
        self.entries.append(entry)
        if self._stream is None:
            return
        try:
            self._stream.write(json.dumps(entry, default=str) + "\n")
            self._stream.flush()
        except OSError:
            logger.opt(exception=True).warning("delegate.transcript.error type={}", kind)


class FanoutDelegate:
    """Forward every primitive to several delegates in order."""

    def __init__(self, delegates: Iterable[OutputDelegate]) -> None:
        self._delegates = list(delegates)

    def send_text(self, message: str) -> None:
        for delegate in self._delegates:
            delegate.send_text(message)

    def send_picture(self, url: str) -> None:
        for delegate in self._delegates:
            delegate.send_picture(url)

    def send_rich_card(self, card: Any) -> None:
        for delegate in self._delegates:
            delegate.send_rich_card(card)

    def send_choice(self, index: int, kind: str, title: str, body: str) -> None:
        for delegate in self._delegates:
            delegate.send_choice(index, kind, title, body)

    def send_link(self, title: str, url: str) -> None:
        for delegate in self._delegates:
            delegate.send_link(title, url)

    def send_button(self, title: str, payload: Any) -> None:
        for delegate in self._delegates:
            delegate.send_button(title, payload)

    def send_ask_special(self, kind: str | None) -> None:
        for delegate in self._delegates:
            delegate.send_ask_special(kind)
