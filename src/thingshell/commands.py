"""Terminal line grammar."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from thingshell.errors import MalformedCommandError, MissingArgumentError, UnknownCommandError

ESCAPE = "\\"


class Verb(StrEnum):
    QUIT = "quit"
    HELP = "help"
    RAW = "raw"
    THINGTALK = "thingtalk"
    CHOICE = "choice"
    APP = "app"
    DEVICE = "device"
    MESSAGING = "messaging"
    PERMISSION = "permission"
    DIAGNOSTIC = "diagnostic"


VERB_KEYS: dict[str, Verb] = {
    "q": Verb.QUIT,
    "?": Verb.HELP,
    "h": Verb.HELP,
    "r": Verb.RAW,
    "t": Verb.THINGTALK,
    "c": Verb.CHOICE,
    "a": Verb.APP,
    "d": Verb.DEVICE,
    "m": Verb.MESSAGING,
    "p": Verb.PERMISSION,
    "l": Verb.DIAGNOSTIC,
}

# Verbs whose whole argument text is one opaque payload.
PAYLOAD_VERBS = frozenset({Verb.RAW, Verb.THINGTALK})


@dataclass(frozen=True)
class MetaCommand:
    """Escape-prefixed line parsed into a verb and positional arguments."""

    verb: Verb
    args: tuple[str, ...] = field(default_factory=tuple)

    def arg(self, index: int, name: str) -> str:
        """Return a required positional argument."""

        if index >= len(self.args):
            raise MissingArgumentError(self.verb.value, name)
        return self.args[index]

    def int_arg(self, index: int, name: str) -> int:
        raw = self.arg(index, name)
        try:
            return int(raw)
        except ValueError as exc:
            raise MalformedCommandError(f"{self.verb.value}: <{name}> must be an integer, got {raw!r}") from exc

    @property
    def subverb(self) -> str:
        return self.arg(0, "command")


@dataclass(frozen=True)
class NaturalLanguage:
    """Free-form text for the assistant."""

    text: str


type ParsedLine = MetaCommand | NaturalLanguage


def parse_line(line: str) -> ParsedLine | None:
    """Classify one terminal line; blank lines yield ``None``."""

    if not line.strip():
        return None
    if not line.startswith(ESCAPE):
        return NaturalLanguage(line)

    key = line[1:2]
    verb = VERB_KEYS.get(key)
    if verb is None:
        raise UnknownCommandError(ESCAPE + key)

    body = line[2:].strip()
    if verb in PAYLOAD_VERBS:
        return MetaCommand(verb, (body,) if body else ())
    return MetaCommand(verb, tuple(body.split()))


HELP_TEXT = """\
Available commands:
\\q : quit
\\r <json> : send json to the assistant
\\c <number> : make a choice
\\t <code> : send ThingTalk to the assistant
\\m self : print own messaging identities
\\m identity <identity> : lookup messaging identity
\\m search <name> : list contacts by name
\\a list : list apps
\\a stop <uuid> : stop app
\\d list : list devices
\\d start-oauth <kind> : start oauth
\\d complete-oauth <url> : finish oauth
\\p list : list permissions
\\p revoke <uuid> : revoke permissions
\\l : run diagnostic queries against the data store
\\? or \\h : show this help
Any other command is interpreted as an English sentence and sent to the assistant"""
