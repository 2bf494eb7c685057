"""Application-level exception types for thingshell."""

from __future__ import annotations


class ThingshellError(Exception):
    """Base exception for thingshell."""


class ConfigurationError(ThingshellError):
    """Base exception for configuration and startup validation errors."""


class EntrypointError(ConfigurationError):
    """Raised when a configured module:attribute entrypoint cannot be loaded."""


class IdentityLookupError(ThingshellError):
    """Raised when the process owner has no password-database entry."""


class CommandError(ThingshellError):
    """Base exception for operator input that cannot be carried out."""


class UnknownCommandError(CommandError):
    """Raised for an unrecognized verb or sub-verb."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown command {name}")
        self.name = name


class MissingArgumentError(CommandError):
    """Raised when a meta-command lacks a required positional argument."""

    def __init__(self, command: str, argument: str) -> None:
        super().__init__(f"{command}: missing argument <{argument}>")
        self.command = command
        self.argument = argument


class MalformedCommandError(CommandError):
    """Raised when an argument is present but cannot be interpreted."""


class NotFoundError(CommandError):
    """Raised when a command targets an id that does not exist."""

    def __init__(self, what: str, target_id: str) -> None:
        super().__init__(f"No {what} with ID {target_id}")
        self.what = what
        self.target_id = target_id


class OAuthError(ThingshellError):
    """Base exception for device pairing failures."""


class OAuthInitiationError(OAuthError):
    """Raised when the device factory cannot start an OAuth pairing."""


class OAuthCompletionError(OAuthError):
    """Raised when the device factory rejects an OAuth callback."""
