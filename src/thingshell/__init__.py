"""thingshell - drive a conversational assistant from the terminal."""

from .session import AssistantSession
from .dispatcher import CommandDispatcher, DispatchOutcome

__version__ = "0.1.0"

__all__ = ["AssistantSession", "CommandDispatcher", "DispatchOutcome"]
