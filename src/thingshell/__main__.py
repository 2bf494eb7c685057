"""thingshell CLI bootstrap."""

from __future__ import annotations

from thingshell.cli import app

if __name__ == "__main__":
    app()
