"""Exceptions raised by the simulation core."""

from __future__ import annotations


class CommandRejected(ValueError):
    """A player command failed validation; the state must stay unchanged."""

    def __init__(self, reason: str, *, title: str = "Not allowed") -> None:
        super().__init__(reason)
        self.reason = reason
        self.title = title


__all__ = ["CommandRejected"]
