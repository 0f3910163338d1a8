# DualSync
# Copyright (C) 2024-2026 DualSync contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Remote player client contract.

A participant is one remote player the controller drives (``master`` or
``slave``).  Commands are fire-and-forget: ``send`` reports only whether the
request made it through, and never raises for transport problems.  ``query``
returns a fresh PlayerStatus or None when the player could not be read.

Every client implementation must provide send and query.
"""

from abc import ABC, abstractmethod

MASTER = "master"
SLAVE = "slave"
ROLES = (MASTER, SLAVE)

STATES = ("playing", "paused", "stopped")
UNKNOWN_STATE = "unknown"


class Participant:
    """One remote player endpoint.  Fixed at process start."""

    __slots__ = ("role", "url", "password")

    def __init__(self, role: str, url: str, password: str):
        if role not in ROLES:
            raise ValueError(f"unknown participant role: {role!r}")
        object.__setattr__(self, "role", role)
        object.__setattr__(self, "url", url.rstrip("/"))
        object.__setattr__(self, "password", password)

    def __setattr__(self, name, value):
        raise AttributeError("Participant is immutable")

    @property
    def label(self) -> str:
        return self.role.capitalize()

    def __repr__(self):
        return f"Participant({self.role!r}, {self.url!r})"


class PlayerStatus:
    """Snapshot of one player's state, produced fresh by every query."""

    def __init__(self, state: str = UNKNOWN_STATE, elapsed: float = 0.0,
                 fullscreen: bool = False, has_time: bool = False):
        self.state = state if state in STATES else UNKNOWN_STATE
        self.elapsed = max(0.0, float(elapsed))
        self.fullscreen = bool(fullscreen)
        self.has_time = has_time  # False when the player omitted its time field

    @classmethod
    def from_document(cls, doc: dict) -> "PlayerStatus":
        """Build a status from a decoded status document.

        Missing fields fall back to safe values: time 0, fullscreen off,
        unknown state.
        """
        raw_time = doc.get("time")
        try:
            elapsed = float(raw_time) if raw_time is not None else 0.0
        except (TypeError, ValueError):
            elapsed = 0.0
            raw_time = None
        fullscreen = doc.get("fullscreen", False)
        if isinstance(fullscreen, str):
            fullscreen = fullscreen.lower() in ("1", "true")
        return cls(
            state=str(doc.get("state", UNKNOWN_STATE)),
            elapsed=elapsed,
            fullscreen=fullscreen,
            has_time=raw_time is not None,
        )

    @property
    def playing(self) -> bool:
        return self.state == "playing"

    @property
    def paused(self) -> bool:
        return self.state == "paused"

    def to_dict(self) -> dict:
        return {
            "state": self.state,
            "elapsed": self.elapsed,
            "fullscreen": self.fullscreen,
        }

    def __repr__(self):
        return (f"PlayerStatus(state={self.state!r}, elapsed={self.elapsed}, "
                f"fullscreen={self.fullscreen})")


class Command:
    """A one-shot player command: a name plus optional parameters."""

    ENQUEUE = "enqueue"
    NEXT = "next"
    PLAY = "play"
    PAUSE = "pause"
    STOP = "stop"
    SEEK = "seek"
    RATE = "rate"
    FULLSCREEN = "fullscreen"
    LOAD_AND_PLAY = "load_and_play"

    def __init__(self, name: str, value=None):
        self.name = name
        self.value = value

    @classmethod
    def enqueue(cls, path: str):
        return cls(cls.ENQUEUE, path)

    @classmethod
    def load_and_play(cls, path: str):
        return cls(cls.LOAD_AND_PLAY, path)

    @classmethod
    def seek(cls, seconds: float):
        return cls(cls.SEEK, seconds)

    @classmethod
    def rate(cls, rate: float):
        return cls(cls.RATE, rate)

    def __eq__(self, other):
        if not isinstance(other, Command):
            return NotImplemented
        return (self.name, self.value) == (other.name, other.value)

    def __hash__(self):
        return hash((self.name, self.value))

    def __repr__(self):
        if self.value is None:
            return f"Command({self.name!r})"
        return f"Command({self.name!r}, {self.value!r})"


class SendResult:
    """Outcome of one fire-and-forget command: sent, or transport failed."""

    __slots__ = ("ok", "error")

    def __init__(self, ok: bool, error: str = ""):
        self.ok = ok
        self.error = error

    @classmethod
    def sent(cls):
        return cls(True)

    @classmethod
    def failed(cls, error: str):
        return cls(False, error)

    def __bool__(self):
        return self.ok

    def __repr__(self):
        return "SendResult(sent)" if self.ok else f"SendResult(failed: {self.error})"


class PlayerClient(ABC):
    """Interface every remote player client must implement."""

    @abstractmethod
    async def send(self, participant: Participant, command: Command) -> SendResult: ...

    @abstractmethod
    async def query(self, participant: Participant) -> PlayerStatus | None: ...
