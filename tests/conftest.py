"""Shared fakes: a recording player client and a sleep that never waits."""

import pytest

from dualsync.controller import ControlContext, SyncController, SyncSettings
from dualsync.path_store import MediaSelection, PathStore
from dualsync.players import (
    MASTER,
    SLAVE,
    Participant,
    PlayerClient,
    PlayerStatus,
    SendResult,
)


def status(state="playing", elapsed=0.0, fullscreen=True, has_time=True):
    return PlayerStatus(state=state, elapsed=elapsed, fullscreen=fullscreen,
                        has_time=has_time)


class FakePlayers(PlayerClient):
    """Records every send/query/sleep in one ordered event list.

    Statuses are scripted per role: a list is consumed one entry per query
    (the last entry repeats); None means unreachable.
    """

    def __init__(self, events):
        self.events = events
        self.scripts = {MASTER: [status()], SLAVE: [status()]}
        self.failing = set()

    def script(self, role, *statuses):
        self.scripts[role] = list(statuses)

    async def send(self, participant, command):
        self.events.append(("send", participant.role, command.name, command.value))
        if participant.role in self.failing:
            return SendResult.failed("connection refused")
        return SendResult.sent()

    async def query(self, participant):
        self.events.append(("query", participant.role))
        script = self.scripts[participant.role]
        return script.pop(0) if len(script) > 1 else script[0]

    def sent(self, role=None, name=None):
        """(role, command, value) for each send, optionally filtered."""
        result = []
        for event in self.events:
            if event[0] != "send":
                continue
            _, r, n, v = event
            if role is not None and r != role:
                continue
            if name is not None and n != name:
                continue
            result.append((r, n, v))
        return result


@pytest.fixture
def events():
    return []


@pytest.fixture
def players(events):
    return FakePlayers(events)


@pytest.fixture
def sleep(events):
    async def _sleep(seconds):
        events.append(("sleep", seconds))
    return _sleep


@pytest.fixture
def store(tmp_path):
    store = PathStore(str(tmp_path / "paths.txt"))
    store.save(MediaSelection("/media/left.mp4", "/media/right.mp4"))
    return store


@pytest.fixture
def ctx(players, store, sleep):
    return ControlContext(
        players,
        Participant(MASTER, "http://master:8080", "secret"),
        Participant(SLAVE, "http://slave:8080", "secret"),
        store,
        SyncSettings(),
        sleep=sleep,
    )


@pytest.fixture
def controller(ctx):
    return SyncController(ctx)
