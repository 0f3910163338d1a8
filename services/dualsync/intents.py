"""
Control intents: the closed set of things a caller can ask for.

Each intent is plain input for one controller run and is discarded after it.
Wire names follow the remote page's ``command`` field:

    play  pause  stop  seek  skip_forward  skip_backward  wakeUp
    setSpeed  resetSpeed  sync  savePaths  fullscreen

Numeric parameters are carried raw; the controller validates them so a bad
value is rejected before any command goes out.
"""

import math

from .errors import ValidationError


class Intent:
    name = ""
    # Every intent except SaveSelection runs against the stored selection
    needs_selection = True

    def __eq__(self, other):
        return type(self) is type(other) and vars(self) == vars(other)

    def __hash__(self):
        return hash((type(self).__name__, tuple(sorted(vars(self).items()))))

    def __repr__(self):
        fields = ", ".join(f"{k}={v!r}" for k, v in vars(self).items())
        return f"{type(self).__name__}({fields})"


class Play(Intent):
    name = "play"


class Pause(Intent):
    name = "pause"


class Stop(Intent):
    name = "stop"


class SeekAbsolute(Intent):
    name = "seek"

    def __init__(self, value):
        self.value = value


class SkipRelative(Intent):
    name = "skip"

    def __init__(self, delta: float):
        self.delta = delta


class WakeUp(Intent):
    name = "wakeUp"


class SetSpeed(Intent):
    name = "setSpeed"

    def __init__(self, rate):
        self.rate = rate


class ResetSpeed(Intent):
    name = "resetSpeed"


class Sync(Intent):
    name = "sync"


class SaveSelection(Intent):
    name = "savePaths"
    needs_selection = False

    def __init__(self, master_path: str, slave_path: str):
        self.master_path = master_path
        self.slave_path = slave_path


class SetFullscreen(Intent):
    name = "fullscreen"


ALL_INTENTS = (
    Play, Pause, Stop, SeekAbsolute, SkipRelative, WakeUp,
    SetSpeed, ResetSpeed, Sync, SaveSelection, SetFullscreen,
)

DEFAULT_SKIP_SECONDS = 10


def parse_number(raw) -> float | None:
    """Return *raw* as a finite float, or None if it is not one.

    Accepts ints, floats and numeric strings; rejects booleans, blanks,
    NaN and infinities.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value):
        return None
    return value


def _text(data: dict, key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    return str(value).strip()


def from_request(data: dict, skip_seconds: float = DEFAULT_SKIP_SECONDS) -> Intent:
    """Build the intent named by ``data["command"]``.

    Raises ValidationError for an unknown command.
    """
    command = data.get("command")
    if command == "play":
        return Play()
    if command == "pause":
        return Pause()
    if command == "stop":
        return Stop()
    if command == "seek":
        return SeekAbsolute(data.get("seekValue"))
    if command == "skip_forward":
        return SkipRelative(skip_seconds)
    if command == "skip_backward":
        return SkipRelative(-skip_seconds)
    if command == "wakeUp":
        return WakeUp()
    if command == "setSpeed":
        return SetSpeed(data.get("speed"))
    if command == "resetSpeed":
        return ResetSpeed()
    if command == "sync":
        return Sync()
    if command == "savePaths":
        return SaveSelection(_text(data, "masterFile"), _text(data, "slaveFile"))
    if command == "fullscreen":
        return SetFullscreen()
    raise ValidationError("Invalid command.")
