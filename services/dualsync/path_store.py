"""
Path Store: the durable record of which media each participant plays.

The record is a small text file of key=value lines:

    MASTER_VIDEO_PATH=/media/left.mp4
    SLAVE_VIDEO_PATH=/media/right.mp4

Absent keys read as "".  Saves overwrite the whole record; there is no
locking, the last writer wins.
"""

import logging
import os
import tempfile

from .errors import PathStoreError

logger = logging.getLogger("dualsync.path_store")

MASTER_KEY = "MASTER_VIDEO_PATH"
SLAVE_KEY = "SLAVE_VIDEO_PATH"


class MediaSelection:
    """The pair of media paths currently selected for playback."""

    __slots__ = ("master_path", "slave_path")

    def __init__(self, master_path: str = "", slave_path: str = ""):
        self.master_path = master_path or ""
        self.slave_path = slave_path or ""

    @property
    def complete(self) -> bool:
        return bool(self.master_path and self.slave_path)

    @property
    def empty(self) -> bool:
        return not (self.master_path or self.slave_path)

    def path_for(self, role: str) -> str:
        return self.master_path if role == "master" else self.slave_path

    def __eq__(self, other):
        if not isinstance(other, MediaSelection):
            return NotImplemented
        return (self.master_path, self.slave_path) == (other.master_path, other.slave_path)

    def __repr__(self):
        return f"MediaSelection(master={self.master_path!r}, slave={self.slave_path!r})"


def parse_record(text: str) -> MediaSelection:
    """Parse the key=value record.  Unknown lines are ignored."""
    master = slave = ""
    for line in text.splitlines():
        key, sep, value = line.partition("=")
        if not sep:
            continue
        if key == MASTER_KEY:
            master = value
        elif key == SLAVE_KEY:
            slave = value
    return MediaSelection(master, slave)


def format_record(selection: MediaSelection) -> str:
    return f"{MASTER_KEY}={selection.master_path}\n{SLAVE_KEY}={selection.slave_path}"


class PathStore:
    """File-backed MediaSelection.  Read before every intent, written on save."""

    def __init__(self, path: str):
        self.path = path

    def load(self) -> MediaSelection:
        logger.info("Reading paths from %s", self.path)
        try:
            with open(self.path, encoding="utf-8") as f:
                content = f.read()
        except FileNotFoundError:
            logger.info("Paths file %s does not exist", self.path)
            return MediaSelection()
        except (OSError, UnicodeDecodeError) as e:
            logger.error("Could not read %s: %s", self.path, e)
            raise PathStoreError(f"Failed to read paths: {e}") from e

        selection = parse_record(content)
        logger.info('Read paths: masterFile="%s", slaveFile="%s"',
                    selection.master_path, selection.slave_path)
        return selection

    def save(self, selection: MediaSelection) -> None:
        """Overwrite the record.  Written to a sibling temp file, then swapped in."""
        directory = os.path.dirname(os.path.abspath(self.path))
        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(prefix=".paths-", dir=directory)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(format_record(selection))
            os.replace(tmp_path, self.path)
            tmp_path = None
        except OSError as e:
            logger.error("Error saving paths: %s", e)
            raise PathStoreError(f"Failed to save paths: {e}") from e
        finally:
            if tmp_path is not None:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    pass
        logger.info("Paths saved successfully to %s", self.path)
