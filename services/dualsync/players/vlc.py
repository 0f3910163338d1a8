"""
VLC web-interface client (the remote control channel for each participant).

VLC HTTP API (default port 8080, JSON responses, basic auth with empty user):
  GET /requests/status.json                         current state
  GET /requests/status.json?command=in_enqueue&input=X
  GET /requests/status.json?command=in_play&input=X load and play now
  GET /requests/status.json?command=pl_next|pl_play|pl_pause|pl_stop
  GET /requests/status.json?command=seek&val=N      absolute seconds
  GET /requests/status.json?command=rate&val=R
  GET /requests/status.json?command=fullscreen      toggles

pl_pause and fullscreen toggle, so callers decide from a fresh status
whether to send them.
"""

import asyncio
import json
import logging

import aiohttp

from .base import Command, Participant, PlayerClient, PlayerStatus, SendResult

logger = logging.getLogger("dualsync.players.vlc")

STATUS_PATH = "/requests/status.json"
DEFAULT_TIMEOUT = 3.0

# Command name → (VLC command, query parameter carrying the value)
_VLC_COMMANDS = {
    Command.ENQUEUE: ("in_enqueue", "input"),
    Command.LOAD_AND_PLAY: ("in_play", "input"),
    Command.NEXT: ("pl_next", None),
    Command.PLAY: ("pl_play", None),
    Command.PAUSE: ("pl_pause", None),
    Command.STOP: ("pl_stop", None),
    Command.SEEK: ("seek", "val"),
    Command.RATE: ("rate", "val"),
    Command.FULLSCREEN: ("fullscreen", None),
}


def _format_value(value) -> str:
    """Render numbers the way VLC expects (no trailing .0 noise on seeks)."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def command_params(command: Command) -> dict:
    """Translate a Command into VLC query parameters."""
    try:
        vlc_name, value_key = _VLC_COMMANDS[command.name]
    except KeyError:
        raise ValueError(f"unsupported VLC command: {command.name!r}") from None
    params = {"command": vlc_name}
    if value_key:
        if command.value is None:
            raise ValueError(f"VLC command {vlc_name!r} needs a value")
        params[value_key] = _format_value(command.value)
    return params


class VlcHttpClient(PlayerClient):
    """Talks to VLC's HTTP interface on each participant via one session.

    Pass a session to share it, or call start() to open a private one once
    the event loop is running (and close() on shutdown).
    """

    def __init__(self, session: aiohttp.ClientSession | None = None,
                 timeout: float = DEFAULT_TIMEOUT):
        self._session = session
        self._owns_session = False
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def start(self):
        if self._session is None:
            self._session = aiohttp.ClientSession()
            self._owns_session = True

    async def close(self):
        if self._owns_session and self._session:
            await self._session.close()
        self._session = None
        self._owns_session = False

    def _auth(self, participant: Participant) -> aiohttp.BasicAuth:
        return aiohttp.BasicAuth("", participant.password)

    async def send(self, participant: Participant, command: Command) -> SendResult:
        params = command_params(command)
        vlc_name = params["command"]
        url = f"{participant.url}{STATUS_PATH}"
        try:
            async with self._session.get(
                url, params=params, auth=self._auth(participant),
                timeout=self._timeout,
            ) as resp:
                resp.raise_for_status()
                await resp.read()
                logger.debug("%s <- %s (HTTP %d)", participant.label, params, resp.status)
                return SendResult.sent()
        except asyncio.TimeoutError:
            logger.warning("VLC command failed (%s %s): timeout", participant.label, vlc_name)
            return SendResult.failed("timeout")
        except aiohttp.ClientError as e:
            logger.warning("VLC command failed (%s %s): %s", participant.label, vlc_name, e)
            return SendResult.failed(str(e) or type(e).__name__)

    async def query(self, participant: Participant) -> PlayerStatus | None:
        url = f"{participant.url}{STATUS_PATH}"
        try:
            async with self._session.get(
                url, auth=self._auth(participant), timeout=self._timeout,
            ) as resp:
                resp.raise_for_status()
                doc = await resp.json(content_type=None)
        except asyncio.TimeoutError:
            logger.warning("VLC status failed (%s): timeout", participant.label)
            return None
        except (aiohttp.ClientError, json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning("VLC status failed (%s): %s", participant.label, e)
            return None

        if not isinstance(doc, dict):
            logger.warning("VLC status failed (%s): unexpected status document %r",
                           participant.label, type(doc).__name__)
            return None
        return PlayerStatus.from_document(doc)
