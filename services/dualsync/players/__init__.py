"""
Players: clients for the remote media players being kept in lockstep.

A player is driven only through its own remote-control HTTP interface; this
service never decodes or renders media itself.  Each installation has two
participants, ``master`` and ``slave``, both reached through the same client.

Current clients:
  vlc.py   VLC web interface (status.json + command query parameters)
"""

from .base import (
    MASTER,
    ROLES,
    SLAVE,
    Command,
    Participant,
    PlayerClient,
    PlayerStatus,
    SendResult,
)
from .vlc import VlcHttpClient

__all__ = [
    "MASTER",
    "SLAVE",
    "ROLES",
    "Command",
    "Participant",
    "PlayerClient",
    "PlayerStatus",
    "SendResult",
    "VlcHttpClient",
]
