"""Systemd notify integration for the control service.

Sends READY/WATCHDOG/STATUS/STOPPING messages to the systemd notify socket.
Silently no-ops when NOTIFY_SOCKET is unset (dev mode, tests).

Usage:
    from dualsync.watchdog import watchdog_loop, notify_status
    asyncio.create_task(watchdog_loop())
    notify_status("Controlling master@10.0.0.2, slave@10.0.0.3")
"""

import asyncio
import logging
import os
import socket

logger = logging.getLogger(__name__)


def _socket_address() -> str | None:
    addr = os.environ.get("NOTIFY_SOCKET")
    if not addr:
        return None
    if addr[0] == "@":
        addr = "\0" + addr[1:]
    return addr


def sd_notify(msg: str) -> bool:
    """Send a notification message to systemd. Returns False when unsupervised."""
    addr = _socket_address()
    if addr is None:
        return False
    sock = socket.socket(socket.AF_UNIX, socket.SOCK_DGRAM)
    try:
        sock.sendto(msg.encode(), addr)
    except OSError as e:
        logger.warning("sd_notify failed: %s", e)
        return False
    finally:
        sock.close()
    return True


def notify_status(text: str) -> bool:
    """Publish a one-line status shown by `systemctl status`."""
    return sd_notify(f"STATUS={text}")


def notify_stopping() -> bool:
    return sd_notify("STOPPING=1")


async def watchdog_loop(interval: int = 20):
    """Send READY=1 once, then WATCHDOG=1 every *interval* seconds.

    Requires Type=notify in the unit file to have any effect.
    """
    sd_notify("READY=1")
    logger.info("Watchdog started (interval=%ds)", interval)
    while True:
        sd_notify("WATCHDOG=1")
        await asyncio.sleep(interval)
