#!/usr/bin/env python3
# DualSync
# Copyright (C) 2024-2026 DualSync contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""
DualSync Control Service (dualsync-control)

Receives control intents from the remote page (play, pause, seek, sync, ...)
and drives the master and slave VLC players through their web interfaces so
both play the same position at the same time.

Port: 3000 (config control.port, or PORT env var)
Secret: VLC_PASSWORD env var. The service refuses to start without it.
"""

import asyncio
import logging
import os
import sys

from aiohttp import web

# Ensure services/ is on the path for sibling imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))
from dualsync import action_log
from dualsync.config import cfg, config_source, vlc_password, PASSWORD_ENV
from dualsync.controller import ControlContext, SyncController, SyncSettings
from dualsync.endpoint import ControlEndpoint, create_app
from dualsync.path_store import PathStore
from dualsync.players import MASTER, SLAVE, Participant, VlcHttpClient
from dualsync.watchdog import notify_status, notify_stopping, watchdog_loop

logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] %(levelname)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("dualsync.control")

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------
DEFAULT_PORT = 3000
MASTER_URL = cfg("master", "url", default="http://192.168.127.177:8080")
SLAVE_URL = cfg("slave", "url", default="http://192.168.127.141:8080")
PATHS_FILE = cfg("control", "paths_file", default="paths.txt")
ACTION_LOG = cfg("control", "action_log", default="control_log.txt")
ERROR_LOG = cfg("control", "error_log", default="control_errors.log")
HTTP_TIMEOUT = float(cfg("control", "http_timeout", default=3.0))


def control_port() -> int:
    return int(os.environ.get("PORT") or cfg("control", "port", default=DEFAULT_PORT))


def build_app(password: str) -> web.Application:
    """Wire participants, client, store and controller into the aiohttp app."""
    store = PathStore(PATHS_FILE)
    master = Participant(MASTER, MASTER_URL, password)
    slave = Participant(SLAVE, SLAVE_URL, password)
    settings = SyncSettings.from_config()

    client = VlcHttpClient(timeout=HTTP_TIMEOUT)
    ctx = ControlContext(client, master, slave, store, settings)
    app = create_app(ControlEndpoint(SyncController(ctx)))
    background: list[asyncio.Task] = []

    async def on_startup(app: web.Application):
        await client.start()
        background.append(asyncio.create_task(watchdog_loop()))
        notify_status(f"Controlling master@{master.url}, slave@{slave.url}")
        logger.info("Control service started (master: %s, slave: %s, paths: %s, config: %s)",
                    master.url, slave.url, PATHS_FILE, config_source() or "built-in")

    async def on_cleanup(app: web.Application):
        notify_stopping()
        for task in background:
            task.cancel()
        await client.close()
        logger.info("Control service stopped")

    app.on_startup.append(on_startup)
    app.on_cleanup.append(on_cleanup)
    return app


def main():
    password = vlc_password()
    if not password:
        logger.error("%s environment variable is required, refusing to start", PASSWORD_ENV)
        sys.exit(1)

    action_log.install(ACTION_LOG, ERROR_LOG)
    app = build_app(password)
    web.run_app(app, host=cfg("control", "host", default="0.0.0.0"),
                port=control_port(), print=lambda msg: logger.info(msg))


if __name__ == "__main__":
    main()
