# DualSync
# Copyright (C) 2024-2026 DualSync contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Control endpoint: one intent per request, one reply per intent.

  POST /control         run an intent; body is JSON or form fields:
                          command, masterFile, slaveFile, seekValue, speed
  GET  /control/status  live status of both participants (diagnostic)

Every /control reply is either {"message": ...} or {"error": ...}, never
both.  Callers branch on which key is present, not on the HTTP status.
"""

import json
import logging

from aiohttp import web

from .controller import SyncController, query_both
from .errors import ControlError
from .intents import from_request
from .path_store import MediaSelection

logger = logging.getLogger("dualsync.endpoint")

NO_PATHS = "No file paths found. Please save file paths first."


class ControlEndpoint:
    """Validates a request, resolves the media selection, runs the controller."""

    def __init__(self, controller: SyncController):
        self.controller = controller

    @property
    def _ctx(self):
        return self.controller.ctx

    def resolve_selection(self, data: dict) -> MediaSelection:
        """Fill omitted masterFile/slaveFile from the store."""
        master = str(data.get("masterFile") or "").strip()
        slave = str(data.get("slaveFile") or "").strip()
        if not (master and slave):
            stored = self._ctx.store.load()
            master = master or stored.master_path
            slave = slave or stored.slave_path
        return MediaSelection(master, slave)

    async def dispatch(self, data: dict) -> dict:
        """Run one request body to a {"message"} or {"error"} reply."""
        logger.info("Accessed /control: %s", json.dumps(data, default=str))
        data = dict(data)
        # Single-file callers: slave plays the master's file
        if not data.get("slaveFile") and data.get("masterFile"):
            data["slaveFile"] = data["masterFile"]

        try:
            intent = from_request(data, skip_seconds=self._ctx.settings.skip_seconds)
            selection = None
            if intent.needs_selection:
                selection = self.resolve_selection(data)
                if not selection.complete:
                    return {"error": NO_PATHS}
            message = await self.controller.handle(intent, selection)
        except ControlError as e:
            logger.warning("Control error: %s", e)
            return {"error": str(e)}
        except Exception as e:
            logger.exception("Unhandled error for command %r", data.get("command"))
            return {"error": f"Internal error: {e}"}
        return {"message": message}

    # ── HTTP handlers ──

    async def handle_control(self, request: web.Request) -> web.Response:
        """POST /control: run one intent."""
        try:
            if request.content_type == "application/json":
                data = await request.json()
            else:
                data = dict(await request.post())
        except (json.JSONDecodeError, ValueError, UnicodeDecodeError):
            return web.json_response({"error": "invalid request body"}, status=400)
        if not isinstance(data, dict):
            return web.json_response({"error": "invalid request body"}, status=400)

        return web.json_response(await self.dispatch(data))

    async def handle_status(self, request: web.Request) -> web.Response:
        """GET /control/status: what each participant reports right now."""
        ctx = self._ctx
        result = {}
        statuses = await query_both(ctx)
        for participant, status in zip(ctx.participants, statuses):
            entry = {"url": participant.url, "reachable": status is not None}
            if status is not None:
                entry.update(status.to_dict())
            result[participant.role] = entry
        return web.json_response(result)


@web.middleware
async def cors_middleware(request, handler):
    if request.method == "OPTIONS":
        resp = web.Response()
    else:
        resp = await handler(request)
    resp.headers["Access-Control-Allow-Origin"] = "*"
    resp.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
    resp.headers["Access-Control-Allow-Headers"] = "Content-Type"
    return resp


def create_app(endpoint: ControlEndpoint) -> web.Application:
    app = web.Application(middlewares=[cors_middleware])
    app.router.add_post("/control", endpoint.handle_control)
    app.router.add_get("/control/status", endpoint.handle_status)
    return app
