# DualSync
# Copyright (C) 2024-2026 DualSync contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Synchronization controller: turns one control intent into player commands.

There is no state between intents.  Each handler is a self-contained
procedure over the two participants' current status:

    handler(ctx, intent, selection) -> outcome message

and raises a ControlError subclass when the intent cannot be carried out.
"Both" always means master first, then slave; the two calls are independent
and a failed send to one never stops the other.  Status polls that do not
depend on each other run concurrently.

Fixed delays are settle windows that give VLC time to apply a command.  They
are awaited in line so command order is exactly the order written here.
"""

import asyncio
import logging

from .config import cfg
from .errors import (
    ControlError,
    ParticipantUnreachable,
    StatusUnavailable,
    ValidationError,
)
from .intents import (
    Pause,
    Play,
    ResetSpeed,
    SaveSelection,
    SeekAbsolute,
    SetFullscreen,
    SetSpeed,
    SkipRelative,
    Stop,
    Sync,
    WakeUp,
    parse_number,
)
from .path_store import MediaSelection, PathStore
from .players import Command, Participant, PlayerClient, PlayerStatus

logger = logging.getLogger("dualsync.controller")

NO_SELECTION = "File paths not found. Save them first."


def _config_number(section: str, key: str, default, cast=float):
    """Numeric config value, or *default* with a warning when it does not parse."""
    value = cfg(section, key, default=default)
    try:
        return cast(value)
    except (TypeError, ValueError):
        logger.warning("Config %s.%s: %r is not a number, using %r",
                       section, key, value, default)
        return default


class SyncSettings:
    """Policy constants and settle delays (seconds)."""

    def __init__(self,
                 drift_tolerance: float = 0.5,
                 lead_compensation: float = 1.0,
                 status_attempts: int = 3,
                 retry_delay: float = 0.2,
                 reload_delay: float = 0.35,
                 skip_seconds: float = 10,
                 play_settle: float = 1.0,
                 fullscreen_check: float = 0.3,
                 enqueue_delay: float = 0.3,
                 rate_delay: float = 0.2):
        self.drift_tolerance = drift_tolerance
        self.lead_compensation = lead_compensation
        self.status_attempts = max(1, int(status_attempts))
        self.retry_delay = retry_delay
        self.reload_delay = reload_delay
        self.skip_seconds = skip_seconds
        self.play_settle = play_settle
        self.fullscreen_check = fullscreen_check
        self.enqueue_delay = enqueue_delay
        self.rate_delay = rate_delay

    @classmethod
    def from_config(cls) -> "SyncSettings":
        return cls(
            drift_tolerance=_config_number("sync", "drift_tolerance", 0.5),
            lead_compensation=_config_number("sync", "lead_compensation", 1.0),
            status_attempts=_config_number("sync", "status_attempts", 3, int),
            retry_delay=_config_number("sync", "retry_delay", 0.2),
            reload_delay=_config_number("sync", "reload_delay", 0.35),
            skip_seconds=_config_number("sync", "skip_seconds", 10),
            play_settle=_config_number("delays", "play_settle", 1.0),
            fullscreen_check=_config_number("delays", "fullscreen_check", 0.3),
            enqueue_delay=_config_number("delays", "enqueue", 0.3),
            rate_delay=_config_number("delays", "rate", 0.2),
        )


class ControlContext:
    """Everything a handler needs: the two participants and their plumbing."""

    def __init__(self, players: PlayerClient, master: Participant,
                 slave: Participant, store: PathStore,
                 settings: SyncSettings | None = None, sleep=asyncio.sleep):
        self.players = players
        self.master = master
        self.slave = slave
        self.store = store
        self.settings = settings or SyncSettings()
        self.sleep = sleep

    @property
    def participants(self) -> tuple[Participant, Participant]:
        return (self.master, self.slave)


# ── Shared steps ──

async def send_both(ctx: ControlContext, command: Command):
    for participant in ctx.participants:
        await ctx.players.send(participant, command)


async def send_each(ctx: ControlContext, commands: dict):
    """Send a per-participant command, keyed by role, master first."""
    for participant in ctx.participants:
        await ctx.players.send(participant, commands[participant.role])


async def query_both(ctx: ControlContext) -> tuple[PlayerStatus | None, PlayerStatus | None]:
    master, slave = await asyncio.gather(
        ctx.players.query(ctx.master), ctx.players.query(ctx.slave))
    return master, slave


async def require_both(ctx: ControlContext) -> tuple[PlayerStatus, PlayerStatus]:
    master, slave = await query_both(ctx)
    if master is None or slave is None:
        raise StatusUnavailable("Could not retrieve VLC status.")
    return master, slave


async def ensure_fullscreen(ctx: ControlContext) -> dict:
    """Toggle fullscreen on whichever participant is not already fullscreen.

    Returns role → whether it was already fullscreen.  An unreadable status
    counts as not fullscreen.
    """
    statuses = await query_both(ctx)
    before = {}
    for participant, status in zip(ctx.participants, statuses):
        already = status is not None and status.fullscreen
        before[participant.role] = already
        logger.info("%s fullscreen status: %s", participant.label,
                    "on" if already else "off" if status is not None else "unknown")
        if not already:
            await ctx.players.send(participant, Command(Command.FULLSCREEN))
    return before


def describe_fullscreen(before: dict) -> str:
    parts = [f"{role.capitalize()} - {'already' if before[role] else 'now'} ON"
             for role in ("master", "slave")]
    return "Fullscreen: " + ", ".join(parts) + "."


async def load_media(ctx: ControlContext, selection: MediaSelection,
                     enqueue_delay: float = 0):
    """Enqueue the selection, advance to it, reset rate and rewind, both sides."""
    logger.info("Enqueuing media files on both players...")
    await send_each(ctx, {
        "master": Command.enqueue(selection.master_path),
        "slave": Command.enqueue(selection.slave_path),
    })
    if enqueue_delay:
        await ctx.sleep(enqueue_delay)
    logger.info("Activating enqueued files (pl_next)...")
    await send_both(ctx, Command(Command.NEXT))
    await send_both(ctx, Command.rate(1.0))
    await send_both(ctx, Command.seek(0))


async def reload_participant(ctx: ControlContext, participant: Participant,
                             selection: MediaSelection) -> PlayerStatus:
    """Load-and-play the participant's media, wait, and read it back."""
    path = selection.path_for(participant.role)
    logger.info("Reloading %s with %s", participant.label, path)
    await ctx.players.send(participant, Command.load_and_play(path))
    await ctx.sleep(ctx.settings.reload_delay)
    status = await ctx.players.query(participant)
    if status is None or not status.has_time:
        raise ParticipantUnreachable(
            f"{participant.label} VLC is unreachable or failed to reload.")
    return status


# ── Intent handlers ──

async def handle_play(ctx: ControlContext, intent: Play, selection: MediaSelection) -> str:
    master, slave = await query_both(ctx)
    resuming = any(s is not None and s.paused for s in (master, slave))

    if not resuming:
        await load_media(ctx, selection)
        logger.info("Waiting %gs before starting playback...", ctx.settings.play_settle)
        await ctx.sleep(ctx.settings.play_settle)

    await send_both(ctx, Command(Command.PLAY))
    await ctx.sleep(ctx.settings.fullscreen_check)
    fullscreen = describe_fullscreen(await ensure_fullscreen(ctx))

    if resuming:
        return f"Playback resumed from paused position. {fullscreen}"
    return (f"Playback started in sync after {ctx.settings.play_settle:g}-second buffer. "
            f"Rate set to 1.0x. {fullscreen}")


async def handle_pause(ctx: ControlContext, intent: Pause, selection: MediaSelection) -> str:
    master, slave = await require_both(ctx)
    max_time = max(master.elapsed, slave.elapsed)

    # Seek both first so the leader keeps its place and the laggard catches up
    await send_both(ctx, Command.seek(max_time))
    for participant, status in zip(ctx.participants, (master, slave)):
        if status.playing:
            await ctx.players.send(participant, Command(Command.PAUSE))
    return f"Both players synced to {max_time:g} sec and paused (no toggling)."


async def handle_stop(ctx: ControlContext, intent: Stop, selection: MediaSelection) -> str:
    await send_both(ctx, Command(Command.STOP))
    return "Both players stopped."


async def handle_seek(ctx: ControlContext, intent: SeekAbsolute,
                      selection: MediaSelection) -> str:
    value = parse_number(intent.value)
    if value is None:
        raise ValidationError("Invalid or missing seek value.")
    await send_both(ctx, Command.seek(value))
    return "Seek command sent."


async def handle_skip(ctx: ControlContext, intent: SkipRelative,
                      selection: MediaSelection) -> str:
    master, slave = await require_both(ctx)
    # Each side moves relative to its own position
    await send_each(ctx, {
        "master": Command.seek(max(0.0, master.elapsed + intent.delta)),
        "slave": Command.seek(max(0.0, slave.elapsed + intent.delta)),
    })
    direction = "forward" if intent.delta >= 0 else "backward"
    return f"Skipped {direction} {abs(intent.delta):g} seconds."


async def handle_wake_up(ctx: ControlContext, intent: WakeUp,
                         selection: MediaSelection) -> str:
    await load_media(ctx, selection, enqueue_delay=ctx.settings.enqueue_delay)
    await ctx.sleep(ctx.settings.play_settle)
    await send_both(ctx, Command(Command.PLAY))
    await ctx.sleep(ctx.settings.fullscreen_check)
    await ensure_fullscreen(ctx)
    return "Wake-up completed: media loaded, rate set, playback started smoothly."


async def handle_set_speed(ctx: ControlContext, intent: SetSpeed,
                           selection: MediaSelection) -> str:
    rate = parse_number(intent.rate)
    if rate is None or rate <= 0:
        raise ValidationError("Invalid speed value. Must be a positive number.")
    logger.info("Setting speed to %gx on both systems", rate)
    await send_both(ctx, Command.rate(rate))
    await ctx.sleep(ctx.settings.rate_delay)
    return f"Speed set to {rate:g}x on both players."


async def handle_reset_speed(ctx: ControlContext, intent: ResetSpeed,
                             selection: MediaSelection) -> str:
    logger.info("Resetting speed to 1.0x on both systems")
    await send_both(ctx, Command.rate(1.0))
    await ctx.sleep(ctx.settings.rate_delay)
    return "Speed reset to 1.0x on both players."


async def handle_save_selection(ctx: ControlContext, intent: SaveSelection,
                                selection: MediaSelection | None) -> str:
    logger.info('savePaths command received. masterFile: "%s", slaveFile: "%s"',
                intent.master_path, intent.slave_path)
    if not (intent.master_path and intent.slave_path):
        raise ValidationError("Missing file paths.")
    ctx.store.save(MediaSelection(intent.master_path, intent.slave_path))
    saved = ctx.store.load()
    logger.info('Verification - read back from file: masterFile="%s", slaveFile="%s"',
                saved.master_path, saved.slave_path)
    return "Paths saved successfully."


async def handle_fullscreen(ctx: ControlContext, intent: SetFullscreen,
                            selection: MediaSelection) -> str:
    await ctx.sleep(ctx.settings.fullscreen_check)
    return describe_fullscreen(await ensure_fullscreen(ctx))


async def handle_sync(ctx: ControlContext, intent: Sync, selection: MediaSelection) -> str:
    settings = ctx.settings
    master = slave = None
    master_ok = slave_ok = False

    for attempt in range(settings.status_attempts):
        master, slave = await query_both(ctx)
        master_ok = master is not None and master.has_time
        slave_ok = slave is not None and slave.has_time
        if master_ok and slave_ok:
            break
        logger.info("Status attempt %d/%d: master %s, slave %s", attempt + 1,
                    settings.status_attempts, "ok" if master_ok else "unreachable",
                    "ok" if slave_ok else "unreachable")
        if attempt < settings.status_attempts - 1:
            await ctx.sleep(settings.retry_delay)

    if not master_ok and not slave_ok:
        raise ParticipantUnreachable("Both VLC systems are unreachable.")
    if not master_ok:
        master = await reload_participant(ctx, ctx.master, selection)
    elif not slave_ok:
        slave = await reload_participant(ctx, ctx.slave, selection)

    # Bring stalled or stopped players back before comparing positions
    if not master.playing:
        master = await reload_participant(ctx, ctx.master, selection)
    if not slave.playing:
        slave = await reload_participant(ctx, ctx.slave, selection)

    drift = abs(master.elapsed - slave.elapsed)
    if drift <= settings.drift_tolerance:
        logger.info("Drift %.2fs within tolerance %.2fs, no correction",
                    drift, settings.drift_tolerance)
        return f"Players already in sync (drift {drift:.2f}s)."

    if master.elapsed < slave.elapsed:
        behind, behind_time, ahead_time = ctx.master, master.elapsed, slave.elapsed
    else:
        behind, behind_time, ahead_time = ctx.slave, slave.elapsed, master.elapsed
    # Land slightly ahead to cover the time the seek itself takes
    target = ahead_time + settings.lead_compensation
    await ctx.players.send(behind, Command.seek(target))
    logger.info("Synced %s from %.1fs to %.1fs", behind.role, behind_time, target)

    await send_both(ctx, Command(Command.PLAY))
    return f"Sync complete. Both players are now playing at ~{target:.1f} sec."


HANDLERS = {
    Play: handle_play,
    Pause: handle_pause,
    Stop: handle_stop,
    SeekAbsolute: handle_seek,
    SkipRelative: handle_skip,
    WakeUp: handle_wake_up,
    SetSpeed: handle_set_speed,
    ResetSpeed: handle_reset_speed,
    SaveSelection: handle_save_selection,
    SetFullscreen: handle_fullscreen,
    Sync: handle_sync,
}


class SyncController:
    """Dispatches each intent to its handler with an explicit context."""

    def __init__(self, ctx: ControlContext):
        self.ctx = ctx

    async def handle(self, intent, selection: MediaSelection | None = None) -> str:
        """Run one intent to completion and return its outcome message.

        *selection* overrides the stored one (the endpoint passes what the
        caller supplied, already merged with the store).  Raises ControlError.
        """
        handler = HANDLERS.get(type(intent))
        if handler is None:
            raise ValidationError("Invalid command.")

        logger.info("Intent %r", intent)
        if intent.needs_selection:
            if selection is None:
                selection = self.ctx.store.load()
            if not selection.complete:
                raise ValidationError(NO_SELECTION)

        try:
            message = await handler(self.ctx, intent, selection)
        except ControlError as e:
            logger.warning("%s failed: %s", intent.name, e)
            raise
        logger.info("%s: %s", intent.name, message)
        return message
