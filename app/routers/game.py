"""Game control API — start a round, fire, read state, reset.

Commands never touch the simulation directly: they are queued on the
arena clock with ``call_soon``, run between ticks on the clock thread,
and the handler waits for their result before answering.
"""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from arena.clock import ClockStopped

router = APIRouter(prefix="/api/game", tags=["game"])

# Seconds a handler waits for the clock thread to run a command
COMMAND_TIMEOUT = 2.0


class FireCommand(BaseModel):
    x: float
    y: float


def _get_round(request: Request):
    """Retrieve the arena Round from app state."""
    arena_round = getattr(request.app.state, "arena_round", None)
    if arena_round is None:
        raise HTTPException(503, "Arena not available")
    return arena_round


async def run_on_clock(clock, fn, *args):
    """Queue *fn* on the arena clock and wait for its return value."""
    future = clock.call_soon(fn, *args)
    return await asyncio.wait_for(asyncio.wrap_future(future), COMMAND_TIMEOUT)


async def _command(arena_round, fn, *args):
    try:
        return await run_on_clock(arena_round.clock, fn, *args)
    except ClockStopped:
        raise HTTPException(503, "Arena clock not running")
    except asyncio.TimeoutError:
        raise HTTPException(504, "Arena clock did not respond")


@router.get("/state")
async def get_game_state(request: Request):
    """Get current round state."""
    return _get_round(request).get_state()


@router.post("/start")
async def start_round(request: Request):
    """Start a round from idle or game over."""
    arena_round = _get_round(request)
    if not await _command(arena_round, arena_round.start):
        raise HTTPException(400, f"Cannot start round in state: {arena_round.state}")
    return {"status": "started", "round": arena_round.rounds_played}


@router.post("/fire")
async def fire(command: FireCommand, request: Request):
    """Fire a projectile from the player toward (x, y)."""
    arena_round = _get_round(request)
    projectile = await _command(arena_round, arena_round.fire, command.x, command.y)
    if projectile is None:
        raise HTTPException(409, f"Cannot fire in state: {arena_round.state}")
    return {
        "status": "fired",
        "id": projectile.entity_id,
        "target": {"x": command.x, "y": command.y},
    }


@router.post("/reset")
async def reset_round(request: Request):
    """Return to idle, clearing the arena."""
    arena_round = _get_round(request)
    await _command(arena_round, arena_round.reset)
    return {"status": "reset", "state": arena_round.state}
