"""WebSocket endpoint for live arena frames and game events."""

import asyncio
import json
import queue
import threading
from datetime import datetime, timezone
from typing import Set

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from loguru import logger

from app.routers.game import run_on_clock
from arena.clock import ClockStopped

router = APIRouter(prefix="/ws", tags=["websocket"])


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class ConnectionManager:
    """Manages WebSocket connections for real-time updates."""

    def __init__(self):
        self.active_connections: Set[WebSocket] = set()
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket):
        """Accept and register a new WebSocket connection."""
        await websocket.accept()
        async with self._lock:
            self.active_connections.add(websocket)
        logger.info(f"WebSocket connected. Total connections: {len(self.active_connections)}")

    async def disconnect(self, websocket: WebSocket):
        """Remove a WebSocket connection."""
        async with self._lock:
            self.active_connections.discard(websocket)
        logger.info(f"WebSocket disconnected. Total connections: {len(self.active_connections)}")

    async def broadcast(self, message: dict):
        """Broadcast a message to all connected clients."""
        if not self.active_connections:
            return

        message_str = json.dumps(message)
        disconnected = set()

        async with self._lock:
            for connection in self.active_connections:
                try:
                    await connection.send_text(message_str)
                except Exception as e:
                    logger.warning(f"Failed to send to websocket: {e}")
                    disconnected.add(connection)

            self.active_connections -= disconnected

    async def send_to(self, websocket: WebSocket, message: dict):
        """Send a message to a specific client."""
        try:
            await websocket.send_text(json.dumps(message))
        except Exception as e:
            logger.warning(f"Failed to send to websocket: {e}")


# Global connection manager
manager = ConnectionManager()

# Returned by _run_command when the clock could not run the command
_FAILED = object()


@router.websocket("/live")
async def websocket_live(websocket: WebSocket):
    """Live arena feed: frames and game events out, start/fire in."""
    await manager.connect(websocket)

    await manager.send_to(
        websocket,
        {
            "type": "connected",
            "timestamp": _timestamp(),
            "message": "ARENA LINK ESTABLISHED",
        },
    )

    try:
        while True:
            data = await websocket.receive_text()
            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                await manager.send_to(
                    websocket, {"type": "error", "message": "Invalid JSON"}
                )
                continue
            if not isinstance(message, dict):
                await manager.send_to(
                    websocket, {"type": "error", "message": "Expected a JSON object"}
                )
                continue
            await handle_client_message(websocket, message)
    except WebSocketDisconnect:
        pass
    finally:
        await manager.disconnect(websocket)


async def _run_command(websocket: WebSocket, arena_round, fn, *args):
    """Run *fn* on the arena clock; report clock failures to the client."""
    try:
        return await run_on_clock(arena_round.clock, fn, *args)
    except ClockStopped:
        await manager.send_to(
            websocket, {"type": "error", "message": "Arena clock not running"}
        )
    except asyncio.TimeoutError:
        await manager.send_to(
            websocket, {"type": "error", "message": "Arena clock did not respond"}
        )
    return _FAILED


async def handle_client_message(websocket: WebSocket, message: dict):
    """Handle commands from WebSocket clients."""
    msg_type = message.get("type")
    arena_round = getattr(websocket.app.state, "arena_round", None)

    if msg_type == "ping":
        await manager.send_to(websocket, {"type": "pong", "timestamp": _timestamp()})
    elif arena_round is None and msg_type in ("start", "fire"):
        await manager.send_to(
            websocket, {"type": "error", "message": "Arena not available"}
        )
    elif msg_type == "start":
        started = await _run_command(websocket, arena_round, arena_round.start)
        if started is False:
            await manager.send_to(
                websocket, {"type": "error", "message": "Round already running"}
            )
    elif msg_type == "fire":
        try:
            x = float(message["x"])
            y = float(message["y"])
        except (KeyError, TypeError, ValueError):
            await manager.send_to(
                websocket, {"type": "error", "message": "fire requires numeric x and y"}
            )
            return
        projectile = await _run_command(websocket, arena_round, arena_round.fire, x, y)
        if projectile is None:
            await manager.send_to(
                websocket,
                {"type": "error", "message": f"Cannot fire in state: {arena_round.state}"},
            )
    else:
        await manager.send_to(
            websocket,
            {"type": "error", "message": f"Unknown message type: {msg_type}"},
        )


async def broadcast_arena_event(event_type: str, data: dict):
    """Broadcast an arena event to all WebSocket clients."""
    await manager.broadcast(
        {
            "type": event_type,
            "data": data,
            "timestamp": _timestamp(),
        }
    )


class FrameThrottle:
    """Keeps only the newest frame and flushes it at a fixed rate.

    Frames arrive once per tick; clients that paint slower than the
    simulation only need the latest one.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop, interval: float = 1 / 30):
        self._loop = loop
        self._interval = interval
        self._latest: dict | None = None
        self._lock = threading.Lock()
        self._flush_thread = threading.Thread(
            target=self._flush_loop, daemon=True, name="frame-throttle"
        )
        self._running = True

    def start(self) -> None:
        self._flush_thread.start()

    def add(self, frame: dict) -> None:
        with self._lock:
            self._latest = frame

    def _flush_loop(self) -> None:
        import time as _time

        while self._running:
            _time.sleep(self._interval)
            if not self._running:
                break
            with self._lock:
                frame = self._latest
                self._latest = None
            if frame is None:
                continue
            asyncio.run_coroutine_threadsafe(
                broadcast_arena_event("frame", frame), self._loop
            )

    def stop(self) -> None:
        self._running = False


class EventBridge:
    """Forwards EventBus messages to WebSocket clients from a daemon thread."""

    def __init__(self, event_bus, loop: asyncio.AbstractEventLoop, frame_interval: float = 1 / 30):
        self._event_bus = event_bus
        self._loop = loop
        self._sub = event_bus.subscribe()
        self._throttle = FrameThrottle(loop, frame_interval)
        self._running = False
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        self._running = True
        self._throttle.start()
        self._thread = threading.Thread(
            target=self._bridge_loop, daemon=True, name="arena-ws-bridge"
        )
        self._thread.start()

    def stop(self) -> None:
        self._running = False
        self._throttle.stop()
        self._event_bus.unsubscribe(self._sub)
        if self._thread is not None:
            self._thread.join(timeout=2.0)
            self._thread = None

    def _bridge_loop(self) -> None:
        while self._running:
            try:
                msg = self._sub.get(timeout=0.5)
            except queue.Empty:
                continue
            event_type = msg.get("type", "unknown")
            data = msg.get("data", {})
            if event_type == "frame":
                self._throttle.add(data)
            else:
                asyncio.run_coroutine_threadsafe(
                    broadcast_arena_event(event_type, data), self._loop
                )
