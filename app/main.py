"""CONVERGE ARENA — headless arcade simulation server.

Main FastAPI application.  The arena runs on its own clock thread; HTTP
and WebSocket handlers only queue commands and read state.
"""

import asyncio
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from app.config import Settings, settings
from app.routers import game_router, ws_router
from app.routers.ws import EventBridge
from arena import FrameRecorder, NullRenderer, RealtimeClock, Round, Viewport
from comms.event_bus import EventBus

VERSION = "0.1.0"


# ---------------------------------------------------------------------------
# Subsystem startup helpers
# ---------------------------------------------------------------------------

def _configure_logging(config: Settings) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if config.debug else config.log_level.upper())


def create_arena(config: Settings, event_bus: EventBus) -> Round:
    """Build the round, its clock and renderer from settings (clock not started)."""
    clock = RealtimeClock(frame_rate=config.frame_rate)
    viewport = Viewport(config.viewport_width, config.viewport_height)
    renderer = FrameRecorder(event_bus) if config.record_frames else NullRenderer()
    arena_round = Round(
        clock,
        viewport,
        event_bus=event_bus,
        renderer=renderer,
        spawn_interval_ms=config.spawn_interval_ms,
    )
    logger.info(
        f"Arena created ({viewport.width:.0f}x{viewport.height:.0f}, "
        f"{config.frame_rate:.0f} fps, spawn every {config.spawn_interval_ms:.0f}ms)"
    )
    return arena_round


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    _configure_logging(settings)
    logger.info("=" * 60)
    logger.info(f"  {settings.app_name} v{VERSION} - INITIALIZING")
    logger.info("=" * 60)

    event_bus = EventBus()
    arena_round = create_arena(settings, event_bus)
    arena_round.clock.start()

    bridge = EventBridge(event_bus, asyncio.get_running_loop())
    bridge.start()
    logger.info("Arena event bridge started")

    app.state.event_bus = event_bus
    app.state.arena_round = arena_round

    logger.info("=" * 60)
    logger.info(f"  {settings.app_name} ONLINE")
    logger.info("=" * 60)

    yield

    logger.info("Stopping arena event bridge...")
    bridge.stop()
    logger.info("Stopping arena clock...")
    arena_round.clock.stop()
    arena_round.reset()
    app.state.arena_round = None
    logger.info(f"{settings.app_name} shutting down...")


# Create FastAPI app
app = FastAPI(
    title="CONVERGE ARENA",
    description="Headless arcade simulation: converging enemies, projectiles, particles",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(game_router)
app.include_router(ws_router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "operational",
        "version": VERSION,
        "system": settings.app_name,
    }


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    uvicorn.run("app.main:app", host=settings.host, port=settings.port)
