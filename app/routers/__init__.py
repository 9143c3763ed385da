"""API routers for CONVERGE ARENA."""

from app.routers.game import router as game_router
from app.routers.ws import router as ws_router

__all__ = ["game_router", "ws_router"]
