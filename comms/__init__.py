"""Inter-thread messaging for the arena."""

from .event_bus import EventBus

__all__ = ["EventBus"]
