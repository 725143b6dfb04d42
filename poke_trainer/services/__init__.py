"""Game services sitting between the gateways and the core rules."""

from .dispatcher import CommandDispatcher, Reply

__all__ = ["CommandDispatcher", "Reply"]
