"""In-process dispatcher carrying bundle status and install requests."""

from .bus import RuntimeBus, get_global_bus
from . import topics
from .messages import MessageEnvelope

__all__ = ["RuntimeBus", "MessageEnvelope", "topics", "get_global_bus"]
