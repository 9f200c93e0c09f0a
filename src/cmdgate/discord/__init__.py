"""py-cord transport adapter for cmdgate."""

from .client import DiscordCommandClient
from .events import event_from_interaction, event_from_message

__all__ = [
    "DiscordCommandClient",
    "event_from_interaction",
    "event_from_message",
]
