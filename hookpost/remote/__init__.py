"""Remote webhook clients."""

from hookpost.remote.base import ChannelClient
from hookpost.remote.discord_webhook import DiscordWebhookClient

__all__ = [
    "ChannelClient",
    "DiscordWebhookClient",
]
