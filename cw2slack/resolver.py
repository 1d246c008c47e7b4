"""Room to Slack channel resolution."""

import logging
from typing import Iterable

from cw2slack.config import MappingEntry

logger = logging.getLogger(__name__)


class ChannelResolver:
    """
    Picks the destination channel for a ChatWork room.

    Entries are scanned in configuration order and the last entry whose room
    matches wins; rooms without an entry go to the default channel.
    """

    def __init__(self, default_channel: str, mappings: Iterable[MappingEntry] = ()):
        self.default_channel = default_channel
        self.mappings = tuple(mappings)

    def resolve(self, room_id: int) -> str:
        channel = self.default_channel
        for entry in self.mappings:
            if entry.room_id == room_id:
                channel = entry.channel
        logger.debug(f"Room {room_id} resolved to channel {channel}")
        return channel
