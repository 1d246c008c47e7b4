"""
Relay orchestration.

One run lists the ChatWork rooms, fetches the pending messages of each room
and posts every message to Slack. Rooms and messages are handled strictly in
order, one request at a time. Errors are not handled here: the first failure
propagates to the caller and ends the run.
"""

import logging
from dataclasses import dataclass
from typing import List, Protocol

from cw2slack.chatwork import Message, Room
from cw2slack.resolver import ChannelResolver
from cw2slack.slack import SlackNotification, build_notification

logger = logging.getLogger(__name__)


class MessageSource(Protocol):
    def list_rooms(self) -> List[Room]: ...

    def list_messages(self, room_id: int) -> List[Message]: ...


class NotificationSink(Protocol):
    def post(self, notification: SlackNotification) -> None: ...


@dataclass
class RelayResult:
    """Counters for a finished run."""

    rooms_seen: int = 0
    rooms_relayed: int = 0
    messages_relayed: int = 0


class Relay:
    """Relays pending ChatWork messages to a Slack webhook."""

    def __init__(
        self,
        source: MessageSource,
        resolver: ChannelResolver,
        sink: NotificationSink,
    ):
        self.source = source
        self.resolver = resolver
        self.sink = sink

    def run(self) -> RelayResult:
        """Perform one synchronization pass."""
        result = RelayResult()

        rooms = self.source.list_rooms()
        logger.info(f"Checking {len(rooms)} room(s) for new messages")

        for room in rooms:
            result.rooms_seen += 1
            messages = self.source.list_messages(room.room_id)
            if not messages:
                continue

            channel = self.resolver.resolve(room.room_id)
            logger.info(
                f"Relaying {len(messages)} message(s) from room {room.room_id} "
                f"({room.name}) to {channel}"
            )

            for message in messages:
                self.sink.post(build_notification(room, message, channel))
                result.messages_relayed += 1

            result.rooms_relayed += 1

        logger.info(
            f"Relayed {result.messages_relayed} message(s) from "
            f"{result.rooms_relayed} of {result.rooms_seen} room(s)"
        )
        return result
