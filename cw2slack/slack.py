"""
Slack incoming webhook client.

Each relayed ChatWork message becomes one notification, posted as a
URL-encoded form whose single ``payload`` field holds the JSON document:

    {username, channel, icon_url, attachments: [{text, author_name,
     author_icon, author_link, color, footer, ts}]}
"""

import json
import logging
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional

import httpx

from cw2slack.chatwork import Message, Room
from cw2slack.errors import RequestError

logger = logging.getLogger(__name__)

ATTACHMENT_COLOR = "#EEEEEE"
ROOM_LINK_FORMAT = "https://chatwork.com/#!rid/{room_id}-{message_id}"


def message_link(room_id: int, message_id: str) -> str:
    """Deep link to a message in the ChatWork web client."""
    return ROOM_LINK_FORMAT.format(room_id=room_id, message_id=message_id)


@dataclass(frozen=True)
class SlackAttachment:
    text: str
    author_name: str
    author_icon: str
    author_link: str
    color: str
    footer: str
    ts: int


@dataclass(frozen=True)
class SlackNotification:
    username: str
    channel: str
    icon_url: str
    attachments: List[SlackAttachment] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)


def build_notification(room: Room, message: Message, channel: str) -> SlackNotification:
    """Build the notification relaying ``message`` from ``room`` to ``channel``."""
    link = message_link(room.room_id, message.message_id)
    attachment = SlackAttachment(
        text=message.body,
        author_name=message.account.name,
        author_icon=message.account.avatar_image_url,
        author_link=link,
        color=ATTACHMENT_COLOR,
        footer=link,
        ts=message.send_time,
    )
    return SlackNotification(
        username=room.name,
        channel=channel,
        icon_url=room.icon_path,
        attachments=[attachment],
    )


class SlackWebhookClient:
    """Posts notifications to a Slack incoming webhook endpoint."""

    def __init__(
        self,
        endpoint: str,
        timeout: float = 30.0,
        http_client: Optional[httpx.Client] = None,
    ):
        """
        Initialize the client.

        Args:
            endpoint: Incoming webhook URL
            timeout: Request timeout in seconds
            http_client: Preconfigured httpx.Client (tests inject one with a mock transport)
        """
        self.endpoint = endpoint
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=timeout)

    def __enter__(self) -> "SlackWebhookClient":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def post(self, notification: SlackNotification) -> None:
        """Send one notification; raises RequestError if it is not accepted."""
        form = {"payload": notification.to_json()}

        try:
            response = self._client.post(self.endpoint, data=form)
        except httpx.HTTPError as e:
            raise RequestError(f"Webhook POST failed: {e}") from e

        if not 200 <= response.status_code < 300:
            # Slack puts the reason (e.g. "channel_not_found") in the body
            raise RequestError(
                f"Webhook rejected notification for {notification.channel}: "
                f"HTTP {response.status_code} {response.text[:200]}"
            )

        logger.debug(f"Posted notification to {notification.channel}")
