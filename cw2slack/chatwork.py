"""
ChatWork API client.

Reads the rooms visible to the configured account and the messages pending
in each of them:

    GET {base}/rooms
    GET {base}/rooms/{room_id}/messages

Every request carries the account token in the X-ChatWorkToken header.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from cw2slack.errors import ApiError, DecodeError, RequestError

logger = logging.getLogger(__name__)

BASE_URL = "https://api.chatwork.com/v2"
TOKEN_HEADER = "X-ChatWorkToken"


def _require(data: Dict[str, Any], key: str, expected_type: Any, kind: str) -> Any:
    if key not in data:
        raise DecodeError(f"{kind} is missing '{key}'")
    value = data[key]
    # bool is an int subclass but never a valid id or timestamp
    if isinstance(value, bool) or not isinstance(value, expected_type):
        raise DecodeError(
            f"{kind} field '{key}' expected {expected_type.__name__}, "
            f"got {type(value).__name__}"
        )
    return value


def _optional_str(data: Dict[str, Any], key: str, kind: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise DecodeError(
            f"{kind} field '{key}' expected str, got {type(value).__name__}"
        )
    return value


@dataclass(frozen=True)
class Room:
    """A ChatWork room."""

    room_id: int
    name: str
    icon_path: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> "Room":
        if not isinstance(data, dict):
            raise DecodeError(f"Room expected object, got {type(data).__name__}")
        return cls(
            room_id=_require(data, "room_id", int, "Room"),
            name=_require(data, "name", str, "Room"),
            icon_path=_optional_str(data, "icon_path", "Room"),
        )


@dataclass(frozen=True)
class Account:
    """Author of a message."""

    name: str = ""
    avatar_image_url: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> "Account":
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise DecodeError(f"Account expected object, got {type(data).__name__}")
        return cls(
            name=_optional_str(data, "name", "Account"),
            avatar_image_url=_optional_str(data, "avatar_image_url", "Account"),
        )


@dataclass(frozen=True)
class Message:
    """A message posted in a ChatWork room."""

    message_id: str
    body: str
    account: Account
    send_time: int

    @classmethod
    def from_dict(cls, data: Any) -> "Message":
        if not isinstance(data, dict):
            raise DecodeError(f"Message expected object, got {type(data).__name__}")
        return cls(
            message_id=_require(data, "message_id", str, "Message"),
            body=_optional_str(data, "body", "Message"),
            account=Account.from_dict(data.get("account")),
            send_time=_require(data, "send_time", int, "Message"),
        )


class ChatworkClient:
    """
    Synchronous ChatWork API client.

    A single httpx.Client is reused for every request so connections are
    pooled for the whole run. Use as a context manager or call close().
    """

    def __init__(
        self,
        token: str,
        base_url: str = BASE_URL,
        timeout: float = 30.0,
        http_client: Optional[httpx.Client] = None,
    ):
        """
        Initialize the client.

        Args:
            token: ChatWork API token
            base_url: API base URL
            timeout: Request timeout in seconds
            http_client: Preconfigured httpx.Client (tests inject one with a mock transport)
        """
        self.base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=timeout)
        self._headers = {TOKEN_HEADER: token}

    def __enter__(self) -> "ChatworkClient":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def list_rooms(self) -> List[Room]:
        """Return every room visible to the account."""
        data = self._get_json("/rooms")
        if data is None:
            raise DecodeError("Empty response body from rooms endpoint")
        rooms = [Room.from_dict(item) for item in self._as_list(data, "rooms")]
        logger.debug(f"Fetched {len(rooms)} room(s)")
        return rooms

    def list_messages(self, room_id: int) -> List[Message]:
        """
        Return the messages pending in a room.

        ChatWork answers with an empty body rather than ``[]`` when there is
        nothing new, which yields an empty list here.
        """
        data = self._get_json(f"/rooms/{room_id}/messages")
        if data is None:
            return []
        messages = [Message.from_dict(item) for item in self._as_list(data, "messages")]
        logger.debug(f"Fetched {len(messages)} message(s) from room {room_id}")
        return messages

    def _get_json(self, path: str) -> Any:
        """GET a path and decode its JSON body; returns None for an empty body."""
        url = f"{self.base_url}{path}"
        logger.debug(f"GET {url}")

        try:
            response = self._client.get(url, headers=self._headers)
        except httpx.HTTPError as e:
            raise RequestError(f"GET {url} failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise ApiError(response.status_code, url)

        if not response.content.strip():
            return None

        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise DecodeError(f"Invalid JSON from {url}: {e}") from e

    @staticmethod
    def _as_list(data: Any, kind: str) -> list:
        if not isinstance(data, list):
            raise DecodeError(f"Expected a JSON array of {kind}, got {type(data).__name__}")
        return data
