"""
Data types exchanged with the Twitch Helix streams endpoint and the
publisher registry.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional

from streamcheck.exceptions import DecodeError

STRING_FIELDS = ("id", "user_id", "user_name", "game_id", "type", "title", "started_at")


@dataclass(frozen=True)
class Publisher:
    """A channel entry from the publisher registry."""

    name: str
    twitch_stream: Optional[str] = None

    @property
    def has_stream(self) -> bool:
        return bool(self.twitch_stream)


@dataclass(frozen=True)
class StreamRecord:
    """One live stream as returned in the ``data`` array of /helix/streams."""

    id: str
    user_id: str
    user_name: str
    game_id: str
    type: str
    title: str
    viewer_count: int
    started_at: str

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> "StreamRecord":
        """Build a record from one JSON object; absent or null fields take zero values."""
        if not isinstance(item, dict):
            raise DecodeError(f"stream record must be an object, got {type(item).__name__}")

        values: Dict[str, Any] = {}
        for name in STRING_FIELDS:
            value = item.get(name)
            if value is None:
                value = ""
            elif not isinstance(value, str):
                raise DecodeError(f"{name} must be a string, got {type(value).__name__}")
            values[name] = value

        # bool is a subclass of int
        viewer_count = item.get("viewer_count")
        if viewer_count is None:
            viewer_count = 0
        elif isinstance(viewer_count, bool) or not isinstance(viewer_count, int):
            raise DecodeError(f"viewer_count is not an integer: {viewer_count!r}")

        return cls(viewer_count=viewer_count, **values)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def decode_streams_response(payload: Any) -> List[StreamRecord]:
    """
    Decode a parsed /helix/streams body into stream records.

    Args:
        payload: Result of ``response.json()``

    Returns:
        Records in response order; an empty list when ``data`` is empty or absent
    """
    if not isinstance(payload, dict):
        raise DecodeError(f"streams response must be an object, got {type(payload).__name__}")

    data = payload.get("data")
    if data is None:
        return []
    if not isinstance(data, list):
        raise DecodeError(f"streams response 'data' must be a list, got {type(data).__name__}")

    return [StreamRecord.from_api(item) for item in data]
