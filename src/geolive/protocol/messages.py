from __future__ import annotations

import json
from typing import Any, Literal, Optional, TypeAlias

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .constants import LAT_MAX, LAT_MIN, LON_MAX, LON_MIN

ConnectionId: TypeAlias = str


class LocationSample(BaseModel):
    """A single WGS84 position. No history is kept; each sample replaces the last."""

    model_config = ConfigDict(allow_inf_nan=False, frozen=True)

    latitude: float = Field(ge=LAT_MIN, le=LAT_MAX)
    longitude: float = Field(ge=LON_MIN, le=LON_MAX)


class Hello(BaseModel):
    t: Literal["hello"] = "hello"
    id: ConnectionId


class SendLocation(LocationSample):
    t: Literal["send-location"] = "send-location"


class BroadcastMessage(BaseModel):
    """A sample tagged with the connection it came from."""

    t: Literal["receive-location"] = "receive-location"
    id: ConnectionId
    latitude: float
    longitude: float

    @classmethod
    def tag(cls, sender_id: ConnectionId, sample: LocationSample) -> "BroadcastMessage":
        return cls(id=sender_id, latitude=sample.latitude, longitude=sample.longitude)

    def sample(self) -> LocationSample:
        return LocationSample(latitude=self.latitude, longitude=self.longitude)


class UserDisconnected(BaseModel):
    t: Literal["user-disconnected"] = "user-disconnected"
    id: ConnectionId


def encode(msg: BaseModel) -> str:
    return json.dumps(msg.model_dump(), separators=(",", ":"), ensure_ascii=False)


def decode(raw: str | bytes) -> Optional[dict[str, Any]]:
    """Parse one text frame; anything that is not a JSON object yields None."""
    try:
        obj = json.loads(raw)
    except (TypeError, ValueError):
        return None
    return obj if isinstance(obj, dict) else None


def parse_sample(payload: Any) -> Optional[LocationSample]:
    """
    Validate a location payload.

    Returns None for missing keys, non-numeric or non-finite values and
    coordinates outside the WGS84 range. Unknown keys (such as `t`) are ignored.
    Rejecting out-of-range values is deliberate: they are dropped, never clamped.
    """
    if not isinstance(payload, dict):
        return None
    try:
        return LocationSample.model_validate(payload)
    except ValidationError:
        return None
