from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

from geolive.protocol.messages import LocationSample

# Key of this client's own marker; never created or removed by relayed events.
SELF = "self"

SELF_LABEL = "Your location"
PEER_LABEL = "Other user"


@dataclass
class Marker:
    key: str
    latitude: float
    longitude: float
    label: str = PEER_LABEL

    def move_to(self, latitude: float, longitude: float) -> None:
        self.latitude = latitude
        self.longitude = longitude

    @property
    def position(self) -> tuple[float, float]:
        return (self.latitude, self.longitude)


@dataclass
class MapView:
    center: tuple[float, float] = (20.0, 0.0)
    zoom: int = 2

    def focus(self, sample: LocationSample, zoom: int) -> None:
        self.center = (sample.latitude, sample.longitude)
        self.zoom = zoom


@dataclass
class MarkerSet:
    """
    Visual markers keyed by connection id (or `SELF`).

    Invariant: at most one marker per key. Peer operations never touch `SELF`.
    """

    markers: dict[str, Marker] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.markers)

    def __contains__(self, key: object) -> bool:
        return key in self.markers

    def __iter__(self) -> Iterator[Marker]:
        return iter(list(self.markers.values()))

    def get(self, key: str) -> Marker | None:
        return self.markers.get(key)

    def place_self(self, sample: LocationSample) -> Marker:
        return self._upsert(SELF, sample, SELF_LABEL)

    def upsert_peer(self, peer_id: str, sample: LocationSample) -> Marker:
        if peer_id == SELF:
            raise ValueError("peer id collides with the self marker key")
        return self._upsert(peer_id, sample, PEER_LABEL)

    def remove_peer(self, peer_id: str) -> bool:
        if peer_id == SELF:
            return False
        return self.markers.pop(peer_id, None) is not None

    def peers(self) -> list[Marker]:
        return [m for k, m in self.markers.items() if k != SELF]

    def snapshot(self) -> dict[str, tuple[float, float]]:
        return {k: m.position for k, m in self.markers.items()}

    def _upsert(self, key: str, sample: LocationSample, label: str) -> Marker:
        marker = self.markers.get(key)
        if marker is None:
            marker = Marker(key, sample.latitude, sample.longitude, label)
            self.markers[key] = marker
        else:
            marker.move_to(sample.latitude, sample.longitude)
        return marker
