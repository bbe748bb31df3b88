from __future__ import annotations

import functools
import json

import pytest

from geolive.client.map_client import MapClient
from geolive.server.relay import Relay


class FakePeer:
    """Collects every frame the relay sends."""

    def __init__(self) -> None:
        self.frames: list[str] = []

    async def send_text(self, data: str) -> None:
        self.frames.append(data)

    def messages(self, t: str | None = None) -> list[dict]:
        msgs = [json.loads(f) for f in self.frames]
        return [m for m in msgs if t is None or m.get("t") == t]


class ClosedPeer:
    """A peer whose transport is already gone."""

    def __init__(self) -> None:
        self.greeted = False

    async def send_text(self, data: str) -> None:
        if not self.greeted:
            self.greeted = True
            return
        raise RuntimeError("transport closed")


class ClientPeer:
    """Delivers relay frames straight into a MapClient."""

    def __init__(self, client: MapClient) -> None:
        self.client = client

    async def send_text(self, data: str) -> None:
        self.client.handle_frame(data)


async def attach(relay: Relay, client: MapClient) -> str:
    """Wire a MapClient to an in-process relay; returns its connection id."""
    conn_id = await relay.connect(ClientPeer(client))
    client.send = functools.partial(relay.dispatch, conn_id)
    return conn_id


@pytest.fixture
def relay() -> Relay:
    return Relay()
