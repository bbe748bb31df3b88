from __future__ import annotations

import logging
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Protocol

from geolive.protocol.constants import T_SEND_LOCATION
from geolive.protocol.messages import (
    BroadcastMessage,
    ConnectionId,
    Hello,
    UserDisconnected,
    decode,
    encode,
    parse_sample,
)

logger = logging.getLogger("geolive.relay")


class Peer(Protocol):
    async def send_text(self, data: str) -> None: ...


Handler = Callable[[ConnectionId, dict[str, Any]], Awaitable[None]]


@dataclass
class Relay:
    """
    Fan-out relay for location events.

    Every connected peer receives every sample (the sender included), tagged
    with the sender's connection id. Delivery is best-effort and at-most-once.
    State is only touched from the event loop that owns the relay.
    """

    connections: dict[ConnectionId, Peer] = field(default_factory=dict)
    debug_log_msgs: bool = False

    def __post_init__(self) -> None:
        self._handlers: dict[str, Handler] = {
            T_SEND_LOCATION: self._on_send_location,
        }

    def __len__(self) -> int:
        return len(self.connections)

    def __contains__(self, conn_id: object) -> bool:
        return conn_id in self.connections

    def connection_ids(self) -> list[ConnectionId]:
        return list(self.connections)

    async def connect(self, peer: Peer) -> ConnectionId:
        """Allocate a fresh id, greet the peer with it, then join it to the broadcast set."""
        conn_id = uuid.uuid4().hex
        # hello must be the first frame the peer sees
        await peer.send_text(encode(Hello(id=conn_id)))
        self.connections[conn_id] = peer
        logger.info("[relay] connect id=%s total=%d", conn_id, len(self.connections))
        return conn_id

    async def disconnect(self, conn_id: ConnectionId) -> None:
        if self.connections.pop(conn_id, None) is None:
            return
        logger.info("[relay] disconnect id=%s total=%d", conn_id, len(self.connections))
        await self.broadcast(encode(UserDisconnected(id=conn_id)))

    async def location_update(self, sender_id: ConnectionId, payload: Any) -> None:
        if sender_id not in self.connections:
            return
        sample = parse_sample(payload)
        if sample is None:
            logger.debug("[relay] dropped malformed sample from=%s payload=%r", sender_id, payload)
            return
        if self.debug_log_msgs:
            logger.info(
                "[relay] location from=%s lat=%s lon=%s", sender_id, sample.latitude, sample.longitude
            )
        await self.broadcast(encode(BroadcastMessage.tag(sender_id, sample)))

    async def dispatch(self, sender_id: ConnectionId, raw: str | bytes) -> None:
        """Route one inbound frame by its `t` tag; unknown or garbled frames are dropped."""
        msg = decode(raw)
        if msg is None:
            logger.debug("[relay] dropped undecodable frame from=%s", sender_id)
            return
        handler = self._handlers.get(msg.get("t"))
        if handler is None:
            logger.debug("[relay] dropped unknown t=%r from=%s", msg.get("t"), sender_id)
            return
        await handler(sender_id, msg)

    async def broadcast(self, data: str) -> None:
        # Snapshot: a peer may leave while we are awaiting a send.
        for conn_id, peer in list(self.connections.items()):
            try:
                await peer.send_text(data)
            except Exception as e:
                # Dead peers are removed by their own session's disconnect.
                logger.debug("[relay] delivery to %s failed: %s", conn_id, e)

    async def _on_send_location(self, sender_id: ConnectionId, msg: dict[str, Any]) -> None:
        await self.location_update(sender_id, msg)
