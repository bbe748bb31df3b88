from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Optional

import websockets

from geolive.protocol.constants import T_HELLO, T_RECEIVE_LOCATION, T_USER_DISCONNECTED
from geolive.protocol.messages import (
    BroadcastMessage,
    LocationSample,
    SendLocation,
    decode,
    encode,
    parse_sample,
)

from .location import LocationError, LocationProvider, PositionOptions
from .markers import SELF, MapView, MarkerSet

logger = logging.getLogger("geolive.client")

Send = Callable[[str], Awaitable[None]]

NO_LOCATION_SUPPORT = "Location is not supported on this host."


class MapClient:
    """
    Bridges a local location source to the relay and keeps `markers` in
    step with the broadcast stream.

    Every handler runs on the owning event loop, one at a time.
    """

    def __init__(
        self,
        provider: Optional[LocationProvider],
        *,
        send: Optional[Send] = None,
        view: Optional[MapView] = None,
        located_zoom: int = 13,
        watch_options: Optional[PositionOptions] = None,
        on_change: Optional[Callable[["MapClient"], None]] = None,
    ) -> None:
        self.provider = provider
        self.send = send
        self.view = view or MapView()
        self.located_zoom = located_zoom
        self.watch_options = watch_options or PositionOptions(timeout_s=5.0)
        self.on_change = on_change

        self.connection_id: Optional[str] = None
        self.markers = MarkerSet()
        self.errors: list[str] = []

        self._handlers: dict[str, Callable[[dict[str, Any]], None]] = {
            T_HELLO: self._on_hello,
            T_RECEIVE_LOCATION: self._on_receive_location,
            T_USER_DISCONNECTED: self._on_user_disconnected,
        }

    # ---- local location ----

    async def acquire_initial_location(self) -> Optional[LocationSample]:
        if self.provider is None:
            self._surface(NO_LOCATION_SUPPORT)
            return None
        try:
            sample = await self.provider.current_position()
        except LocationError as e:
            self._surface(f"Could not retrieve location: {e.message}")
            return None
        logger.info("[client] initial location %s,%s", sample.latitude, sample.longitude)
        self.view.focus(sample, self.located_zoom)
        self.markers.place_self(sample)
        self._changed()
        return sample

    async def start_continuous_tracking(self) -> None:
        """
        Runs until the provider's stream ends or the owning task is cancelled.

        A slow fix is surfaced and tracking carries on; any other location
        error ends it.
        """
        if self.provider is None:
            return
        try:
            async for sample in self.provider.watch(self.watch_options, on_error=self._tracking_error):
                self.markers.place_self(sample)
                self._changed()
                await self._send_location(sample)
        except LocationError as e:
            self._tracking_error(e)

    def _tracking_error(self, e: LocationError) -> None:
        self._surface(f"Failed to get location updates: {e.message}")

    async def locate(self) -> None:
        if await self.acquire_initial_location() is not None:
            await self.start_continuous_tracking()

    async def _send_location(self, sample: LocationSample) -> None:
        if self.send is None:
            return
        msg = SendLocation(latitude=sample.latitude, longitude=sample.longitude)
        await self.send(encode(msg))

    # ---- relayed events ----

    def handle_frame(self, raw: str | bytes) -> None:
        msg = decode(raw)
        if msg is None:
            logger.debug("[client] dropped undecodable frame")
            return
        handler = self._handlers.get(msg.get("t"))
        if handler is None:
            logger.debug("[client] dropped unknown t=%r", msg.get("t"))
            return
        handler(msg)

    def on_broadcast(self, message: BroadcastMessage) -> None:
        # Own echo: the self marker is already up to date.
        if message.id == self.connection_id or message.id == SELF:
            return
        self.markers.upsert_peer(message.id, message.sample())
        self._changed()

    def on_peer_disconnected(self, connection_id: str) -> None:
        if self.markers.remove_peer(connection_id):
            logger.info("[client] peer left id=%s", connection_id)
            self._changed()

    def _on_hello(self, msg: dict[str, Any]) -> None:
        conn_id = msg.get("id")
        if isinstance(conn_id, str):
            self.connection_id = conn_id
            logger.info("[client] connected as id=%s", conn_id)

    def _on_receive_location(self, msg: dict[str, Any]) -> None:
        conn_id = msg.get("id")
        sample = parse_sample(msg)
        if not isinstance(conn_id, str) or sample is None:
            return
        self.on_broadcast(BroadcastMessage.tag(conn_id, sample))

    def _on_user_disconnected(self, msg: dict[str, Any]) -> None:
        conn_id = msg.get("id")
        if isinstance(conn_id, str):
            self.on_peer_disconnected(conn_id)

    def _surface(self, text: str) -> None:
        logger.warning("[client] %s", text)
        self.errors.append(text)
        self._changed()

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change(self)


async def run(ws_url: str, client: MapClient) -> None:
    """Connect, then track and render until the relay closes the socket. No reconnect."""
    async with websockets.connect(ws_url) as ws:
        client.send = ws.send
        tracking = asyncio.create_task(client.locate())
        try:
            async for raw in ws:
                client.handle_frame(raw)
        except websockets.ConnectionClosed as e:
            logger.info("[client] connection closed: %s", e)
        finally:
            tracking.cancel()
            with contextlib.suppress(asyncio.CancelledError, websockets.ConnectionClosed):
                await tracking
