from __future__ import annotations

import asyncio
import json
import math
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from geolive.protocol.constants import T_RECEIVE_LOCATION
from geolive.protocol.messages import LocationSample, parse_sample


class LocationError(Exception):
    """Failure reported by the host's location capability (codes as in the W3C Geolocation API)."""

    code = 0

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__


class PermissionDenied(LocationError):
    code = 1


class PositionUnavailable(LocationError):
    code = 2


class Timeout(LocationError):
    code = 3


_END = object()


async def _next_sample(it: AsyncIterator[LocationSample]) -> object:
    try:
        return await it.__anext__()
    except StopAsyncIteration:
        return _END


@dataclass(frozen=True)
class PositionOptions:
    enable_high_accuracy: bool = True
    timeout_s: Optional[float] = None  # None waits forever
    maximum_age_s: float = 0.0


class LocationProvider(ABC):
    """
    Host location capability.

    - `current_position`: one-shot request
    - `watch`: continuous stream until the consumer stops iterating
    """

    async def current_position(self, options: Optional[PositionOptions] = None) -> LocationSample:
        options = options or PositionOptions()
        try:
            return await asyncio.wait_for(self._locate(), timeout=options.timeout_s)
        except asyncio.TimeoutError:
            raise Timeout("Timeout expired") from None

    async def watch(
        self,
        options: Optional[PositionOptions] = None,
        on_error: Optional[Callable[[LocationError], None]] = None,
    ) -> AsyncIterator[LocationSample]:
        """
        Yield samples as the source produces them.

        A sample slower than `options.timeout_s` is reported as `Timeout` to
        `on_error` and the watch keeps waiting for it; without `on_error` the
        `Timeout` is raised. Errors raised by the source end the watch.
        """
        options = options or PositionOptions()
        it = self._samples().__aiter__()
        pending: Optional[asyncio.Task] = None
        try:
            while True:
                if pending is None:
                    pending = asyncio.create_task(_next_sample(it))
                done, _ = await asyncio.wait({pending}, timeout=options.timeout_s)
                if not done:
                    err = Timeout("Timeout expired")
                    if on_error is None:
                        raise err
                    on_error(err)
                    continue
                task, pending = pending, None
                sample = task.result()
                if sample is _END:
                    return
                yield sample
        finally:
            if pending is not None:
                pending.cancel()

    @abstractmethod
    async def _locate(self) -> LocationSample: ...

    @abstractmethod
    def _samples(self) -> AsyncIterator[LocationSample]: ...


class FixedLocationProvider(LocationProvider):
    """Stationary device: reports the same position every `interval_s`."""

    def __init__(self, sample: LocationSample, *, interval_s: float = 1.0) -> None:
        self.sample = sample
        self.interval_s = interval_s

    async def _locate(self) -> LocationSample:
        return self.sample

    async def _samples(self) -> AsyncIterator[LocationSample]:
        while True:
            yield self.sample
            await asyncio.sleep(self.interval_s)


class TraceLocationProvider(LocationProvider):
    """
    Replays a recorded track.

    `delays_s[i]` is the pause before sample i; without delays samples are
    spaced by `interval_s`. The watch ends with the trace.
    """

    def __init__(
        self,
        samples: Sequence[LocationSample],
        *,
        interval_s: float = 1.0,
        delays_s: Optional[Sequence[float]] = None,
    ) -> None:
        if delays_s is not None and len(delays_s) != len(samples):
            raise ValueError("delays_s must match samples")
        self.samples = list(samples)
        self.interval_s = interval_s
        self.delays_s = list(delays_s) if delays_s is not None else None

    @classmethod
    def from_jsonl(
        cls,
        path: Path,
        *,
        speed: float = 1.0,
        interval_s: float = 1.0,
        only_id: Optional[str] = None,
    ) -> "TraceLocationProvider":
        """
        Load a track from JSONL.

        Accepted lines:
          - {"latitude": .., "longitude": ..} or {"lat": .., "lon": ..}, optional "ts" (ms)
          - geolive-record output: {"ts": <ms>, "msg": {"t": "receive-location", "id": .., ...}}
        Lines that carry no valid position are skipped.
        """
        samples: list[LocationSample] = []
        stamps: list[Optional[int]] = []
        for line in Path(path).read_text(encoding="utf-8").splitlines():
            if not line.strip():
                continue
            try:
                obj = json.loads(line)
            except ValueError:
                # e.g. the last line of a recording cut off mid-write
                continue
            if not isinstance(obj, dict):
                continue
            ts = obj.get("ts")
            if isinstance(obj.get("msg"), dict):
                obj = obj["msg"]
                if obj.get("t") != T_RECEIVE_LOCATION:
                    continue
                if only_id is not None and obj.get("id") != only_id:
                    continue
            if "latitude" not in obj and "lat" in obj:
                obj = {"latitude": obj.get("lat"), "longitude": obj.get("lon")}
            sample = parse_sample(obj)
            if sample is None:
                continue
            samples.append(sample)
            finite = isinstance(ts, (int, float)) and not isinstance(ts, bool) and math.isfinite(ts)
            stamps.append(int(ts) if finite else None)

        delays: Optional[list[float]] = None
        if samples and all(ts is not None for ts in stamps):
            delays = [0.0]
            for prev, cur in zip(stamps, stamps[1:]):
                delays.append(max(0, cur - prev) / 1000.0 / max(0.01, speed))
        return cls(samples, interval_s=interval_s, delays_s=delays)

    async def _locate(self) -> LocationSample:
        if not self.samples:
            raise PositionUnavailable("Trace is empty")
        return self.samples[0]

    async def _samples(self) -> AsyncIterator[LocationSample]:
        if not self.samples:
            raise PositionUnavailable("Trace is empty")
        for i, sample in enumerate(self.samples):
            if self.delays_s is not None:
                delay = self.delays_s[i]
            else:
                delay = self.interval_s if i else 0.0
            if delay:
                await asyncio.sleep(delay)
            yield sample


class DeniedLocationProvider(LocationProvider):
    """The user refused location access."""

    async def _locate(self) -> LocationSample:
        raise PermissionDenied("User denied Geolocation")

    async def _samples(self) -> AsyncIterator[LocationSample]:
        raise PermissionDenied("User denied Geolocation")
        yield  # pragma: no cover
