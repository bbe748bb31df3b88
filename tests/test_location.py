import asyncio
import json

import pytest

from geolive.client.location import (
    DeniedLocationProvider,
    FixedLocationProvider,
    LocationProvider,
    PermissionDenied,
    PositionOptions,
    PositionUnavailable,
    Timeout,
    TraceLocationProvider,
)
from geolive.protocol.messages import LocationSample


class SlowProvider(LocationProvider):
    async def _locate(self):
        await asyncio.sleep(10)

    async def _samples(self):
        await asyncio.sleep(10)
        yield LocationSample(latitude=0, longitude=0)


def at(lat, lon):
    return LocationSample(latitude=lat, longitude=lon)


def test_error_codes():
    assert (PermissionDenied.code, PositionUnavailable.code, Timeout.code) == (1, 2, 3)
    assert PermissionDenied("nope").message == "nope"


@pytest.mark.asyncio
async def test_current_position_times_out():
    with pytest.raises(Timeout):
        await SlowProvider().current_position(PositionOptions(timeout_s=0.01))


@pytest.mark.asyncio
async def test_watch_times_out():
    with pytest.raises(Timeout):
        async for _ in SlowProvider().watch(PositionOptions(timeout_s=0.01)):
            pass


@pytest.mark.asyncio
async def test_denied_provider():
    provider = DeniedLocationProvider()
    with pytest.raises(PermissionDenied):
        await provider.current_position()
    with pytest.raises(PermissionDenied):
        async for _ in provider.watch():
            pass


@pytest.mark.asyncio
async def test_fixed_provider_repeats():
    provider = FixedLocationProvider(at(1, 2), interval_s=0)
    assert await provider.current_position() == at(1, 2)

    got = []
    async for sample in provider.watch():
        got.append(sample)
        if len(got) == 3:
            break
    assert got == [at(1, 2)] * 3


@pytest.mark.asyncio
async def test_trace_provider_replays_then_ends():
    provider = TraceLocationProvider([at(1, 1), at(2, 2)], interval_s=0)
    assert await provider.current_position() == at(1, 1)
    assert [s async for s in provider.watch()] == [at(1, 1), at(2, 2)]


@pytest.mark.asyncio
async def test_empty_trace_is_unavailable():
    provider = TraceLocationProvider([])
    with pytest.raises(PositionUnavailable):
        await provider.current_position()
    with pytest.raises(PositionUnavailable):
        async for _ in provider.watch():
            pass


def test_trace_from_jsonl_formats(tmp_path):
    path = tmp_path / "walk.jsonl"
    lines = [
        {"latitude": 1, "longitude": 2, "ts": 1000},
        {"lat": 3, "lon": 4, "ts": 3000},
        {"latitude": 999, "longitude": 4, "ts": 3500},
        {"ts": 5000, "msg": {"t": "receive-location", "id": "A1", "latitude": 5, "longitude": 6}},
        {"ts": 5500, "msg": {"t": "receive-location", "id": "A2", "latitude": 7, "longitude": 8}},
        {"ts": 6000, "msg": {"t": "user-disconnected", "id": "A1"}},
    ]
    path.write_text("\n".join(json.dumps(x) for x in lines) + "\n\n", encoding="utf-8")

    provider = TraceLocationProvider.from_jsonl(path, speed=2.0)
    assert provider.samples == [at(1, 2), at(3, 4), at(5, 6), at(7, 8)]
    assert provider.delays_s == [0.0, 1.0, 1.0, 0.25]

    only = TraceLocationProvider.from_jsonl(path, only_id="A1")
    assert only.samples == [at(1, 2), at(3, 4), at(5, 6)]


def test_trace_without_timestamps_uses_interval(tmp_path):
    path = tmp_path / "walk.jsonl"
    path.write_text('{"latitude": 1, "longitude": 2}\n{"latitude": 3, "longitude": 4, "ts": 10}\n')

    provider = TraceLocationProvider.from_jsonl(path, interval_s=0.5)
    assert provider.delays_s is None
    assert provider.interval_s == 0.5


@pytest.mark.asyncio
async def test_watch_reports_slow_sample_and_keeps_waiting():
    class Late(LocationProvider):
        async def _locate(self):
            return at(0, 0)

        async def _samples(self):
            await asyncio.sleep(0.05)
            yield at(1, 1)
            yield at(2, 2)

    errors = []
    got = [s async for s in Late().watch(PositionOptions(timeout_s=0.02), on_error=errors.append)]

    assert got == [at(1, 1), at(2, 2)]
    assert errors
    assert all(isinstance(e, Timeout) for e in errors)


def test_trace_from_jsonl_skips_garbled_lines(tmp_path):
    path = tmp_path / "cut.jsonl"
    path.write_text(
        '{"latitude": 1, "longitude": 2}\n'
        "not json at all\n"
        '[1, 2]\n'
        '{"latitude": 3, "longi',
        encoding="utf-8",
    )

    provider = TraceLocationProvider.from_jsonl(path)
    assert provider.samples == [at(1, 2)]


def test_trace_from_jsonl_ignores_non_finite_timestamps(tmp_path):
    path = tmp_path / "nan.jsonl"
    path.write_text(
        '{"latitude": 1, "longitude": 2, "ts": NaN}\n{"latitude": 3, "longitude": 4, "ts": 2000}\n',
        encoding="utf-8",
    )

    provider = TraceLocationProvider.from_jsonl(path, interval_s=0.25)
    assert provider.samples == [at(1, 2), at(3, 4)]
    assert provider.delays_s is None
