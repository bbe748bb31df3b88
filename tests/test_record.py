import json

from geolive.client.location import TraceLocationProvider
from geolive.protocol.messages import LocationSample
from geolive.tools.record_jsonl import to_record


def at(lat, lon):
    return LocationSample(latitude=lat, longitude=lon)


def loc(conn_id, lat, lon):
    return json.dumps({"t": "receive-location", "id": conn_id, "latitude": lat, "longitude": lon})


def test_only_peer_events_are_recorded():
    assert to_record(json.dumps({"t": "hello", "id": "me"})) is None
    assert to_record("garbage") is None
    assert to_record(json.dumps({"t": "receive-location", "id": "A1", "latitude": "x"})) is None

    line = to_record(loc("A1", 10, 20), ts=5)
    assert line == {"ts": 5, "msg": {"t": "receive-location", "id": "A1", "latitude": 10, "longitude": 20}}
    assert to_record(json.dumps({"t": "user-disconnected", "id": "A1"}), ts=6)["msg"]["t"] == "user-disconnected"


def test_id_filter():
    assert to_record(loc("A2", 1, 2), only_id="A1") is None
    assert to_record(loc("A1", 1, 2), only_id="A1") is not None


def test_recording_replays_as_trace(tmp_path):
    frames = [
        (1000, json.dumps({"t": "hello", "id": "me"})),
        (1000, loc("A1", 10, 20)),
        (1500, loc("A2", 50, 60)),
        (3000, loc("A1", 11, 21)),
        (4000, json.dumps({"t": "user-disconnected", "id": "A1"})),
    ]
    path = tmp_path / "traffic.jsonl"
    with path.open("w", encoding="utf-8") as f:
        for ts, raw in frames:
            line = to_record(raw, ts=ts)
            if line is not None:
                f.write(json.dumps(line) + "\n")

    trace = TraceLocationProvider.from_jsonl(path, only_id="A1")
    assert trace.samples == [at(10, 20), at(11, 21)]
    assert trace.delays_s == [0.0, 2.0]

    everyone = TraceLocationProvider.from_jsonl(path)
    assert everyone.samples == [at(10, 20), at(50, 60), at(11, 21)]
