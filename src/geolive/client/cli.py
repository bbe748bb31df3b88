from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
from typing import Optional

from geolive.protocol.messages import LocationSample

from .location import (
    DeniedLocationProvider,
    FixedLocationProvider,
    LocationProvider,
    PositionOptions,
    TraceLocationProvider,
)
from .map_client import MapClient, run
from .markers import SELF


def _print_markers(client: MapClient) -> None:
    lines = [f"[map] center={client.view.center} zoom={client.view.zoom} markers={len(client.markers)}"]
    for m in client.markers:
        who = "self" if m.key == SELF else m.key
        lines.append(f"  {who:<32} {m.latitude:.6f},{m.longitude:.6f}")
    print("\n".join(lines))


def _provider(args: argparse.Namespace) -> Optional[LocationProvider]:
    if args.no_location:
        return None
    if args.deny:
        return DeniedLocationProvider()
    if args.trace:
        return TraceLocationProvider.from_jsonl(
            Path(args.trace), speed=args.speed, interval_s=args.interval, only_id=args.id
        )
    lat, lon = args.at
    return FixedLocationProvider(LocationSample(latitude=lat, longitude=lon), interval_s=args.interval)


def main() -> None:
    ap = argparse.ArgumentParser(description="Share this device's position and follow everyone else's.")
    ap.add_argument("--ws", default="ws://127.0.0.1:3000/ws", help="Relay WebSocket URL")
    src = ap.add_mutually_exclusive_group(required=True)
    src.add_argument("--at", nargs=2, type=float, metavar=("LAT", "LON"), help="Report a fixed position")
    src.add_argument("--trace", help="Replay positions from a JSONL file")
    src.add_argument("--deny", action="store_true", help="Simulate the user refusing location access")
    src.add_argument("--no-location", action="store_true", help="Simulate a host without location support")
    ap.add_argument("--id", default=None, help="With --trace on a recording, only replay this connection id")
    ap.add_argument("--interval", type=float, default=1.0, help="Seconds between samples (no timestamps)")
    ap.add_argument("--speed", type=float, default=1.0, help="Trace speed multiplier (2.0 = 2x faster)")
    ap.add_argument("--timeout", type=float, default=None, help="Seconds to wait for each sample")
    ap.add_argument("--print", action="store_true", help="Print the marker table after every change")
    ap.add_argument("-v", "--verbose", action="store_true")
    args = ap.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
    )

    client = MapClient(
        _provider(args),
        watch_options=PositionOptions(timeout_s=args.timeout),
        on_change=_print_markers if args.print else None,
    )
    asyncio.run(run(args.ws, client))


if __name__ == "__main__":
    main()
