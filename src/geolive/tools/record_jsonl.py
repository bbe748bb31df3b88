from __future__ import annotations

import argparse
import asyncio
import json
import logging
import time
from pathlib import Path
from typing import Any, Optional

import websockets

from geolive.protocol.constants import T_RECEIVE_LOCATION, T_USER_DISCONNECTED
from geolive.protocol.messages import decode, parse_sample

logger = logging.getLogger("geolive.record")

RECORDED = (T_RECEIVE_LOCATION, T_USER_DISCONNECTED)


def _now_ms() -> int:
    return int(time.time() * 1000)


def to_record(
    raw: str | bytes, *, only_id: Optional[str] = None, ts: Optional[int] = None
) -> Optional[dict[str, Any]]:
    """
    Turn one relay frame into a `{"ts": ms, "msg": {...}}` line, or None to skip it.

    Only peer movement and departures are kept (`hello` is per-connection).
    Location frames without a valid position are dropped.
    """
    msg = decode(raw)
    if msg is None or msg.get("t") not in RECORDED:
        return None
    if only_id is not None and msg.get("id") != only_id:
        return None
    if msg["t"] == T_RECEIVE_LOCATION and parse_sample(msg) is None:
        return None
    return {"ts": _now_ms() if ts is None else ts, "msg": msg}


async def record(ws_url: str, out_path: Path, *, only_id: Optional[str] = None, echo: bool = False) -> int:
    """Join the relay as a silent participant and append matching events to `out_path`."""
    written = 0
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with out_path.open("a", encoding="utf-8") as f:
        async with websockets.connect(ws_url) as ws:
            async for raw in ws:
                line = to_record(raw, only_id=only_id)
                if line is None:
                    logger.debug("[record] skipped frame %r", raw)
                    continue
                if echo:
                    msg = line["msg"]
                    print(f"[record] t={msg['t']} id={msg.get('id')} msg={msg}")
                f.write(json.dumps(line, ensure_ascii=False) + "\n")
                f.flush()
                written += 1
    return written


def main() -> None:
    ap = argparse.ArgumentParser(description="Record peer locations from the relay to a JSONL trace.")
    ap.add_argument("--ws", default="ws://127.0.0.1:3000/ws", help="Relay WebSocket URL")
    ap.add_argument("--out", required=True, help="Output JSONL path (replay with geolive-client --trace)")
    ap.add_argument("--id", default=None, help="Only record this connection id")
    ap.add_argument("--print", action="store_true", help="Print recorded events to stdout")
    args = ap.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    try:
        asyncio.run(record(args.ws, Path(args.out), only_id=args.id, echo=args.print))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
