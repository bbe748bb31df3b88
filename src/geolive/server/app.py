from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import HTMLResponse
from fastapi.staticfiles import StaticFiles

from .config import Settings, get_settings
from .map_page import render_map_html
from .relay import Relay

logger = logging.getLogger("geolive.server")

STATIC_DIR = Path(__file__).parent / "static"


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(title="geolive")
    app.state.settings = settings
    app.state.relay = Relay(debug_log_msgs=settings.debug_log_msgs)

    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

    @app.get("/", response_class=HTMLResponse)
    def index(request: Request):
        return HTMLResponse(render_map_html(request.app.state.settings))

    @app.get("/healthz")
    def healthz(request: Request):
        return {"ok": True, "connections": len(request.app.state.relay)}

    @app.websocket("/ws")
    async def ws(ws: WebSocket):
        relay: Relay = ws.app.state.relay
        await ws.accept()
        client = getattr(ws.client, "host", None)
        conn_id = None
        try:
            conn_id = await relay.connect(ws)
            logger.info("[ws] connect id=%s from=%s", conn_id, client)
            while True:
                raw = await ws.receive_text()
                await relay.dispatch(conn_id, raw)
        except WebSocketDisconnect as e:
            logger.info("[ws] disconnect id=%s from=%s code=%s", conn_id, client, e.code)
        except Exception as e:
            logger.warning("[ws] session error id=%s from=%s: %s", conn_id, client, e)
        finally:
            if conn_id is not None:
                await relay.disconnect(conn_id)

    return app


app = create_app()


def main() -> None:
    import uvicorn

    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper(), format="%(asctime)s %(levelname)s %(message)s")
    logger.info("listening on http://%s:%d", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
