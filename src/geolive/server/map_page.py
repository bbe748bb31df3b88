from __future__ import annotations

# ruff: noqa: E501
import json

from .config import Settings

LEAFLET_VERSION = "1.9.4"


def map_config(settings: Settings) -> dict[str, object]:
    """Bootstrap config handed to `static/js/map.js` as `window.GEOLIVE_CONFIG`."""
    lat, lon = settings.default_center
    return {
        "wsPath": "/ws",
        "tileUrl": settings.tile_url,
        "tileAttribution": settings.tile_attribution,
        "defaultCenter": [lat, lon],
        "defaultZoom": settings.default_zoom,
        "locatedZoom": settings.located_zoom,
        "geolocation": {
            "enableHighAccuracy": settings.geo_high_accuracy,
            "timeout": settings.geo_timeout_ms,
            "maximumAge": settings.geo_maximum_age_ms,
        },
    }


def render_map_html(settings: Settings) -> str:
    """
    Application shell: full-screen Leaflet map plus the client script.

    Kept in a separate module so `app.py` stays focused on transport logic.
    """
    # `</` must not appear inside the inline script.
    cfg = json.dumps(map_config(settings), ensure_ascii=False).replace("</", "<\\/")
    leaflet = f"https://unpkg.com/leaflet@{LEAFLET_VERSION}/dist"
    return f"""<!doctype html>
<html>
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width,initial-scale=1" />
    <title>geolive</title>
    <link rel="stylesheet" href="{leaflet}/leaflet.css" />
    <style>
      html, body {{ height: 100%; margin: 0; font-family: ui-sans-serif, system-ui, -apple-system; }}
      #map {{ position: absolute; inset: 0; }}
      #error {{ position: fixed; top: 10px; left: 50%; transform: translateX(-50%); z-index: 1000; padding: 8px 12px; border-radius: 8px; background: rgba(180,35,24,0.92); color: #fff; font-size: 13px; display: none; }}
    </style>
  </head>
  <body>
    <div id="map"></div>
    <div id="error" role="alert"></div>
    <script>window.GEOLIVE_CONFIG = {cfg};</script>
    <script src="{leaflet}/leaflet.js"></script>
    <script src="/static/js/map.js"></script>
  </body>
</html>
"""
