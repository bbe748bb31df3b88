from .location import (
    DeniedLocationProvider,
    FixedLocationProvider,
    LocationError,
    LocationProvider,
    PermissionDenied,
    PositionOptions,
    PositionUnavailable,
    Timeout,
    TraceLocationProvider,
)
from .map_client import MapClient, run
from .markers import SELF, MapView, Marker, MarkerSet

__all__ = [
    "DeniedLocationProvider",
    "FixedLocationProvider",
    "LocationError",
    "LocationProvider",
    "PermissionDenied",
    "PositionOptions",
    "PositionUnavailable",
    "Timeout",
    "TraceLocationProvider",
    "MapClient",
    "run",
    "SELF",
    "MapView",
    "Marker",
    "MarkerSet",
]
