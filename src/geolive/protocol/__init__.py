from .constants import (
    T_HELLO,
    T_RECEIVE_LOCATION,
    T_SEND_LOCATION,
    T_USER_DISCONNECTED,
)
from .messages import (
    BroadcastMessage,
    Hello,
    LocationSample,
    UserDisconnected,
    decode,
    encode,
    parse_sample,
)

__all__ = [
    "T_HELLO",
    "T_SEND_LOCATION",
    "T_RECEIVE_LOCATION",
    "T_USER_DISCONNECTED",
    "BroadcastMessage",
    "Hello",
    "LocationSample",
    "UserDisconnected",
    "decode",
    "encode",
    "parse_sample",
]
