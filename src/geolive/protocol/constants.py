# Event names (stringly-typed protocol; canonical list lives here)

# server -> client, first frame on every connection
T_HELLO = "hello"

# client -> server
T_SEND_LOCATION = "send-location"

# server -> clients
T_RECEIVE_LOCATION = "receive-location"
T_USER_DISCONNECTED = "user-disconnected"

# WGS84 bounds
LAT_MIN, LAT_MAX = -90.0, 90.0
LON_MIN, LON_MAX = -180.0, 180.0
