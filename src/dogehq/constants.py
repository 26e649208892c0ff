"""
Constants for the DogeHouse SDK

Endpoints and protocol timings used by the connection and HTTP layers.
Endpoints can be overridden through environment variables so the SDK can
be pointed at a self-hosted or staging API.
"""

import os

# WebSocket endpoint of the real-time API
BASE_URL = os.environ.get("DOGEHOUSE_URL", "wss://api.dogehouse.tv/socket")

# HTTP endpoint of the REST API (bot authentication)
API_URL = os.environ.get("DOGEHOUSE_API_URL", "https://api.dogehouse.tv")

# Seconds to wait for a fetch_done reply before giving up
FETCH_TIMEOUT = float(os.environ.get("DOGEHOUSE_FETCH_TIMEOUT", "15"))

# Seconds between heartbeat pings
HEARTBEAT_INTERVAL = 8

# Seconds to wait for the auth-good reply during the handshake
CONNECT_TIMEOUT = 15

# Close codes sent by the server
CLOSE_KICKED = 4001
CLOSE_CONNECTION_TAKEN = 4003
CLOSE_INVALID_TOKENS = 4004

# Platform string sent with the auth op
PLATFORM = "dogehq"
