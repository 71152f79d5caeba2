# Shared application constants

import os
from pathlib import Path

# Every signed path is prefixed with the coordinator's API namespace. The
# prefix is part of the signed message but is never sent on the wire, since
# the configured API URL already ends in it.
API_NAMESPACE = "/api"

# Scheme token placed in front of "<address>:<signature>" in the
# Authorization header.
AUTH_SCHEME = "Ceremony"

# --- Coordinator Configuration ---
DEFAULT_API_URL = os.getenv("CEREMONY_API_URL", "http://localhost:9000/api")
HTTP_TIMEOUT_SECONDS = float(os.getenv("CEREMONY_HTTP_TIMEOUT", "60"))

# Seconds the supervisor waits before retrying after a retryable failure
# (lock contention, connection errors).
LOCK_RETRY_INTERVAL_SECONDS = float(os.getenv("CEREMONY_LOCK_RETRY_INTERVAL", "5"))

# --- Identity Configuration ---
DEFAULT_IDENTITY_DIR = Path.home() / ".ceremony-verifier"
DEFAULT_VIEW_KEY_PATH = os.getenv(
    "CEREMONY_VIEW_KEY_PATH", str(DEFAULT_IDENTITY_DIR / "view_key.hex")
)
