from __future__ import annotations

import logging
from pathlib import Path

HTTP_METHODS = {
    "GET",
    "POST",
    "PUT",
    "PATCH",
    "DELETE",
}

LOGGER = logging.getLogger("callapi.http")

DEFAULT_TIMEOUT_MS = 10000
ACCESS_TOKEN_KEY = "access_token"
REFRESH_TOKEN_KEY = "refresh_token"

ENV_FILE = Path(__file__).resolve().parent.parent / ".env"
