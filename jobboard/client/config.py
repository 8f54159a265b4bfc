"""Client configuration values."""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .storage import get_server_url

LOG_FILE = Path(os.getenv("JOBBOARD_CLIENT_LOG", str(Path.home() / ".jobboard_client.log")))
DEFAULT_SERVER_URL = "http://127.0.0.1:8000"
DEFAULT_POLL_INTERVAL = 2.5
DEFAULT_REQUEST_TIMEOUT = 10.0


@dataclass(frozen=True)
class ClientConfig:
    server_url: str = DEFAULT_SERVER_URL
    poll_interval: float = DEFAULT_POLL_INTERVAL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT


def _float_env(name: str, fallback: float) -> float:
    value = os.getenv(name)
    if not value:
        return fallback
    try:
        return float(value)
    except ValueError:
        return fallback


def load_config(server_url: Optional[str] = None) -> ClientConfig:
    """Build the client config: explicit argument, then env, then stored URL."""
    url = server_url or os.getenv("JOBBOARD_SERVER_URL") or get_server_url() or DEFAULT_SERVER_URL
    return ClientConfig(
        server_url=url.rstrip("/"),
        poll_interval=max(0.1, _float_env("JOBBOARD_POLL_INTERVAL", DEFAULT_POLL_INTERVAL)),
        request_timeout=_float_env("JOBBOARD_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT),
    )
