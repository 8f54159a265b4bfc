"""Server configuration values."""
import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent
DATABASE_URL = os.getenv("JOBBOARD_DATABASE_URL", f"sqlite:///{BASE_DIR / 'jobboard.db'}")
LOG_FILE = Path(os.getenv("JOBBOARD_SERVER_LOG", str(BASE_DIR / "server.log")))
TOKEN_EXPIRY_MINUTES = int(os.getenv("JOBBOARD_TOKEN_EXPIRY_MINUTES", 60 * 24))
LOGIN_LOCK_ATTEMPTS = int(os.getenv("JOBBOARD_LOGIN_LOCK_ATTEMPTS", 5))
LOGIN_LOCK_MINUTES = int(os.getenv("JOBBOARD_LOGIN_LOCK_MINUTES", 10))
