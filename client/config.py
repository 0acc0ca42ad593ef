"""Client configuration from environment."""
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

SERVER_URL = os.environ.get("CIPHERKEEP_SERVER_URL", "http://127.0.0.1:8080").rstrip("/")

# Salt, verification hash and session token live here, one set per username
CONFIG_DIR = Path(os.environ.get("CIPHERKEEP_CONFIG_DIR", str(Path.home() / ".cipherkeep"))).expanduser()

REQUEST_TIMEOUT_SECONDS = float(os.environ.get("CIPHERKEEP_TIMEOUT", 10))
SYNC_INTERVAL_SECONDS = float(os.environ.get("CIPHERKEEP_SYNC_INTERVAL", 15))
INSECURE_SKIP_VERIFY = os.environ.get("CIPHERKEEP_INSECURE", "").lower() in ("1", "true", "yes")
LOG_LEVEL = os.environ.get("CIPHERKEEP_LOG_LEVEL", "WARNING").upper()
