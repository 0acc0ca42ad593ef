"""App configuration from environment."""
import os
from pathlib import Path

from dotenv import load_dotenv

# Project root (cipherkeep/)
ROOT_DIR = Path(__file__).resolve().parent.parent.parent

# Load .env from backend directory
load_dotenv(str(ROOT_DIR / "backend" / ".env"))

# JWT
JWT_SECRET = os.environ.get("CIPHERKEEP_JWT_SECRET", "jwt-secret-change-in-production")
JWT_ALGORITHM = "HS256"
JWT_EXPIRE_HOURS = int(os.environ.get("CIPHERKEEP_JWT_EXPIRE_HOURS", 24))

# DB
DATABASE_URL = os.environ.get("CIPHERKEEP_DATABASE_URL", "")
if not DATABASE_URL:
    (ROOT_DIR / "backend" / "data").mkdir(parents=True, exist_ok=True)
    DATABASE_URL = f"sqlite:///{ROOT_DIR / 'backend' / 'data' / 'cipherkeep.db'}"

# Input validation
USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 50
PASSWORD_MIN_LENGTH = 6
MAX_RECORD_BYTES = int(os.environ.get("CIPHERKEEP_MAX_RECORD_BYTES", 10 * 1024 * 1024))  # 10 MiB
MAX_SYNC_BATCH = int(os.environ.get("CIPHERKEEP_MAX_SYNC_BATCH", 1000))

LOG_LEVEL = os.environ.get("CIPHERKEEP_LOG_LEVEL", "INFO").upper()

# Browser clients allowed to call the API
CORS_ORIGINS = [
    o.strip()
    for o in os.environ.get(
        "CIPHERKEEP_CORS_ORIGINS", "http://localhost:5173,http://localhost:3000,http://127.0.0.1:5173"
    ).split(",")
    if o.strip()
]

HOST = os.environ.get("CIPHERKEEP_HOST", "127.0.0.1")
PORT = int(os.environ.get("CIPHERKEEP_PORT", 8080))
