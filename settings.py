from __future__ import annotations
import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent

APP_NAME = os.getenv("APP_NAME", "Defrag Blueprint Core REST")
APP_VERSION = os.getenv("APP_VERSION", "1.0.0")
DEBUG = os.getenv("DEBUG", "false").lower() in {"1","true","yes","on"}
LOG_LEVEL = os.getenv("LOG_LEVEL", "info").lower()

CORS_ALLOW_ORIGINS: List[str] = [o.strip() for o in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",") if o.strip()]
TRUSTED_HOSTS: List[str] = [h.strip() for h in os.getenv("TRUSTED_HOSTS", "*").split(",") if h.strip()]
GZIP_MIN_SIZE = int(os.getenv("GZIP_MIN_SIZE", "1000"))
REQUEST_LOGGING = os.getenv("REQUEST_LOGGING", "basic").lower()  # "off" | "basic" | "full"

# Local key/value store (stands in for the browser's local storage)
STORE_PATH = Path(os.getenv("STORE_PATH", str(BASE_DIR / "data" / "local_store.json")))
STORE_LOCK_TIMEOUT = float(os.getenv("STORE_LOCK_TIMEOUT", "5"))

# Blueprint defaults
DEFAULT_BIRTH_TIME = os.getenv("DEFAULT_BIRTH_TIME", "12:00")
DEFAULT_TIMEZONE = os.getenv("DEFAULT_TIMEZONE", "UTC")

TRANSLATION_MATRIX_PATH = Path(
    os.getenv("TRANSLATION_MATRIX_PATH", str(BASE_DIR / "resources" / "translation_matrix.json"))
)
ACTIVITY_LOG_LIMIT = int(os.getenv("ACTIVITY_LOG_LIMIT", "50"))
ECHO_WINDOW_DAYS = int(os.getenv("ECHO_WINDOW_DAYS", "30"))
