from dotenv import load_dotenv
import os
from pathlib import Path

load_dotenv()  # Load variables from .env

BACKEND_DIR = Path(__file__).resolve().parents[2]


def env_text(name: str, default: str = "") -> str:
    return str(os.getenv(name, default) or "").strip()


def parse_boolean_env(name: str, default: bool = False) -> bool:
    raw = env_text(name)
    if not raw:
        return default
    return raw.lower() in {"1", "true", "yes", "on"}


def parse_int_env(name: str, default: int) -> int:
    try:
        return int(env_text(name, str(default)))
    except ValueError:
        return default


DATA_DIR = Path(env_text("DATA_DIR") or BACKEND_DIR / "data").resolve()
UPLOADS_DIR = Path(env_text("UPLOADS_DIR") or BACKEND_DIR / "uploads").resolve()
PUBLIC_DIR = Path(env_text("PUBLIC_DIR") or BACKEND_DIR / "public").resolve()
EQUIPMENT_FILE = "equipment.json"
MAINTENANCE_FILE = "maintenance.json"
SEQUENCES_FILE = "sequences.json"

HOST = env_text("HOST", "0.0.0.0")
PORT = parse_int_env("PORT", 3000)
LOG_LEVEL = env_text("LOG_LEVEL", "info").lower()
CORS_ORIGINS = env_text("CORS_ORIGINS", "*")
CORS_ORIGIN_REGEX = env_text("CORS_ORIGIN_REGEX") or None

MAX_UPLOAD_BYTES = parse_int_env("MAX_UPLOAD_BYTES", 10 * 1024 * 1024)
MAX_UPLOAD_FILES = parse_int_env("MAX_UPLOAD_FILES", 10)
MAINTENANCE_WINDOW_DAYS = parse_int_env("MAINTENANCE_WINDOW_DAYS", 30)

SEED_SAMPLE_DATA = parse_boolean_env("SEED_SAMPLE_DATA", default=True)
DATA_BOOTSTRAP_MODE = env_text("DATA_BOOTSTRAP_MODE", "sync").lower()


def parse_cors_origins(value: str):
    if not value:
        return []
    if value.strip() == "*":
        return ["*"]
    return [origin.strip() for origin in value.split(",") if origin.strip()]
