"""Centralized configuration management."""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


# Base paths
BASE_DIR = Path(__file__).parent.parent
SRC_DIR = BASE_DIR / "src"
DATA_ROOT = Path(os.getenv("DATA_ROOT", str(BASE_DIR / "data")))
OUT_DIR = Path(os.getenv("OUT_DIR", str(DATA_ROOT / "out")))
UP_DIR = Path(os.getenv("UP_DIR", str(DATA_ROOT / "uploads")))

# Server
PORT = int(os.getenv("PORT", "5173"))
ORIGIN = os.getenv("ORIGIN", f"http://localhost:{PORT}")
FLASK_DEBUG = _env_bool("FLASK_DEBUG")

# Uploads
MAX_UPLOAD_MB = int(os.getenv("MAX_UPLOAD_MB", "16"))
MAX_UPLOAD_FILES = int(os.getenv("MAX_UPLOAD_FILES", "20"))

# Requests per client per minute across /api/ routes; 0 disables the limiter
RATE_LIMIT_PER_MIN = int(os.getenv("RATE_LIMIT_PER_MIN", "120"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Database
DEFAULT_DB_PATH = DATA_ROOT / "data.db"
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{DEFAULT_DB_PATH}")

# OpenAI
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-5")
LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.6"))
OPENAI_TIMEOUT_SECONDS = float(os.getenv("OPENAI_TIMEOUT_SECONDS", "120"))

# Stripe
STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET")
STRIPE_PRICE_ONE_TIME = os.getenv("STRIPE_PRICE_ONE_TIME")
STRIPE_PRICE_SUB_MONTHLY = os.getenv("STRIPE_PRICE_SUB_MONTHLY")

# Email
SMTP_HOST = os.getenv("SMTP_HOST")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USER = os.getenv("SMTP_USER")
SMTP_PASS = os.getenv("SMTP_PASS")
FROM_EMAIL = os.getenv("FROM_EMAIL", "no-reply@localhost")
SMTP_TIMEOUT_SECONDS = float(os.getenv("SMTP_TIMEOUT_SECONDS", "10"))

# S3
AWS_REGION = os.getenv("AWS_REGION")
S3_BUCKET = os.getenv("S3_BUCKET")
S3_PREFIX = os.getenv("S3_PREFIX", "")
S3_URL_EXPIRY_SECONDS = int(os.getenv("S3_URL_EXPIRY_SECONDS", "600"))
S3_TIMEOUT_SECONDS = float(os.getenv("S3_TIMEOUT_SECONDS", "60"))

# Video encoding
FFMPEG_PATH = os.getenv("FFMPEG_PATH", "ffmpeg")
FFMPEG_TIMEOUT_SECONDS = float(os.getenv("FFMPEG_TIMEOUT_SECONDS", "300"))

# Admin dashboard
ADMIN_USER = os.getenv("ADMIN_USER")
ADMIN_PASS = os.getenv("ADMIN_PASS")

# Tracing
MLFLOW_TRACING_ENABLED = _env_bool("MLFLOW_TRACING_ENABLED")
MLFLOW_EXPERIMENT = os.getenv("MLFLOW_EXPERIMENT", "listing-kit-generation")
