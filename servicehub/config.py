import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./servicehub.db")
# SQLite writers wait this long for the database lock instead of failing
DB_BUSY_TIMEOUT = float(os.getenv("DB_BUSY_TIMEOUT", "30"))

# JWT settings (tokens are issued by the identity service)
SECRET_KEY = os.getenv("SECRET_KEY", "your-secret-key-please-change-in-production")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30"))

# Hide unverified specialists from client discovery
REQUIRE_VERIFIED_SPECIALISTS = os.getenv("REQUIRE_VERIFIED_SPECIALISTS", "true").lower() == "true"

# Telegram notifications
TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN")
TELEGRAM_ADMIN_CHAT_IDS = os.getenv("TELEGRAM_ADMIN_CHAT_IDS", "")

# Email
MAIL_ENABLED = os.getenv("MAIL_ENABLED", "false").lower() == "true"
MAIL_USERNAME = os.getenv("MAIL_USERNAME", "")
MAIL_PASSWORD = os.getenv("MAIL_PASSWORD", "")
MAIL_FROM = os.getenv("MAIL_FROM", "noreply@servicehub.app")
MAIL_PORT = int(os.getenv("MAIL_PORT", "587"))
MAIL_SERVER = os.getenv("MAIL_SERVER", "smtp.gmail.com")
MAIL_FROM_NAME = os.getenv("MAIL_FROM_NAME", "ServiceHub")
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:8080")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
