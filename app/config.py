import os

from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() not in {"0", "false", "no", "off"}


DATABASE_PATH = os.getenv("DATABASE_PATH", "invoices.db")
TOKEN_TTL_HOURS = int(os.getenv("TOKEN_TTL_HOURS", "24"))
RATE_LIMIT_ENABLED = _flag("RATE_LIMIT_ENABLED", "true")
INVOICE_NUMBER_RETRIES = int(os.getenv("INVOICE_NUMBER_RETRIES", "3"))
DEFAULT_DUE_DAYS = int(os.getenv("DEFAULT_DUE_DAYS", "15"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
