import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./onecare.db")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "http://localhost:5173,http://localhost:3000",
).split(",")

# Scheduling defaults
DEFAULT_SLOT_MINUTES = int(os.getenv("DEFAULT_SLOT_MINUTES", "30"))
# Used when a doctor's session lists no working days (Sunday closed)
DEFAULT_WORKING_DAYS = [
    d.strip() for d in os.getenv("DEFAULT_WORKING_DAYS", "Mon,Tue,Wed,Thu,Fri,Sat").split(",") if d.strip()
]
# "start" -> "09:30 AM", "range" -> "09:30 AM – 10:00 AM"
SLOT_LABEL_STYLE = os.getenv("SLOT_LABEL_STYLE", "start")

# Billing
CURRENCY_SYMBOL = os.getenv("CURRENCY_SYMBOL", "₹")
