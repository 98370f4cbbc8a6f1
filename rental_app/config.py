"""Application settings. Every value can be overridden from the environment."""
import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parents[1]
DEFAULT_DATA_PATH = BASE_DIR / "data.pkl"


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


def load_config() -> dict:
    return {
        "SECRET_KEY": os.getenv("SECRET_KEY", "dev-secret-change-me"),
        # empty string keeps everything in memory
        "RENTAL_DATA_PATH": os.getenv("RENTAL_DATA_PATH", str(DEFAULT_DATA_PATH)) or None,
        # "allow": overlapping bookings of one vehicle are accepted; "reject": refused
        "BOOKING_OVERLAP_POLICY": os.getenv("BOOKING_OVERLAP_POLICY", "allow").lower(),
        "CANCELLATION_CUTOFF_HOURS": _env_int("CANCELLATION_CUTOFF_HOURS", 24),
        "DISPLAY_TIMEZONE": os.getenv("DISPLAY_TIMEZONE", "Asia/Kolkata"),
        "CURRENCY_SYMBOL": os.getenv("CURRENCY_SYMBOL", "₹"),
        "LOG_LEVEL": os.getenv("LOG_LEVEL", "INFO").upper(),
    }
