"""Jinja filters and date formatting helpers."""
from datetime import datetime, timezone

import pytz
from flask import current_app

DEFAULT_TZ = "Asia/Kolkata"


def _display_tz():
    try:
        name = current_app.config.get("DISPLAY_TIMEZONE", DEFAULT_TZ)
    except RuntimeError:
        name = DEFAULT_TZ
    return pytz.timezone(name)


def fmt_iso_local(value, use_12h: bool = False) -> str:
    """
    Format a date/datetime string in the display timezone.
    Supports:
      - 'YYYY-MM-DD'  (shown as a plain date, no conversion)
      - 'YYYY-MM-DD HH:MM[:SS]' and 'YYYY-MM-DDTHH:MM[:SS]'
      - Above with 'Z' or offsets like '+00:00'
    On parse error, returns the original value (so the UI never goes blank).
    """
    if value is None:
        return ""

    s = str(value).strip()
    if not s:
        return ""

    s_norm = s.replace("T", " ")
    if s_norm.endswith("Z"):
        s_norm = s_norm[:-1] + "+00:00"

    if ":" not in s_norm:
        try:
            return datetime.strptime(s_norm, "%Y-%m-%d").strftime("%d %b %Y")
        except ValueError:
            return s

    try:
        dt = datetime.fromisoformat(s_norm)
    except ValueError:
        return s

    # Naive values are stored in UTC
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    local = dt.astimezone(_display_tz())

    if use_12h:
        # Avoid %-I (not portable on Windows). Strip any leading zero manually.
        hh = local.strftime("%I").lstrip("0") or "0"
        return f"{local.strftime('%d %b %Y')}, {hh}:{local.strftime('%M %p')}"
    return local.strftime("%d/%m/%Y %H:%M")


def money(value) -> str:
    """Currency amount with the configured symbol and two decimals."""
    try:
        symbol = current_app.config.get("CURRENCY_SYMBOL", "₹")
    except RuntimeError:
        symbol = "₹"
    try:
        return f"{symbol}{float(value):,.2f}"
    except (TypeError, ValueError):
        return f"{symbol}0.00"
