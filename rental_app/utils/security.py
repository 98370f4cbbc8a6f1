import secrets
import uuid

from werkzeug.security import generate_password_hash, check_password_hash


def generate_hash(password: str) -> str:
    return generate_password_hash(password)


def check_hash(password: str, hashed: str) -> bool:
    if not hashed:
        return False
    try:
        return check_password_hash(hashed, password)
    except (TypeError, ValueError):
        return False


def new_verification_token() -> str:
    """URL-safe token embedded in the email confirmation link."""
    return secrets.token_urlsafe(24)


def new_transaction_id() -> str:
    """Opaque identifier recorded on a mock payment, e.g. TXN-3F9A0C12B7D4."""
    return "TXN-" + uuid.uuid4().hex[:12].upper()
