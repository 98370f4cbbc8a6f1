from __future__ import annotations

import logging
import re
from typing import Optional, TYPE_CHECKING

from rental_app.exceptions import BackendError
from rental_app.models.user import AuthUser
from rental_app.services.common import _store
from rental_app.utils.security import check_hash, generate_hash, new_verification_token

if TYPE_CHECKING:
    from rental_app.models.store import Store  # noqa: F401

logger = logging.getLogger(__name__)

# Compile once at module import
PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d).{6,}$")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
CONFIRM_PATH = "/verify-email/confirm?token="


def _auth_user(row: dict) -> AuthUser:
    return AuthUser(id=row["id"], email=row["email"], email_confirmed=bool(row.get("email_confirmed")))


class AuthService:
    """
    Credentials and email confirmation. Session handling stays in the
    controllers; this only answers who someone is and whether they may sign in.
    """

    @staticmethod
    def _send_verification(st, user_id: str) -> str:
        token = new_verification_token()
        st.update_user(user_id, {"verification_token": token})
        # no mail transport: the link goes to the log
        logger.info("Verification link for user %s: %s%s", user_id, CONFIRM_PATH, token)
        return token

    @staticmethod
    def sign_up(email: str, password: str, first_name: Optional[str] = None,
                last_name: Optional[str] = None, *, store: Optional["Store"] = None):
        """
        Returns:
            (ok: bool, message: str, user_id: Optional[str])
        """
        st = store or _store()
        email = (email or "").strip().lower()
        if not email or not password:
            return False, "Email and password are required.", None
        if not EMAIL_PATTERN.match(email):
            return False, "Please enter a valid email address.", None
        if not PASSWORD_PATTERN.match(password):
            return False, "Password must have at least 6 characters, including A-Z, a-z, and 0-9.", None
        if st.find_user(email):
            return False, "User already registered.", None

        try:
            uid = st.create_user(email, generate_hash(password),
                                 first_name=(first_name or "").strip() or None,
                                 last_name=(last_name or "").strip() or None)
            AuthService._send_verification(st, uid)
        except BackendError as e:
            logger.warning("sign_up failed for %s: %s", email, e)
            return False, e.message, None
        return True, "Registration successful! Please check your email to confirm your account.", uid

    @staticmethod
    def sign_in(email: str, password: str, *, store: Optional["Store"] = None):
        """
        Returns:
            (ok: bool, message: str, user: Optional[AuthUser])
        """
        st = store or _store()
        row = st.find_user(email)
        if not row or not check_hash(password or "", row.get("password_hash")):
            logger.info("Failed sign-in for %s", (email or "").strip().lower())
            return False, "Invalid login credentials", None
        return True, "Signed in", _auth_user(row)

    @staticmethod
    def get_current_user(user_id: Optional[str], *, store: Optional["Store"] = None) -> Optional[AuthUser]:
        """None when nobody is signed in or the account no longer exists."""
        if not user_id:
            return None
        st = store or _store()
        row = st.get_user(user_id)
        return _auth_user(row) if row else None

    @staticmethod
    def resend_verification_email(user_id: str, *, store: Optional["Store"] = None):
        st = store or _store()
        row = st.get_user(user_id)
        if not row:
            return False, "Please sign in first"
        if row.get("email_confirmed"):
            return False, "Email is already confirmed"
        try:
            AuthService._send_verification(st, user_id)
        except BackendError as e:
            return False, e.message
        return True, "Verification email sent. Please check your inbox."

    @staticmethod
    def confirm_email(token: str, *, store: Optional["Store"] = None):
        st = store or _store()
        row = st.find_user_by_token(token)
        if not row:
            return False, "This confirmation link is invalid or has expired"
        try:
            st.update_user(row["id"], {"email_confirmed": True, "verification_token": None})
        except BackendError as e:
            return False, e.message
        return True, "Email confirmed"
