from functools import wraps

from flask import flash, g, redirect, url_for

from ..services.auth_service import AuthService
from .session_state import SessionState


def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        user = AuthService.get_current_user(SessionState.user_id())
        if user is None:
            SessionState.end()
            flash("Please login first", "warning")
            return redirect(url_for("auth.login_form"))
        g.user = user
        return fn(*args, **kwargs)

    return wrapper


def email_confirmed_required(fn):
    """Use below @login_required; unconfirmed accounts go to the verify page."""

    @wraps(fn)
    def wrapper(*args, **kwargs):
        if not g.user.email_confirmed:
            flash("Please confirm your email address first", "warning")
            return redirect(url_for("auth.verify_email"))
        return fn(*args, **kwargs)

    return wrapper
