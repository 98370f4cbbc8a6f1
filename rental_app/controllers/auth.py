from flask import Blueprint, flash, g, redirect, render_template, request, url_for

from ..services.auth_service import AuthService
from ..utils.decorators import login_required
from ..utils.session_state import SessionState

bp = Blueprint("auth", __name__, url_prefix="/")


@bp.get("signup")
def signup_form():
    return render_template("auth/signup.html")


@bp.post("signup")
def signup_submit():
    form = request.form
    ok, msg, _uid = AuthService.sign_up(
        email=form.get("email", ""),
        password=form.get("password", ""),
        first_name=form.get("first_name"),
        last_name=form.get("last_name"),
    )
    if not ok:
        flash(msg, "danger")
        return render_template("auth/signup.html", email=form.get("email", "")), 400
    flash(msg, "success")
    return redirect(url_for("auth.login_form"))


@bp.get("login")
def login_form():
    if SessionState.user_id():
        return redirect(url_for("views.dashboard"))
    return render_template("auth/login.html")


@bp.post("login")
def login_submit():
    ok, msg, user = AuthService.sign_in(request.form.get("email", ""), request.form.get("password", ""))
    if not ok:
        flash(msg, "danger")
        return redirect(url_for("auth.login_form"))

    SessionState.begin(user)
    if not user.email_confirmed:
        return redirect(url_for("auth.verify_email"))
    return redirect(url_for("views.dashboard"))


@bp.get("logout")
def logout():
    SessionState.end()
    flash("Logged out", "info")
    return redirect(url_for("auth.login_form"))


@bp.get("verify-email")
@login_required
def verify_email():
    if g.user.email_confirmed:
        return redirect(url_for("views.dashboard"))
    return render_template("auth/verify_email.html", email=g.user.email)


@bp.post("verify-email/resend")
@login_required
def resend_verification():
    ok, msg = AuthService.resend_verification_email(g.user.id)
    flash(msg, "success" if ok else "warning")
    return redirect(url_for("auth.verify_email"))


@bp.get("verify-email/confirm")
def confirm_email():
    ok, msg = AuthService.confirm_email(request.args.get("token", ""))
    flash(msg, "success" if ok else "danger")
    if ok and SessionState.user_id():
        return redirect(url_for("views.dashboard"))
    return redirect(url_for("auth.login_form"))
