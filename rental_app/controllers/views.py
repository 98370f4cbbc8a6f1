from flask import Blueprint, current_app, flash, g, redirect, render_template, request, url_for

from ..services.analytics_service import AnalyticsService
from ..services.booking_service import BookingService
from ..services.countdown import cancellation_window
from ..services.user_service import UserService
from ..services.vehicle_service import VehicleService
from ..utils.decorators import login_required
from ..utils.session_state import SessionState

bp = Blueprint("views", __name__)

PROFILE_FIELDS = ("first_name", "last_name", "phone", "avatar_url")


@bp.get("/")
def home():
    return render_template("home.html", featured=VehicleService.featured_vehicles())


@bp.get("/dashboard")
@login_required
def dashboard():
    uid = g.user.id
    cutoff = current_app.config["CANCELLATION_CUTOFF_HOURS"]
    bookings = BookingService.bookings_for_user(uid)
    windows = {b.id: cancellation_window(b.start_date, b.status, cutoff_hours=cutoff) for b in bookings}
    return render_template(
        "dashboard.html",
        bookings=bookings,
        windows=windows,
        owner_bookings=BookingService.owner_bookings(uid),
        summary=AnalyticsService.dashboard_summary(uid),
        profile=UserService.get_profile(uid),
    )


@bp.get("/profile")
@login_required
def profile_form():
    return render_template("profile.html", profile=UserService.get_profile(g.user.id))


@bp.post("/profile")
@login_required
def profile_submit():
    patch = {k: request.form.get(k, "") for k in PROFILE_FIELDS if k in request.form}
    ok, msg = UserService.update_profile(g.user.id, patch)
    flash(msg, "success" if ok else "danger")
    return redirect(url_for("views.profile_form"))


@bp.post("/profile/delete")
@login_required
def delete_account():
    ok, msg = UserService.delete_account(g.user.id)
    if not ok:
        flash(msg, "danger")
        return redirect(url_for("views.profile_form"))
    SessionState.end()
    flash(msg, "success")
    return redirect(url_for("views.home"))
