from datetime import timedelta

from flask import Blueprint, current_app, flash, g, jsonify, redirect, render_template, request, url_for

from ..services.booking_service import BookingService
from ..services.common import _today
from ..services.countdown import cancellation_window
from ..services.pricing import quote_booking
from ..services.vehicle_service import VehicleService
from ..utils.constants import ONLINE_PAYMENT_METHODS, BookingStatus
from ..utils.decorators import email_confirmed_required, login_required
from ..utils.session_state import SessionState

bp = Blueprint("bookings", __name__, url_prefix="/")

BOOKING_FIELDS = ("start_date", "end_date", "pickup_address", "dropoff_address")
PAYMENT_FIELDS = ("payment_method", "card_number", "card_holder", "expiry_date", "cvv", "upi_id")


def _window_for(booking):
    return cancellation_window(
        booking.start_date,
        booking.status,
        cutoff_hours=current_app.config["CANCELLATION_CUTOFF_HOURS"],
    )


@bp.get("/vehicles/<vid>/book")
@login_required
@email_confirmed_required
def booking_form(vid):
    v = VehicleService.get_vehicle(vid)
    flow = SessionState.booking_flow()
    if flow and flow.get("vehicle_id") == vid:
        # back from the payment page: keep what was entered
        form = dict(flow["form"])
    else:
        today = _today()
        form = {"start_date": today.isoformat(), "end_date": (today + timedelta(days=1)).isoformat()}
    quote = quote_booking(form["start_date"], form["end_date"], v.daily_rate)
    return render_template("bookings/form.html", v=v, form=form, quote=quote)


@bp.post("/vehicles/<vid>/book")
@login_required
@email_confirmed_required
def booking_submit(vid):
    v = VehicleService.get_vehicle(vid)
    form = {k: request.form.get(k, "") for k in BOOKING_FIELDS}
    ok, msg, bid = BookingService.create_booking(g.user.id, vid, form)
    if not ok:
        quote = quote_booking(form["start_date"], form["end_date"], v.daily_rate)
        return render_template("bookings/form.html", v=v, form=form, quote=quote, error=msg), 400

    SessionState.start_booking_flow(vid, bid, form)
    return redirect(url_for("bookings.payment_form", bid=bid))


@bp.get("/bookings/quote")
def booking_quote():
    """Live price for the booking form; never writes anything."""
    v = VehicleService.get_vehicle(request.args.get("vehicle_id", ""))
    quote = quote_booking(request.args.get("start_date"), request.args.get("end_date"), v.daily_rate)
    return jsonify(days=quote.days, total_price=quote.total_price, is_valid=quote.is_valid, error=quote.error)


@bp.get("/bookings/<bid>/payment")
@login_required
def payment_form(bid):
    details = BookingService.booking_details(bid, g.user.id)
    if details.booking.user_id != g.user.id or details.booking.status != BookingStatus.PENDING.value:
        return redirect(url_for("bookings.booking_detail", bid=bid))
    quote = quote_booking(details.booking.start_date, details.booking.end_date, details.vehicle.daily_rate) \
        if details.vehicle else None
    return render_template("bookings/payment.html", d=details, quote=quote, methods=ONLINE_PAYMENT_METHODS)


@bp.post("/bookings/<bid>/payment")
@login_required
def payment_submit(bid):
    form = {k: request.form.get(k) for k in PAYMENT_FIELDS if request.form.get(k)}
    ok, msg, _pid = BookingService.confirm_payment(bid, g.user.id, form)
    if not ok:
        flash(msg, "danger")
        return redirect(url_for("bookings.payment_form", bid=bid))
    SessionState.clear_booking_flow()
    flash(msg, "success")
    return redirect(url_for("bookings.confirmation", bid=bid))


@bp.get("/bookings/<bid>/confirmation")
@login_required
def confirmation(bid):
    details = BookingService.booking_details(bid, g.user.id)
    return render_template("bookings/confirmation.html", d=details)


@bp.get("/bookings/<bid>")
@login_required
def booking_detail(bid):
    details = BookingService.booking_details(bid, g.user.id)
    return render_template(
        "bookings/detail.html",
        d=details,
        window=_window_for(details.booking),
        is_renter=details.booking.user_id == g.user.id,
    )


@bp.get("/bookings/<bid>/countdown")
@login_required
def booking_countdown(bid):
    """Polled every second by the details page; read only."""
    details = BookingService.booking_details(bid, g.user.id)
    return jsonify(_window_for(details.booking).to_dict())


@bp.post("/bookings/<bid>/cancel")
@login_required
def cancel_booking(bid):
    ok, msg = BookingService.cancel_booking(bid, g.user.id)
    flash(msg, "success" if ok else "danger")
    return redirect(url_for("bookings.booking_detail", bid=bid))


@bp.post("/bookings/<bid>/accept")
@login_required
def accept_booking(bid):
    ok, msg = BookingService.accept_booking(bid, g.user.id)
    flash(msg, "success" if ok else "danger")
    return redirect(url_for("views.dashboard"))


@bp.post("/bookings/<bid>/reject")
@login_required
def reject_booking(bid):
    ok, msg = BookingService.reject_booking(bid, g.user.id)
    flash(msg, "success" if ok else "danger")
    return redirect(url_for("views.dashboard"))
