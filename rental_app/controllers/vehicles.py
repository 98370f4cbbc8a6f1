from flask import Blueprint, abort, flash, g, redirect, render_template, request, url_for

from ..models.vehicle import VehicleFilter
from ..services.common import to_float_safe
from ..services.vehicle_service import VehicleService
from ..utils.constants import CATEGORIES, VEHICLE_TYPES
from ..utils.decorators import email_confirmed_required, login_required
from ..utils.session_state import SessionState

bp = Blueprint("vehicles", __name__, url_prefix="/")

VEHICLE_FIELDS = (
    "make", "model", "year", "category", "type", "daily_rate", "location", "image_url",
    "description", "fuel_type", "transmission", "seats", "doors",
)


def filter_from_args(args) -> VehicleFilter:
    """Build the browse filter from query args; unknown or invalid values are ignored."""
    available = {"any": None, "false": False, "0": False}.get((args.get("available") or "").lower(), True)
    category = args.get("category")
    vtype = args.get("type")
    return VehicleFilter(
        search_query=args.get("q") or None,
        location=args.get("location") or None,
        category=category if category in CATEGORIES else None,
        type=vtype if vtype in VEHICLE_TYPES else None,
        price_min=to_float_safe(args.get("price_min")),
        price_max=to_float_safe(args.get("price_max")),
        available=available,
    )


def vehicle_form_payload(form) -> dict:
    """Form -> payload. Inputs left empty are not sent, so model defaults apply on create."""
    payload = {k: form[k].strip() for k in VEHICLE_FIELDS if (form.get(k) or "").strip()}
    payload["available"] = form.get("available") == "on"
    return payload


@bp.get("/vehicles")
def list_vehicles():
    """Vehicles list with filters. Strip empty query params and redirect to a clean URL."""
    q = {k: (v or "").strip() for k, v in request.args.items()}
    nonempty = {k: v for k, v in q.items() if v}

    if request.args and not nonempty:
        return redirect(url_for("vehicles.list_vehicles"))

    criteria = filter_from_args(nonempty)
    vehicles = VehicleService.list_vehicles(criteria, viewer_id=SessionState.user_id())
    return render_template("vehicles/list.html", vehicles=vehicles, criteria=criteria,
                           categories=CATEGORIES, types=VEHICLE_TYPES)


@bp.get("/vehicles/<vid>")
def vehicle_detail(vid):
    v = VehicleService.get_vehicle(vid)
    return render_template("vehicles/detail.html", v=v, is_owner=v.owner_id == SessionState.user_id())


@bp.get("/vehicles/new")
@login_required
@email_confirmed_required
def new_vehicle_form():
    return render_template("vehicles/form.html", v=None, categories=CATEGORIES, types=VEHICLE_TYPES)


@bp.post("/vehicles/new")
@login_required
@email_confirmed_required
def new_vehicle_submit():
    ok, msg, vid = VehicleService.create_vehicle(g.user.id, vehicle_form_payload(request.form))
    if not ok:
        flash(msg, "danger")
        return render_template("vehicles/form.html", v=None, form=request.form,
                               categories=CATEGORIES, types=VEHICLE_TYPES), 400
    flash(msg, "success")
    return redirect(url_for("vehicles.vehicle_detail", vid=vid))


@bp.get("/vehicles/<vid>/edit")
@login_required
def edit_vehicle_form(vid):
    v = VehicleService.get_vehicle(vid)
    if v.owner_id != g.user.id:
        abort(403)
    return render_template("vehicles/form.html", v=v, categories=CATEGORIES, types=VEHICLE_TYPES)


@bp.post("/vehicles/<vid>/edit")
@login_required
def edit_vehicle_submit(vid):
    ok, msg = VehicleService.update_vehicle(vid, g.user.id, vehicle_form_payload(request.form))
    flash(msg, "success" if ok else "danger")
    if not ok:
        return redirect(url_for("vehicles.edit_vehicle_form", vid=vid))
    return redirect(url_for("vehicles.vehicle_detail", vid=vid))


@bp.post("/vehicles/<vid>/delete")
@login_required
def delete_vehicle(vid):
    ok, msg = VehicleService.delete_vehicle(vid, owner_id=g.user.id)
    flash(msg, "success" if ok else "danger")
    return redirect(url_for("vehicles.my_vehicles"))


@bp.get("/my-vehicles")
@login_required
def my_vehicles():
    listed = VehicleService.vehicles_for_owner(g.user.id)
    return render_template(
        "vehicles/mine.html",
        available=[v for v in listed if v.available],
        unavailable=[v for v in listed if not v.available],
    )
