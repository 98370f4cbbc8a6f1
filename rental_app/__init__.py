import logging

from flask import Flask, render_template

from .config import load_config
from .controllers.auth import bp as auth_bp
from .controllers.bookings import bp as bookings_bp
from .controllers.vehicles import bp as vehicles_bp
from .controllers.views import bp as views_bp
from .exceptions import BookingNotFoundError, ProfileNotFoundError, VehicleNotFoundError
from .models.store import Store
from .services.common import STORE_KEY
from .utils.filters import fmt_iso_local, money
from .utils.session_state import SessionState


def create_app(config=None, store=None):
    app = Flask(__name__, static_folder="static", template_folder="templates")
    app.config.update(load_config())
    if config:
        app.config.update(config)

    logging.basicConfig(
        level=app.config["LOG_LEVEL"],
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    # one store per application; services look it up through the app context
    app.extensions[STORE_KEY] = store if store is not None else Store(app.config["RENTAL_DATA_PATH"])

    app.register_blueprint(auth_bp)
    app.register_blueprint(views_bp)
    app.register_blueprint(vehicles_bp)
    app.register_blueprint(bookings_bp)
    app.jinja_env.filters["fmt_iso_local"] = fmt_iso_local
    app.jinja_env.filters["money"] = money

    @app.context_processor
    def inject_user():
        return {"current_user_id": SessionState.user_id()}

    @app.errorhandler(VehicleNotFoundError)
    @app.errorhandler(BookingNotFoundError)
    @app.errorhandler(ProfileNotFoundError)
    def not_found(err):
        return render_template("errors/not_found.html", message=err.message), 404

    return app
