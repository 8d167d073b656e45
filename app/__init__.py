from flask import Flask, jsonify

from .config import Config
from .controllers.admin import bp as admin_bp
from .controllers.auth import bp as auth_bp
from .controllers.bookings import bp as bookings_bp
from .controllers.owner import bp as owner_bp
from .exceptions import ReservationError
from .models.store import Store
from .utils.logger import configure_logging, get_logger

log = get_logger(__name__)


def _register_error_handlers(app: Flask):
    @app.errorhandler(ReservationError)
    def handle_reservation_error(err: ReservationError):
        body = {"error": err.kind, "message": err.message}
        if err.retryable:
            body["retryable"] = True
        return jsonify(body), err.status_code


def create_app(config: dict | None = None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if config:
        app.config.update(config)

    configure_logging(app.config["LOG_LEVEL"], app.config["LOG_DIR"])
    # load data.pkl or start empty
    Store.instance(app.config["STORE_PATH"], app.config["STORAGE_TIMEOUT"])

    app.register_blueprint(auth_bp)
    app.register_blueprint(bookings_bp)
    app.register_blueprint(owner_bp)
    app.register_blueprint(admin_bp)
    _register_error_handlers(app)

    log.info("App created (env=%s)", app.config["APP_ENV"])
    return app
