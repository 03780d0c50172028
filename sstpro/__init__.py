# sstpro/__init__.py
from datetime import datetime
import os

from flask import Flask

from .config import Config
from .db import init_db
from .filters import register_filters
from .logging import setup_logging, init_request_id
from .session import current_user
from .cli import register_cli
from .blueprints.auth import bp as auth_bp
from .blueprints.company import bp as company_bp
from .blueprints.technician import bp as technician_bp
from .blueprints.history import bp as history_bp
from .blueprints.profile import bp as profile_bp
from .blueprints.files import bp as files_bp


def create_app(overrides: dict | None = None):
    app = Flask(__name__, template_folder="templates")
    app.config.from_object(Config())
    if overrides:
        app.config.update(overrides)

    setup_logging(app.config["LOG_LEVEL"])
    init_request_id(app)
    os.makedirs(app.config["UPLOAD_DIR"], exist_ok=True)
    if not app.config.get("TESTING"):
        init_db(app.config["DB_CFG"])

    @app.context_processor
    def inject_globals():
        return {
            "current_year": datetime.now().year,
            "current_user": current_user(),
            "brand": app.config["REPORT_BRAND"],
        }

    register_filters(app)
    register_cli(app)

    # Blueprints
    app.register_blueprint(auth_bp)
    app.register_blueprint(company_bp, url_prefix="/company")
    app.register_blueprint(technician_bp, url_prefix="/tech")
    app.register_blueprint(history_bp, url_prefix="/history")
    app.register_blueprint(profile_bp, url_prefix="/profile")
    app.register_blueprint(files_bp, url_prefix="/files")
    return app
