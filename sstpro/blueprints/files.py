# sstpro/blueprints/files.py
import os

from flask import Blueprint, session, abort, current_app, send_from_directory

from ..services.appointment_service import AppointmentNotFound
from ..session import current_user
from ..storage import PhotoStorage, URL_PREFIX
from . import history

bp = Blueprint("files", __name__)


@bp.before_request
def guard():
    if not session.get("user_id"):
        abort(403)


@bp.route("/appointments/<appointment_id>/<path:name>")
def appointment_photo(appointment_id: str, name: str):
    # mesma regra de visibilidade do histórico
    try:
        appt = history.svc.get(appointment_id)
    except AppointmentNotFound:
        abort(404)
    user = current_user()
    if user is None or not history.visible_to(appt, user):
        abort(404)

    path = PhotoStorage.from_config(current_app.config).local_path(f"{URL_PREFIX}{appt.id}/{name}")
    if path is None:
        abort(404)
    return send_from_directory(os.path.dirname(path), os.path.basename(path))
