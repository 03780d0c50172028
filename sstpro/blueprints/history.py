# sstpro/blueprints/history.py
from io import BytesIO

from flask import (
    Blueprint, render_template, request, session, abort, send_file, flash,
    redirect, url_for, current_app,
)
import structlog

from ..models import AppointmentStatus, UserRole
from ..services.appointment_service import AppointmentService, AppointmentNotFound, search
from ..services.report_service import ReportService, report_filename
from ..session import current_user
from ..storage import PhotoStorage

bp = Blueprint("history", __name__)
log = structlog.get_logger(__name__)

svc = AppointmentService()


@bp.before_request
def guard():
    if not session.get("user_id"):
        return redirect(url_for("auth.login"))


def visible_to(appt, user) -> bool:
    if user.role is UserRole.EMPRESA:
        return appt.company_id == user.company_id
    if user.role is UserRole.TECNICO:
        return appt.technician_id in (None, user.id)
    return False


def _load_visible(appointment_id: str):
    user = current_user()
    try:
        appt = svc.get(appointment_id)
    except AppointmentNotFound:
        abort(404)
    if not visible_to(appt, user):
        abort(404)
    return appt, user


def _filtered_rows(user, q: str):
    try:
        rows = svc.list_for(user)
    except Exception:
        log.exception("appointment.list_failed", user_id=user.id)
        flash("Erro ao carregar agendamentos.", "error")
        rows = []
    return search(rows, q)


@bp.route("/", methods=["GET"])
def list_all():
    user = current_user()
    q = request.args.get("q", "")
    rows = _filtered_rows(user, q)
    return render_template("history/list.html", user=user, rows=rows, q=q)


@bp.route("/<appointment_id>", methods=["GET"])
def detail(appointment_id: str):
    appt, user = _load_visible(appointment_id)
    return render_template("history/detail.html", user=user, appt=appt)


@bp.route("/<appointment_id>/report.pdf", methods=["GET"])
def report_pdf(appointment_id: str):
    appt, _ = _load_visible(appointment_id)
    if appt.status is not AppointmentStatus.COMPLETED:
        flash("Relatório disponível apenas para visitas concluídas.", "error")
        return redirect(url_for("history.detail", appointment_id=appointment_id))

    pdf = ReportService(
        current_app.config["REPORT_BRAND"], PhotoStorage.from_config(current_app.config)
    ).generate_appointment_pdf(appt)
    return send_file(
        BytesIO(pdf),
        as_attachment=True,
        download_name=report_filename(appt),
        mimetype="application/pdf",
    )


@bp.route("/export.xlsx", methods=["GET"])
def export_xlsx():
    user = current_user()
    q = request.args.get("q", "")
    rows = _filtered_rows(user, q)
    data = ReportService(current_app.config["REPORT_BRAND"]).export_history_xlsx(rows)
    return send_file(
        BytesIO(data),
        as_attachment=True,
        download_name="historico_visitas.xlsx",
        mimetype="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )


@bp.route("/<appointment_id>/cancel", methods=["POST"])
def cancel(appointment_id: str):
    appt, user = _load_visible(appointment_id)
    try:
        svc.cancel(appt.id, user)
    except (ValueError, PermissionError) as e:
        flash(str(e), "error")
    except Exception:
        log.exception("appointment.cancel_failed", appointment_id=appointment_id)
        flash("Erro ao cancelar.", "error")
    else:
        flash("Atendimento cancelado.", "ok")
    return redirect(url_for("history.detail", appointment_id=appointment_id))
