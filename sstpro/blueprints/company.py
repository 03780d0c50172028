# sstpro/blueprints/company.py
from datetime import date

from flask import Blueprint, render_template, request, abort, flash, redirect, url_for, current_app
import structlog

from ..models import UserRole
from ..services.appointment_service import AppointmentService
from ..services.availability import AvailabilityService, shift_month
from ..repositories.visit_reasons import VisitReasonRepository
from ..session import has_role, current_user

bp = Blueprint("company", __name__)
log = structlog.get_logger(__name__)

svc = AppointmentService()
reasons = VisitReasonRepository()


@bp.before_request
def guard():
    if not has_role(UserRole.EMPRESA):
        abort(403)


def _to_int(v, default):
    return int(v) if v and v.lstrip("-").isdigit() else default


@bp.route("/scheduling", methods=["GET"])
def scheduling():
    user = current_user()
    today = date.today()
    year = _to_int(request.args.get("year"), today.year)
    month = _to_int(request.args.get("month"), today.month)
    if not 1 <= month <= 12:
        year, month = today.year, today.month

    avail = AvailabilityService.from_config(svc, current_app.config)
    cal = avail.month(year, month, today)

    sel_day = _to_int(request.args.get("day"), None)
    slots = []
    if sel_day and sel_day in cal["availability"]:
        slots = avail.free_slots(date(year, month, sel_day), cal["booked"])
    else:
        sel_day = None

    try:
        visit_reasons = reasons.active_labels()
    except Exception:
        log.exception("visit_reasons.load_failed")
        visit_reasons = []

    prev_y, prev_m = shift_month(year, month, -1)
    next_y, next_m = shift_month(year, month, 1)
    return render_template(
        "company/scheduling.html",
        user=user,
        cal=cal,
        today=today,
        sel_day=sel_day,
        slots=slots,
        visit_reasons=visit_reasons,
        prev=(prev_y, prev_m),
        next=(next_y, next_m),
    )


@bp.route("/scheduling", methods=["POST"])
def scheduling_submit():
    user = current_user()
    try:
        svc.create(
            user.company_id,
            request.form.get("date", ""),
            request.form.get("time", ""),
            request.form.get("reason", ""),
            request.form.get("description", ""),
        )
    except (ValueError, PermissionError) as e:
        flash(str(e), "error")
        return redirect(url_for("company.scheduling"))
    except Exception:
        log.exception("appointment.create_failed", company_id=user.company_id)
        flash("Erro ao agendar.", "error")
        return redirect(url_for("company.scheduling"))

    flash("Solicitação enviada!", "ok")
    return redirect(url_for("history.list_all"))


@bp.route("/appointments/<appointment_id>/delete", methods=["POST"])
def delete_appointment(appointment_id: str):
    user = current_user()
    try:
        ok = svc.delete_pending(appointment_id, user)
    except Exception:
        log.exception("appointment.delete_failed", appointment_id=appointment_id)
        ok = False
    flash(
        "Solicitação excluída." if ok else "Solicitação não encontrada ou já em atendimento.",
        "ok" if ok else "error",
    )
    return redirect(url_for("history.list_all", q=request.form.get("q") or None))
