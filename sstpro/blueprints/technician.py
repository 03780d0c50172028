# sstpro/blueprints/technician.py
from flask import Blueprint, render_template, request, abort, flash, redirect, url_for, current_app
import structlog

from ..models import UserRole, AppointmentStatus, status_label
from ..services.appointment_service import AppointmentService, AppointmentNotFound, can_complete, stats
from ..services.availability import generate_time_slots
from ..services.company_service import CompanyService
from ..services.user_service import UserService
from ..repositories.visit_reasons import VisitReasonRepository
from ..session import has_role, current_user
from ..storage import PhotoStorage

bp = Blueprint("technician", __name__)
log = structlog.get_logger(__name__)

svc = AppointmentService()
csvc = CompanyService()
usvc = UserService()
reasons = VisitReasonRepository()


@bp.before_request
def guard():
    if not has_role(UserRole.TECNICO):
        abort(403)


def _next_or(default: str) -> str:
    nxt = request.form.get("next") or ""
    return nxt if nxt.startswith("/") and not nxt.startswith("//") else default


def _slots():
    cfg = current_app.config
    return generate_time_slots(cfg["SLOT_START"], cfg["SLOT_END"], cfg["SLOT_STEP_MINUTES"])


@bp.route("/dashboard")
def dashboard():
    user = current_user()
    try:
        rows = svc.list_for(user)
    except Exception:
        log.exception("appointment.list_failed", user_id=user.id)
        flash("Erro ao carregar agendamentos.", "error")
        rows = []
    return render_template("tech/dashboard.html", user=user, rows=rows, stats=stats(rows))


@bp.route("/appointments/<appointment_id>/assume", methods=["POST"])
def assume(appointment_id: str):
    user = current_user()
    try:
        won = svc.claim(appointment_id, user)
    except Exception:
        log.exception("appointment.assume_failed", appointment_id=appointment_id)
        flash("Erro ao assumir serviço.", "error")
    else:
        if won:
            flash("Você assumiu este serviço!", "ok")
        else:
            flash("Este serviço já foi assumido por outro técnico.", "error")
    return redirect(_next_or(url_for("technician.dashboard")))


@bp.route("/appointments/<appointment_id>/status", methods=["POST"])
def update_status(appointment_id: str):
    user = current_user()
    target = request.form.get("status", "")
    try:
        status = AppointmentStatus(target)
        if status is AppointmentStatus.ACCEPTED:
            svc.update_status(appointment_id, status, user.id)
        elif status is AppointmentStatus.REJECTED:
            svc.reject(appointment_id, user)
        elif status is AppointmentStatus.CANCELLED:
            svc.cancel(appointment_id, user)
        else:
            raise ValueError("Transição não permitida por esta ação.")
    except (ValueError, PermissionError, AppointmentNotFound) as e:
        flash(str(e), "error")
    except Exception:
        log.exception("appointment.status_failed", appointment_id=appointment_id, status=target)
        flash("Erro ao atualizar status.", "error")
    else:
        flash(f"Status atualizado: {status_label(status)}.", "ok")
    return redirect(_next_or(url_for("history.detail", appointment_id=appointment_id)))


@bp.route("/appointments/<appointment_id>/complete", methods=["GET"])
def complete_form(appointment_id: str):
    try:
        appt = svc.get(appointment_id)
    except AppointmentNotFound:
        abort(404)
    return render_template("tech/complete.html", appt=appt)


@bp.route("/appointments/<appointment_id>/complete", methods=["POST"])
def complete_submit(appointment_id: str):
    user = current_user()
    try:
        appt = svc.get(appointment_id)
    except AppointmentNotFound:
        abort(404)
    report = request.form.get("report", "")
    signature = request.form.get("signature", "")
    photo = request.files.get("photo")
    if not can_complete(report, signature):
        flash("Parecer técnico e assinatura são obrigatórios.", "error")
        return redirect(url_for("technician.complete_form", appointment_id=appointment_id))
    storage = PhotoStorage.from_config(current_app.config)

    photo_url = None
    try:
        ext = storage.validate(photo)
    except ValueError as e:
        flash(str(e), "error")
        return redirect(url_for("technician.complete_form", appointment_id=appointment_id))
    if ext:
        try:
            photo_url = storage.save(appt.id, photo, ext)
        except OSError:
            # foto é opcional: a finalização segue sem ela
            log.exception("appointment.photo_store_failed", appointment_id=appointment_id)
            flash("Não foi possível salvar a foto; o atendimento foi finalizado sem ela.", "info")

    try:
        svc.complete(appt.id, user, report, signature, photo_url)
    except (ValueError, PermissionError, AppointmentNotFound) as e:
        storage.discard(photo_url)
        flash(str(e), "error")
        return redirect(url_for("technician.complete_form", appointment_id=appointment_id))
    except Exception:
        storage.discard(photo_url)
        log.exception("appointment.complete_failed", appointment_id=appointment_id)
        flash("Erro ao finalizar serviço.", "error")
        return redirect(url_for("technician.complete_form", appointment_id=appointment_id))

    flash("Serviço finalizado com sucesso!", "ok")
    return redirect(url_for("technician.dashboard"))


@bp.route("/appointments/new", methods=["GET", "POST"])
def new_appointment():
    user = current_user()
    if request.method == "POST":
        try:
            svc.schedule_for_company(
                user.id,
                request.form.get("company_id", ""),
                request.form.get("date", ""),
                request.form.get("time", ""),
                request.form.get("reason", ""),
            )
        except ValueError as e:
            flash(str(e), "error")
        except Exception:
            log.exception("appointment.schedule_failed", technician_id=user.id)
            flash("Erro ao agendar visita.", "error")
        else:
            flash("Visita agendada.", "ok")
            return redirect(url_for("technician.dashboard"))

    try:
        visit_reasons = reasons.active_labels()
    except Exception:
        log.exception("visit_reasons.load_failed")
        visit_reasons = []
    return render_template(
        "tech/new_appointment.html",
        companies=csvc.list_all(),
        slots=_slots(),
        visit_reasons=visit_reasons,
    )


# ---------------------------
# Empresas
# ---------------------------
@bp.route("/companies")
def companies():
    q = request.args.get("q", "")
    return render_template("tech/companies.html", companies=csvc.list_all(q), q=q)


@bp.route("/companies/new", methods=["GET", "POST"])
def new_company():
    error = None
    if request.method == "POST":
        try:
            csvc.create(request.form.to_dict())
        except ValueError as e:
            error = str(e)
        except Exception:
            log.exception("company.create_failed")
            error = "Erro ao cadastrar empresa."
        else:
            flash("Empresa cadastrada.", "ok")
            return redirect(url_for("technician.companies"))
    return render_template("tech/company_form.html", company=None, form=request.form, error=error)


@bp.route("/companies/<company_id>/edit", methods=["GET", "POST"])
def edit_company(company_id: str):
    company = csvc.by_id(company_id)
    if not company:
        abort(404)
    error = None
    if request.method == "POST":
        try:
            csvc.update(company_id, request.form.to_dict())
        except ValueError as e:
            error = str(e)
        except Exception:
            log.exception("company.update_failed", company_id=company_id)
            error = "Erro ao atualizar dados."
        else:
            flash("Empresa atualizada.", "ok")
            return redirect(url_for("technician.companies"))
    return render_template("tech/company_form.html", company=company, error=error)


@bp.route("/technicians")
def technicians():
    return render_template("tech/technicians.html", technicians=usvc.list_technicians())
