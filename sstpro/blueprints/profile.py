# sstpro/blueprints/profile.py
from flask import Blueprint, render_template, request, session, flash, redirect, url_for
import structlog

from ..services.user_service import UserService, ProfileNotFound
from ..services.notification_service import NotificationService
from ..session import current_user

bp = Blueprint("profile", __name__)
log = structlog.get_logger(__name__)

svc = UserService()
nsvc = NotificationService()


@bp.before_request
def guard():
    if not session.get("user_id"):
        return redirect(url_for("auth.login"))


@bp.route("/", methods=["GET", "POST"])
def view():
    uid = session["user_id"]
    error = None
    if request.method == "POST":
        try:
            svc.update_profile(uid, request.form.get("name", ""), request.form.get("avatar_url", ""))
        except ValueError as e:
            error = str(e)
        except Exception:
            log.exception("profile.update_failed", user_id=uid)
            error = "Erro ao salvar perfil."
        else:
            session["name"] = request.form.get("name", "").strip()
            flash("Perfil atualizado.", "ok")
            return redirect(url_for("profile.view"))

    try:
        user = svc.get(uid)
    except (ProfileNotFound, PermissionError) as e:
        flash(str(e), "error")
        user = current_user()
    return render_template("profile/view.html", user=user, error=error)


@bp.route("/notifications")
def notifications():
    items = nsvc.list_for_user(session["user_id"])
    return render_template("profile/notifications.html", items=items)


@bp.route("/notifications/<notification_id>/read", methods=["POST"])
def mark_read(notification_id: str):
    if not nsvc.mark_read(notification_id, session["user_id"]):
        flash("Notificação não encontrada.", "error")
    return redirect(url_for("profile.notifications"))
