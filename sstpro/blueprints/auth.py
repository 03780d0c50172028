# sstpro/blueprints/auth.py
from flask import Blueprint, render_template, request, session, redirect, url_for, abort
import structlog

from ..models import UserRole
from ..services.user_service import UserService
from ..session import login_user, current_user

bp = Blueprint("auth", __name__)
log = structlog.get_logger(__name__)

svc = UserService()


@bp.route("/")
def index():
    return redirect(
        url_for("auth.dashboard") if session.get("user_id") else url_for("auth.login")
    )


@bp.route("/login", methods=["GET", "POST"])
def login():
    error = None
    if request.method == "POST":
        try:
            user = svc.authenticate(
                request.form.get("email", ""),
                request.form.get("password", ""),
            )
        except (PermissionError, LookupError) as e:
            error = str(e)
        else:
            login_user(user)
            return redirect(url_for("auth.dashboard"))
    return render_template("auth/login.html", error=error)


@bp.route("/logout")
def logout():
    log.info("auth.logout", user_id=session.get("user_id"))
    session.clear()
    return redirect(url_for("auth.login"))


@bp.route("/dashboard")
def dashboard():
    user = current_user()
    if user is None:
        return redirect(url_for("auth.login"))

    if user.role is UserRole.EMPRESA:
        return redirect(url_for("company.scheduling"))
    if user.role is UserRole.TECNICO:
        return redirect(url_for("technician.dashboard"))
    abort(403)
