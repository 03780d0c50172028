# sstpro/session.py
from typing import Optional

from flask import session

from .models import User, UserRole


def login_user(user: User) -> None:
    session.clear()
    session["user_id"] = user.id
    session["name"] = user.name
    session["email"] = user.email
    session["role"] = user.role.value
    session["company_id"] = user.company_id
    session["company_name"] = user.company_name


def current_user() -> Optional[User]:
    """Usuário logado reconstruído da sessão (None se deslogado)."""
    if not session.get("user_id"):
        return None
    try:
        role = UserRole(session.get("role"))
    except ValueError:
        return None
    return User(
        id=session["user_id"],
        name=session.get("name") or "",
        email=session.get("email") or "",
        role=role,
        company_id=session.get("company_id"),
        company_name=session.get("company_name"),
    )


def has_role(role: UserRole) -> bool:
    return bool(session.get("user_id")) and session.get("role") == role.value
