# sstpro/services/user_service.py
from typing import List, Optional

import structlog
from passlib.hash import bcrypt

from ..models import User, UserRole
from ..repositories.profiles import ProfileRepository

log = structlog.get_logger(__name__)


class ProfileNotFound(LookupError):
    pass


class InvalidCredentials(PermissionError):
    pass


class UserService:
    def __init__(self, repo=None):
        self.profiles = repo or ProfileRepository()

    # ---- Autenticação ----
    def authenticate(self, email: str, password: str) -> User:
        """
        Valida e-mail/senha e carrega o perfil.
        Levanta InvalidCredentials, ProfileNotFound ou PermissionError
        (empresa sem vínculo) com mensagem pronta para o usuário.
        """
        email = (email or "").strip().lower()
        row = self.profiles.by_email(email) if email else None
        if not row or not row.get("password_hash"):
            log.info("auth.failed", email=email, reason="unknown_email")
            raise InvalidCredentials("E-mail ou senha inválidos.")
        if not bcrypt.verify(password or "", row["password_hash"]):
            log.info("auth.failed", email=email, reason="bad_password")
            raise InvalidCredentials("E-mail ou senha inválidos.")

        user = self._user_or_raise(row)
        log.info("auth.login", user_id=user.id, role=user.role.value)
        return user

    def _user_or_raise(self, row) -> User:
        try:
            user = User.from_row(row)
        except (KeyError, ValueError):
            raise ProfileNotFound("Perfil não encontrado no sistema.")
        if user.role is UserRole.EMPRESA and not user.company_id:
            raise PermissionError("O seu utilizador não está vinculado a nenhuma empresa.")
        return user

    def create_user(self, name: str, email: str, password: str, role,
                    company_id: Optional[str] = None, registration_number: str = "") -> str:
        """Cadastro feito pelo administrador (CLI); empresa exige company_id."""
        role = UserRole(role)
        name, email = (name or "").strip(), (email or "").strip().lower()
        if not name or not email:
            raise ValueError("Nome e e-mail são obrigatórios.")
        if len(password or "") < 8:
            raise ValueError("A senha deve ter ao menos 8 caracteres.")
        if role is UserRole.EMPRESA and not company_id:
            raise ValueError("Usuário de empresa precisa de company_id.")
        if self.profiles.by_email(email):
            raise ValueError("E-mail já cadastrado.")
        user_id = self.profiles.create({
            "name": name,
            "email": email,
            "password_hash": self.hash_password(password),
            "role": role.value,
            "company_id": company_id,
            "registration_number": (registration_number or "").strip(),
        })
        log.info("profile.created", user_id=user_id, role=role.value)
        return user_id

    @staticmethod
    def hash_password(password: str) -> str:
        return bcrypt.hash(password)

    # ---- Perfil ----
    def get(self, user_id: str) -> User:
        row = self.profiles.by_id(user_id)
        if not row:
            raise ProfileNotFound("Perfil não encontrado no sistema.")
        return self._user_or_raise(row)

    def update_profile(self, user_id: str, name: str, avatar_url: Optional[str]) -> None:
        name = (name or "").strip()
        if not name:
            raise ValueError("Nome é obrigatório.")
        self.profiles.update(user_id, {"name": name, "avatar_url": (avatar_url or "").strip()})

    def list_technicians(self) -> List[User]:
        return [User.from_row(r) for r in self.profiles.list_technicians()]
