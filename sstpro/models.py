# sstpro/models.py
import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Any, Mapping


class UserRole(str, Enum):
    TECNICO = "TECNICO"
    EMPRESA = "EMPRESA"


class AppointmentStatus(str, Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class Availability(str, Enum):
    NONE = "NONE"        # dia bloqueado / sem horário livre
    LIMITED = "LIMITED"  # poucos horários
    FULL = "FULL"        # livre


# rótulo e classe CSS de cada status; precisa cobrir todos os membros do enum
STATUS_DISPLAY: dict[AppointmentStatus, tuple[str, str]] = {
    AppointmentStatus.PENDING: ("Aguardando", "status-pending"),
    AppointmentStatus.ACCEPTED: ("Confirmado", "status-accepted"),
    AppointmentStatus.REJECTED: ("Recusado", "status-rejected"),
    AppointmentStatus.COMPLETED: ("Concluído", "status-completed"),
    AppointmentStatus.CANCELLED: ("Cancelado", "status-cancelled"),
}

# estados que ocupam horário na agenda
ACTIVE_STATUSES = frozenset({
    AppointmentStatus.PENDING,
    AppointmentStatus.ACCEPTED,
    AppointmentStatus.COMPLETED,
})


def status_label(status) -> str:
    return STATUS_DISPLAY[AppointmentStatus(status)][0]


def status_style(status) -> str:
    return STATUS_DISPLAY[AppointmentStatus(status)][1]


def is_uuid(value: Any) -> bool:
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True


def _as_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _str_or_none(value: Any) -> Optional[str]:
    return None if value is None else str(value)


@dataclass
class User:
    id: str
    name: str
    email: str
    role: UserRole
    company_id: Optional[str] = None
    company_name: Optional[str] = None
    registration_number: Optional[str] = None
    avatar: Optional[str] = None

    @property
    def is_technician(self) -> bool:
        return self.role is UserRole.TECNICO

    @property
    def is_company(self) -> bool:
        return self.role is UserRole.EMPRESA

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "User":
        return cls(
            id=str(row["id"]),
            name=row.get("name") or "",
            email=row.get("email") or "",
            role=UserRole(row["role"]),
            company_id=_str_or_none(row.get("company_id")),
            company_name=row.get("company_name"),
            registration_number=row.get("registration_number"),
            avatar=row.get("avatar_url"),
        )


@dataclass
class Company:
    id: str
    name: str
    cnpj: Optional[str] = None
    address: Optional[str] = None
    contact_name: Optional[str] = None
    phone: Optional[str] = None
    owner_id: Optional[str] = None
    active: bool = True
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Company":
        return cls(
            id=str(row["id"]),
            name=row.get("name") or "",
            cnpj=row.get("cnpj"),
            address=row.get("address"),
            contact_name=row.get("contact_name"),
            phone=row.get("phone"),
            owner_id=_str_or_none(row.get("owner_id")),
            active=bool(row.get("active", True)),
            created_at=row.get("created_at"),
        )


@dataclass
class Appointment:
    id: str
    company_id: str
    company_name: str
    datetime: datetime
    reason: str
    status: AppointmentStatus
    technician_id: Optional[str] = None
    technician_name: Optional[str] = None
    company_cnpj: Optional[str] = None
    company_owner_id: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    photo_url: Optional[str] = None
    signature_image: Optional[str] = None

    # exibição sempre derivada do timestamp gravado
    @property
    def date(self) -> str:
        return self.datetime.strftime("%d/%m/%Y")

    @property
    def time(self) -> str:
        return self.datetime.strftime("%H:%M")

    @property
    def short_id(self) -> str:
        return self.id.replace("-", "")[:8].upper()

    @property
    def status_label(self) -> str:
        return status_label(self.status)

    @property
    def status_style(self) -> str:
        return status_style(self.status)

    @property
    def is_open(self) -> bool:
        return self.technician_id is None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Appointment":
        """Mapeia uma linha de view_dashboard_summary (ou de appointments)."""
        ident = row.get("appointment_id") or row.get("id")
        return cls(
            id=str(ident),
            company_id=str(row["company_id"]),
            company_name=row.get("company_name") or "",
            company_cnpj=row.get("company_cnpj"),
            company_owner_id=_str_or_none(row.get("company_owner_id")),
            technician_id=_str_or_none(row.get("technician_id")),
            technician_name=row.get("technician_name"),
            datetime=_as_datetime(row["datetime"]),
            reason=row.get("reason") or "",
            description=row.get("description"),
            status=AppointmentStatus(row["status"]),
            created_at=_as_datetime(row.get("created_at")),
            photo_url=row.get("photo_url"),
            signature_image=row.get("signature_image"),
        )


@dataclass
class Notification:
    id: str
    user_id: str
    message: str
    type: str = "info"
    link: Optional[str] = None
    read: bool = False
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Notification":
        return cls(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            message=row.get("message") or "",
            type=row.get("type") or "info",
            link=row.get("link"),
            read=bool(row.get("read")),
            created_at=row.get("created_at"),
        )
