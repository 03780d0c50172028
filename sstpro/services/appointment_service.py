# sstpro/services/appointment_service.py
from datetime import datetime
from typing import List, Optional, Dict, Any

import structlog

from ..models import (
    Appointment, AppointmentStatus, User, UserRole, ACTIVE_STATUSES, is_uuid, status_label,
)
from ..repositories.appointments import AppointmentRepository
from .availability import shift_month
from .notification_service import NotificationService

log = structlog.get_logger(__name__)


class AppointmentNotFound(LookupError):
    pass


def can_complete(report: Optional[str], signature: Optional[str]) -> bool:
    """Finalizar exige parecer técnico E assinatura."""
    return bool((report or "").strip()) and bool((signature or "").strip())


def search(appointments: List[Appointment], term: str) -> List[Appointment]:
    t = (term or "").strip().lower()
    if not t:
        return list(appointments)
    return [
        a for a in appointments
        if t in (a.company_name or "").lower()
        or t in (a.reason or "").lower()
        or t in (a.technician_name or "").lower()
    ]


def stats(appointments: List[Appointment]) -> Dict[str, int]:
    total = len(appointments)
    completed = sum(1 for a in appointments if a.status is AppointmentStatus.COMPLETED)
    return {
        "total": total,
        "completed": completed,
        "in_progress": sum(1 for a in appointments if a.status is AppointmentStatus.ACCEPTED),
        "open": sum(1 for a in appointments if a.is_open),
        "efficiency": round(completed / total * 100) if total else 0,
    }


class AppointmentService:
    def __init__(self, repo=None, notifications: Optional[NotificationService] = None) -> None:
        self.repo = repo or AppointmentRepository()
        self.notifications = notifications or NotificationService()

    @staticmethod
    def _combine(date_str: str, time_str: str) -> datetime:
        d = (date_str or "").strip()
        t = (time_str or "").strip()
        if not d or not t:
            raise ValueError("Informe data e horário.")
        for fmt in ("%Y-%m-%d %H:%M", "%d/%m/%Y %H:%M"):
            try:
                return datetime.strptime(f"{d} {t}", fmt)
            except ValueError:
                pass
        raise ValueError("Data/horário inválidos. Use YYYY-MM-DD e HH:MM.")

    # ---- Leitura ----
    def get(self, appointment_id: str) -> Appointment:
        row = self.repo.by_id(appointment_id) if is_uuid(appointment_id) else None
        if not row:
            raise AppointmentNotFound("Agendamento não encontrado.")
        return Appointment.from_row(row)

    def list_for(self, user: User) -> List[Appointment]:
        if user.role is UserRole.TECNICO:
            rows = self.repo.list(technician_id=user.id, include_unassigned=True)
        elif user.role is UserRole.EMPRESA:
            if not user.company_id:
                return []
            rows = self.repo.list(company_id=user.company_id)
        else:
            raise PermissionError("Papel de usuário desconhecido.")
        return [Appointment.from_row(r) for r in rows]

    def booked_in_month(self, year: int, month: int) -> List[datetime]:
        start = datetime(year, month, 1)
        ny, nm = shift_month(year, month, 1)
        return self.repo.datetimes_between(
            start, datetime(ny, nm, 1), [s.value for s in ACTIVE_STATUSES]
        )

    # ---- Criação ----
    def create(self, company_id: Optional[str], date_str: str, time_str: str,
               reason: str, description: str = "") -> str:
        """Solicitação da empresa: nasce PENDING, sem técnico."""
        if not company_id:
            raise PermissionError("Perfil sem empresa vinculada.")
        reason = (reason or "").strip()
        if not reason:
            raise ValueError("Informe o motivo da visita.")
        dt = self._combine(date_str, time_str)
        appointment_id = self.repo.insert({
            "company_id": company_id,
            "datetime": dt,
            "reason": reason,
            "description": (description or "").strip(),
            "status": AppointmentStatus.PENDING.value,
            "technician_id": None,
        })
        log.info("appointment.created", appointment_id=appointment_id, company_id=company_id)
        return appointment_id

    def schedule_for_company(self, technician_id: str, company_id: str, date_str: str,
                             time_str: str, reason: str) -> str:
        """Visita agendada pelo próprio técnico: já nasce ACCEPTED."""
        if not company_id:
            raise ValueError("Selecione a empresa.")
        reason = (reason or "").strip()
        if not reason:
            raise ValueError("Informe o motivo da visita.")
        dt = self._combine(date_str, time_str)
        appointment_id = self.repo.insert({
            "company_id": company_id,
            "datetime": dt,
            "reason": reason,
            "description": "",
            "status": AppointmentStatus.ACCEPTED.value,
            "technician_id": technician_id,
        })
        log.info("appointment.scheduled_by_technician",
                 appointment_id=appointment_id, technician_id=technician_id)
        return appointment_id

    # ---- Transições ----
    def update_status(self, appointment_id: str, status, acting_user_id: Optional[str]) -> None:
        """
        Grava o novo status sem checar o estado atual (last-write-wins).
        Para técnicos o id de quem agiu vai junto como responsável.
        """
        new_status = AppointmentStatus(status)
        if not self.repo.update_status(appointment_id, new_status.value, acting_user_id):
            raise AppointmentNotFound("Agendamento não encontrado.")
        log.info("appointment.status_updated", appointment_id=appointment_id,
                 status=new_status.value, user_id=acting_user_id)
        self._notify_company(appointment_id, new_status)

    def claim(self, appointment_id: str, technician: User) -> bool:
        if technician.role is not UserRole.TECNICO:
            raise PermissionError("Apenas técnicos podem assumir atendimentos.")
        won = self.repo.claim(appointment_id, technician.id)
        log.info("appointment.claim", appointment_id=appointment_id,
                 technician_id=technician.id, won=won)
        if won:
            self._notify_company(appointment_id, AppointmentStatus.ACCEPTED)
        return won

    def reject(self, appointment_id: str, technician: User) -> None:
        if technician.role is not UserRole.TECNICO:
            raise PermissionError("Apenas técnicos podem recusar atendimentos.")
        self.update_status(appointment_id, AppointmentStatus.REJECTED, technician.id)

    def cancel(self, appointment_id: str, user: User) -> None:
        appt = self.get(appointment_id)
        if user.role is UserRole.EMPRESA:
            if appt.company_id != user.company_id:
                raise PermissionError("Agendamento de outra empresa.")
            technician_id = appt.technician_id
        elif user.role is UserRole.TECNICO:
            technician_id = appt.technician_id or user.id
        else:
            raise PermissionError("Papel de usuário desconhecido.")
        if appt.status in (AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED):
            raise ValueError("Atendimento já encerrado.")
        self.update_status(appointment_id, AppointmentStatus.CANCELLED, technician_id)

    def complete(self, appointment_id: str, technician: User, report: str,
                 signature: str, photo_url: Optional[str] = None) -> None:
        if technician.role is not UserRole.TECNICO:
            raise PermissionError("Apenas técnicos podem finalizar atendimentos.")
        if not can_complete(report, signature):
            raise ValueError("Parecer técnico e assinatura são obrigatórios.")
        if not self.repo.complete(appointment_id, technician.id, report.strip(),
                                  photo_url, signature.strip()):
            raise AppointmentNotFound("Agendamento não encontrado.")
        log.info("appointment.completed", appointment_id=appointment_id,
                 technician_id=technician.id, has_photo=bool(photo_url))
        self._notify_company(appointment_id, AppointmentStatus.COMPLETED)

    def delete_pending(self, appointment_id: str, user: User) -> bool:
        if user.role is not UserRole.EMPRESA or not user.company_id:
            return False
        ok = self.repo.delete_pending_own(appointment_id, user.company_id)
        log.info("appointment.delete_pending", appointment_id=appointment_id,
                 company_id=user.company_id, deleted=ok)
        return ok

    def _notify_company(self, appointment_id: str, status: AppointmentStatus) -> None:
        if status is AppointmentStatus.PENDING:
            return
        row = self.repo.by_id(appointment_id)
        owner = row.get("company_owner_id") if row else None
        if not owner:
            return
        appt = Appointment.from_row(row)
        self.notifications.create(
            str(owner),
            f"Visita de {appt.date} às {appt.time}: {status_label(status)}.",
            type_="success" if status is AppointmentStatus.COMPLETED else "info",
            link=f"/history/{appointment_id}",
        )
