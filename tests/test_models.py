from datetime import datetime

import pytest

from sstpro.models import (
    Appointment, AppointmentStatus, STATUS_DISPLAY, User, UserRole, status_label, status_style,
)


def test_every_status_has_label_and_style():
    assert set(STATUS_DISPLAY) == set(AppointmentStatus)
    for status in AppointmentStatus:
        assert status_label(status)
        assert status_style(status).startswith("status-")


def test_status_label_accepts_raw_string():
    assert status_label("PENDING") == "Aguardando"
    assert status_style("COMPLETED") == "status-completed"


def test_status_label_rejects_unknown_value():
    with pytest.raises(ValueError):
        status_label("ARCHIVED")


def test_appointment_from_view_row():
    appt = Appointment.from_row({
        "appointment_id": "abcdef12-3456-7890-abcd-ef1234567890",
        "company_id": "c1",
        "company_name": "Metalúrgica Alfa",
        "technician_id": None,
        "datetime": "2026-03-09T08:40:00",
        "reason": "Inspeção NR-12",
        "status": "PENDING",
    })
    assert appt.date == "09/03/2026"
    assert appt.time == "08:40"
    assert appt.short_id == "ABCDEF12"
    assert appt.is_open
    assert appt.status is AppointmentStatus.PENDING
    assert appt.status_label == "Aguardando"


def test_appointment_from_table_row_uses_id():
    appt = Appointment.from_row({
        "id": "x1", "company_id": "c1", "datetime": datetime(2026, 3, 9, 10, 0),
        "reason": "Vistoria", "status": "ACCEPTED", "technician_id": "t1",
    })
    assert appt.id == "x1"
    assert appt.company_name == ""
    assert not appt.is_open


def test_user_roles():
    u = User.from_row({"id": 1, "name": "Carlos", "email": "c@x", "role": "TECNICO"})
    assert u.id == "1"
    assert u.is_technician and not u.is_company
    assert u.role is UserRole.TECNICO
