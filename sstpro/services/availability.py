# sstpro/services/availability.py
"""
Mapa de disponibilidade da agenda (heatmap do calendário).

Tudo aqui é puro: recebe os horários já buscados e classifica cada dia do
mês contra a grade fixa de horários.
"""
import calendar
from collections import Counter
from datetime import date, datetime
from typing import Iterable, Dict, List, Optional

from ..models import Availability

MONTH_NAMES = [
    "Janeiro", "Fevereiro", "Março", "Abril", "Maio", "Junho",
    "Julho", "Agosto", "Setembro", "Outubro", "Novembro", "Dezembro",
]


def _to_minutes(hhmm: str) -> int:
    h, m = hhmm.strip().split(":")
    return int(h) * 60 + int(m)


def generate_time_slots(start: str = "08:00", end: str = "18:00", step: int = 40) -> List[str]:
    """Grade 'HH:MM' de start até end (inclusive, se cair no passo)."""
    if step <= 0:
        raise ValueError("Intervalo da grade deve ser > 0.")
    cur, stop = _to_minutes(start), _to_minutes(end)
    slots = []
    while cur <= stop:
        slots.append(f"{cur // 60:02d}:{cur % 60:02d}")
        cur += step
    return slots


def booked_per_day(booked: Iterable[datetime], year: int, month: int, slots: List[str]) -> Counter:
    """Conta, por dia do mês, os agendamentos que caem em um horário da grade."""
    grid = set(slots)
    counts: Counter = Counter()
    for dt in booked:
        if dt.year == year and dt.month == month and dt.strftime("%H:%M") in grid:
            counts[dt.day] += 1
    return counts


def classify_day(
    day: date,
    booked_count: int,
    total_slots: int,
    today: date,
    business_weekdays: Iterable[int] = (0, 1, 2, 3, 4, 5),
    limited_ratio: float = 0.5,
) -> Availability:
    if day < today or day.weekday() not in set(business_weekdays):
        return Availability.NONE
    if total_slots <= 0 or booked_count >= total_slots:
        return Availability.NONE
    if booked_count / total_slots >= limited_ratio:
        return Availability.LIMITED
    return Availability.FULL


def classify_month(
    year: int,
    month: int,
    booked: Iterable[datetime],
    today: date,
    slots: Optional[List[str]] = None,
    business_weekdays: Iterable[int] = (0, 1, 2, 3, 4, 5),
    limited_ratio: float = 0.5,
) -> Dict[int, Availability]:
    slots = slots if slots is not None else generate_time_slots()
    counts = booked_per_day(booked, year, month, slots)
    days_in_month = calendar.monthrange(year, month)[1]
    weekdays = set(business_weekdays)
    return {
        d: classify_day(date(year, month, d), counts[d], len(slots), today, weekdays, limited_ratio)
        for d in range(1, days_in_month + 1)
    }


def free_slots(day: date, booked: Iterable[datetime], slots: Optional[List[str]] = None) -> List[str]:
    slots = slots if slots is not None else generate_time_slots()
    taken = {dt.strftime("%H:%M") for dt in booked if dt.date() == day}
    return [s for s in slots if s not in taken]


def month_grid(year: int, month: int) -> List[List[int]]:
    """Semanas do mês começando no domingo; 0 = célula vazia."""
    return calendar.Calendar(firstweekday=6).monthdayscalendar(year, month)


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    idx = year * 12 + (month - 1) + delta
    return idx // 12, idx % 12 + 1


class AvailabilityService:
    """Amarra a grade configurada aos horários ocupados vindos do banco."""

    def __init__(self, appointments, slots: List[str], business_weekdays: Iterable[int],
                 limited_ratio: float) -> None:
        self.appointments = appointments
        self.slots = slots
        self.business_weekdays = set(business_weekdays)
        self.limited_ratio = limited_ratio

    @classmethod
    def from_config(cls, appointments, cfg) -> "AvailabilityService":
        return cls(
            appointments,
            slots=generate_time_slots(cfg["SLOT_START"], cfg["SLOT_END"], cfg["SLOT_STEP_MINUTES"]),
            business_weekdays=cfg["BUSINESS_WEEKDAYS"],
            limited_ratio=cfg["AVAILABILITY_LIMITED_RATIO"],
        )

    def month(self, year: int, month: int, today: date) -> Dict[str, object]:
        booked = self.appointments.booked_in_month(year, month)
        return {
            "year": year,
            "month": month,
            "month_name": MONTH_NAMES[month - 1],
            "weeks": month_grid(year, month),
            "availability": classify_month(
                year, month, booked, today, self.slots, self.business_weekdays, self.limited_ratio
            ),
            "booked": booked,
        }

    def free_slots(self, day: date, booked: Iterable[datetime]) -> List[str]:
        return free_slots(day, booked, self.slots)
