# sstpro/filters.py
from datetime import date, datetime

from .models import status_label, status_style


def br_date(value):
    """Aceita date/datetime ou string 'YYYY-MM-DD' e devolve 'dd/mm/aaaa'."""
    if not value:
        return ""
    if isinstance(value, (date, datetime)):
        return value.strftime("%d/%m/%Y")
    s = str(value)[:10]
    try:
        y, m, d = s.split("-")
        return f"{d}/{m}/{y}"
    except ValueError:
        return s


def br_datetime(value):
    """Aceita datetime/string ISO e devolve 'dd/mm/aaaa HH:MM'."""
    if not value:
        return ""
    try:
        dt = value if isinstance(value, datetime) else datetime.fromisoformat(str(value))
    except ValueError:
        return str(value)
    return dt.strftime("%d/%m/%Y %H:%M")


def register_filters(app):
    app.jinja_env.filters["br_date"] = br_date
    app.jinja_env.filters["br_datetime"] = br_datetime
    app.jinja_env.filters["status_label"] = status_label
    app.jinja_env.filters["status_style"] = status_style
