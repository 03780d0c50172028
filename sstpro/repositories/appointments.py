# sstpro/repositories/appointments.py
from datetime import datetime
from typing import List, Dict, Any, Optional
from ..db import get_conn

_SUMMARY_COLS = """
    appointment_id, company_id, company_name, company_cnpj, company_owner_id,
    technician_id, technician_name, datetime, reason, description, status,
    photo_url, signature_image, created_at
"""

class AppointmentRepository:
    def insert(self, data: Dict[str, Any]) -> str:
        """
        Espera: company_id, datetime, reason, description, status, technician_id.
        """
        sql = """
            INSERT INTO appointments
              (company_id, datetime, reason, description, status, technician_id)
            VALUES
              (%(company_id)s, %(datetime)s, %(reason)s, NULLIF(%(description)s,''),
               %(status)s, %(technician_id)s)
            RETURNING id;
        """
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute(sql, data)
            return str(cur.fetchone()["id"])

    def list(
        self,
        company_id: Optional[str] = None,
        technician_id: Optional[str] = None,
        include_unassigned: bool = False,
    ) -> List[Dict[str, Any]]:
        """
        Lê da view_dashboard_summary, ordenado por data/hora.
        Com technician_id + include_unassigned traz os do técnico e os sem técnico.
        """
        wh: list[str] = []
        params: dict[str, Any] = {}
        if company_id:
            wh.append("company_id = %(company_id)s")
            params["company_id"] = company_id
        if technician_id:
            if include_unassigned:
                wh.append("(technician_id IS NULL OR technician_id = %(technician_id)s)")
            else:
                wh.append("technician_id = %(technician_id)s")
            params["technician_id"] = technician_id

        where = ("WHERE " + " AND ".join(wh)) if wh else ""
        sql = f"""
            SELECT {_SUMMARY_COLS}
              FROM view_dashboard_summary
              {where}
             ORDER BY datetime ASC;
        """
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute(sql, params)
            return cur.fetchall()

    def by_id(self, appointment_id: str) -> Optional[Dict[str, Any]]:
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute(
                f"SELECT {_SUMMARY_COLS} FROM view_dashboard_summary WHERE appointment_id=%s;",
                (appointment_id,),
            )
            return cur.fetchone()

    def datetimes_between(self, start: datetime, end: datetime, statuses: List[str]) -> List[datetime]:
        """Horários ocupados no intervalo [start, end), de todas as empresas."""
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute(
                """
                SELECT datetime FROM appointments
                 WHERE datetime >= %s AND datetime < %s
                   AND status = ANY(%s);
                """,
                (start, end, list(statuses)),
            )
            return [r["datetime"] for r in cur.fetchall()]

    def update_status(self, appointment_id: str, status: str, technician_id: Optional[str]) -> bool:
        """Escrita incondicional (last-write-wins)."""
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute(
                """
                UPDATE appointments
                   SET status=%s, technician_id=%s
                 WHERE id=%s
             RETURNING id;
                """,
                (status, technician_id, appointment_id),
            )
            return cur.fetchone() is not None

    def claim(self, appointment_id: str, technician_id: str) -> bool:
        """
        Assume o atendimento só se ainda estiver PENDING e sem técnico.
        Retorna False se outro técnico chegou antes.
        """
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute(
                """
                UPDATE appointments
                   SET status='ACCEPTED', technician_id=%s
                 WHERE id=%s
                   AND status='PENDING'
                   AND technician_id IS NULL
             RETURNING id;
                """,
                (technician_id, appointment_id),
            )
            return cur.fetchone() is not None

    def complete(self, appointment_id: str, technician_id: str, report: str,
                 photo_url: Optional[str], signature_image: Optional[str]) -> bool:
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute(
                """
                UPDATE appointments
                   SET status='COMPLETED',
                       technician_id=COALESCE(technician_id, %s),
                       description=%s,
                       photo_url=COALESCE(%s, photo_url),
                       signature_image=%s
                 WHERE id=%s
             RETURNING id;
                """,
                (technician_id, report, photo_url, signature_image, appointment_id),
            )
            return cur.fetchone() is not None

    def delete_pending_own(self, appointment_id: str, company_id: str) -> bool:
        """
        Exclui a solicitação se ainda estiver PENDING e pertencer à empresa.
        Retorna False caso não exista / sem permissão / já saiu de PENDING.
        """
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute(
                """
                DELETE FROM appointments
                 WHERE id=%s AND company_id=%s AND status='PENDING'
             RETURNING id;
                """,
                (appointment_id, company_id),
            )
            return cur.fetchone() is not None
