# sstpro/repositories/visit_reasons.py
from typing import List
from ..db import get_conn

class VisitReasonRepository:
    def active_labels(self) -> List[str]:
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute("SELECT label FROM visit_reasons WHERE active ORDER BY label;")
            return [r["label"] for r in cur.fetchall()]
