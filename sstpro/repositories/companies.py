# sstpro/repositories/companies.py
from typing import List, Dict, Any, Optional
from ..db import get_conn

_EDITABLE = ["name", "cnpj", "address", "contact_name", "phone"]

class CompanyRepository:
    def list(self, q: str = "") -> List[Dict[str, Any]]:
        where = ""
        params: list[Any] = []
        if q:
            where = "WHERE name ILIKE %s OR cnpj ILIKE %s"
            like = f"%{q}%"
            params = [like, like]
        sql = f"""
            SELECT * FROM companies
            {where}
            ORDER BY name ASC;
        """
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute(sql, params)
            return cur.fetchall()

    def by_id(self, cid: str) -> Optional[Dict[str, Any]]:
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute("SELECT * FROM companies WHERE id=%s;", (cid,))
            return cur.fetchone()

    def create(self, data: Dict[str, Any]) -> str:
        placeholders = ",".join(
            ["%(name)s"] + [f"NULLIF(%({c})s,'')" for c in _EDITABLE[1:]]
        )
        sql = f"INSERT INTO companies ({','.join(_EDITABLE)}) VALUES ({placeholders}) RETURNING id;"
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute(sql, {c: data.get(c) for c in _EDITABLE})
            return str(cur.fetchone()["id"])

    def update(self, cid: str, data: Dict[str, Any]) -> bool:
        set_clause = ",".join(
            ["name=%(name)s"] + [f"{c}=NULLIF(%({c})s,'')" for c in _EDITABLE[1:]]
        )
        sql = f"UPDATE companies SET {set_clause} WHERE id=%(id)s RETURNING id;"
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute(sql, {**{c: data.get(c) for c in _EDITABLE}, "id": cid})
            return cur.fetchone() is not None
