# sstpro/repositories/profiles.py
from typing import Optional, List, Dict, Any
from ..db import get_conn

_PROFILE_SELECT = """
    SELECT p.id, p.name, p.email, p.role, p.company_id, p.registration_number,
           p.avatar_url, p.password_hash, c.name AS company_name
      FROM profiles p
      LEFT JOIN companies c ON c.id = p.company_id
"""

class ProfileRepository:
    def by_email(self, email: str) -> Optional[Dict[str, Any]]:
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute(_PROFILE_SELECT + " WHERE LOWER(p.email) = LOWER(%s) LIMIT 1;", (email,))
            return cur.fetchone()

    def by_id(self, user_id: str) -> Optional[Dict[str, Any]]:
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute(_PROFILE_SELECT + " WHERE p.id = %s;", (user_id,))
            return cur.fetchone()

    def list_technicians(self) -> List[Dict[str, Any]]:
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute(_PROFILE_SELECT + " WHERE p.role = 'TECNICO' ORDER BY p.name;")
            return cur.fetchall()

    def create(self, data: Dict[str, Any]) -> str:
        sql = """
            INSERT INTO profiles (name, email, password_hash, role, company_id, registration_number)
            VALUES (%(name)s, LOWER(%(email)s), %(password_hash)s, %(role)s,
                    %(company_id)s, NULLIF(%(registration_number)s,''))
            RETURNING id;
        """
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute(sql, data)
            user_id = str(cur.fetchone()["id"])
            if data.get("company_id"):
                # primeiro usuário da empresa vira o dono (recebe as notificações)
                cur.execute(
                    "UPDATE companies SET owner_id=%s WHERE id=%s AND owner_id IS NULL;",
                    (user_id, data["company_id"]),
                )
            return user_id

    def update(self, user_id: str, fields: Dict[str, Any]) -> None:
        # papel (role) nunca é alterado pela aplicação
        sql = """
            UPDATE profiles
               SET name=%(name)s,
                   avatar_url=NULLIF(%(avatar_url)s,'')
             WHERE id=%(id)s;
        """
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute(sql, {**fields, "id": user_id})
