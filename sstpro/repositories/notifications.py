# sstpro/repositories/notifications.py
from typing import List, Dict, Any, Optional
from ..db import get_conn

class NotificationRepository:
    def insert(self, user_id: str, message: str, type_: str, link: Optional[str]) -> str:
        sql = """
          INSERT INTO notifications (user_id, message, type, link)
          VALUES (%s, %s, %s, %s) RETURNING id;
        """
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute(sql, (user_id, message, type_, link))
            return str(cur.fetchone()["id"])

    def list_for_user(self, user_id: str) -> List[Dict[str, Any]]:
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute(
                "SELECT * FROM notifications WHERE user_id=%s ORDER BY created_at DESC;",
                (user_id,),
            )
            return cur.fetchall()

    def mark_read(self, notification_id: str, user_id: str) -> bool:
        with get_conn() as conn, conn.cursor() as cur:
            cur.execute(
                "UPDATE notifications SET read=TRUE WHERE id=%s AND user_id=%s RETURNING id;",
                (notification_id, user_id),
            )
            return cur.fetchone() is not None
