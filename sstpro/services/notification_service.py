from typing import List, Optional

from ..models import Notification, is_uuid
from ..repositories.notifications import NotificationRepository


class NotificationService:
    def __init__(self, repo=None):
        self.repo = repo or NotificationRepository()

    def create(self, user_id: str, message: str, type_: str = "info", link: Optional[str] = None) -> str:
        return self.repo.insert(user_id, message, type_, link)

    def list_for_user(self, user_id: str) -> List[Notification]:
        return [Notification.from_row(r) for r in self.repo.list_for_user(user_id)]

    def mark_read(self, notification_id: str, user_id: str) -> bool:
        if not is_uuid(notification_id):
            return False
        return self.repo.mark_read(notification_id, user_id)
