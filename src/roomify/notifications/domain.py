"""
Доменная модель уведомлений.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ..shared_kernel import EntityId, NotificationType, generate_id, now


class Notification(BaseModel):
    """Уведомление пользователю.

    После создания меняется только флаг прочтения, и только в одну сторону.
    """

    id: EntityId = Field(default_factory=generate_id)
    user_id: EntityId
    type: NotificationType
    title: str
    message: str
    booking_id: Optional[EntityId] = None
    read: bool = False
    created_at: datetime = Field(default_factory=now)

    def mark_read(self) -> bool:
        """Помечает уведомление прочитанным. Возвращает True, если флаг изменился."""
        if self.read:
            return False
        self.read = True
        return True
