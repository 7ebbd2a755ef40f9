"""Dismissible user notifications"""
from typing import List
import logging
from ..models.response import Notification
from ..utils.helpers import generate_notification_id

logger = logging.getLogger(__name__)


class Notifier:
    """Per-session list of toast notifications"""

    def __init__(self):
        self._notifications: List[Notification] = []

    def add(self, type: str, message: str) -> Notification:
        notification = Notification(id=generate_notification_id(), type=type, message=message)
        self._notifications.append(notification)
        return notification

    def success(self, message: str) -> Notification:
        return self.add("success", message)

    def info(self, message: str) -> Notification:
        return self.add("info", message)

    def error(self, message: str) -> Notification:
        return self.add("error", message)

    def dismiss(self, notification_id: str) -> bool:
        before = len(self._notifications)
        self._notifications = [n for n in self._notifications if n.id != notification_id]
        return len(self._notifications) < before

    def list(self) -> List[Notification]:
        return list(self._notifications)
