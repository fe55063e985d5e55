"""Log-backed Notifier used when no mail/SMS gateway is wired in."""

from property_kernel.logging_config import get_logger
from property_services.collaborators import Notification

logger = get_logger("services.notifications")


class LoggingNotifier:
    """Writes each notification to the structured log instead of sending it."""

    def __init__(self) -> None:
        self.sent: list[Notification] = []

    def notify(self, notification: Notification) -> None:
        self.sent.append(notification)
        logger.info(
            "notification_sent",
            extra={
                "kind": notification.kind.value,
                "recipient_id": str(notification.recipient_id),
                "subject": notification.subject,
            },
        )
