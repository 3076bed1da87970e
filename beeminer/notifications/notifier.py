"""
Notification Service
====================

Best-effort email notifications for players.

Delivery runs on a background thread pool: ``notify`` returns immediately,
every attempt is recorded, and no delivery error ever reaches the caller.

Author: jetgause
Created: 2026-10-18
"""

import html
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .providers import DeliveryOutcome, EmailProvider, mask_secret

logger = logging.getLogger(__name__)


@dataclass
class NotificationRecord:
    """Record of a notification attempt."""
    timestamp: datetime
    provider: str
    recipient: str
    subject: str
    success: bool
    message_id: Optional[str] = None
    error_message: Optional[str] = None


class NotificationService:
    """
    Dispatches player emails through the configured provider.

    Args:
        provider: EmailProvider used for delivery
        max_workers: Size of the delivery thread pool
        max_history: Number of attempts kept in memory
    """

    def __init__(self, provider: EmailProvider, max_workers: int = 2, max_history: int = 500):
        self.provider = provider
        self.max_history = max_history
        self.notification_history: List[NotificationRecord] = []
        self.failed_notifications: List[NotificationRecord] = []
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="notify")
        self._lock = threading.Lock()

        logger.info(f"NotificationService initialized with provider '{provider.name}'")

    def notify(self, to: Optional[str], subject: str, html_body: str) -> Optional[Future]:
        """
        Queue an email for delivery and return without waiting.

        Returns:
            Future resolving to the DeliveryOutcome, or None when there is no recipient
        """
        if not to:
            logger.debug(f"Notification '{subject}' skipped: no recipient")
            return None
        try:
            return self._executor.submit(self._deliver, to, subject, html_body)
        except RuntimeError as e:
            # Executor already shut down
            logger.warning(f"Notification '{subject}' dropped: {e}")
            return None

    def _deliver(self, to: str, subject: str, html_body: str) -> DeliveryOutcome:
        try:
            outcome = self.provider.send(to, subject, html_body)
        except Exception as e:
            logger.error(f"Email delivery via {self.provider.name} failed: {e}")
            outcome = DeliveryOutcome(success=False, provider=self.provider.name, error=str(e))

        record = NotificationRecord(
            timestamp=datetime.now(timezone.utc),
            provider=outcome.provider,
            recipient=to,
            subject=subject,
            success=outcome.success,
            message_id=outcome.message_id,
            error_message=outcome.error,
        )
        with self._lock:
            self.notification_history.append(record)
            del self.notification_history[:-self.max_history]
            if not outcome.success:
                self.failed_notifications.append(record)
                del self.failed_notifications[:-self.max_history]
        return outcome

    def verify(self) -> Dict[str, Any]:
        """Report whether the provider is ready to send."""
        settings = self.provider.settings
        if not self.provider.is_configured():
            logger.warning(f"Email provider '{self.provider.name}' not configured - notifications disabled")
            return {"success": False, "provider": self.provider.name, "message": "Email provider not configured"}

        details = {"success": True, "provider": self.provider.name, "message": "Email provider configured"}
        if self.provider.name == "brevo":
            details["apiKey"] = mask_secret(settings.brevo_api_key)
        return details

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            total = len(self.notification_history)
            failed = sum(1 for r in self.notification_history if not r.success)
        return {"provider": self.provider.name, "sent": total - failed, "failed": failed}

    def shutdown(self, wait: bool = True):
        self._executor.shutdown(wait=wait)


# ==================== Templates ====================

def _layout(title: str, body: str) -> str:
    return f"""
    <html>
        <body style="font-family: Arial, sans-serif;">
            <div style="background-color: #f5b800; color: #3b2a00; padding: 10px;">
                <h2>{html.escape(title)}</h2>
            </div>
            <div style="padding: 20px;">
                {body}
            </div>
        </body>
    </html>
    """


def mission_claimed_email(mission: Dict[str, Any]) -> Dict[str, str]:
    """Subject and body for a claimed referral mission."""
    tickets = mission.get("ticketsReward", 0)
    tickets_line = f"<p>Tickets: <b>{tickets}</b></p>" if tickets else ""
    body = (
        f"<p>You invited {mission.get('friendsRequired', 0)} friends and completed mission "
        f"#{mission.get('id')}.</p>"
        f"<p>Flowers: <b>{mission.get('flowersReward', 0):,}</b></p>"
        f"{tickets_line}"
    )
    return {"subject": "Mission reward claimed", "html": _layout("Mission complete!", body)}


def alveole_unlocked_email(alveole: Dict[str, Any]) -> Dict[str, str]:
    """Subject and body for a newly unlocked alveole."""
    body = (
        f"<p>Alveole level {alveole.get('level')} is now open.</p>"
        f"<p>Honey capacity: <b>{alveole.get('capacity', 0):,}</b></p>"
    )
    return {"subject": f"Alveole level {alveole.get('level')} unlocked", "html": _layout("New alveole unlocked", body)}
