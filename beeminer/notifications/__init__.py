"""
Notifications Module
Best-effort player email with pluggable providers
"""

from beeminer.notifications.providers import (
    BrevoEmailProvider,
    ConsoleEmailProvider,
    DeliveryOutcome,
    EmailProvider,
    NotificationSettings,
    ProviderName,
    SMTPEmailProvider,
    create_provider,
)
from beeminer.notifications.notifier import (
    NotificationRecord,
    NotificationService,
    alveole_unlocked_email,
    mission_claimed_email,
)

__all__ = [
    "BrevoEmailProvider",
    "ConsoleEmailProvider",
    "DeliveryOutcome",
    "EmailProvider",
    "NotificationSettings",
    "ProviderName",
    "SMTPEmailProvider",
    "create_provider",
    "NotificationRecord",
    "NotificationService",
    "alveole_unlocked_email",
    "mission_claimed_email",
]
