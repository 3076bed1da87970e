"""
Notification Test Suite
=======================

Tests for email providers and the fire-and-forget notification service.
Network and SMTP calls are mocked.

Author: jetgause
Created: 2026-10-18
"""

import unittest
from unittest.mock import MagicMock, patch

from beeminer.notifications import (
    BrevoEmailProvider,
    ConsoleEmailProvider,
    DeliveryOutcome,
    EmailProvider,
    NotificationService,
    NotificationSettings,
    SMTPEmailProvider,
    alveole_unlocked_email,
    create_provider,
    mission_claimed_email,
)


class ExplodingProvider(EmailProvider):
    """Provider whose transport always raises."""

    name = "exploding"

    def send(self, to, subject, html):
        raise ConnectionError("relay unreachable")


class TestBrevoEmailProvider(unittest.TestCase):
    """Test suite for the Brevo provider."""

    def setUp(self):
        """Set up test fixtures."""
        self.settings = NotificationSettings(
            provider="brevo",
            brevo_api_key="xkeysib-1234567890",
            sender_email="noreply@beeminer.com",
        )

    @patch("beeminer.notifications.providers.requests.post")
    def test_send_success(self, mock_post):
        """Test a successful transactional send."""
        mock_post.return_value = MagicMock(status_code=201)
        mock_post.return_value.json.return_value = {"messageId": "<abc@brevo>"}

        outcome = BrevoEmailProvider(self.settings).send("player@example.com", "Hi", "<p>Hello</p>")

        self.assertTrue(outcome.success)
        self.assertEqual(outcome.message_id, "<abc@brevo>")
        args, kwargs = mock_post.call_args
        self.assertEqual(args[0], "https://api.brevo.com/v3/smtp/email")
        self.assertEqual(kwargs["headers"]["api-key"], "xkeysib-1234567890")
        self.assertEqual(kwargs["json"]["to"], [{"email": "player@example.com"}])
        self.assertEqual(kwargs["json"]["htmlContent"], "<p>Hello</p>")
        self.assertEqual(kwargs["json"]["sender"]["email"], "noreply@beeminer.com")

    @patch("beeminer.notifications.providers.requests.post")
    def test_send_http_error(self, mock_post):
        """Test that an API error is reported, not raised."""
        mock_post.return_value = MagicMock(status_code=401, text="unauthorized")

        outcome = BrevoEmailProvider(self.settings).send("player@example.com", "Hi", "<p>Hello</p>")

        self.assertFalse(outcome.success)
        self.assertIn("401", outcome.error)

    @patch("beeminer.notifications.providers.requests.post")
    def test_not_configured_skips_request(self, mock_post):
        """Test that a missing API key skips delivery."""
        provider = BrevoEmailProvider(NotificationSettings(provider="brevo"))

        outcome = provider.send("player@example.com", "Hi", "<p>Hello</p>")

        self.assertFalse(outcome.success)
        self.assertFalse(provider.is_configured())
        mock_post.assert_not_called()


class TestSMTPEmailProvider(unittest.TestCase):
    """Test suite for the SMTP provider."""

    @patch("beeminer.notifications.providers.smtplib.SMTP")
    def test_send_with_login(self, mock_smtp):
        """Test STARTTLS, login and send."""
        server = mock_smtp.return_value.__enter__.return_value
        settings = NotificationSettings(
            provider="smtp",
            smtp_host="smtp.example.com",
            smtp_port=2525,
            smtp_username="mailer",
            smtp_password="secret",
        )

        outcome = SMTPEmailProvider(settings).send("player@example.com", "Subject", "<p>Body</p>")

        self.assertTrue(outcome.success)
        self.assertEqual(mock_smtp.call_args[0][:2], ("smtp.example.com", 2525))
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("mailer", "secret")
        message = server.send_message.call_args[0][0]
        self.assertEqual(message["To"], "player@example.com")
        self.assertEqual(message["Subject"], "Subject")


class TestCreateProvider(unittest.TestCase):
    """Test suite for provider selection."""

    def test_known_providers(self):
        """Test that each provider name maps to its class."""
        self.assertIsInstance(create_provider(NotificationSettings(provider="brevo")), BrevoEmailProvider)
        self.assertIsInstance(create_provider(NotificationSettings(provider="SMTP")), SMTPEmailProvider)
        self.assertIsInstance(create_provider(NotificationSettings(provider="console")), ConsoleEmailProvider)

    def test_unknown_provider(self):
        """Test that an unsupported provider raises ValueError."""
        with self.assertRaises(ValueError):
            create_provider(NotificationSettings(provider="sendgrid"))


class TestNotificationService(unittest.TestCase):
    """Test suite for NotificationService."""

    def test_notify_delivers_in_background(self):
        """Test that notify returns a future resolving to the outcome."""
        service = NotificationService(ConsoleEmailProvider(NotificationSettings()))

        future = service.notify("player@example.com", "Hello", "<p>Hi</p>")
        outcome = future.result(timeout=5)
        service.shutdown()

        self.assertIsInstance(outcome, DeliveryOutcome)
        self.assertTrue(outcome.success)
        self.assertEqual(service.get_stats(), {"provider": "console", "sent": 1, "failed": 0})

    def test_provider_exception_is_contained(self):
        """Test that transport errors are recorded and never raised."""
        service = NotificationService(ExplodingProvider(NotificationSettings()))

        outcome = service.notify("player@example.com", "Hello", "<p>Hi</p>").result(timeout=5)
        service.shutdown()

        self.assertFalse(outcome.success)
        self.assertIn("relay unreachable", outcome.error)
        self.assertEqual(len(service.failed_notifications), 1)

    def test_no_recipient(self):
        """Test that players without an email are skipped."""
        service = NotificationService(ConsoleEmailProvider(NotificationSettings()))

        self.assertIsNone(service.notify(None, "Hello", "<p>Hi</p>"))
        service.shutdown()
        self.assertEqual(service.notification_history, [])

    def test_notify_after_shutdown_is_dropped(self):
        """Test that a closed service drops messages quietly."""
        service = NotificationService(ConsoleEmailProvider(NotificationSettings()))
        service.shutdown()

        self.assertIsNone(service.notify("player@example.com", "Hello", "<p>Hi</p>"))

    def test_verify_masks_api_key(self):
        """Test provider verification output."""
        settings = NotificationSettings(provider="brevo", brevo_api_key="xkeysib-abcdefghijkl")
        service = NotificationService(BrevoEmailProvider(settings))

        status = service.verify()
        service.shutdown()

        self.assertTrue(status["success"])
        self.assertEqual(status["apiKey"], "xkeysib***")

    def test_verify_unconfigured(self):
        """Test verification of a provider without credentials."""
        service = NotificationService(BrevoEmailProvider(NotificationSettings(provider="brevo")))

        status = service.verify()
        service.shutdown()

        self.assertFalse(status["success"])


class TestTemplates(unittest.TestCase):
    """Test suite for email templates."""

    def test_mission_email(self):
        """Test the mission reward email."""
        email = mission_claimed_email({"id": 4, "friendsRequired": 50, "flowersReward": 12000, "ticketsReward": 1})

        self.assertEqual(email["subject"], "Mission reward claimed")
        self.assertIn("12,000", email["html"])
        self.assertIn("Tickets", email["html"])

    def test_alveole_email(self):
        """Test the alveole unlock email."""
        email = alveole_unlocked_email({"level": 3, "capacity": 6000000, "cost": 500000})

        self.assertIn("level 3", email["subject"])
        self.assertIn("6,000,000", email["html"])


if __name__ == "__main__":
    unittest.main()
