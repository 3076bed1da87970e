"""
Tests for the .env generator.
"""

import unittest

from setup_env import DEFAULTS, render_env


class TestRenderEnv(unittest.TestCase):
    """Test suite for render_env."""

    def test_every_setting_rendered(self):
        """Test that each default appears as KEY=value."""
        body = render_env(DEFAULTS)

        for key, value in DEFAULTS.items():
            self.assertIn(f"{key}={value}\n", body)

    def test_overrides(self):
        """Test that overridden values are written."""
        config = dict(DEFAULTS, EMAIL_PROVIDER="brevo", BREVO_API_KEY="xkeysib-test")

        body = render_env(config)

        self.assertIn("EMAIL_PROVIDER=brevo\n", body)
        self.assertIn("BREVO_API_KEY=xkeysib-test\n", body)


if __name__ == "__main__":
    unittest.main()
