#!/usr/bin/env python3
"""
BeeMiner Backend - Environment Setup Script
===========================================

Generates a .env file for the game API.

Usage:
    python3 setup_env.py

Or with auto-accept defaults:
    python3 setup_env.py --auto

Author: jetgause
Created: 2026-10-18
"""

import os
import sys
from pathlib import Path

DEFAULTS = {
    'ENVIRONMENT': 'development',
    'ALLOWED_ORIGINS': 'http://localhost:8081,http://localhost:19006,http://127.0.0.1:8081',
    'API_HOST': '127.0.0.1',
    'API_PORT': '3001',
    'API_WORKERS': '1',
    'DATABASE_URL': 'sqlite:///beeminer.db',
    'STATE_SAVE_RETRIES': '3',
    'ENABLE_TEST_RESOURCES': 'true',
    'EMAIL_PROVIDER': 'console',
    'EMAIL_FROM': 'noreply@beeminer.com',
    'EMAIL_SENDER_NAME': 'BeeMiner',
    'BREVO_API_KEY': '',
    'SMTP_HOST': 'smtp.gmail.com',
    'SMTP_PORT': '587',
    'SMTP_USERNAME': '',
    'SMTP_PASSWORD': '',
    'LOG_LEVEL': 'INFO',
}


def render_env(config):
    """Render the .env file body."""
    return f"""# BeeMiner Backend - Environment Configuration
# Generated: {Path(__file__).name}
# WARNING: Never commit this file to version control!

# ============================================================================
# API CONFIGURATION
# ============================================================================

ENVIRONMENT={config['ENVIRONMENT']}
ALLOWED_ORIGINS={config['ALLOWED_ORIGINS']}
API_HOST={config['API_HOST']}
API_PORT={config['API_PORT']}
API_WORKERS={config['API_WORKERS']}

# ============================================================================
# GAME STATE STORAGE
# ============================================================================

# Leave empty to keep state in memory (lost on restart)
DATABASE_URL={config['DATABASE_URL']}
STATE_SAVE_RETRIES={config['STATE_SAVE_RETRIES']}

# Ignored when ENVIRONMENT=production
ENABLE_TEST_RESOURCES={config['ENABLE_TEST_RESOURCES']}

# ============================================================================
# EMAIL NOTIFICATIONS (brevo, smtp or console)
# ============================================================================

EMAIL_PROVIDER={config['EMAIL_PROVIDER']}
EMAIL_FROM={config['EMAIL_FROM']}
EMAIL_SENDER_NAME={config['EMAIL_SENDER_NAME']}
BREVO_API_KEY={config['BREVO_API_KEY']}
SMTP_HOST={config['SMTP_HOST']}
SMTP_PORT={config['SMTP_PORT']}
SMTP_USERNAME={config['SMTP_USERNAME']}
SMTP_PASSWORD={config['SMTP_PASSWORD']}

# ============================================================================
# LOGGING
# ============================================================================

LOG_LEVEL={config['LOG_LEVEL']}
"""


def create_env_file(auto=False):
    """Create .env file for the game API."""

    print("=" * 70)
    print("BeeMiner Backend - Environment Configuration")
    print("=" * 70)
    print()

    env_path = Path(".env")
    if env_path.exists():
        print("⚠️  .env file already exists!")
        if not auto:
            response = input("Do you want to overwrite it? (yes/no): ").lower()
            if response not in ['yes', 'y']:
                print("❌ Setup cancelled.")
                return False
        print("Backing up existing .env to .env.backup...")
        if Path(".env.backup").exists():
            os.remove(".env.backup")
        os.rename(".env", ".env.backup")

    config = dict(DEFAULTS)

    if not auto:
        print("\n📝 Optional Configuration (press Enter to keep defaults):\n")

        database_url = input(f"Database URL [{config['DATABASE_URL']}]: ").strip()
        if database_url:
            config['DATABASE_URL'] = database_url

        provider = input("Email provider (brevo/smtp/console) [console]: ").strip().lower()
        if provider:
            config['EMAIL_PROVIDER'] = provider
        if config['EMAIL_PROVIDER'] == 'brevo':
            config['BREVO_API_KEY'] = input("Brevo API key: ").strip()
        elif config['EMAIL_PROVIDER'] == 'smtp':
            config['SMTP_HOST'] = input(f"SMTP host [{config['SMTP_HOST']}]: ").strip() or config['SMTP_HOST']
            config['SMTP_USERNAME'] = input("SMTP username: ").strip()
            config['SMTP_PASSWORD'] = input("SMTP password: ").strip()

    print("\n💾 Writing configuration to .env file...")
    with open(".env", "w") as f:
        f.write(render_env(config))
    print("✅ .env file created successfully!")

    print("\n🔍 Verifying configuration...")
    try:
        import config as cfg
        print("✅ Configuration validated!")
        print(f"   - ENVIRONMENT: {cfg.ENVIRONMENT}")
        print(f"   - ALLOWED_ORIGINS: {len(cfg.ALLOWED_ORIGINS)} origin(s)")
        print(f"   - DATABASE_URL: {cfg.DATABASE_URL or 'in-memory'}")
        print(f"   - EMAIL_PROVIDER: {cfg.EMAIL_PROVIDER}")
        return True
    except Exception as e:
        print(f"❌ Configuration validation failed: {e}")
        print("\nYou may need to:")
        print("1. Check that python-dotenv is installed: pip install python-dotenv")
        print("2. Verify config.py is in the current directory")
        return False


def main():
    """Main entry point."""
    auto = '--auto' in sys.argv

    try:
        success = create_env_file(auto=auto)

        if success:
            print("\n" + "=" * 70)
            print("✅ CONFIGURATION COMPLETE!")
            print("=" * 70)
            print("\nNext steps:")
            print("1. Review the .env file (optional)")
            print("2. Start the API server: python api_server.py")
            print("3. Access the API at: http://127.0.0.1:3001")
            return 0
        else:
            print("\n❌ Configuration failed. Please check the errors above.")
            return 1

    except KeyboardInterrupt:
        print("\n\n❌ Setup cancelled by user.")
        return 1


if __name__ == "__main__":
    sys.exit(main())
