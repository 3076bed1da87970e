import os
import sys
from dotenv import load_dotenv

load_dotenv()

# Detect environment
ENVIRONMENT = os.getenv("ENVIRONMENT", "development").lower()
IS_PRODUCTION = ENVIRONMENT == "production"

# API Configuration
API_HOST = os.getenv("API_HOST", "127.0.0.1")
API_PORT = int(os.getenv("API_PORT", "3001"))
API_WORKERS = int(os.getenv("API_WORKERS", "1"))

# Database (empty = in-memory store, state is lost on restart)
DATABASE_URL = os.getenv("DATABASE_URL", "")
STATE_SAVE_RETRIES = int(os.getenv("STATE_SAVE_RETRIES", "3"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Test resource grants are never available in production
ENABLE_TEST_RESOURCES = os.getenv("ENABLE_TEST_RESOURCES", "true").lower() == "true"
TEST_RESOURCES_ENABLED = ENABLE_TEST_RESOURCES and not IS_PRODUCTION

# Email notifications
EMAIL_PROVIDER = os.getenv("EMAIL_PROVIDER", "console").lower()
EMAIL_FROM = os.getenv("EMAIL_FROM", "noreply@beeminer.com")
EMAIL_SENDER_NAME = os.getenv("EMAIL_SENDER_NAME", "BeeMiner")
BREVO_API_KEY = os.getenv("BREVO_API_KEY", "")
SMTP_HOST = os.getenv("SMTP_HOST", "smtp.gmail.com")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USERNAME = os.getenv("SMTP_USERNAME", "")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD", "")

# CORS Configuration with validation
ALLOWED_ORIGINS_STR = os.getenv(
    "ALLOWED_ORIGINS",
    "http://localhost:8081,http://localhost:19006,http://127.0.0.1:8081"
)
ALLOWED_ORIGINS = [origin.strip() for origin in ALLOWED_ORIGINS_STR.split(",") if origin.strip()]

if "*" in ALLOWED_ORIGINS:
    if IS_PRODUCTION:
        print("=" * 70)
        print("CRITICAL ERROR: Wildcard CORS (*) not allowed in production!")
        print("=" * 70)
        print("\nCurrent ALLOWED_ORIGINS contains wildcard '*'")
        print("\nSet the game client origins in your .env file:")
        print("  ALLOWED_ORIGINS=https://beeminer.app,https://www.beeminer.app")
        print("\n" + "=" * 70)
        sys.exit(1)
    else:
        print("\n⚠️  WARNING: Wildcard CORS (*) detected in development mode")
        print("   This should NOT be used in production!\n")

if EMAIL_PROVIDER == "brevo" and not BREVO_API_KEY:
    print("⚠️  EMAIL_PROVIDER=brevo but BREVO_API_KEY is not set. Email notifications will be disabled.")
    print("   Get your API key at: https://app.brevo.com/settings/keys/api")
