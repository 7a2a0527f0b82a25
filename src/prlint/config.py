import os
import dotenv
import logging

dotenv.load_dotenv()

GITHUB_URL = os.environ.get("GITHUB_URL", "https://github.com").rstrip("/")
GITHUB_API_URL = os.environ.get("GITHUB_API_URL", "https://api.github.com").rstrip("/")

GITHUB_WEBHOOK_SECRET = os.environ.get("GITHUB_WEBHOOK_SECRET")
GITHUB_PRIVATE_KEY = os.environ.get("GITHUB_PRIVATE_KEY")
GITHUB_APP_ID = int(os.environ.get("GITHUB_APP_ID", 0))

# media type of the GitHub App preview API
GITHUB_ACCEPT = "application/vnd.github.machine-man-preview+json"

HOMEPAGE_URL = os.environ.get("HOMEPAGE_URL", "https://github.com/VibrentHealth/prlint")
ISSUES_URL = os.environ.get("ISSUES_URL", f"{HOMEPAGE_URL}/issues")

BUILD_VERSION = os.environ.get("BUILD_VERSION")

OVERRIDE_LOGGING = logging.getLevelName(os.environ.get("OVERRIDE_LOGGING", "WARNING"))

TELEGRAM_TOKEN = os.environ.get("TELEGRAM_TOKEN")
TELEGRAM_CHAT_ID = os.environ.get("TELEGRAM_CHAT_ID")

DISABLE_ERROR_REPORTING = os.environ.get("DISABLE_ERROR_REPORTING", "false") == "true"

OVERRIDE_CONFIG = os.environ.get("OVERRIDE_CONFIG")

JWT_REFRESH_INTERVAL = float(os.environ.get("JWT_REFRESH_INTERVAL", 300))

TOKEN_EXPIRY_MARGIN = float(os.environ.get("TOKEN_EXPIRY_MARGIN", 60))

DRY_RUN = os.environ.get("DRY_RUN", "false") == "true"
