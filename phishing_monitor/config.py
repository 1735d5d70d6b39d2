import os

from dotenv import load_dotenv

load_dotenv()

# --- Credentials (never hard-coded) ---
TELEGRAM_BOT_TOKEN: str | None = os.getenv("TELEGRAM_BOT_TOKEN")
TELEGRAM_GROUP_CHAT_ID: str | None = os.getenv("TELEGRAM_GROUP_CHAT_ID")

# --- Runtime ---
MONITOR_ENV: str = os.getenv("MONITOR_ENV", "development")
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

POLL_INTERVAL_SECONDS: int = 60
REQUEST_TIMEOUT_SECONDS: int = 10
LOOKUP_TIMEOUT_SECONDS: int = 10

# --- Endpoints ---
PHISHING_CONFIG_URL: str = (
    "https://raw.githubusercontent.com/MetaMask/eth-phishing-detect/refs/heads/main/src/config.json"
)
CHAINABUSE_BASE_URL: str = "https://www.chainabuse.com/domain"
TELEGRAM_API_BASE: str = "https://api.telegram.org"

USER_AGENT: str = "PhishingMonitor/1.0 (phishing-list-tracker)"

# ChainAbuse serves its report pages to browsers only
BROWSER_USER_AGENT: str = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


def run_mode(env: str = MONITOR_ENV) -> str:
    """PRODUCTION when MONITOR_ENV=production, DEVELOPMENT otherwise."""
    return "PRODUCTION" if env.strip().lower() == "production" else "DEVELOPMENT"
