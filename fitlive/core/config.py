"""
Configuration constants for the application.
"""
import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file if it exists
env_path = Path(__file__).resolve().parent.parent.parent / '.env'
load_dotenv(dotenv_path=env_path)

# Main Admin User ID
# The user with this ID always has admin authority, whatever its role column says.
MAIN_ADMIN_USER_ID = int(os.getenv("MAIN_ADMIN_USER_ID", "1"))

# Log level for fitlive.* loggers
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# ===============================
# CHALLENGES
# ===============================
# How many participants the challenge detail page previews
MAX_DISPLAY_PARTICIPANTS = 3

# Leaderboard preview size on the progress page
LEADERBOARD_PREVIEW_SIZE = 3

# ===============================
# NUTRITION
# ===============================
# Foods offered under "recent" when logging a meal
RECENT_MEALS_LIMIT = 5

# ===============================
# PAYMENTS
# ===============================
# Backend that creates payment intents for the hosted checkout sheet.
# IMPORTANT: the app never sees card data; it only forwards amount + currency.
PAYMENT_BACKEND_URL = os.getenv("PAYMENT_BACKEND_URL", "http://127.0.0.1:3000").rstrip("/")
PAYMENT_TIMEOUT_SECONDS = float(os.getenv("PAYMENT_TIMEOUT_SECONDS", "10"))
PAYMENT_CURRENCY = "myr"
MERCHANT_DISPLAY_NAME = "Fitlive"

# Amounts are in the smallest currency unit (sen)
SUBSCRIPTION_PLANS = {
    "monthly": 4990,
    "yearly": 47990,
}
