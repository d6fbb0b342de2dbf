"""
Centralized configuration for EpiGuard.
Env-based constants, loaded once at import.
"""

import os
from dotenv import load_dotenv

load_dotenv()

# --- LLM ---
GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY", "")
CHAT_MODEL = os.getenv("EPIGUARD_MODEL", "gemini-2.0-flash")
TRANSLATION_MODEL = os.getenv("TRANSLATION_MODEL", CHAT_MODEL)

# Prior turns sent alongside each user message
HISTORY_WINDOW_TURNS = int(os.getenv("HISTORY_WINDOW_TURNS", "6"))

# --- Languages ---
CANONICAL_LANGUAGE = "en"
SUPPORTED_LANGUAGES = {
    "en": "English",
    "es": "Español",
    "fr": "Français",
}

# --- Symptom timeline ---
SYMPTOM_WINDOW_HOURS = 24

# --- Reminders ---
REMINDER_INTERVAL_OPTIONS = (4, 8, 12, 24)
DEFAULT_REMINDER_INTERVAL_HOURS = int(os.getenv("REMINDER_INTERVAL_HOURS", "12"))
REMINDER_CHECK_SECONDS = int(os.getenv("REMINDER_CHECK_SECONDS", "60"))

# --- Notifications ---
NOTIFICATION_WEBHOOK_URL = os.getenv("NOTIFICATION_WEBHOOK_URL", "")

# --- Server ---
PORT = int(os.getenv("PORT", "8080"))

# --- Persistence ---
SETTINGS_FILE = os.getenv("EPIGUARD_SETTINGS_FILE", "epiguard_settings.json")
