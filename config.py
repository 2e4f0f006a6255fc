"""
Runtime configuration, read from the environment (and a local .env file).
"""
import os

from dotenv import load_dotenv

load_dotenv()

TESTING = os.getenv("TESTING") == "1"
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./tables.db")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

# Booking rules
DEFAULT_QUEUE_WINDOW_MINUTES = int(os.getenv("DEFAULT_QUEUE_WINDOW_MINUTES", "60"))
QUEUE_WAIT_MINUTES_PER_ENTRY = int(os.getenv("QUEUE_WAIT_MINUTES_PER_ENTRY", "15"))
DEFAULT_RESERVATION_MINUTES = int(os.getenv("DEFAULT_RESERVATION_MINUTES", "60"))

# Window around "now" in which a pending reservation blocks auto-seating from the queue
RESERVATION_LOOKBEHIND_MINUTES = int(os.getenv("RESERVATION_LOOKBEHIND_MINUTES", "15"))
RESERVATION_LOOKAHEAD_MINUTES = int(os.getenv("RESERVATION_LOOKAHEAD_MINUTES", "60"))

# Alternative slot suggestions
SUGGESTION_STEP_MINUTES = int(os.getenv("SUGGESTION_STEP_MINUTES", "30"))
SUGGESTION_CANDIDATES = int(os.getenv("SUGGESTION_CANDIDATES", "6"))
MAX_SUGGESTIONS = int(os.getenv("MAX_SUGGESTIONS", "3"))

# Opening hours scanned for the per-day slot overview
SLOT_DAY_START_HOUR = int(os.getenv("SLOT_DAY_START_HOUR", "8"))
SLOT_DAY_END_HOUR = int(os.getenv("SLOT_DAY_END_HOUR", "23"))
