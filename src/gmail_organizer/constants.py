"""Constants for Gmail Organizer."""

import os
from pathlib import Path

# --- Config paths ---
CONFIG_DIR = Path(os.getenv("GMAIL_ORGANIZER_HOME", str(Path.home() / ".gmail-organizer")))
CREDENTIALS_PATH = CONFIG_DIR / "credentials.json"
TOKEN_PATH = CONFIG_DIR / "token.json"
STATE_DB_PATH = CONFIG_DIR / "state.db"

# --- Gmail API ---
SCOPES = [
    "https://www.googleapis.com/auth/gmail.modify",
    "https://www.googleapis.com/auth/gmail.labels",
]
UNREAD_QUERY = "is:unread"
UNREAD_LABEL_ID = "UNREAD"
BODY_SNIPPET_LIMIT = 2000  # chars of decoded text/plain kept for keyword rules

# --- Processing ---
BATCH_SIZE = 10  # unread messages per cycle
PATTERN_THRESHOLD = 3  # same domain + label occurrences before a suggestion
DEFAULT_PROCESSING_INTERVAL_MINUTES = 5
WATCH_INITIAL_DELAY_SECONDS = 60
CYCLE_LEASE_SECONDS = 30 * 60

# --- Labels ---
SPAM_LABEL_NAME = "ExtensionSpam"
SUGGESTION_NAME_TEMPLATE = "{label} - {domain}"

# --- Spam defaults ---
DEFAULT_SPAM_KEYWORDS = [
    "win a prize",
    "free money",
    "urgent action required",
    "limited time offer",
    "congratulations you won",
]

# --- Persisted state keys ---
KEY_SETTINGS = "settings"
KEY_LAST_PROCESSED = "last_processed_timestamp"
KEY_DOMAIN_LABEL_COUNTS = "domain_label_counts"
KEY_SUGGESTIONS = "suggested_labels"
COUNTER_KEY_SEPARATOR = ":::"

# --- Logging ---
LOG_LEVEL_ENV = "GMAIL_ORGANIZER_LOG_LEVEL"
