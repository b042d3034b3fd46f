"""Authentication helpers for Gmail API."""

from __future__ import annotations

from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build, Resource

from gmail_organizer.constants import CONFIG_DIR, CREDENTIALS_PATH, SCOPES, TOKEN_PATH
from gmail_organizer.errors import AuthRequired, OrganizerError
from gmail_organizer.gmail_client import GmailMailStore
from gmail_organizer.log import get_logger

logger = get_logger(__name__)


def get_gmail_service(interactive: bool = True) -> Resource:
    """Return an authenticated Gmail API service object.

    Loads cached token from TOKEN_PATH if available.  When the token is
    expired it is silently refreshed.  If no usable token exists and
    `interactive` is True, an OAuth browser flow is launched (requires
    credentials.json at CREDENTIALS_PATH); otherwise AuthRequired is raised
    so that unattended runs never block on a browser.
    """
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)

    creds: Credentials | None = None

    if TOKEN_PATH.exists():
        creds = Credentials.from_authorized_user_file(str(TOKEN_PATH), SCOPES)

    if creds and creds.expired and creds.refresh_token:
        try:
            creds.refresh(Request())
        except RefreshError as exc:
            logger.warning("Token refresh failed: %s", exc)
            creds = None

    if not creds or not creds.valid:
        if not interactive:
            raise AuthRequired("Gmail authentication required. Run 'gmail-organizer auth' to sign in.")
        if not CREDENTIALS_PATH.exists():
            raise AuthRequired(
                f"Credentials file not found at {CREDENTIALS_PATH}.\n"
                "Download your OAuth client credentials from the Google Cloud Console "
                "and save them as:\n"
                f"  {CREDENTIALS_PATH}"
            )
        flow = InstalledAppFlow.from_client_secrets_file(str(CREDENTIALS_PATH), SCOPES)
        creds = flow.run_local_server(port=0)

    TOKEN_PATH.write_text(creds.to_json())

    return build("gmail", "v1", credentials=creds)


def check_auth() -> tuple[bool, str]:
    """Test whether Gmail authentication is working.

    Returns (ok, human-readable status message).
    """
    try:
        store = GmailMailStore(get_gmail_service())
        profile = store.get_profile()
    except OrganizerError as exc:
        return False, f"Authentication failed: {exc}"
    return True, f"Authenticated as {profile.get('emailAddress', 'unknown')}"
