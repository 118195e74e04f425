"""Service-account credentials shared by the Google adapters."""

import logging
from pathlib import Path

from notekeeper.errors import NotekeeperError

logger = logging.getLogger(__name__)

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/calendar",
]


def load_credentials(credentials_file: str):
    """Load service-account credentials from a JSON key file."""
    from google.oauth2 import service_account

    key_path = Path(credentials_file).expanduser()
    if not key_path.exists():
        raise NotekeeperError(f"Google credentials file not found: {key_path}")

    logger.debug(f"Loading service account credentials from {key_path}")
    return service_account.Credentials.from_service_account_file(str(key_path), scopes=SCOPES)


def build_service(api: str, version: str, credentials_file: str):
    """Build a Google API client for the given API."""
    from googleapiclient.discovery import build

    creds = load_credentials(credentials_file)
    return build(api, version, credentials=creds, cache_discovery=False)
