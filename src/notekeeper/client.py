"""HTTP client for the Notekeeper API with stored-token management."""

import logging

import requests

from .config import Config, Token, load_config
from .core.notes import Category, Note, Role
from .errors import AuthError, NetworkError, NotekeeperError, RateLimitError, ValidationError

logger = logging.getLogger(__name__)


class NotekeeperClient:
    """Client for the Notekeeper REST API.

    401/403 responses discard the stored token; 429 keeps it.
    """

    def __init__(self, config: Config | None = None, token: Token | None = None):
        self.config = config or load_config()
        self.token = token or Token.load()
        self._session = requests.Session()

    def _url(self, endpoint: str) -> str:
        return f"{self.config.api_url.rstrip('/')}{endpoint}"

    def _raise_for_response(self, resp: requests.Response) -> None:
        try:
            data = resp.json()
        except ValueError:
            data = None
        message = data.get("message") if isinstance(data, dict) else None

        if resp.status_code in (401, 403):
            self.token = Token()
            Token.discard()
            raise AuthError(message or "Session expired. Run 'notekeeper login' again.", resp.status_code)
        if resp.status_code == 429:
            raise RateLimitError(message or "Too many requests, please slow down")
        if resp.status_code == 400:
            details = data.get("details", []) if isinstance(data, dict) else []
            raise ValidationError(message or "Invalid input", details)

        error = NotekeeperError(message or f"Server error ({resp.status_code})")
        error.status_code = resp.status_code
        raise error

    def _request(self, method: str, endpoint: str, body: dict | None = None, auth: bool = True, params=None):
        """Make an API request and return the decoded JSON body."""
        headers = {}
        if auth:
            if not self.token.token:
                raise AuthError("Not logged in. Run 'notekeeper login' first.")
            headers["Authorization"] = f"Bearer {self.token.token}"

        try:
            resp = self._session.request(method, self._url(endpoint), json=body, headers=headers, params=params)
        except requests.RequestException as e:
            logger.debug(f"{method} {endpoint} failed: {e}")
            raise NetworkError(f"Cannot reach the server at {self.config.api_url}") from e

        if not resp.ok:
            self._raise_for_response(resp)
        return resp.json()

    def login(self, username: str, password: str, remember_me: bool = False) -> Token:
        """Log in and store the issued token."""
        data = self._request(
            "POST",
            "/login",
            {"username": username, "password": password, "rememberMe": remember_me},
            auth=False,
        )
        self.token = Token(token=data["token"], username=data["username"])
        self.token.save()
        return self.token

    def logout(self) -> None:
        self.token = Token()
        Token.discard()

    def change_password(self, old_password: str, new_password: str) -> str:
        data = self._request("PUT", "/user/password", {"oldPassword": old_password, "newPassword": new_password})
        return data.get("message", "")

    def get_categories(self) -> list[Category]:
        return [
            Category(name=c["name"], color=c.get("color", ""), target=c.get("target", 10))
            for c in self._request("GET", "/categories")
        ]

    def get_roles(self) -> list[Role]:
        return [
            Role(name=r["name"], target=r.get("target", 5), description=r.get("description", ""))
            for r in self._request("GET", "/roles")
        ]

    def get_notes(self) -> list[Note]:
        return [Note.from_api(n) for n in self._request("GET", "/notes")]

    def _note_body(self, note: Note, sync_to_calendar: bool, recurrence: str = "none") -> dict:
        return {
            "id": note.id,
            "date": note.date,
            "category": note.category,
            "content": note.content,
            "role": note.role,
            "startTime": note.start_time,
            "endTime": note.end_time,
            "syncToCalendar": sync_to_calendar,
            "recurrence": recurrence,
        }

    def create_note(self, note: Note, sync_to_calendar: bool = False, recurrence: str = "none") -> dict:
        return self._request("POST", "/notes", self._note_body(note, sync_to_calendar, recurrence))

    def update_note(self, row_index: int, note: Note, sync_to_calendar: bool = False) -> dict:
        return self._request("PUT", f"/notes/{row_index}", self._note_body(note, sync_to_calendar))

    def delete_note(self, row_index: int, note_id: str = "") -> dict:
        params = {"id": note_id} if note_id else None
        return self._request("DELETE", f"/notes/{row_index}", params=params)
