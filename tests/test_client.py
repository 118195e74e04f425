"""Tests for the HTTP client."""

import json
from unittest.mock import MagicMock, patch

import pytest
import requests

from notekeeper.client import NotekeeperClient
from notekeeper.config import Config, Token
from notekeeper.core.notes import Note
from notekeeper.errors import AuthError, NetworkError, NotekeeperError, RateLimitError, ValidationError


@pytest.fixture
def token_file(tmp_path):
    path = tmp_path / ".token.json"
    with patch("notekeeper.config.TOKEN_FILE", path):
        yield path


def response(status: int, data=None):
    resp = MagicMock()
    resp.status_code = status
    resp.ok = status < 400
    resp.json.return_value = data
    return resp


@pytest.fixture
def client(token_file):
    token = Token(token="abc", username="alice")
    token.save()
    client = NotekeeperClient(config=Config(api_url="http://api.test/api"), token=token)
    client._session = MagicMock()
    return client


class TestNotekeeperClient:
    def test_sends_bearer_token(self, client):
        client._session.request.return_value = response(200, [])

        client.get_notes()

        args, kwargs = client._session.request.call_args
        assert args == ("GET", "http://api.test/api/notes")
        assert kwargs["headers"] == {"Authorization": "Bearer abc"}

    def test_get_notes_decodes_row_index(self, client):
        client._session.request.return_value = response(
            200,
            [{"rowIndex": 2, "id": "n1", "date": "2024-05-01", "category": "工作", "eventId": "evt-1"}],
        )

        notes = client.get_notes()

        assert notes[0].row_index == 2
        assert notes[0].event_id == "evt-1"

    def test_401_discards_token(self, client, token_file):
        client._session.request.return_value = response(401, {"message": "Access token required"})

        with pytest.raises(AuthError):
            client.get_notes()

        assert not token_file.exists()
        assert client.token.token == ""

    def test_403_discards_token(self, client, token_file):
        client._session.request.return_value = response(403, {"message": "Invalid or expired token"})

        with pytest.raises(AuthError) as exc:
            client.get_roles()

        assert exc.value.status_code == 403
        assert not token_file.exists()

    def test_429_keeps_token(self, client, token_file):
        client._session.request.return_value = response(429, {"message": "Too many requests"})

        with pytest.raises(RateLimitError):
            client.get_notes()

        assert token_file.exists()
        assert client.token.token == "abc"

    def test_400_carries_details(self, client):
        details = [{"field": "startTime", "msg": "Time must be HH:MM"}]
        client._session.request.return_value = response(400, {"message": "Invalid input", "details": details})

        with pytest.raises(ValidationError) as exc:
            client.create_note(Note(id="", date="2024-05-01", category="", content="", start_time="9am"))

        assert exc.value.details == details

    def test_other_errors_keep_status(self, client):
        client._session.request.return_value = response(404, {"message": "Note not found at row 9"})

        with pytest.raises(NotekeeperError) as exc:
            client.delete_note(9)

        assert exc.value.status_code == 404
        assert exc.value.message == "Note not found at row 9"

    def test_non_json_error_body(self, client):
        resp = response(502)
        resp.json.side_effect = ValueError("no json")
        client._session.request.return_value = resp

        with pytest.raises(NotekeeperError) as exc:
            client.get_notes()

        assert "502" in exc.value.message

    def test_connection_error_is_network_error(self, client):
        client._session.request.side_effect = requests.ConnectionError("refused")

        with pytest.raises(NetworkError):
            client.get_notes()

    def test_delete_sends_expected_id(self, client):
        client._session.request.return_value = response(200, {"message": "Deleted"})

        client.delete_note(3, "n2")

        kwargs = client._session.request.call_args.kwargs
        assert kwargs["params"] == {"id": "n2"}

    def test_create_note_body(self, client):
        client._session.request.return_value = response(200, {"message": "Success", "eventId": "", "id": "x"})
        note = Note(id="", date="2024-05-01", category="工作", content="standup", start_time="09:00", end_time="09:30")

        client.create_note(note, sync_to_calendar=True, recurrence="WEEKLY")

        body = client._session.request.call_args.kwargs["json"]
        assert body["startTime"] == "09:00"
        assert body["syncToCalendar"] is True
        assert body["recurrence"] == "WEEKLY"


def test_login_saves_token(token_file):
    client = NotekeeperClient(config=Config(), token=Token())
    client._session = MagicMock()
    client._session.request.return_value = response(200, {"token": "jwt-1", "username": "alice"})

    client.login("alice", "pw", remember_me=True)

    assert json.loads(token_file.read_text()) == {"token": "jwt-1", "username": "alice"}
    sent = client._session.request.call_args.kwargs
    assert "Authorization" not in sent["headers"]
    assert sent["json"]["rememberMe"] is True


def test_requests_without_token_fail_locally(token_file):
    client = NotekeeperClient(config=Config(), token=Token())
    client._session = MagicMock()

    with pytest.raises(AuthError):
        client.get_notes()

    client._session.request.assert_not_called()


def test_logout_removes_token(client, token_file):
    client.logout()
    assert not token_file.exists()
    assert Token.load().token == ""
