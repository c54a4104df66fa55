from unittest.mock import MagicMock

import pytest

from infrastructure.api.vault_api import CSRF_HEADER, ApiRequest, VaultApi, parse_attachment_filename


@pytest.fixture
def session():
    return MagicMock()


@pytest.fixture
def api(session):
    return VaultApi("https://vault.example/", timeout=12, verify=False, session=session)


def test_url_for(api):
    assert api.url_for("get_groups") == "https://vault.example/api/v1/get_groups"


def test_get_sends_query_params_and_token(api, session):
    api.send(ApiRequest("get_entry", "GET", {"id": "e1"}), "tok")

    method, url = session.request.call_args.args
    kwargs = session.request.call_args.kwargs
    assert method == "GET"
    assert url == "https://vault.example/api/v1/get_entry"
    assert kwargs["params"] == {"id": "e1"}
    assert "data" not in kwargs
    assert kwargs["headers"][CSRF_HEADER] == "tok"
    assert kwargs["timeout"] == 12
    assert kwargs["verify"] is False


def test_post_sends_form_body(api, session):
    api.send(ApiRequest("db_login", "post", {"password": "x"}), None)

    method, _ = session.request.call_args.args
    kwargs = session.request.call_args.kwargs
    assert method == "POST"
    assert kwargs["data"] == {"password": "x"}
    assert CSRF_HEADER not in kwargs["headers"]


def test_request_without_params_sends_no_body(api, session):
    api.send(ApiRequest("logout"), "tok")
    kwargs = session.request.call_args.kwargs
    assert "data" not in kwargs
    assert "params" not in kwargs


def test_close_closes_session(api, session):
    api.close()
    session.close.assert_called_once()


@pytest.mark.parametrize("disposition, expected", [
    ('attachment; filename="notes.txt"', "notes.txt"),
    ("attachment; filename=notes.txt", "notes.txt"),
    ("attachment; filename*=UTF-8''%E2%82%AC%20rates.txt", "€ rates.txt"),
    ("inline; filename=notes.txt", ""),
    (None, ""),
    ("attachment", ""),
])
def test_parse_attachment_filename(disposition, expected):
    assert parse_attachment_filename(disposition) == expected
