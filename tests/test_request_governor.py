import asyncio
import threading
from unittest.mock import MagicMock

import pytest
import requests
from conftest import make_response

from infrastructure.api.request_governor import READ_FAILURE_MESSAGE, RequestGovernor, classify_response
from infrastructure.api.vault_api import ApiRequest, FileDownload
from use_cases.session_models import Aborted, Noop, OtherError, Proceed, Success, Unauthorized
from use_cases.vault_client import VaultClient
from utils.session_manager import SessionStore


# --- classification ---

def test_classify_success():
    outcome = classify_response(make_response(200, {"success": True, "data": {"a": 1}}))
    assert outcome == Success({"success": True, "data": {"a": 1}})
    assert outcome.data == {"a": 1}


def test_classify_success_without_json_body():
    outcome = classify_response(make_response(200, None, text="OK"))
    assert outcome == Success({})


def test_classify_unauthorized_keeps_body():
    body = {"success": False, "message": "unauthorized", "data": {"db": False, "backend": True}}
    outcome = classify_response(make_response(401, body))
    assert isinstance(outcome, Unauthorized)
    assert outcome.data == {"db": False, "backend": True}


def test_classify_error_uses_json_message():
    outcome = classify_response(make_response(500, {"success": False, "message": "failed to get entry"}, text="raw"))
    assert outcome == OtherError(500, "failed to get entry")


def test_classify_error_falls_back_to_text():
    outcome = classify_response(make_response(502, None, text="Bad Gateway"))
    assert outcome == OtherError(502, "Bad Gateway")


def test_classify_error_falls_back_to_generic_message():
    outcome = classify_response(make_response(500, None, text=""))
    assert outcome == OtherError(500, READ_FAILURE_MESSAGE)


def test_classify_error_ignores_non_string_message():
    outcome = classify_response(make_response(400, {"message": None}, text="Bad Request"))
    assert outcome == OtherError(400, "Bad Request")


# --- dispatch ---

class GatedApi:
    """Answers `get_entry` per id; id "1" blocks until the gate opens."""

    def __init__(self):
        self.gate = threading.Event()
        self.calls = []

    def send(self, request, csrf_token):
        self.calls.append((request, csrf_token))
        entry_id = request.params.get("id")
        if entry_id == "1":
            self.gate.wait(timeout=5)
            return make_response(200, {"success": True, "data": {"id": "1", "csrf_token": "stale"}})
        return make_response(200, {"success": True, "data": {"id": entry_id}})


def test_superseded_request_is_aborted_and_leaves_store_alone():
    api = GatedApi()
    client = VaultClient(api, SessionStore({}))
    client.store.set_token("original")

    async def scenario():
        first = asyncio.ensure_future(client.request("data-fetch", "get_entry", params={"id": "1"}))
        await asyncio.sleep(0.05)
        second = await client.request("data-fetch", "get_entry", params={"id": "2"})
        api.gate.set()
        first_action = await first
        # let the late transport response arrive
        await asyncio.sleep(0.05)
        return first_action, second

    first_action, second = asyncio.run(scenario())

    assert first_action == Noop()
    assert second == Proceed({"id": "2"})
    assert client.store.get_token() == "original"
    assert client.governor.live("data-fetch") is None


def test_superseded_handle_outcome_is_aborted():
    api = GatedApi()
    governor = RequestGovernor(api, SessionStore({}))

    async def scenario():
        first = governor.dispatch("data-fetch", ApiRequest("get_entry", "GET", {"id": "1"}))
        await asyncio.sleep(0.05)
        second = governor.dispatch("data-fetch", ApiRequest("get_entry", "GET", {"id": "2"}))
        assert governor.live("data-fetch") is second
        api.gate.set()
        return await first.outcome(), await second.outcome()

    first_outcome, second_outcome = asyncio.run(scenario())
    assert first_outcome == Aborted()
    assert isinstance(second_outcome, Success)


def test_channels_are_independent():
    api = MagicMock()
    api.send.return_value = make_response(200, {"success": True, "data": {}})
    governor = RequestGovernor(api, SessionStore({}))

    async def scenario():
        a = governor.dispatch("data-fetch", ApiRequest("get_groups", "GET"))
        b = governor.dispatch("protected", ApiRequest("get_protected", "GET"))
        return await a.outcome(), await b.outcome()

    first, second = asyncio.run(scenario())
    assert isinstance(first, Success)
    assert isinstance(second, Success)


def test_cancel_channel_aborts_live_request():
    api = GatedApi()
    governor = RequestGovernor(api, SessionStore({}))

    async def scenario():
        handle = governor.dispatch("data-fetch", ApiRequest("get_entry", "GET", {"id": "1"}))
        await asyncio.sleep(0.05)
        governor.cancel_all()
        api.gate.set()
        return await handle.outcome()

    assert asyncio.run(scenario()) == Aborted()


def test_dispatch_sends_current_token():
    api = MagicMock()
    api.send.return_value = make_response(200, {"success": True})
    store = SessionStore({})
    store.set_token("tok-123")
    governor = RequestGovernor(api, store)

    async def scenario():
        return await governor.dispatch("auth-check", ApiRequest("authenticated", "GET")).outcome()

    asyncio.run(scenario())
    request, token = api.send.call_args.args
    assert request.endpoint == "authenticated"
    assert token == "tok-123"


def test_dispatch_restarts_timer_forcefully():
    api = MagicMock()
    api.send.return_value = make_response(200, {"success": True})
    timer = MagicMock()
    governor = RequestGovernor(api, SessionStore({}), timer=timer)

    async def scenario():
        return await governor.dispatch("data-fetch", ApiRequest("get_groups", "GET")).outcome()

    asyncio.run(scenario())
    timer.restart.assert_called_once_with(True)


def test_transport_failure_becomes_other_error():
    api = MagicMock()
    api.send.side_effect = requests.ConnectionError("connection refused")
    governor = RequestGovernor(api, SessionStore({}))

    async def scenario():
        return await governor.dispatch("data-fetch", ApiRequest("get_groups", "GET")).outcome()

    outcome = asyncio.run(scenario())
    assert isinstance(outcome, OtherError)
    assert outcome.status == 0
    assert "connection refused" in outcome.message
    assert governor.live("data-fetch") is None


def test_dispatch_needs_running_loop():
    governor = RequestGovernor(MagicMock(), SessionStore({}))
    with pytest.raises(RuntimeError):
        governor.dispatch("data-fetch", ApiRequest("get_groups", "GET"))


# --- download ---

def test_download_returns_file_with_header_filename():
    api = MagicMock()
    api.send.return_value = make_response(
        200,
        None,
        headers={"Content-Disposition": "attachment; filename=\"report.pdf\"", "Content-Type": "application/pdf"},
        content=b"%PDF",
    )
    timer = MagicMock()
    store = SessionStore({})
    store.set_token("tok")
    governor = RequestGovernor(api, store, timer=timer)

    outcome = asyncio.run(governor.download(ApiRequest("get_file", "GET", {"entry_id": "e1", "filename": "report.pdf"})))

    assert isinstance(outcome, Success)
    assert outcome.data == FileDownload(filename="report.pdf", content=b"%PDF", content_type="application/pdf")
    assert api.send.call_args.args[1] == "tok"
    timer.restart.assert_called_once_with(True)


def test_download_error_is_classified():
    api = MagicMock()
    api.send.return_value = make_response(401, {"success": False, "data": {"db": False, "backend": True}})
    governor = RequestGovernor(api, SessionStore({}))

    outcome = asyncio.run(governor.download(ApiRequest("get_file", "GET", {})))
    assert isinstance(outcome, Unauthorized)


def test_download_not_cancelled_by_channel_dispatch():
    gate = threading.Event()

    def send(request, csrf_token):
        if request.endpoint == "get_file":
            gate.wait(timeout=5)
            return make_response(200, None, headers={}, content=b"data")
        return make_response(200, {"success": True, "data": {}})

    api = MagicMock()
    api.send.side_effect = send
    governor = RequestGovernor(api, SessionStore({}))

    async def scenario():
        download = asyncio.ensure_future(governor.download(ApiRequest("get_file", "GET", {})))
        await asyncio.sleep(0.05)
        handle = governor.dispatch("data-fetch", ApiRequest("get_groups", "GET"))
        other = await handle.outcome()
        gate.set()
        return await download, other

    download_outcome, other = asyncio.run(scenario())
    assert isinstance(other, Success)
    assert isinstance(download_outcome, Success)
    assert download_outcome.data.content == b"data"
    assert download_outcome.data.content_type == "application/octet-stream"
