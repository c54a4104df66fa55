"""
Channel-scoped request dispatch.

At most one request is live per channel. Dispatching on a busy channel
cancels the previous handle, and a cancelled handle only ever yields
Aborted, even when the transport delivers its response afterwards.
"""

import asyncio
import logging
from typing import Dict, Optional

import requests

from infrastructure.api.vault_api import ApiRequest, FileDownload, VaultApi, parse_attachment_filename
from use_cases.session_models import Aborted, OtherError, RequestOutcome, Success, Unauthorized

log = logging.getLogger(__name__)

READ_FAILURE_MESSAGE = "failed to read response"


def _decode_envelope(response) -> tuple:
    """Return (message, body) using the fallback chain json -> text -> generic."""
    body = {}
    message = None
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        body = payload
        if isinstance(payload.get("message"), str) and payload["message"]:
            message = payload["message"]
    if message is None:
        try:
            message = response.text or None
        except (ValueError, UnicodeDecodeError):
            message = None
    return message or READ_FAILURE_MESSAGE, body


def classify_response(response) -> RequestOutcome:
    message, body = _decode_envelope(response)
    status = response.status_code
    if 200 <= status < 300:
        return Success(body)
    if status == 401:
        return Unauthorized(body)
    return OtherError(status, message)


class RequestHandle:
    def __init__(self, channel: Optional[str], request: ApiRequest):
        self.channel = channel
        self.request = request
        self.cancelled = False
        self._task: Optional[asyncio.Task] = None

    @property
    def done(self) -> bool:
        return self._task is not None and self._task.done()

    def cancel(self) -> None:
        # the flag decides suppression; the transport may still finish in its thread
        self.cancelled = True
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def outcome(self) -> RequestOutcome:
        if self._task is None or self.cancelled:
            return Aborted()
        try:
            result = await self._task
        except asyncio.CancelledError:
            if self.cancelled:
                return Aborted()
            raise
        if self.cancelled:
            return Aborted()
        return result


class RequestGovernor:
    def __init__(self, api: VaultApi, store, timer=None):
        self.api = api
        self.store = store
        self.timer = timer
        self._live: Dict[str, RequestHandle] = {}

    def live(self, channel: str) -> Optional[RequestHandle]:
        return self._live.get(channel)

    def dispatch(self, channel: str, request: ApiRequest) -> RequestHandle:
        """Start `request` on `channel`. Must be called from a running event loop."""
        previous = self._live.get(channel)
        if previous is not None:
            log.debug(f"Channel '{channel}': superseding {previous.request.endpoint} with {request.endpoint}")
            previous.cancel()

        handle = RequestHandle(channel, request)
        self._live[channel] = handle
        handle._task = asyncio.get_running_loop().create_task(self._send(handle, self.store.get_token()))
        self._touch_timer()
        return handle

    async def download(self, request: ApiRequest):
        """One-shot file transfer. Not channel-bound, never cancelled by other dispatches."""
        token = self.store.get_token()
        self._touch_timer()
        try:
            response = await asyncio.to_thread(self.api.send, request, token)
        except requests.RequestException as e:
            log.warning(f"Download {request.endpoint} failed: {e}")
            return OtherError(0, str(e))

        if response.status_code != 200:
            return classify_response(response)
        return Success({
            "data": FileDownload(
                filename=parse_attachment_filename(response.headers.get("Content-Disposition")),
                content=response.content,
                content_type=response.headers.get("Content-Type") or "application/octet-stream",
            )
        })

    def cancel(self, channel: str) -> None:
        handle = self._live.pop(channel, None)
        if handle is not None:
            handle.cancel()

    def cancel_all(self) -> None:
        for channel in list(self._live):
            self.cancel(channel)

    def _touch_timer(self) -> None:
        if self.timer is not None:
            self.timer.restart(True)

    async def _send(self, handle: RequestHandle, token: Optional[str]) -> RequestOutcome:
        try:
            response = await asyncio.to_thread(self.api.send, handle.request, token)
        except requests.RequestException as e:
            log.warning(f"{handle.request.endpoint} on '{handle.channel}' failed: {e}")
            return OtherError(0, str(e))
        finally:
            if self._live.get(handle.channel) is handle:
                del self._live[handle.channel]
        outcome = classify_response(response)
        log.debug(f"{handle.request.endpoint} on '{handle.channel}' -> {type(outcome).__name__}")
        return outcome
