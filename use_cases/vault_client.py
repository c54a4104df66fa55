"""Per-browser-session service object handed to the views."""

import logging
from typing import Any, Callable, Mapping, Optional

from infrastructure.api.request_governor import RequestGovernor
from infrastructure.api.vault_api import ApiRequest, VaultApi
from use_cases.auth_decision import AuthDecisionEngine
from use_cases.session_models import Aborted, NextAction, Noop, RequestOutcome
from utils.activity_timer import ActivityTimer
from utils.session_manager import SessionStore

log = logging.getLogger(__name__)


class VaultClient:
    def __init__(self, api: VaultApi, store: Optional[SessionStore] = None):
        self.api = api
        self.store = store if store is not None else SessionStore()
        self.governor = RequestGovernor(api, self.store)
        self.engine = AuthDecisionEngine(self.store)
        self.timer: Optional[ActivityTimer] = None

    async def fetch(self, channel: str, request: ApiRequest) -> RequestOutcome:
        handle = self.governor.dispatch(channel, request)
        return await handle.outcome()

    async def request(
        self,
        channel: str,
        endpoint: str,
        *,
        method: str = "GET",
        params: Optional[Mapping[str, Any]] = None,
        state: Optional[Mapping[str, Any]] = None,
    ) -> NextAction:
        outcome = await self.fetch(channel, ApiRequest(endpoint, method, params or {}))
        if isinstance(outcome, Aborted):
            # superseded requests must not reach the engine
            return Noop()
        return self.engine.resolve(outcome, state)

    async def download(self, endpoint: str, params: Mapping[str, Any], state: Optional[Mapping[str, Any]] = None) -> NextAction:
        outcome = await self.governor.download(ApiRequest(endpoint, "GET", params))
        return self.engine.resolve(outcome, state)

    def mount_timer(self, on_expire: Callable[[], None]) -> Optional[ActivityTimer]:
        if self.timer is None or self.timer.stopped:
            timer = ActivityTimer.from_settings(self.store.get_settings(), on_expire)
            if not timer.enabled:
                return None
            timer.start()
            self.timer = timer
            self.governor.timer = timer
            log.debug(f"Idle timer mounted ({timer.period}s)")
        return self.timer

    def unmount_timer(self) -> None:
        if self.timer is not None:
            self.timer.stop()
        self.timer = None
        self.governor.timer = None

    def teardown(self) -> None:
        self.governor.cancel_all()
        self.unmount_timer()
