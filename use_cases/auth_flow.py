"""Authentication flow orchestration (application layer)."""

import logging
from typing import Any, Mapping, Optional

from infrastructure.api.vault_api import ApiRequest
from use_cases.session_models import (
    LOGIN_STAGES,
    Aborted,
    Alert,
    LoginStage,
    NavigateTo,
    NextAction,
    Noop,
    OtherError,
    Proceed,
    RedirectExternal,
    Success,
    Unauthorized,
)

log = logging.getLogger(__name__)

AUTH_CHANNEL = "auth-check"
LOGIN_CHANNEL = "login"
SESSION_CHANNEL = "session"

DEFAULT_AUTH_CHECK_INTERVAL = 10 * 60
SESSION_EXPIRED = "Session expired"
DB_SESSION_EXPIRED = "Database session expired"
CALLBACK_FAILED = "Failed to retrieve session data"


async def check_auth(client, state: Optional[Mapping[str, Any]] = None) -> NextAction:
    """Probe `authenticated` and route to the vault or to the first unmet login stage."""
    action = await client.request(AUTH_CHANNEL, "authenticated", method="GET", state=state)
    if isinstance(action, Proceed):
        return NavigateTo("vault", redirect=True)
    return action


async def submit_login(client, stage: LoginStage, form: Mapping[str, Any]) -> NextAction:
    """
    Post credentials for one login stage, then re-check auth.

    A preceding factor may have expired meanwhile, so the follow-up check
    decides where to go; a failed login travels along as the `error` state.
    """
    if stage not in LOGIN_STAGES:
        raise ValueError(f"Unknown login stage: {stage}")

    outcome = await client.fetch(LOGIN_CHANNEL, ApiRequest(stage, "POST", dict(form)))
    if isinstance(outcome, Aborted):
        return Noop()

    state = None
    if isinstance(outcome, Success):
        client.engine.remember_session(outcome.data)
        log.info(f"{stage}: successful")
    elif isinstance(outcome, (Unauthorized, OtherError)):
        log.info(f"{stage}: {outcome.message}")
        state = {"error": outcome.message}
    return await check_auth(client, state)


async def logout(client) -> NextAction:
    action = await client.request(SESSION_CHANNEL, "logout", method="POST", state={"info": SESSION_EXPIRED})
    if not isinstance(action, Proceed):
        return action

    client.store.clear()
    client.unmount_timer()
    data = action.data
    if isinstance(data, Mapping) and data.get("type") == "redirect" and data.get("url"):
        return RedirectExternal(data["url"])
    return NavigateTo("splash", redirect=True)


async def close_db(client, state: Optional[Mapping[str, Any]] = None) -> NextAction:
    action = await client.request(SESSION_CHANNEL, "close_db", method="POST", state=state)
    if isinstance(action, Proceed):
        # back to splash so the next stage gets decided by a fresh auth check
        return NavigateTo("splash", state=state, redirect=True)
    return action


async def expire_session(client) -> NextAction:
    return await close_db(client, {"info": DB_SESSION_EXPIRED})


def handle_callback_response(client, payload: Optional[Mapping[str, Any]]) -> NextAction:
    """Consume the envelope the server hands back after an SSO round trip."""
    if not isinstance(payload, Mapping):
        return Alert(CALLBACK_FAILED)
    if payload.get("success") and payload.get("data"):
        client.engine.remember_session(payload["data"])
        return NavigateTo("splash", redirect=True)
    return Alert(payload.get("message") or CALLBACK_FAILED)


def auth_check_interval(settings: Mapping[str, Any]) -> int:
    try:
        interval = int(settings.get("interval") or 0)
    except (TypeError, ValueError):
        interval = 0
    return interval if interval > 0 else DEFAULT_AUTH_CHECK_INTERVAL


def should_poll_auth(last_check: Optional[float], now: float, interval: int, login_in_flight: bool) -> bool:
    """Login screens re-check auth periodically, but never during a login submit."""
    if login_in_flight:
        return False
    if last_check is None:
        return False
    return now - last_check >= interval
