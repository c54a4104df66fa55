"""Resolution of request outcomes into the next client action."""

import logging
from typing import Any, Mapping, Optional

from use_cases.session_models import (
    Aborted,
    Alert,
    AuthStatusPayload,
    Factor,
    NavigateTo,
    NextAction,
    Noop,
    OtherError,
    Proceed,
    RequestOutcome,
    RedirectExternal,
    Success,
    Unauthorized,
    template_kind,
)

log = logging.getLogger(__name__)

UNKNOWN_LOGIN_TYPE = "unknown login type"
INCONSISTENT_AUTH_STATE = "inconsistent auth state"


class AuthDecisionEngine:
    """
    Decides what the client does after a request settles.

    Only unauthorized outcomes branch: the attached auth status is checked
    factor by factor (user, backend, db) and the first unmet one picks the
    login stage. Every navigation carries the caller's state unchanged.
    """

    def __init__(self, store):
        self.store = store

    def resolve(self, outcome: RequestOutcome, state: Optional[Mapping[str, Any]] = None) -> NextAction:
        if isinstance(outcome, Aborted):
            return Noop()
        if isinstance(outcome, Success):
            self.remember_session(outcome.data)
            return Proceed(outcome.data)
        if isinstance(outcome, OtherError):
            return Alert(outcome.message)
        if isinstance(outcome, Unauthorized):
            return self._resolve_unauthorized(outcome, state)
        raise TypeError(f"Unsupported request outcome: {outcome!r}")

    def remember_session(self, data: Any) -> None:
        if not isinstance(data, Mapping):
            return
        if "csrf_token" in data:
            self.store.set_token(data.get("csrf_token"))
        if isinstance(data.get("settings"), Mapping):
            self.store.set_settings(data["settings"])

    def _resolve_unauthorized(self, outcome: Unauthorized, state) -> NextAction:
        data = outcome.data
        if not isinstance(data, Mapping):
            log.info("Session unknown or expired, starting over at user login")
            self.store.clear()
            return NavigateTo("user_login", state=state, redirect=True)

        status = AuthStatusPayload.from_data(data)
        factor = status.first_unmet()

        if factor is Factor.USER:
            kind = status.user
            if kind.type == "redirect":
                return RedirectExternal(kind.url)
            if kind.type == "mask":
                return NavigateTo("user_login", state=state, redirect=True)
            if kind.type == "none":
                return NavigateTo("user_login", state=state, redirect=True, auto_submit=True)
            return Alert(UNKNOWN_LOGIN_TYPE)

        if factor is Factor.BACKEND:
            template = template_kind(self.store.get_settings())
            if template.type == "redirect":
                return RedirectExternal(template.url)
            return NavigateTo("backend_login", state=state, redirect=True)

        if factor is Factor.DB:
            return NavigateTo("db_login", state=state, redirect=True)

        log.warning("Server reported every factor satisfied but still answered 401")
        return Alert(INCONSISTENT_AUTH_STATE)
