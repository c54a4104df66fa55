"""Startup orchestration: session defaults and the per-session vault client."""

from dataclasses import dataclass
from typing import Literal, Optional, Tuple

import logging

import auth
from use_cases.vault_client import VaultClient
from utils import session_manager

log = logging.getLogger(__name__)

StartupStatus = Literal["CONTINUE", "STOP"]


@dataclass(frozen=True)
class StartupResult:
    """Result contract for startup/bootstrap orchestration."""

    status: StartupStatus
    planned_steps: Tuple[str, ...]
    error: Optional[str] = None


def run_startup() -> StartupResult:
    """Ensure session state defaults and a VaultClient bound to this browser session."""
    executed_steps = []

    session_manager.init_session_state()
    executed_steps.append("init_session_state")

    if session_manager.get_vault_client() is None:
        try:
            api = auth.build_vault_api()
        except auth.VaultConfigError as e:
            log.error(f"Vault client configuration invalid: {e}")
            return StartupResult(status="STOP", planned_steps=tuple(executed_steps), error=str(e))

        # the token and settings live in this browser session's state
        store = session_manager.SessionStore(session_manager.st.session_state)
        session_manager.st.session_state.vault_client = VaultClient(api, store)
        executed_steps.append("create_vault_client")
        log.info(f"Vault client created for {api.base_url}")

    return StartupResult(status="CONTINUE", planned_steps=tuple(executed_steps))
