import json
import logging
from typing import Any, Dict, Mapping, MutableMapping, Optional

import streamlit as st

log = logging.getLogger(__name__)

"""
SESSION STATE CONTRACT

This module owns the per-browser Streamlit session state.

Keys of st.session_state:

vault_csrf_token: str | None
    anti-forgery token issued on login
    default: absent
    owner: SessionStore

vault_settings: str (JSON)
    merged settings blob (cn, timeout, interval, template)
    default: absent
    owner: SessionStore

vault_client: VaultClient | None
    service object for the current browser session
    default: None
    owner: bootstrap

route: str
    current screen
    default: "splash"
    owner: views.navigation

route_state: dict
    info/error messages carried into the current screen
    default: {}
    owner: views.navigation

login_in_flight: bool
    a login submit is running, periodic auth checks pause
    default: False
    owner: views.login_view

last_auth_check: float | None
    monotonic time of the last periodic auth check
    default: None
    owner: views.login_view

vault_tree / vault_group / vault_entry: dict | None
    last fetched vault data shown by the viewport
    default: None
    owner: views.vault_view

revealed: dict
    (entry_id, field) -> (value, hide_at) for revealed protected fields
    default: {}
    owner: views.vault_view

tree_expanded: dict
    group id -> bool, overrides for the default expansion depth
    default: {}
    owner: views.vault_view

download_ready: dict | None
    {"key": (entry_id, filename), "file": FileDownload} waiting for the save button
    default: None
    owner: views.vault_view

vault_idle_expired: bool
    set by the idle timer, consumed by the navbar
    default: False
    owner: views.navbar_view
"""

SETTINGS_KEY = "vault_settings"
CSRF_TOKEN_KEY = "vault_csrf_token"


class SessionStore:
    """CSRF token and settings blob, persisted in a mutable mapping."""

    def __init__(self, backend: Optional[MutableMapping[str, Any]] = None):
        self._backend = backend if backend is not None else {}

    def set_token(self, token: Optional[str]) -> None:
        self._backend[CSRF_TOKEN_KEY] = token or ""

    def get_token(self) -> Optional[str]:
        return self._backend.get(CSRF_TOKEN_KEY) or None

    def set_settings(self, partial: Mapping[str, Any]) -> None:
        stored = self.get_settings()
        stored.update(partial)
        self._backend[SETTINGS_KEY] = json.dumps(stored)

    def get_settings(self) -> Dict[str, Any]:
        raw = self._backend.get(SETTINGS_KEY)
        if not raw:
            return {}
        try:
            settings = json.loads(raw)
        except (TypeError, ValueError):
            log.warning("Discarding unreadable settings blob")
            return {}
        return settings if isinstance(settings, dict) else {}

    def clear(self) -> None:
        self._backend.pop(SETTINGS_KEY, None)
        self._backend.pop(CSRF_TOKEN_KEY, None)


def init_session_state():
    if "vault_client" not in st.session_state:
        st.session_state.vault_client = None
    if "route" not in st.session_state:
        st.session_state.route = "splash"
    if "route_state" not in st.session_state:
        st.session_state.route_state = {}
    if "login_in_flight" not in st.session_state:
        st.session_state.login_in_flight = False
    if "last_auth_check" not in st.session_state:
        st.session_state.last_auth_check = None
    if "vault_tree" not in st.session_state:
        st.session_state.vault_tree = None
    if "vault_group" not in st.session_state:
        st.session_state.vault_group = None
    if "vault_entry" not in st.session_state:
        st.session_state.vault_entry = None
    if "revealed" not in st.session_state:
        st.session_state.revealed = {}
    if "tree_expanded" not in st.session_state:
        st.session_state.tree_expanded = {}
    if "download_ready" not in st.session_state:
        st.session_state.download_ready = None
    if "vault_idle_expired" not in st.session_state:
        st.session_state.vault_idle_expired = False


def reset_vault_view():
    st.session_state.vault_tree = None
    st.session_state.vault_group = None
    st.session_state.vault_entry = None
    st.session_state.revealed = {}
    st.session_state.tree_expanded = {}
    st.session_state.download_ready = None
    st.session_state.vault_idle_expired = False


def get_vault_client():
    return st.session_state.get("vault_client")
