import json

import streamlit as st
import streamlit.components.v1 as components

from use_cases.session_models import Alert, NavigateTo, NextAction, RedirectExternal
from utils import session_manager


def navigate(client, route, state=None):
    if route != "vault":
        client.unmount_timer()
        session_manager.reset_vault_view()
    # callback query params must not re-enter the callback on the next run
    st.query_params.clear()
    st.session_state.route = route
    st.session_state.route_state = dict(state or {})
    st.rerun()


def redirect_external(url):
    # escaped so a server-supplied url cannot close the script tag
    target = json.dumps(url).replace("</", "<\\/")
    components.html(
        f"""
        <script>
          window.top.location.href = {target};
        </script>
        """,
        height=0,
    )
    # nothing may run after the redirect, otherwise the next run could loop back here
    st.stop()


def execute(client, action: NextAction):
    """Carry out a decision from the auth engine. Proceed/Noop are left to the caller."""
    if isinstance(action, NavigateTo):
        state = dict(action.state or {})
        if action.auto_submit:
            state["auto_submit"] = True
        navigate(client, action.route, state)
    elif isinstance(action, RedirectExternal):
        client.teardown()
        redirect_external(action.url)
    elif isinstance(action, Alert):
        st.error(action.message)
