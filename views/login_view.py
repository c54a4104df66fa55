import base64
import json
import time

import streamlit as st

import ui
from use_cases import auth_flow
from utils.async_helpers import run_async
from views import navigation

LOGIN_TITLES = {
    "user_login": "User Login",
    "backend_login": "Backend Login",
    "db_login": "KeePass Login",
}


def render_splash(client):
    overlay = st.empty()
    with overlay.container():
        ui.show_loading_overlay("Checking session")
    action = run_async(auth_flow.check_auth(client, st.session_state.route_state))
    overlay.empty()
    navigation.execute(client, action)
    if st.button("Retry"):
        st.rerun()


def _submit(client, stage, form):
    st.session_state.login_in_flight = True
    try:
        with st.spinner("Signing in..."):
            action = run_async(auth_flow.submit_login(client, stage, form))
    finally:
        st.session_state.login_in_flight = False
        st.session_state.last_auth_check = time.monotonic()
    navigation.execute(client, action)


def _render_auth_poll(client):
    interval = auth_flow.auth_check_interval(client.store.get_settings())
    if st.session_state.last_auth_check is None:
        st.session_state.last_auth_check = time.monotonic()

    @st.fragment(run_every=interval)
    def _poll():
        now = time.monotonic()
        if not auth_flow.should_poll_auth(st.session_state.last_auth_check, now, interval, st.session_state.login_in_flight):
            return
        st.session_state.last_auth_check = now
        # keep the current info/error so "session expired" style notes survive
        action = run_async(auth_flow.check_auth(client, st.session_state.route_state))
        navigation.execute(client, action)

    _poll()


def _credentials_form(stage):
    with st.form(f"{stage}_form", clear_on_submit=False):
        st.markdown(f"#### {LOGIN_TITLES[stage]}")
        if stage == "db_login":
            password = st.text_input("Master Password", type="password")
            keyfile = st.file_uploader("Key file", type=None)
            submitted = st.form_submit_button("Open", type="primary", use_container_width=True)
            form = {"password": password}
            if keyfile is not None:
                form["key"] = base64.b64encode(keyfile.getvalue()).decode("ascii")
        else:
            username = st.text_input("Username", autocomplete="username")
            password = st.text_input("Password", type="password")
            submitted = st.form_submit_button("Login", type="primary", use_container_width=True)
            form = {"username": username, "password": password}
    return submitted, form


def render_login(client, stage):
    state = st.session_state.route_state or {}
    _render_auth_poll(client)

    # header-based user auth: submit straight away, but only once per failure
    if stage == "user_login" and state.get("auto_submit") and not state.get("error"):
        _submit(client, stage, {})
        return

    _, center, _ = st.columns([1, 2, 1])
    with center:
        submitted, form = _credentials_form(stage)
        if state.get("error"):
            st.error(state["error"])
        if state.get("info"):
            st.info(state["info"])

    if submitted and not st.session_state.login_in_flight:
        _submit(client, stage, form)


def render_callback(client):
    raw = st.query_params.get("payload")
    payload = None
    if raw:
        try:
            payload = json.loads(raw)
        except ValueError:
            payload = None
    action = auth_flow.handle_callback_response(client, payload)
    navigation.execute(client, action)
    if st.button("Get me home"):
        navigation.navigate(client, "splash")
