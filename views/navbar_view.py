import streamlit as st

from use_cases import auth_flow
from utils.async_helpers import run_async
from views import navigation


def _on_time_up():
    st.session_state.vault_idle_expired = True


def _render_timer(client):
    @st.fragment(run_every=1)
    def _countdown():
        timer = client.timer
        if timer is None:
            return
        timer.catch_up()
        if st.session_state.vault_idle_expired:
            st.session_state.vault_idle_expired = False
            action = run_async(auth_flow.expire_session(client))
            navigation.execute(client, action)
            return

        c_time, c_btn = st.columns([3, 1])
        c_time.markdown(f"<div class='kp-timer'>⏱ {timer.format_remaining()}</div>", unsafe_allow_html=True)
        if c_btn.button("↻", key="timer_restart", help="Restart idle timer"):
            timer.restart(True)

    _countdown()


def render_navbar(client, on_search=None, show_timer=False):
    """Top bar. Only the vault view passes show_timer; login screens never own an idle timer."""
    settings = client.store.get_settings()
    name = settings.get("cn")

    c_brand, c_search, c_timer, c_user = st.columns([2, 4, 2, 2])
    c_brand.markdown("### 🔐 KeePass 4 Web")

    if on_search is not None:
        with c_search.form("search_form", clear_on_submit=False, border=False):
            term = st.text_input("Search", label_visibility="collapsed", placeholder="Search")
            if st.form_submit_button("Search"):
                on_search(term)

    if show_timer and settings.get("timeout"):
        with c_timer:
            client.mount_timer(_on_time_up)
            _render_timer(client)

    with c_user:
        if not name:
            st.caption("Not logged in")
            if st.button("Login", key="nav_login"):
                navigation.navigate(client, "splash")
            return
        with st.popover(name, use_container_width=True):
            if st.button("Logout", key="logout_btn", use_container_width=True):
                action = run_async(auth_flow.logout(client))
                navigation.execute(client, action)
            st.divider()
            if st.button("Close Database", key="close_db_btn", use_container_width=True):
                action = run_async(auth_flow.close_db(client))
                navigation.execute(client, action)
