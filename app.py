import streamlit as st
import streamlit.components.v1 as components
import os

from infrastructure.observability import setup_observability
setup_observability()

import sentry_sdk

import ui
from use_cases import bootstrap
from use_cases.session_models import LOGIN_STAGES
from utils import session_manager
from views import login_view, navbar_view, vault_view
from datetime import datetime, timezone

# --- PAGE SETTINGS ---
st.set_page_config(page_title="KeePass 4 Web", page_icon="🔐", layout="wide", initial_sidebar_state="collapsed")

# --- PROD HARDENING ---
FORCE_HTTPS = os.getenv("FORCE_HTTPS", "False").lower() == "true"

# Health Check (Basic load-balancer heartbeat)
if st.query_params.get("health") == "1":
    st.write({"status": "ok", "version": "1.0", "uptime": datetime.now(timezone.utc).isoformat()})
    st.stop()

# Master passwords must not cross plain http
if FORCE_HTTPS:
    proto = st.context.headers.get("x-forwarded-proto", "http").lower()
    if proto != "https":
        st.error("🚨 Insecure connection. Please use HTTPS.")
        st.stop()

# Emulate Basic Security Headers via HTML injection (where possible)
components.html(
    """
    <script>
    // Streamlit prevents raw HTTP header mutation from the python script layer,
    // but frame/sniff policies can still be set via DOM meta injection.
    var meta1 = document.createElement('meta');
    meta1.httpEquiv = "X-Content-Type-Options";
    meta1.content = "nosniff";
    document.getElementsByTagName('head')[0].appendChild(meta1);

    var meta2 = document.createElement('meta');
    meta2.httpEquiv = "X-Frame-Options";
    meta2.content = "DENY";
    document.getElementsByTagName('head')[0].appendChild(meta2);

    var meta3 = document.createElement('meta');
    meta3.name = "referrer";
    meta3.content = "no-referrer";
    document.getElementsByTagName('head')[0].appendChild(meta3);
    </script>
    """,
    height=0,
)


# --- STYLES ---
ui.setup_style()

# --- STARTUP ORCHESTRATION ---
startup_result = bootstrap.run_startup()
if startup_result.status == "STOP":
    st.error(f"🚨 Vault server is not configured: {startup_result.error}")
    st.stop()

client = session_manager.get_vault_client()

# the SSO server sends the browser back with ?route=callback_user_auth&payload=...
if st.query_params.get("route") == "callback_user_auth":
    st.session_state.route = "callback_user_auth"
route = st.session_state.route

# --- ROUTING ---
if route == "splash":
    login_view.render_splash(client)
    st.stop()

if route in LOGIN_STAGES:
    navbar_view.render_navbar(client)
    login_view.render_login(client, route)
    st.stop()

if route == "callback_user_auth":
    login_view.render_callback(client)
    st.stop()

# === VAULT ===
# Build Sentry Context
settings = client.store.get_settings()
if sentry_sdk.get_client().is_active() and settings.get("cn"):
    sentry_sdk.set_user({"username": settings["cn"]})

navbar_view.render_navbar(client, on_search=lambda term: vault_view.search(client, term), show_timer=True)
st.divider()
vault_view.render_vault(client)
