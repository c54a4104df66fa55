import os
import logging

import streamlit as st

from infrastructure.api.vault_api import VaultApi

log = logging.getLogger(__name__)


class VaultConfigError(Exception):
    pass


DEFAULT_VAULT_URL = "http://localhost:8080"
DEFAULT_REQUEST_TIMEOUT = 30


def get_secret(key):
    try:
        value = st.secrets.get(key)
    except FileNotFoundError:
        value = None
    if value is None:
        value = os.getenv(key)
    return value


def get_vault_url():
    url = (get_secret("VAULT_URL") or DEFAULT_VAULT_URL).strip()
    if not url.startswith(("http://", "https://")):
        raise VaultConfigError(f"VAULT_URL must be an http(s) URL, got '{url}'")
    return url.rstrip("/")


def get_request_timeout():
    raw = get_secret("VAULT_REQUEST_TIMEOUT")
    if raw in (None, ""):
        return DEFAULT_REQUEST_TIMEOUT
    try:
        timeout = float(raw)
    except (TypeError, ValueError):
        raise VaultConfigError(f"VAULT_REQUEST_TIMEOUT must be a number of seconds, got '{raw}'")
    if timeout <= 0:
        raise VaultConfigError("VAULT_REQUEST_TIMEOUT must be positive")
    return timeout


def get_verify_tls():
    raw = get_secret("VAULT_VERIFY_TLS")
    if raw is None:
        return True
    return str(raw).lower() not in ("0", "false", "no")


def build_vault_api():
    url = get_vault_url()
    verify = get_verify_tls()
    if not verify:
        log.warning("TLS verification disabled for vault server requests")
    return VaultApi(url, timeout=get_request_timeout(), verify=verify)
