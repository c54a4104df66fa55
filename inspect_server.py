import os
import sys

import toml

from infrastructure.api.vault_api import VaultApi
from use_cases import auth_flow
from use_cases.session_models import Alert
from use_cases.vault_client import VaultClient
from utils.async_helpers import run_async

def get_vault_url():
    try:
        config = toml.load(".streamlit/secrets.toml")
        url = config.get("VAULT_URL")
        if url:
            return url
    except (OSError, toml.TomlDecodeError) as e:
        print(f"Error reading secrets: {e}")
    return os.getenv("VAULT_URL", "http://localhost:8080")

def probe(url):
    """One auth check against the server, printed the way the login screen would see it."""
    api = VaultApi(url, timeout=10)
    client = VaultClient(api)
    print(f"🔐 Probing {api.url_for('authenticated')}")

    try:
        action = run_async(auth_flow.check_auth(client))
    finally:
        api.close()

    print(f"➡️  {type(action).__name__}: {action}")
    if isinstance(action, Alert):
        return 1
    settings = client.store.get_settings()
    if settings:
        print(f"⚙️  Settings: {settings}")
    return 0

if __name__ == "__main__":
    sys.exit(probe(sys.argv[1] if len(sys.argv) > 1 else get_vault_url()))
