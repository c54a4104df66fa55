import time

import pandas as pd
import streamlit as st

import ui
from services import vault_service
from use_cases.session_models import Proceed
from utils.async_helpers import run_async
from views import navigation


def _run(client, coro):
    """Run a vault request; anything but Proceed is handed to navigation."""
    action = run_async(coro)
    if isinstance(action, Proceed):
        return action
    navigation.execute(client, action)
    return None


def load_tree(client):
    result = _run(client, vault_service.get_groups(client))
    if result is None:
        return
    data = result.data or {}
    st.session_state.vault_tree = data.get("groups") or {}
    if data.get("last_selected"):
        select_group(client, data["last_selected"])


def select_group(client, group_id):
    current = st.session_state.vault_group
    if not group_id or (current and current.get("id") == group_id):
        return
    st.session_state.vault_entry = None
    result = _run(client, vault_service.get_group_entries(client, group_id))
    if result is not None:
        # the server does not echo the group id back
        st.session_state.vault_group = {**(result.data or {}), "id": group_id}


def select_entry(client, entry_id):
    current = st.session_state.vault_entry
    if not entry_id or (current and current.get("id") == entry_id):
        return
    result = _run(client, vault_service.get_entry(client, entry_id))
    if result is not None:
        st.session_state.vault_entry = result.data
        st.session_state.revealed = {}


def search(client, term):
    st.session_state.vault_entry = None
    result = _run(client, vault_service.search_entries(client, term))
    if result is not None:
        st.session_state.vault_group = result.data


def _render_tree(client):
    tree = st.session_state.vault_tree or {}
    expanded = st.session_state.tree_expanded
    if st.button(f"🗂 {tree.get('title') or 'Root'}", key="tree_root", use_container_width=True):
        select_group(client, tree.get("id"))
    for level, node in vault_service.flatten_groups(tree, expanded=expanded):
        _, toggle, label = st.columns([level, 1, 10])
        if node.get("children"):
            is_open = vault_service.is_expanded(node, level, expanded=expanded)
            if toggle.button("−" if is_open else "+", key=f"toggle_{node.get('id')}"):
                expanded[node.get("id")] = not is_open
                st.rerun()
        if label.button(node.get("title") or "(untitled)", key=f"group_{node.get('id')}", use_container_width=True):
            select_group(client, node.get("id"))


def _render_group(client):
    group = st.session_state.vault_group
    if not group:
        return
    st.markdown(f"#### {group.get('title') or 'Search results'}")
    rows = vault_service.entry_rows(group)
    if not rows:
        st.info("No entries")
        return
    selected = ui.render_aggrid(
        pd.DataFrame(rows), height=420, hidden_columns=["id"], selectable=True, key=f"entries_{group.get('id') or group.get('title')}"
    )
    if selected:
        select_entry(client, selected.get("id"))


def _reveal(client, entry_id, name):
    result = _run(client, vault_service.get_protected(client, entry_id, name))
    if result is not None:
        hide_at = time.monotonic() + vault_service.PROTECTED_REVEAL_SECONDS
        st.session_state.revealed[(entry_id, name)] = (result.data, hide_at)


def _protected_value(entry_id, name):
    value = st.session_state.revealed.get((entry_id, name))
    if value is None:
        return None
    secret, hide_at = value
    if time.monotonic() >= hide_at:
        st.session_state.revealed.pop((entry_id, name), None)
        return None
    return secret


def _render_protected_row(client, entry, name, label):
    c_label, c_value, c_btn = st.columns([2, 6, 1])
    c_label.write(label)
    secret = _protected_value(entry["id"], name)
    if secret is None:
        c_value.write("******")
        if c_btn.button("👁", key=f"reveal_{entry['id']}_{name}"):
            _reveal(client, entry["id"], name)
            st.rerun()
    else:
        # st.code carries its own copy button
        c_value.code(secret or "", language=None)
        if c_btn.button("🙈", key=f"hide_{entry['id']}_{name}"):
            st.session_state.revealed.pop((entry["id"], name), None)
            st.rerun()


def _render_otp(client, entry):
    c_label, c_value, c_btn = st.columns([2, 6, 1])
    c_label.write("One-time code")
    code = _protected_value(entry["id"], "__otp__")
    if code is None:
        c_value.write("------")
    else:
        c_value.code(code, language=None)
    if c_btn.button("🔑", key=f"otp_{entry['id']}"):
        result = _run(client, vault_service.get_otp(client, entry["id"]))
        if result is not None:
            hide_at = time.monotonic() + vault_service.PROTECTED_REVEAL_SECONDS
            st.session_state.revealed[(entry["id"], "__otp__")] = (str(result.data), hide_at)
            st.rerun()


def _render_files(client, entry):
    binary = entry.get("binary") or []
    if not binary:
        return
    st.markdown("**Files**")
    for filename in binary:
        c_name, c_btn = st.columns([8, 2])
        c_name.write(filename)
        ready = st.session_state.get("download_ready")
        if ready and ready.get("key") == (entry["id"], filename):
            download = ready["file"]
            c_btn.download_button(
                "Save",
                data=download.content,
                file_name=download.filename or filename,
                mime=download.content_type,
                key=f"save_{entry['id']}_{filename}",
            )
        elif c_btn.button("⬇", key=f"download_{entry['id']}_{filename}"):
            result = _run(client, vault_service.download_file(client, entry["id"], filename))
            if result is not None:
                st.session_state.download_ready = {"key": (entry["id"], filename), "file": result.data}
                st.rerun()


def _render_entry(client):
    entry = st.session_state.vault_entry
    if not entry:
        return
    st.markdown(f"#### {entry.get('title') or ''}")

    c_label, c_value = st.columns([2, 7])
    c_label.write("Username")
    c_value.code(entry.get("username") or "", language=None)
    _render_protected_row(client, entry, "password", "Password")

    if entry.get("url"):
        c_label, c_value = st.columns([2, 7])
        c_label.write("URL")
        c_value.markdown(f"[{entry['url']}]({entry['url']})")
    if entry.get("notes"):
        c_label, c_value = st.columns([2, 7])
        c_label.write("Notes")
        c_value.text(entry["notes"])
    if entry.get("tags"):
        st.caption(" · ".join(entry["tags"]))

    strings = entry.get("strings") or {}
    protected = entry.get("protected") or {}
    if "otp" in protected:
        _render_otp(client, entry)
    if strings:
        st.markdown("**Fields**")
        for name, value in strings.items():
            if name in protected:
                _render_protected_row(client, entry, name, name)
            else:
                c_label, c_value = st.columns([2, 7])
                c_label.write(name)
                c_value.write(value)

    _render_files(client, entry)


def render_vault(client):
    if st.session_state.vault_tree is None:
        load_tree(client)

    c_tree, c_group, c_entry = st.columns([2, 4, 6])
    with c_tree:
        _render_tree(client)
    with c_group:
        _render_group(client)
    with c_entry:
        _render_entry(client)
