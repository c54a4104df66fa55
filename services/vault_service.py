import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from use_cases.auth_flow import SESSION_EXPIRED
from use_cases.session_models import NextAction

log = logging.getLogger(__name__)

DATA_CHANNEL = "data-fetch"
PROTECTED_CHANNEL = "protected"
DEFAULT_EXPANDED_LEVELS = 3
PROTECTED_REVEAL_SECONDS = 30

# data requests that hit a dead session land on the login screen with this note
_EXPIRED_STATE = {"info": SESSION_EXPIRED}


async def get_groups(client) -> NextAction:
    return await client.request(DATA_CHANNEL, "get_groups", state=_EXPIRED_STATE)


async def get_group_entries(client, group_id: str) -> NextAction:
    return await client.request(DATA_CHANNEL, "get_group_entries", params={"id": group_id}, state=_EXPIRED_STATE)


async def get_entry(client, entry_id: str) -> NextAction:
    return await client.request(DATA_CHANNEL, "get_entry", params={"id": entry_id}, state=_EXPIRED_STATE)


async def search_entries(client, term: str) -> NextAction:
    return await client.request(DATA_CHANNEL, "search_entries", params={"term": term.strip()}, state=_EXPIRED_STATE)


async def get_protected(client, entry_id: str, name: str) -> NextAction:
    return await client.request(
        PROTECTED_CHANNEL,
        "get_protected",
        params={"entry_id": entry_id, "name": name},
        state=_EXPIRED_STATE,
    )


async def get_otp(client, entry_id: str) -> NextAction:
    return await client.request(PROTECTED_CHANNEL, "get_otp", params={"id": entry_id}, state=_EXPIRED_STATE)


async def download_file(client, entry_id: str, filename: str) -> NextAction:
    return await client.download("get_file", {"entry_id": entry_id, "filename": filename}, state=_EXPIRED_STATE)


def flatten_groups(root: Optional[Mapping[str, Any]], levels: int = DEFAULT_EXPANDED_LEVELS, expanded: Optional[Mapping[str, bool]] = None) -> List[Tuple[int, Dict[str, Any]]]:
    """
    Visible rows of the group tree as (level, node), root children at level 1.

    A node is expanded when `expanded` says so, else when the server marked it,
    else when it sits above `levels`. Children of collapsed nodes are hidden.
    """
    if not root:
        return []
    expanded = expanded or {}
    rows = []

    def _walk(nodes, level):
        for node in nodes or []:
            rows.append((level, node))
            if is_expanded(node, level, levels, expanded):
                _walk(node.get("children"), level + 1)

    _walk(root.get("children"), 1)
    return rows


def is_expanded(node: Mapping[str, Any], level: int, levels: int = DEFAULT_EXPANDED_LEVELS, expanded: Optional[Mapping[str, bool]] = None) -> bool:
    node_id = node.get("id")
    if expanded and node_id in expanded:
        return bool(expanded[node_id])
    if "expanded" in node:
        return bool(node["expanded"])
    return level < levels


def entry_rows(group: Optional[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    if not group:
        return []
    return [
        {"id": entry.get("id"), "Entry Name": entry.get("title") or "", "Username": entry.get("username") or ""}
        for entry in group.get("entries") or []
    ]
