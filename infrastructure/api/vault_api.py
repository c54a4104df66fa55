import logging
import re
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional
from urllib.parse import unquote

import requests

log = logging.getLogger(__name__)

API_PATH = "api/v1"
CSRF_HEADER = "X-CSRF-Token"

_FILENAME_RE = re.compile(r"filename[^;=\n]*=((['\"]).*?\2|[^;\n]*)")


@dataclass(frozen=True)
class ApiRequest:
    endpoint: str
    method: str = "POST"
    params: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class FileDownload:
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


def parse_attachment_filename(disposition: Optional[str]) -> str:
    if not disposition or "attachment" not in disposition:
        return ""
    match = _FILENAME_RE.search(disposition)
    if not match or not match.group(1):
        return ""
    value = match.group(1).replace('"', "").replace("'", "")
    if value.upper().startswith("UTF-8"):
        value = value[5:]
    return unquote(value)


class VaultApi:
    """Blocking HTTP transport for the vault server's JSON API."""

    def __init__(self, base_url: str, timeout: float = 30, verify: bool = True, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.verify = verify
        # cookie jar of the server-side session
        self.session = session or requests.Session()

    def url_for(self, endpoint: str) -> str:
        return f"{self.base_url}/{API_PATH}/{endpoint}"

    def _headers(self, csrf_token: Optional[str]) -> dict:
        headers = {"Accept": "application/json"}
        if csrf_token:
            headers[CSRF_HEADER] = csrf_token
        return headers

    def send(self, request: ApiRequest, csrf_token: Optional[str]) -> requests.Response:
        method = request.method.upper()
        kwargs = {
            "headers": self._headers(csrf_token),
            "timeout": self.timeout,
            "verify": self.verify,
        }
        if request.params:
            if method == "GET":
                kwargs["params"] = dict(request.params)
            else:
                # form-urlencoded body
                kwargs["data"] = dict(request.params)
        log.debug(f"{method} {request.endpoint}")
        return self.session.request(method, self.url_for(request.endpoint), **kwargs)

    def close(self) -> None:
        self.session.close()
