import pytest
from unittest.mock import MagicMock, patch


class FakeSessionState(dict):
    """dict with attribute access, standing in for st.session_state outside `streamlit run`."""

    def __getattr__(self, name):
        try:
            return self[name]
        except KeyError:
            raise AttributeError(name)

    def __setattr__(self, name, value):
        self[name] = value

    def __delattr__(self, name):
        del self[name]


@pytest.fixture
def session_state():
    state = FakeSessionState()
    with patch("streamlit.session_state", new=state):
        yield state


def make_response(status_code=200, json_body=None, text="", headers=None, content=b""):
    resp = MagicMock()
    resp.status_code = status_code
    if json_body is None:
        resp.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        resp.json.return_value = json_body
    resp.text = text
    resp.headers = headers or {}
    resp.content = content
    return resp
