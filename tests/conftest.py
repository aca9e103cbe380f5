import pytest

from text_to_wordbook.config import WordbookOptions
from text_to_wordbook.integrations.http_client import HttpResponse


class FakeHttpClient:
    """Records every call; answers from a handler or a queue of responses."""

    def __init__(self, responses=None, handler=None):
        self.calls = []
        self._responses = list(responses or [])
        self._handler = handler

    def request(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        if self._handler is not None:
            return self._handler(method, url, **kwargs)
        if self._responses:
            return self._responses.pop(0)
        return HttpResponse(status=200, data={})


def llm_response(content, status=200):
    return HttpResponse(status=status, data={"choices": [{"message": {"content": content}}]})


def make_options(**overrides):
    values = {
        "dict_type": 1,
        "authorization": "COOKIE=abc",
        "volcano_api_key": "key-123",
        "volcano_endpoint": "https://llm.example.com/api/v3",
        "volcano_model": "doubao-pro",
    }
    values.update(overrides)
    return WordbookOptions.from_mapping(values)


@pytest.fixture
def options():
    return make_options()
