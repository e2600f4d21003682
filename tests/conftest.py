import os
import sys

import pytest

# Ensure project root is on sys.path so 'semantic_chunker' package can be imported in tests
PROJECT_ROOT = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from semantic_chunker.modules.models import ImageElement, TextElement  # noqa: E402


class ElementStream:
    """Builds element lists with increasing sequence indices."""

    def __init__(self):
        self.elements = []

    def text(self, text, tab=None):
        self.elements.append(TextElement(text=text, sequence_index=len(self.elements), tab_id=tab))
        return self

    def image(self, ref, tab=None, label=None):
        self.elements.append(
            ImageElement(image_ref=ref, sequence_index=len(self.elements), tab_id=tab, label=label)
        )
        return self


@pytest.fixture()
def stream():
    return ElementStream()


def sentence(length, word="alpha"):
    """A run of words ending in a period, exactly ``length`` characters long."""
    unit = word + " "
    body = (unit * (length // len(unit) + 1))[: length - 1].rstrip()
    return body.ljust(length - 1, "x") + "."


@pytest.fixture()
def make_sentence():
    return sentence


class FakeResponse:
    def __init__(self, status_code, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload if payload is not None else {}
        self.text = text

    def json(self):
        return self._payload


class FakeGitHubSession:
    """Stands in for requests.Session against the GitHub contents API."""

    def __init__(self, existing=None, put_status=201):
        self.existing = dict(existing or {})
        self.put_status = put_status
        self.gets = []
        self.puts = []

    @staticmethod
    def _path(url):
        return url.split("/contents/", 1)[1]

    def get(self, url, headers=None, params=None, timeout=None):
        path = self._path(url)
        self.gets.append((path, params))
        if path in self.existing:
            return FakeResponse(200, {"sha": self.existing[path]})
        return FakeResponse(404, {"message": "Not Found"})

    def put(self, url, headers=None, json=None, timeout=None):
        path = self._path(url)
        self.puts.append((path, json))
        return FakeResponse(self.put_status, {"content": {"path": path}}, text="validation failed")


class FakeDocsSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.urls = []

    def get(self, url, timeout=None, headers=None):
        self.urls.append(url)
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture()
def github_session():
    return FakeGitHubSession()
