import httpx
import pytest

from sprite_animator import pipeline
from sprite_animator.resources import ResourceStore


class FakeHTTP:
    """
    Stands in for the network behind httpx.AsyncClient in resources.py.

    `routes` maps a URL to an httpx.Response, or to an exception to raise.
    Unknown URLs get a 404.
    """

    def __init__(self):
        self.routes = {}
        self.requested = []

    def handler(self, request):
        url = str(request.url)
        self.requested.append(url)
        outcome = self.routes.get(url)
        if outcome is None:
            return httpx.Response(404)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def no_stagger(monkeypatch):
    monkeypatch.setattr(pipeline, "STAGGER_SECONDS", 0.0)


@pytest.fixture
def store(tmp_path):
    return ResourceStore(str(tmp_path / "frames"))


@pytest.fixture
def fake_http(monkeypatch):
    fake = FakeHTTP()
    real_client = httpx.AsyncClient

    def make_client(**kwargs):
        return real_client(transport=httpx.MockTransport(fake.handler), **kwargs)

    monkeypatch.setattr("sprite_animator.resources.httpx.AsyncClient", make_client)
    return fake
