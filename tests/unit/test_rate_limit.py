"""Unit tests for the rate-limit client key."""
import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded

from guesthouse.config import get_settings
from guesthouse.rate_limit import client_key, rate_limit_handler


def make_request(peer: str, forwarded: str = None) -> Request:
    headers = [(b"x-forwarded-for", forwarded.encode())] if forwarded else []
    return Request({"type": "http", "headers": headers, "client": (peer, 51000)})


@pytest.fixture()
def trust(monkeypatch):
    def _trust(*proxies: str) -> None:
        monkeypatch.setattr(get_settings(), "trusted_proxies", list(proxies))

    return _trust


class TestClientKey:
    def test_peer_address_without_header(self):
        assert client_key(make_request("203.0.113.7")) == "203.0.113.7"

    def test_header_from_untrusted_peer_is_ignored(self):
        assert client_key(make_request("203.0.113.7", "198.51.100.1")) == "203.0.113.7"

    def test_trusted_proxy_reports_the_client(self, trust):
        trust("10.0.0.2")
        assert client_key(make_request("10.0.0.2", "198.51.100.1")) == "198.51.100.1"

    def test_spoofed_leading_hops_are_skipped(self, trust):
        trust("10.0.0.2", "10.0.0.3")
        request = make_request("10.0.0.2", "1.1.1.1, 198.51.100.1, 10.0.0.3")
        assert client_key(request) == "198.51.100.1"

    def test_only_trusted_hops_fall_back_to_peer(self, trust):
        trust("10.0.0.2", "10.0.0.3")
        assert client_key(make_request("10.0.0.2", "10.0.0.3")) == "10.0.0.2"


def test_rotating_forwarded_header_does_not_reset_the_limit():
    limiter = Limiter(key_func=client_key, enabled=True)
    app = FastAPI()
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)

    @app.post("/login")
    @limiter.limit("2/minute")
    def login(request: Request) -> dict[str, str]:
        return {"detail": "ok"}

    client = TestClient(app)
    codes = [
        client.post("/login", headers={"X-Forwarded-For": f"198.51.100.{n}"}).status_code
        for n in range(1, 5)
    ]
    assert codes == [200, 200, 429, 429]
