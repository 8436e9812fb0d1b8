"""Shared fixtures: a temporary cache store and a scripted session.

No test touches the network.
"""

import base64
import json

import pytest

from cache_store import CacheStore
from config import USER_AGENT_STRUCTURED, USER_AGENT_LINKS
from error_handling import FetchError
from network import sanitize_url
from subscriptions import SubscriptionService

SUB_URL = "https://sub.example.com/api/v1/client?token=secret"


class FakeSession:
    """Stands in for RobustSession, answering per (url, user agent)"""

    def __init__(self):
        self.responses = {}
        self.calls = []
        self.closed = False

    def add(self, url, user_agent, body):
        self.responses[(url, user_agent)] = body

    def fetch_bytes(self, url, user_agent=None, timeout=None):
        self.calls.append((url, user_agent))
        body = self.responses.get((url, user_agent))
        if isinstance(body, Exception):
            raise body
        if not body or not body.strip():
            raise FetchError(f"Empty response from {sanitize_url(url)}", url=url)
        return body

    def close(self):
        self.closed = True


def encode_links(*lines):
    return base64.b64encode("\n".join(lines).encode("utf-8"))


def structured_body(*outbounds, **extra):
    return json.dumps(dict(outbounds=list(outbounds), **extra)).encode("utf-8")


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def cache(tmp_path):
    return CacheStore(str(tmp_path / "cache"))


@pytest.fixture
def service(cache, session):
    return SubscriptionService(cache=cache, session=session)


@pytest.fixture
def structured_outbounds():
    return [
        {"type": "vless", "tag": "US-1", "server": "us1.example.com", "server_port": 443},
        {"type": "trojan", "tag": "JP-2", "server": "jp2.example.com", "server_port": 443},
        {"type": "shadowsocks", "tag": "DE-3", "server": "de3.example.com", "server_port": 8388},
        {"type": "vmess", "tag": "us-backup", "server": "usb.example.com", "server_port": 443},
    ]


@pytest.fixture
def legacy_body():
    return encode_links(
        "vmess://abc#Tag%20One",
        "vmess://def",
        "",
        "vmess://ghi#",
    )


__all__ = ["FakeSession", "encode_links", "structured_body", "SUB_URL",
           "USER_AGENT_STRUCTURED", "USER_AGENT_LINKS"]
