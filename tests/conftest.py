"""Shared fixtures."""

import httpx
import pytest

from backoffice.upstream.client import TSoftClient
from backoffice.upstream.http_client import UpstreamTransport

from tests.fakes import UPSTREAM_BASE, FakeUpstream


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def transport(upstream):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(upstream))
    return UpstreamTransport(token="test-token", base_url=UPSTREAM_BASE, client=http_client)


@pytest.fixture
def client(upstream):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(upstream))
    return TSoftClient(token="test-token", base_url=UPSTREAM_BASE, http_client=http_client)
