"""Shared fixtures: configuration and HTTP clients on mock transports."""

import logging
import os
import tempfile
from typing import Callable

import httpx
import pytest

# api_server configures logging on import and writes below ROOT_DIR
os.environ.setdefault("ROOT_DIR", tempfile.mkdtemp(prefix="crossref-tests-"))

from shared.clients.library.zotero.LibraryClientZotero import LibraryClientZotero
from shared.clients.search.obsidian.SearchClientObsidian import SearchClientObsidian
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import ColorLogger
from shared.models.config import SearchProfile


@pytest.fixture
def helper_config(monkeypatch) -> HelperConfig:
    for key in ("REPORT_SOURCE_NAME", "REPORT_TARGET_NAME", "SEARCH_TIMEOUT", "LIBRARY_TIMEOUT"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("TIMEZONE", "UTC")
    return HelperConfig(logger=ColorLogger(logging.getLogger("tests")))


@pytest.fixture
def profile() -> SearchProfile:
    return SearchProfile(name="AMM", base_url="http://obsidian.test", token="secret-token")


@pytest.fixture
async def make_search_client(helper_config, profile):
    clients: list[SearchClientObsidian] = []

    async def factory(handler: Callable[[httpx.Request], httpx.Response]) -> SearchClientObsidian:
        client = SearchClientObsidian(helper_config=helper_config, profile=profile, transport=httpx.MockTransport(handler))
        await client.boot()
        clients.append(client)
        return client

    yield factory
    for client in clients:
        await client.close()


@pytest.fixture
async def zotero_client_factory(helper_config, monkeypatch):
    monkeypatch.setenv("LIBRARY_ZOTERO_BASE_URL", "https://zotero.test")
    monkeypatch.setenv("LIBRARY_ZOTERO_API_KEY", "zkey")
    monkeypatch.setenv("LIBRARY_ZOTERO_LIBRARY_ID", "42")
    monkeypatch.delenv("LIBRARY_ZOTERO_LIBRARY_TYPE", raising=False)
    clients: list[LibraryClientZotero] = []

    async def factory(handler: Callable[[httpx.Request], httpx.Response]) -> LibraryClientZotero:
        client = LibraryClientZotero(helper_config=helper_config, transport=httpx.MockTransport(handler))
        await client.boot()
        clients.append(client)
        return client

    yield factory
    for client in clients:
        await client.close()
