from __future__ import annotations

import asyncio

import pytest

from wm_fakes import FakeWmServer
from wmclient import create


@pytest.fixture
def wm_server() -> FakeWmServer:
    return FakeWmServer()


@pytest.fixture
def client(wm_server: FakeWmServer):
    return asyncio.run(create("http", "localhost", 8080, "", session=wm_server))
