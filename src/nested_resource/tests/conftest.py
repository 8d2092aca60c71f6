import pytest

from .testing import StubServer, server as _server


@pytest.fixture
def server() -> StubServer:
    _server.reset()
    yield _server
    _server.reset()
