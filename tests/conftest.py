from collections import deque
from pathlib import Path

import pytest

from wirehttp.client import HttpClient
from wirehttp.transport import Transport
from wirehttp.utils.text import FixedRandom

FIXTURES = Path(__file__).parent / "fixtures"
MOCK_BOUNDARY_SUFFIX = "MockBoundary1234"
MOCK_BOUNDARY = "-" * 27 + MOCK_BOUNDARY_SUFFIX


class ScriptedTransport(Transport):
    """Transport that records writes and replays canned reads.

    ``events`` keeps the interleaving of writes and reads so tests can check
    lockstep versus pipelined ordering.
    """

    def __init__(self, reads=()):
        self.reads = deque(reads)
        self.writes = []
        self.connects = []
        self.events = []
        self.closed = 0

    def connect(self, host, port, timeout, local_host=None, local_port=None):
        self.connects.append((host, port, timeout))
        return object()

    def write(self, handle, data):
        self.writes.append(data)
        self.events.append('write')

    def read_once(self, handle, timeout=None):
        self.events.append('read')
        if self.reads:
            return self.reads.popleft()
        return b""

    def close(self, handle):
        self.closed += 1

    def start_tls(self, handle, server_hostname, ssl_version=None):
        self.events.append('tls')
        return handle


@pytest.fixture
def ip():
    return "1.2.3.4"


@pytest.fixture
def mock_random():
    return FixedRandom(MOCK_BOUNDARY_SUFFIX)


@pytest.fixture
def transport():
    return ScriptedTransport()


@pytest.fixture
def client(ip, mock_random, transport):
    return HttpClient(ip, rand=mock_random, transport=transport)


@pytest.fixture
def fixture_path():
    return FIXTURES / "string_list.txt"
