import time

import pytest

from wirehttp import ConnectionRefused, HttpClient
from wirehttp.config import Config


def test_default_state(ip):
    client = HttpClient(ip)
    assert client._hostname == ip
    assert client._port == 80
    assert client._ssl is False
    assert client.context == {}
    assert client.proxies is None
    assert client.username == ''
    assert client.password == ''
    assert isinstance(client.config, Config)


@pytest.mark.parametrize("name", [
    'config', 'config_types', 'pipeline', 'local_host', 'local_port', 'conn',
    'context', 'proxies', 'username', 'password', 'junk_pipeline',
])
def test_public_accessors(client, name):
    assert hasattr(client, name)


@pytest.mark.parametrize("name", ['ssl', 'ssl_version', 'hostname', 'port'])
def test_protected_settings_not_exposed(client, name):
    with pytest.raises(AttributeError):
        getattr(client, name)


def test_has_creds():
    assert not HttpClient('127.0.0.1', 1).has_creds
    assert HttpClient('127.0.0.1', 1, username='user1', password='pass1').has_creds


def test_pipelining_flag():
    client = HttpClient('127.0.0.1', 1)
    assert not client.pipelining
    client.pipeline = True
    assert client.pipelining


def test_close_and_stop_without_connection(client):
    assert client.close() is None
    assert client.close() is None
    assert client.stop() is None


def test_not_connected_initially(client):
    assert not client.is_connected()
    assert client.conn is None


def test_connect_refused():
    client = HttpClient('127.0.0.1', 1)
    started = time.monotonic()
    with pytest.raises(ConnectionRefused):
        client.connect(1)
    assert time.monotonic() - started < 5
    assert not client.is_connected()


def test_connect_uses_transport(client, transport, ip):
    handle = client.connect(3)
    assert client.conn is handle
    assert client.is_connected()
    assert transport.connects == [(ip, 80, 3)]

    # Reuses the live connection
    assert client.connect(3) is handle
    assert len(transport.connects) == 1


def test_context_manager_stops(client, transport):
    with client:
        client.connect()
    assert not client.is_connected()
    assert transport.closed == 1


def test_basic_auth_header_on_client(client):
    assert client.basic_auth_header("user1", "pass1") == "Basic dXNlcjE6cGFzczE="


def test_ssl_version_handed_to_connection(transport):
    client = HttpClient('h', 443, ssl=True, ssl_version='TLS1.3', transport=transport)
    assert client._connection._ssl_version == 'TLS1.3'
    assert not hasattr(client, '_ssl_version')


def test_read_max_data_caps_response_body(client, transport):
    transport.reads.append(b"HTTP/1.1 200 OK\r\nContent-Length: 8\r\n\r\nabcdefgh")
    client.set_config({'read_max_data': 4})

    response = client.send_recv(client.request_cgi())

    assert response.body == b'abcd'
    assert response.truncated
