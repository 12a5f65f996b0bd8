import base64

import pytest

from wirehttp.config import DEFAULT_USER_AGENT, Config
from wirehttp.request import Request, RequestBuilder, build_uri


def test_request_raw_defaults(client, ip):
    request = client.request_raw()
    assert isinstance(request, Request)
    assert str(request) == f"GET / HTTP/1.1\r\nHost: {ip}\r\n\r\n"


def test_request_raw_adds_nothing_implicit(client, ip):
    request = client.request_raw({
        'method': 'PUT',
        'uri': '/upload',
        'data': 'abc',
        'headers': {'X-First': '1', 'X-Second': '2'},
        'agent': 'ignored-agent',
        'authorization': 'Basic ignored',
    })
    assert str(request) == (
        "PUT /upload HTTP/1.1\r\n"
        f"Host: {ip}\r\n"
        "X-First: 1\r\n"
        "X-Second: 2\r\n"
        "\r\n"
        "abc"
    )


def test_request_raw_keeps_explicit_host(client):
    request = client.request_raw({'headers': {'Host': 'example.org'}})
    assert request.headers == (('Host', 'example.org'),)


def test_request_raw_version(client, ip):
    request = client.request_raw({'version': '1.0'})
    assert str(request).startswith("GET / HTTP/1.0\r\n")


def test_request_cgi_defaults(client, ip):
    request = client.request_cgi()
    assert str(request) == f"GET / HTTP/1.1\r\nHost: {ip}\r\nUser-Agent: {DEFAULT_USER_AGENT}\r\n\r\n"
    assert request.opts['agent'] == DEFAULT_USER_AGENT


def test_request_cgi_header_order(client, ip):
    client.set_config({'headers': {'X-Configured': 'yes'}, 'cookie': 'a=b'})
    request = client.request_cgi({
        'method': 'POST',
        'uri': '/submit',
        'data': 'payload',
        'ctype': 'text/plain',
        'agent': 'UnitTest/1.0',
        'connection': 'close',
    })
    names = [name for name, _ in request.headers]
    assert names == ['Host', 'User-Agent', 'Content-Type', 'Content-Length', 'Cookie', 'Connection', 'X-Configured']
    assert request.header('Content-Length') == '7'
    assert request.body == b'payload'


def test_request_cgi_post_without_body_sends_zero_length(client):
    request = client.request_cgi({'method': 'POST'})
    assert request.header('Content-Length') == '0'


def test_request_cgi_explicit_content_length_wins(client):
    request = client.request_cgi({'method': 'POST', 'data': 'abc', 'headers': {'Content-Length': '99'}})
    assert [value for name, value in request.headers if name == 'Content-Length'] == ['99']


def test_request_cgi_empty_agent_omits_header(client):
    request = client.request_cgi({'agent': ''})
    assert request.header('User-Agent') is None


def test_request_cgi_vars_get_and_query(client):
    request = client.request_cgi({'uri': '/search', 'query': 'raw=1', 'vars_get': {'q': 'a b', 'lang': 'en'}})
    assert request.uri == '/search?raw=1&q=a+b&lang=en'


def test_request_cgi_vars_post(client):
    request = client.request_cgi({'method': 'POST', 'vars_post': {'user': 'admin', 'pass': 'p&w'}})
    assert request.body == b'user=admin&pass=p%26w'
    assert request.header('Content-Type') == 'application/x-www-form-urlencoded'
    assert request.header('Content-Length') == str(len(request.body))


def test_request_cgi_data_wins_over_vars_post(client):
    request = client.request_cgi({'method': 'POST', 'data': 'raw', 'vars_post': {'a': '1'}})
    assert request.body == b'raw'
    assert request.header('Content-Type') is None


def test_request_cgi_raw_headers_appended(client):
    request = client.request_cgi({'raw_headers': 'X-Raw: 1'})
    assert str(request).endswith("X-Raw: 1\r\n\r\n")


def test_request_cgi_vhost(client):
    request = client.request_cgi({'vhost': 'intranet.local'})
    assert request.header('Host') == 'intranet.local'


def test_request_cgi_does_not_attach_credentials(client):
    client.username = 'user'
    client.password = 'pass'
    request = client.request_cgi({'username': 'other', 'password': 'secret'})
    assert 'Authorization:' not in str(request)


class TestAuthorizationOverride:

    @pytest.fixture
    def b64(self):
        return base64.b64encode(b"user:pass").decode()

    def test_authorization_option(self, client):
        client.set_config({'authorization': 'Basic base64dstuffhere'})
        request = client.request_cgi()
        assert request.header('Authorization') == 'Basic base64dstuffhere'

    def test_header_preferred_over_option(self, client, b64):
        client.set_config({'authorization': 'Basic base64dstuffhere'})
        client.set_config({'headers': {'Authorization': f"Basic {b64}"}})

        text = str(client.request_cgi())
        assert text.count('Authorization: Basic') == 1
        assert f"Authorization: Basic {b64}\r\n" in text

    def test_header_case_insensitive(self, client):
        client.set_config({'authorization': 'Basic option'})
        request = client.request_cgi({'headers': {'authorization': 'Basic header'}})
        assert [value for name, value in request.headers if name.lower() == 'authorization'] == ['Basic header']


def test_with_header_returns_copy(client):
    request = client.request_cgi()
    updated = request.with_header('X-Extra', '1')
    assert updated is not request
    assert request.header('X-Extra') is None
    assert updated.headers[-1] == ('X-Extra', '1')
    assert updated.body == request.body


def test_request_is_immutable(client):
    request = client.request_cgi()
    with pytest.raises(AttributeError):
        request.method = 'POST'


def test_builder_host_header_ports():
    assert RequestBuilder('h', 80).host_header() == 'h'
    assert RequestBuilder('h', 8080).host_header() == 'h:8080'
    assert RequestBuilder('h', 443, ssl=True).host_header() == 'h'
    assert RequestBuilder('h', 80, ssl=True).host_header() == 'h:80'


def test_builder_uses_config_layers():
    config = Config({'method': 'DELETE', 'uri': '/item'})
    request = RequestBuilder('h', config=config).request_cgi({'uri': '/other'})
    assert request.method == 'DELETE'
    assert request.uri == '/other'


@pytest.mark.parametrize("uri, query, vars_get, expected", [
    ('/', None, None, '/'),
    ('', None, None, '/'),
    ('/a?x=1', None, {'y': '2'}, '/a?x=1&y=2'),
    ('/a', None, [('k', ['1', '2'])], '/a?k=1&k=2'),
])
def test_build_uri(uri, query, vars_get, expected):
    assert build_uri(uri, query, vars_get) == expected
