import base64

import pytest

from wirehttp.auth import AuthRegistry, AuthState, basic_auth_header, parse_challenges

UNAUTHORIZED = b"HTTP/1.1 401 Unauthorized\r\nContent-Length: 0\r\nWWW-Authenticate: Basic realm=\"foo\"\r\n\r\n"
AUTHED = b"HTTP/1.1 200 Ok\r\nContent-Length: 0\r\n\r\n"


def b64(text):
    return base64.b64encode(text.encode()).decode()


def test_basic_auth_header():
    header = basic_auth_header("user1", "pass1")
    assert header == f"Basic {b64('user1:pass1')}"
    assert base64.b64decode(header.split(' ', 1)[1]) == b"user1:pass1"


@pytest.mark.parametrize("user, password", [("", ""), ("a", ""), ("user:with:colons", "p@ss word"), ("ü", "ß")])
def test_basic_auth_header_round_trips(user, password):
    token = basic_auth_header(user, password).split(' ', 1)[1]
    assert base64.b64decode(token).decode() == f"{user}:{password}"


def test_parse_challenges():
    challenges = parse_challenges(['Basic realm="my \\"realm\\"", charset="UTF-8"', 'Negotiate', ''])
    assert [c.scheme for c in challenges] == ['Basic', 'Negotiate']
    assert challenges[0].realm == 'my "realm"'
    assert challenges[0].params['charset'] == 'UTF-8'
    assert challenges[1].params == {}


def test_registry_knows_builtin_schemes():
    assert {'basic', 'digest', 'negotiate', 'ntlm'} <= set(AuthRegistry.list_schemes())
    assert AuthRegistry.get_scheme('BASIC').supported
    assert not AuthRegistry.get_scheme('Digest').supported
    assert AuthRegistry.get_scheme('Bearer') is None


class TestSendRecvWithCredentials:

    def test_first_request_withholds_credentials(self, client):
        request = client.request_cgi({'username': 'user', 'password': 'pass'})
        assert 'Authorization:' not in str(request)

    def test_sends_credentials_after_401(self, client, transport):
        transport.reads.extend([UNAUTHORIZED, AUTHED])

        opts = {'username': 'user', 'password': 'pass'}
        request = client.request_cgi(opts)
        response = client.send_recv(request)

        assert response.code == 200
        assert len(transport.writes) == 2
        assert b"Authorization" not in transport.writes[0]
        assert f"Authorization: Basic {b64('user:pass')}\r\n".encode() in transport.writes[1]
        # The retry goes over the same connection
        assert len(transport.connects) == 1
        assert client.auth_state is AuthState.AUTHENTICATED
        assert opts == {'username': 'user', 'password': 'pass'}

    def test_retry_is_the_same_request_plus_authorization(self, client, transport):
        transport.reads.extend([UNAUTHORIZED, AUTHED])
        client.username, client.password = 'user', 'pass'

        request = client.request_cgi({'method': 'POST', 'data': 'body'})
        client.send_recv(request)

        first, second = transport.writes
        head, _, body = second.partition(b"\r\n\r\n")
        assert head.endswith(f"\r\nAuthorization: Basic {b64('user:pass')}".encode())
        assert head[:head.rindex(b"\r\nAuthorization")] == first.partition(b"\r\n\r\n")[0]
        assert body == b"body"

    def test_only_one_retry(self, client, transport):
        transport.reads.extend([UNAUTHORIZED, UNAUTHORIZED, AUTHED])
        client.username, client.password = 'user', 'wrong'

        response = client.send_recv(client.request_cgi())

        assert response.code == 401
        assert len(transport.writes) == 2
        assert client.auth_state is AuthState.NO_AUTH

    def test_no_credentials_no_retry(self, client, transport):
        transport.reads.append(UNAUTHORIZED)
        response = client.send_recv(client.request_cgi())
        assert response.code == 401
        assert len(transport.writes) == 1

    def test_unsupported_scheme_returns_401(self, client, transport):
        transport.reads.append(
            b"HTTP/1.1 401 Unauthorized\r\nContent-Length: 0\r\n"
            b"WWW-Authenticate: Digest realm=\"x\", nonce=\"abc\"\r\n\r\n"
        )
        client.username, client.password = 'user', 'pass'

        response = client.send_recv(client.request_cgi())

        assert response.code == 401
        assert len(transport.writes) == 1
        assert client._auth.last_scheme == 'Digest'
        assert client._auth.last_realm == 'x'

    def test_basic_chosen_among_several_challenges(self, client, transport):
        transport.reads.extend([
            b"HTTP/1.1 401 Unauthorized\r\nContent-Length: 0\r\n"
            b"WWW-Authenticate: Negotiate\r\nWWW-Authenticate: Basic realm=\"r\"\r\n\r\n",
            AUTHED,
        ])
        client.username, client.password = 'user', 'pass'

        response = client.send_recv(client.request_cgi())

        assert response.code == 200
        assert len(transport.writes) == 2
        assert client._auth.last_scheme == 'Basic'

    def test_401_without_challenge_is_returned(self, client, transport):
        transport.reads.append(b"HTTP/1.1 401 Unauthorized\r\nContent-Length: 0\r\n\r\n")
        client.username, client.password = 'user', 'pass'
        assert client.send_recv(client.request_cgi()).code == 401
        assert len(transport.writes) == 1

    def test_explicit_override_sent_first_and_not_negotiated(self, client, transport):
        transport.reads.append(UNAUTHORIZED)
        client.username, client.password = 'user', 'pass'
        client.set_config({'authorization': 'Basic forced'})

        response = client.send_recv(client.request_cgi())

        assert response.code == 401
        assert len(transport.writes) == 1
        assert b"Authorization: Basic forced\r\n" in transport.writes[0]

    def test_connection_closed_unless_persist(self, client, transport):
        transport.reads.extend([AUTHED, AUTHED])
        client.send_recv(client.request_cgi())
        assert not client.is_connected()

        client.send_recv(client.request_cgi(), persist=True)
        assert client.is_connected()
        assert len(transport.connects) == 2

    def test_retry_reconnects_when_401_closes_connection(self, client, transport):
        transport.reads.extend([
            b"HTTP/1.1 401 Unauthorized\r\nContent-Length: 0\r\nConnection: close\r\n"
            b"WWW-Authenticate: Basic realm=\"foo\"\r\n\r\n",
            AUTHED,
        ])
        client.username, client.password = 'user', 'pass'

        response = client.send_recv(client.request_cgi())

        assert response.code == 200
        assert len(transport.connects) == 2
        assert f"Authorization: Basic {b64('user:pass')}\r\n".encode() in transport.writes[1]
        assert client.auth_state is AuthState.AUTHENTICATED

    def test_persist_option_keeps_connection(self, client, transport):
        transport.reads.append(AUTHED)
        client.set_config({'persist': True})
        client.send_recv(client.request_cgi())
        assert client.is_connected()
