import pytest

from wirehttp.config import CONFIG_TYPES, REQUEST_DEFAULTS, Config, coerce_option


def test_fresh_client_config_is_empty(client):
    assert client.set_config() == {}
    assert len(client.config) == 0


def test_set_config_merges_and_partial_wins(client):
    client.set_config({'method': 'POST', 'uri': '/a'})
    result = client.set_config({'uri': '/b'})
    assert result == {'method': 'POST', 'uri': '/b'}


def test_set_config_does_not_mutate_argument(client):
    partial = {'headers': {'X-A': '1'}, 'username': 'user'}
    client.set_config(partial)
    assert partial == {'headers': {'X-A': '1'}, 'username': 'user'}


def test_set_config_never_shares_identity(client):
    headers = {'X-A': '1'}
    partial = {'headers': headers}
    result = client.set_config(partial)

    assert result is not partial
    assert client.config['headers'] is not headers

    headers['X-B'] = '2'
    result['headers']['X-C'] = '3'
    assert client.config['headers'] == {'X-A': '1'}


def test_set_config_keeps_unrecognized_keys(client):
    result = client.set_config({'future_option': 42})
    assert result['future_option'] == 42


def test_config_is_read_only(client):
    with pytest.raises(TypeError):
        client.config['method'] = 'POST'


def test_layered_precedence():
    config = Config({'method': 'POST'})
    effective = config.layered({'uri': '/x'})
    assert effective['method'] == 'POST'
    assert effective['uri'] == '/x'
    assert effective['version'] == REQUEST_DEFAULTS['version']


def test_layered_copies_form_data_parts():
    part = {'name': 'a', 'data': '1'}
    effective = Config().layered({'form_data': [part]})
    effective['form_data'][0]['name'] = 'changed'
    assert part['name'] == 'a'


def test_config_types_exposed(client):
    types = client.config_types
    assert types['form_data'] == 'list'
    types['form_data'] = 'changed'
    assert CONFIG_TYPES['form_data'] == 'list'


@pytest.mark.parametrize("key, value, expected", [
    ('read_max_data', '1024', 1024),
    ('read_max_data', 'lots', 'lots'),
    ('persist', 'yes', True),
    ('persist', 'off', False),
    ('method', 'POST', 'POST'),
    ('unknown', '7', '7'),
])
def test_coerce_option(key, value, expected):
    assert coerce_option(key, value) == expected
