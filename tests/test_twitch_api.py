"""
Tests for live stream queries (streamcheck/twitch_api.py) and stream decoding
"""
from unittest.mock import Mock

import pytest
import requests

from api_clients.twitch_token_manager import TwitchTokenManager
from streamcheck.config import TwitchCredentials
from streamcheck.exceptions import ConfigurationError, DecodeError, NotFoundError, TransportError
from streamcheck.models import Publisher, StreamRecord, decode_streams_response
from streamcheck.publishers import StaticPublisherRegistry
from streamcheck.twitch_api import STREAMS_URL, TwitchAPIClient, build_user_query


STREAM_ONE = {
    'id': '40952121085',
    'user_id': '101051819',
    'user_name': 'afro',
    'game_id': '32982',
    'type': 'live',
    'title': 'Jacob: Digital Den Laptops & Routers',
    'viewer_count': 1490,
    'started_at': '2021-03-10T03:18:11Z',
}
STREAM_TWO = {
    'id': '40952121086',
    'user_id': '101051820',
    'user_name': 'cohhcarnage',
    'game_id': '509658',
    'type': 'live',
    'title': 'Just Chatting',
    'viewer_count': 7,
    'started_at': '2021-03-10T04:00:00Z',
}


@pytest.fixture
def registry():
    return StaticPublisherRegistry([
        Publisher('afro', 'afro'),
        Publisher('quiet', None),
        Publisher('cohhcarnage', 'cohh'),
    ])


@pytest.fixture
def token_manager_mock():
    manager = Mock(spec=TwitchTokenManager)
    manager.get_valid_access_token.return_value = 'tok1'
    return manager


@pytest.fixture
def client(credentials, token_manager_mock, registry, session):
    return TwitchAPIClient(credentials, token_manager_mock, registry, session=session)


@pytest.mark.unit
class TestBuildUserQuery:

    def test_skips_publishers_without_stream(self, registry):
        assert build_user_query(registry.get_all_publishers()) == 'user_login=afro&user_login=cohhcarnage'

    def test_queries_by_name_not_stream_channel(self):
        query = build_user_query([Publisher('Display Name', 'actual_login')])
        assert query == 'user_login=Display Name'

    def test_keeps_duplicates(self):
        publishers = [Publisher('afro', 'afro'), Publisher('afro', 'afro')]
        assert build_user_query(publishers) == 'user_login=afro&user_login=afro'

    def test_empty_string_stream_excluded(self):
        assert build_user_query([Publisher('a', ''), Publisher('b', None)]) == ''


@pytest.mark.unit
class TestGetLiveStreams:

    def test_placeholder_client_id(self, token_manager_mock, registry, session):
        client = TwitchAPIClient(TwitchCredentials('abcd1234', 'real_secret'),
                                 token_manager_mock, registry, session=session)
        with pytest.raises(ConfigurationError, match='client id'):
            client.get_live_streams()
        token_manager_mock.get_valid_access_token.assert_not_called()
        session.get.assert_not_called()

    def test_placeholder_client_secret(self, token_store, registry, session):
        credentials = TwitchCredentials('real_id', 'abcd1234')
        manager = TwitchTokenManager(credentials, token_store, session=session)
        client = TwitchAPIClient(credentials, manager, registry, session=session)

        with pytest.raises(ConfigurationError, match='client secret'):
            client.get_live_streams()
        session.get.assert_not_called()
        session.post.assert_not_called()

    def test_request_url_and_headers(self, client, session, make_response):
        session.get.return_value = make_response(200, {'data': []})

        client.get_live_streams()

        url = session.get.call_args.args[0]
        headers = session.get.call_args.kwargs['headers']
        assert url == STREAMS_URL + '?user_login=afro&user_login=cohhcarnage'
        assert 'quiet' not in url
        assert headers == {
            'Content-Type': 'application/json',
            'client-id': 'test_client_id',
            'Authorization': 'Bearer tok1',
        }

    def test_empty_data_returns_empty_list(self, client, session, make_response):
        session.get.return_value = make_response(200, {'data': []})
        assert client.get_live_streams() == []

    def test_two_records_in_order(self, client, session, make_response):
        session.get.return_value = make_response(200, {'data': [STREAM_ONE, STREAM_TWO], 'pagination': {}})

        streams = client.get_live_streams()

        assert [s.to_dict() for s in streams] == [STREAM_ONE, STREAM_TWO]
        assert streams[0].viewer_count == 1490

    def test_token_error_propagates(self, client, token_manager_mock, session):
        token_manager_mock.get_valid_access_token.side_effect = NotFoundError('no token')
        with pytest.raises(NotFoundError):
            client.get_live_streams()
        session.get.assert_not_called()

    def test_transport_error(self, client, session):
        session.get.side_effect = requests.exceptions.ConnectionError('offline')
        with pytest.raises(TransportError):
            client.get_live_streams()

    def test_malformed_json(self, client, session, make_response):
        session.get.return_value = make_response(200, body='{"data": [')
        with pytest.raises(DecodeError):
            client.get_live_streams()

    def test_registry_error_propagates(self, credentials, token_manager_mock, session):
        registry = Mock()
        registry.get_all_publishers.side_effect = RuntimeError('registry down')
        client = TwitchAPIClient(credentials, token_manager_mock, registry, session=session)
        with pytest.raises(RuntimeError):
            client.get_live_streams()
        session.get.assert_not_called()

    def test_logs_live_channels(self, client, session, make_response, caplog):
        session.get.return_value = make_response(200, {'data': [STREAM_ONE]})
        with caplog.at_level('DEBUG', logger='streamcheck.twitch_api'):
            client.get_live_streams()
        assert 'Live Now: afro' in caplog.text


@pytest.mark.unit
def test_end_to_end_refresh_then_query(credentials, token_store, registry, make_response):
    """Cached tok1 is rejected, the grant returns tok2, and the query uses tok2"""
    session = Mock(spec=requests.Session)
    session.get.side_effect = [
        make_response(401, {'status': 401}),
        make_response(200, {'data': [STREAM_TWO]}),
    ]
    session.post.return_value = make_response(200, {'access_token': 'tok2'})

    manager = TwitchTokenManager(credentials, token_store, session=session)
    manager.persist_token('tok1')
    client = TwitchAPIClient(credentials, manager, registry, session=session)

    streams = client.get_live_streams()

    assert [s.user_name for s in streams] == ['cohhcarnage']
    assert token_store.read() == 'tok2'
    assert session.post.call_count == 1
    assert session.get.call_args.kwargs['headers']['Authorization'] == 'Bearer tok2'


@pytest.mark.unit
class TestDecodeStreamsResponse:

    def test_missing_data_is_empty(self):
        assert decode_streams_response({}) == []

    def test_missing_fields_take_zero_values(self):
        record = decode_streams_response({'data': [{'user_name': 'afro'}]})[0]
        assert record == StreamRecord('', '', 'afro', '', '', '', 0, '')

    def test_null_fields_take_zero_values(self):
        record = decode_streams_response({'data': [{'id': None, 'viewer_count': None, 'user_name': 'afro'}]})[0]
        assert record == StreamRecord('', '', 'afro', '', '', '', 0, '')

    @pytest.mark.parametrize('payload', [
        [],
        {'data': 'nope'},
        {'data': ['not-an-object']},
        {'data': [{'viewer_count': 'many'}]},
        {'data': [{'viewer_count': 12.9}]},
        {'data': [{'viewer_count': True}]},
        {'data': [{'id': 0}]},
        {'data': [{'title': True}]},
        {'data': [{'started_at': ['2021-03-10']}]},
    ])
    def test_bad_shapes(self, payload):
        with pytest.raises(DecodeError):
            decode_streams_response(payload)


@pytest.mark.unit
class TestStaticPublisherRegistry:

    def test_from_config_string(self):
        registry = StaticPublisherRegistry.from_config_string(' afro , Display:login,offline:,, ')
        assert registry.get_all_publishers() == [
            Publisher('afro', 'afro'),
            Publisher('Display', 'login'),
            Publisher('offline', None),
        ]

    def test_empty_string(self):
        assert StaticPublisherRegistry.from_config_string('').get_all_publishers() == []
