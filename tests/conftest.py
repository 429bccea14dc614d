"""
Pytest configuration for streamcheck tests
Provides common fixtures; nothing here touches the network
"""
import json
from unittest.mock import Mock

import pytest
import requests

from api_clients.twitch_token_manager import TwitchTokenManager
from streamcheck.config import TwitchCredentials
from streamcheck.database import MemoryStore, TokenStore


@pytest.fixture
def credentials():
    """Non-placeholder credentials"""
    return TwitchCredentials(client_id='test_client_id', client_secret='test_client_secret')


@pytest.fixture
def token_store():
    return TokenStore(MemoryStore())


@pytest.fixture
def make_response():
    """Build real requests.Response objects without a server"""
    def _make(status_code=200, payload=None, body=None):
        response = requests.Response()
        response.status_code = status_code
        if body is None:
            body = json.dumps(payload if payload is not None else {})
        response._content = body.encode('utf-8')
        response.url = 'https://twitch.test/'
        response.reason = 'TEST'
        return response
    return _make


@pytest.fixture
def session():
    return Mock(spec=requests.Session)


@pytest.fixture
def token_manager(credentials, token_store, session):
    return TwitchTokenManager(credentials, token_store, session=session)
