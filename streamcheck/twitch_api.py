"""
Twitch API client for streamcheck.
Queries the Helix streams endpoint for the configured publishers.
"""

import logging
from typing import Iterable, List, Optional

import requests

from api_clients.twitch_token_manager import TwitchTokenManager
from streamcheck.config import Config, TwitchCredentials, get_config
from streamcheck.database import TokenStore, get_store
from streamcheck.exceptions import DecodeError, TransportError
from streamcheck.models import Publisher, StreamRecord, decode_streams_response
from streamcheck.publishers import PublisherRegistry, get_publisher_registry

logger = logging.getLogger(__name__)

STREAMS_URL = 'https://api.twitch.tv/helix/streams/'


def build_user_query(publishers: Iterable[Publisher]) -> str:
    """
    Join ``user_login=<name>`` terms for every publisher with a stream channel.

    Publishers are filtered on ``twitch_stream`` but queried by ``name``.
    Names are used verbatim: no encoding, no de-duplication.
    """
    return '&'.join(
        f'user_login={publisher.name}'
        for publisher in publishers
        if publisher.has_stream
    )


class TwitchAPIClient:
    """Live-stream lookups for the publishers in a registry."""

    def __init__(self, credentials: TwitchCredentials,
                 token_manager: TwitchTokenManager,
                 registry: PublisherRegistry,
                 session: Optional[requests.Session] = None,
                 timeout: Optional[float] = None):
        self.credentials = credentials
        self.token_manager = token_manager
        self.registry = registry
        self.session = session or requests.Session()
        self.timeout = timeout

    def build_streams_url(self, publishers: Iterable[Publisher]) -> str:
        return STREAMS_URL + '?' + build_user_query(publishers)

    def _get_headers(self, access_token: str) -> dict:
        return {
            'Content-Type': 'application/json',
            'client-id': self.credentials.client_id,
            'Authorization': f'Bearer {access_token}'
        }

    def get_live_streams(self) -> List[StreamRecord]:
        """
        Get the streams currently live among the registered publishers.

        Returns:
            Stream records in the order Twitch returned them, possibly empty
        """
        self.credentials.validate()

        access_token = self.token_manager.get_valid_access_token()
        publishers = self.registry.get_all_publishers()
        url = self.build_streams_url(publishers)

        try:
            response = self.session.get(url, headers=self._get_headers(access_token),
                                        timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise TransportError(f'streams request failed: {e}') from e

        try:
            payload = response.json()
        except ValueError as e:
            raise DecodeError(f'streams response is not valid JSON: {e}') from e

        streams = decode_streams_response(payload)

        if not streams:
            logger.debug('no twitch streams currently live')
        for stream in streams:
            logger.debug(f'Live Now: {stream.user_name}')

        return streams


def create_twitch_client(config: Config,
                         session: Optional[requests.Session] = None) -> TwitchAPIClient:
    """Wire a client from configuration: store, token manager and registry."""
    session = session or requests.Session()
    credentials = config.credentials
    token_manager = TwitchTokenManager(
        credentials,
        TokenStore(get_store(config)),
        session=session,
        timeout=config.HTTP_TIMEOUT_SECONDS,
        refresh_on_missing=config.REFRESH_ON_MISSING,
    )
    return TwitchAPIClient(
        credentials,
        token_manager,
        get_publisher_registry(config),
        session=session,
        timeout=config.HTTP_TIMEOUT_SECONDS,
    )


# Global Twitch client instance
_twitch_client: Optional[TwitchAPIClient] = None


def get_twitch_client() -> TwitchAPIClient:
    """Get the global Twitch API client instance."""
    global _twitch_client
    if _twitch_client is None:
        _twitch_client = create_twitch_client(get_config())
    return _twitch_client


def close_twitch_client():
    """Close the global Twitch API client."""
    global _twitch_client
    if _twitch_client:
        _twitch_client.session.close()
        _twitch_client = None
