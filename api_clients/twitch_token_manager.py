# twitch_token_manager.py
"""
Twitch app access token lifecycle.

The token is cached in a TokenStore, checked against the Twitch validate
endpoint before use, and replaced through the client-credentials grant
when Twitch rejects it.
"""
import logging
import threading
from typing import Any, Dict, Optional

import requests

from streamcheck.config import TwitchCredentials
from streamcheck.database import TokenStore
from streamcheck.exceptions import (
    DecodeError,
    InvalidArgumentError,
    NotFoundError,
    TransportError,
    ValidationError,
)

logger = logging.getLogger(__name__)

TOKEN_URL = 'https://id.twitch.tv/oauth2/token'
VALIDATE_URL = 'https://id.twitch.tv/oauth2/validate'


class TwitchTokenManager:
    """Owns reads and writes of the cached Twitch access token."""

    def __init__(self, credentials: TwitchCredentials, token_store: TokenStore,
                 session: Optional[requests.Session] = None,
                 timeout: Optional[float] = None,
                 refresh_on_missing: bool = False):
        """
        Args:
            credentials: Client ID/secret for the client-credentials grant
            token_store: Where the single access token is persisted
            session: HTTP session; a new one is created if omitted
            timeout: Per-request timeout in seconds, None for no timeout
            refresh_on_missing: Treat an empty cache like a rejected token
                instead of failing with NotFoundError
        """
        self.credentials = credentials
        self.token_store = token_store
        self.session = session or requests.Session()
        self.timeout = timeout
        self.refresh_on_missing = refresh_on_missing
        self._lock = threading.RLock()

    def read_cached_token(self) -> str:
        """Return the cached token, raising NotFoundError if absent or empty."""
        token = self.token_store.read()
        if not token:
            raise NotFoundError('cached twitch access token not found in db')
        return token

    def persist_token(self, token: str) -> None:
        """Overwrite the cached token. Empty tokens are rejected."""
        if not token:
            raise InvalidArgumentError('persist_token: no token provided')
        self.token_store.write(token)

    def validate_token(self, token: str) -> Dict[str, Any]:
        """
        Check a token against the Twitch validate endpoint.

        Returns:
            The validate payload (client_id, scopes, expires_in) when accepted

        Raises:
            ValidationError: on any transport failure or non-200 status
        """
        headers = {
            'Content-Type': 'application/json',
            'Authorization': f'OAuth {token}'
        }
        try:
            response = self.session.get(VALIDATE_URL, headers=headers, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise ValidationError(f'token validation request failed: {e}') from e

        if response.status_code != 200:
            raise ValidationError(
                f'token validation response status code != 200 (got {response.status_code})'
            )

        try:
            payload = response.json()
        except ValueError:
            return {}
        return payload if isinstance(payload, dict) else {}

    def refresh_token(self) -> str:
        """Fetch a new access token with the client-credentials grant and cache it."""
        params = {
            'client_id': self.credentials.client_id,
            'client_secret': self.credentials.client_secret,
            'grant_type': 'client_credentials'
        }

        with self._lock:
            try:
                response = self.session.post(TOKEN_URL, params=params, timeout=self.timeout)
                response.raise_for_status()
            except requests.exceptions.HTTPError as e:
                logger.error(f'❌ Error getting access token: {e}')
                raise TransportError(f'token request failed: {e}',
                                     status_code=response.status_code) from e
            except requests.exceptions.RequestException as e:
                logger.error(f'❌ Error getting access token: {e}')
                raise TransportError(f'token request failed: {e}') from e

            try:
                data = response.json()
            except ValueError as e:
                raise DecodeError(f'token response is not valid JSON: {e}') from e
            access_token = data.get('access_token') if isinstance(data, dict) else None
            if not isinstance(access_token, str) or not access_token:
                raise DecodeError('token response did not contain a string access_token')

            logger.info('✅ New Twitch access token obtained')
            logger.debug(f'New Access Token: {access_token}')
            self.persist_token(access_token)
            return access_token

    def get_valid_access_token(self) -> str:
        """
        Return a cached token that Twitch currently accepts.

        Reads the cache, validates it, refreshes once if Twitch rejects it,
        and returns the value read back from the cache. Concurrent callers
        share one critical section so only one refresh happens at a time.
        """
        with self._lock:
            try:
                token = self.read_cached_token()
            except NotFoundError:
                if not self.refresh_on_missing:
                    raise
                logger.info('🆕 No token found, getting new one...')
                self.refresh_token()
            else:
                try:
                    self.validate_token(token)
                except ValidationError as e:
                    logger.warning(f'⚠️  Cached token rejected ({e}), refreshing...')
                    self.refresh_token()

            return self.read_cached_token()

    def token_status(self) -> Dict[str, Any]:
        """
        Report on the cached token without refreshing it.
        Useful for monitoring and debugging
        """
        status: Dict[str, Any] = {'cached': False, 'valid': False}
        try:
            token = self.read_cached_token()
        except NotFoundError:
            return status

        status['cached'] = True
        try:
            payload = self.validate_token(token)
        except ValidationError as e:
            status['error'] = str(e)
            return status

        status['valid'] = True
        for field in ('client_id', 'expires_in', 'scopes'):
            if field in payload:
                status[field] = payload[field]
        return status
