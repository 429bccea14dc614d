"""
Key/value storage for streamcheck.
Bucket-namespaced byte store with an embedded JSON-file backend, a Supabase
backend, and an in-memory backend, plus the token store built on top.
"""

import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, Optional

from supabase import create_client, Client

from streamcheck.config import STORE_BACKENDS, Config, get_config
from streamcheck.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_BUCKET = "ConfigBucket"
ACCESS_TOKEN_KEY = "twitchAccessToken"


class KeyValueStore(ABC):
    """Byte values under (bucket, key). Each call is its own transaction."""

    @abstractmethod
    def get(self, bucket: str, key: str) -> Optional[bytes]:
        """Return the stored value, or None if the key is absent."""

    @abstractmethod
    def put(self, bucket: str, key: str, value: bytes) -> None:
        """Store value, overwriting whatever was there."""


class MemoryStore(KeyValueStore):
    """Dict-backed store; contents live for the lifetime of the process."""

    def __init__(self):
        self._buckets: Dict[str, Dict[str, bytes]] = {}
        self._lock = threading.Lock()

    def get(self, bucket: str, key: str) -> Optional[bytes]:
        with self._lock:
            return self._buckets.get(bucket, {}).get(key)

    def put(self, bucket: str, key: str, value: bytes) -> None:
        with self._lock:
            self._buckets.setdefault(bucket, {})[key] = bytes(value)


class JSONFileStore(KeyValueStore):
    """
    Embedded store persisted as a single JSON document.

    Layout on disk is ``{bucket: {key: value}}`` with values kept as UTF-8
    text. Writes go to a temp file in the same directory and are swapped in
    with ``os.replace`` so a crash never leaves a half-written file.
    """

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()

    def _load(self) -> Dict[str, Dict[str, str]]:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not contain a JSON object")
        return data

    def get(self, bucket: str, key: str) -> Optional[bytes]:
        with self._lock:
            value = self._load().get(bucket, {}).get(key)
        if value is None:
            return None
        return value.encode('utf-8')

    def put(self, bucket: str, key: str, value: bytes) -> None:
        with self._lock:
            data = self._load()
            data.setdefault(bucket, {})[key] = bytes(value).decode('utf-8')

            directory = os.path.dirname(os.path.abspath(self.path))
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=directory, prefix='.streamcheck-', suffix='.tmp')
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    json.dump(data, f, indent=2)
                os.replace(tmp_path, self.path)
            except Exception:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise
        logger.debug(f"Stored {bucket}/{key} in {self.path}")


class SupabaseStore(KeyValueStore):
    """Store values in the Supabase ``config`` table, keyed as ``bucket/key``."""

    def __init__(self, client: Client, table: str = 'config'):
        self.client = client
        self.table = table

    @staticmethod
    def _row_key(bucket: str, key: str) -> str:
        return f"{bucket}/{key}"

    def get(self, bucket: str, key: str) -> Optional[bytes]:
        row_key = self._row_key(bucket, key)
        try:
            result = self.client.table(self.table).select('value').eq('key', row_key).execute()
        except Exception as e:
            logger.error(f"Error getting config value {row_key}: {e}")
            raise

        if not result.data:
            return None
        value = result.data[0].get('value')
        if value is None:
            return None
        return str(value).encode('utf-8')

    def put(self, bucket: str, key: str, value: bytes) -> None:
        row_key = self._row_key(bucket, key)
        try:
            self.client.table(self.table).upsert({
                'key': row_key,
                'value': bytes(value).decode('utf-8'),
                'updated_at': datetime.now(timezone.utc).isoformat()
            }).execute()
        except Exception as e:
            logger.error(f"Error setting config value {row_key}: {e}")
            raise
        logger.info(f"Set config value: {row_key}")


class TokenStore:
    """The single persisted access token: one fixed key in one fixed bucket."""

    def __init__(self, store: KeyValueStore, bucket: str = CONFIG_BUCKET,
                 key: str = ACCESS_TOKEN_KEY):
        self.store = store
        self.bucket = bucket
        self.key = key

    def read(self) -> Optional[str]:
        raw = self.store.get(self.bucket, self.key)
        if raw is None:
            return None
        return raw.decode('utf-8')

    def write(self, token: str) -> None:
        self.store.put(self.bucket, self.key, token.encode('utf-8'))


def create_supabase_client(config: Config) -> Client:
    """Create a Supabase client from configuration."""
    config.require_supabase()
    return create_client(config.SUPABASE_URL, config.SUPABASE_KEY)


def get_store(config: Optional[Config] = None) -> KeyValueStore:
    """Build the key/value backend selected by STORE_BACKEND."""
    config = config or get_config()

    if config.STORE_BACKEND == 'file':
        return JSONFileStore(config.TOKEN_FILE)
    if config.STORE_BACKEND == 'supabase':
        return SupabaseStore(create_supabase_client(config))
    if config.STORE_BACKEND == 'memory':
        return MemoryStore()
    raise ConfigurationError(
        f"Unknown STORE_BACKEND {config.STORE_BACKEND!r}, expected one of: {', '.join(STORE_BACKENDS)}"
    )
