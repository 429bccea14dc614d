"""
Publisher registry: where the list of channels to check comes from.
"""

import logging
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from supabase import Client

from streamcheck.config import PUBLISHER_SOURCES, Config, get_config
from streamcheck.database import create_supabase_client
from streamcheck.exceptions import ConfigurationError
from streamcheck.models import Publisher

logger = logging.getLogger(__name__)


class PublisherRegistry(ABC):

    @abstractmethod
    def get_all_publishers(self) -> List[Publisher]:
        """Return every registered publisher."""


class StaticPublisherRegistry(PublisherRegistry):
    """Fixed list of publishers, usually parsed from TWITCH_CHANNELS."""

    def __init__(self, publishers: Iterable[Publisher] = ()):
        self.publishers = list(publishers)

    @classmethod
    def from_config_string(cls, value: str) -> "StaticPublisherRegistry":
        """
        Parse a comma-separated ``name[:stream]`` list.

        A bare ``name`` uses the name as its stream channel; ``name:`` leaves
        the stream channel empty so the publisher is skipped by stream queries.
        """
        publishers = []
        for entry in value.split(','):
            entry = entry.strip()
            if not entry:
                continue
            if ':' in entry:
                name, stream = entry.split(':', 1)
                publishers.append(Publisher(name.strip(), stream.strip() or None))
            else:
                publishers.append(Publisher(entry, entry))
        return cls(publishers)

    def get_all_publishers(self) -> List[Publisher]:
        return list(self.publishers)


class SupabasePublisherRegistry(PublisherRegistry):
    """Publishers stored in a Supabase table with ``name`` and ``twitch_stream`` columns."""

    def __init__(self, client: Client, table: str = 'publishers'):
        self.client = client
        self.table = table

    def get_all_publishers(self) -> List[Publisher]:
        try:
            result = self.client.table(self.table).select('name, twitch_stream').execute()
        except Exception as e:
            logger.error(f"Error getting publishers: {e}")
            raise

        return [
            Publisher(row.get('name') or '', row.get('twitch_stream') or None)
            for row in (result.data or [])
        ]


def get_publisher_registry(config: Optional[Config] = None) -> PublisherRegistry:
    """Build the registry selected by PUBLISHER_SOURCE."""
    config = config or get_config()

    if config.PUBLISHER_SOURCE == 'supabase':
        return SupabasePublisherRegistry(create_supabase_client(config))
    if config.PUBLISHER_SOURCE == 'config':
        return StaticPublisherRegistry.from_config_string(config.TWITCH_CHANNELS)
    raise ConfigurationError(
        f"Unknown PUBLISHER_SOURCE {config.PUBLISHER_SOURCE!r}, expected one of: {', '.join(PUBLISHER_SOURCES)}"
    )
