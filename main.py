# main.py
"""
Command line entry point for streamcheck.
Reports which configured Twitch channels are live and manages the cached token.
"""

import argparse
import json
import logging
import sys

from streamcheck.config import get_config
from streamcheck.exceptions import TwitchError
from streamcheck.twitch_api import close_twitch_client, get_twitch_client

logger = logging.getLogger(__name__)


def configure_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)]
    )


def show_streams(client, as_json: bool = False):
    streams = client.get_live_streams()

    if as_json:
        print(json.dumps([stream.to_dict() for stream in streams], indent=2))
        return

    if not streams:
        print('No configured channels are live right now.')
        return

    print('\n' + '='*60)
    print('Live Now')
    print('='*60)
    for stream in streams:
        print(f'{stream.user_name}: {stream.title} ({stream.viewer_count} viewers, since {stream.started_at})')
    print('='*60 + '\n')


def show_status(client, as_json: bool = False):
    status = client.token_manager.token_status()

    if as_json:
        print(json.dumps(status, indent=2))
        return

    print('\n' + '='*60)
    print('Twitch Token Status')
    print('='*60)
    print(f'Cached: {"yes" if status["cached"] else "no"}')
    print(f'Status: {"✅ Valid" if status["valid"] else "❌ Invalid"}')
    if 'expires_in' in status:
        print(f'Expires In: {status["expires_in"]} seconds')
    if 'error' in status:
        print(f'Error: {status["error"]}')
    print('='*60 + '\n')


def main(argv=None) -> int:
    """Main entry point"""
    parser = argparse.ArgumentParser(description='Twitch live stream checker')
    group = parser.add_mutually_exclusive_group()
    group.add_argument('--streams', action='store_true', help='List live streams (default)')
    group.add_argument('--status', action='store_true', help='Check cached token status')
    group.add_argument('--refresh', action='store_true', help='Force token refresh')
    group.add_argument('--validate', action='store_true', help='Get a valid token, refreshing if rejected')
    parser.add_argument('--json', action='store_true', help='Print machine-readable output')

    args = parser.parse_args(argv)

    config = None
    try:
        config = get_config()
        configure_logging(config.LOG_LEVEL)
        client = get_twitch_client()

        if args.status:
            show_status(client, args.json)
        elif args.refresh:
            client.credentials.validate()
            token = client.token_manager.refresh_token()
            print(f'\n✅ New token obtained: {token[:8]}...\n')
        elif args.validate:
            client.credentials.validate()
            token = client.token_manager.get_valid_access_token()
            print(f'\n✅ Token ready: {token[:8]}...\n')
        else:
            show_streams(client, args.json)

    except TwitchError as e:
        logger.error(f'❌ {type(e).__name__}: {e}')
        return 1

    except Exception as e:
        logger.error(f'❌ Fatal error: {e}')
        if config is not None and config.debug_mode:
            logger.exception('Traceback')
        return 1

    finally:
        close_twitch_client()

    return 0


if __name__ == '__main__':
    sys.exit(main())
