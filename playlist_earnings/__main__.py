"""Entry point for playlist earnings commands"""
import argparse
import dataclasses
import logging
import sys
from typing import List, Optional

from playlist_earnings.config import settings
from playlist_earnings.claims import build_service
from playlist_earnings.db import db
from playlist_earnings.exceptions import EarningsError
from playlist_earnings.utils.json_encoder import json_dumps

logger = logging.getLogger(__name__)

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog='playlist_earnings', description="Playlist earnings tools")
    commands = parser.add_subparsers(dest='command', required=True)

    value = commands.add_parser('value', help="Show the current value of a playlist")
    value.add_argument('playlist_id')

    earnings = commands.add_parser('earnings', help="List a user's earnings per playlist")
    earnings.add_argument('user_id')

    claim = commands.add_parser('claim', help="Claim a user's earnings from a playlist")
    claim.add_argument('user_id')
    claim.add_argument('playlist_id')

    return parser.parse_args(argv)

def run(argv: Optional[List[str]] = None) -> None:
    """Run one command and print its result as JSON."""
    args = parse_args(argv)
    logging.basicConfig(level=settings.LOG_LEVEL, format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    try:
        db.init()
        with db.session() as session:
            service = build_service(settings, session, with_minter=args.command == 'claim')

            if args.command == 'value':
                output = dataclasses.asdict(service.playlist_value(args.playlist_id))
            elif args.command == 'earnings':
                output = [entry.model_dump() for entry in service.list_playlist_earnings(args.user_id)]
            else:
                output = service.claim(args.user_id, args.playlist_id).model_dump()

        print(json_dumps(output))

    except EarningsError as e:
        logger.error(f"{type(e).__name__}: {e}")
        sys.exit(1)
    except Exception as e:
        logger.exception(f"Error running {args.command}: {e}")
        sys.exit(1)
    finally:
        db.dispose()

if __name__ == "__main__":
    run()
