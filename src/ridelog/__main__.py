"""
Command-line entrypoint for local inspection of the ride database.

The HTTP API runs separately under uvicorn.

Usage:
    python -m ridelog seed                      # insert the demo ride (777)
    python -m ridelog list                      # ride ids, most recent first
    python -m ridelog summary 777 [--recompute] # cached or fresh summary
    python -m ridelog delete 777
    uvicorn ridelog.api.main:app --host 0.0.0.0 --port 8000  # starts API
"""
import argparse
import json
import logging
import sys
from typing import List, Optional

from ridelog.config import get_settings

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ridelog", description="Bike ride telemetry store")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("seed", help="Insert the demo ride if missing")
    sub.add_parser("list", help="List ride ids, most recent first")

    summary = sub.add_parser("summary", help="Print a ride summary as JSON")
    summary.add_argument("ride_id", type=int)
    summary.add_argument(
        "--recompute",
        action="store_true",
        help="Ignore the cached summary and recompute from samples",
    )

    delete = sub.add_parser("delete", help="Delete a ride and its samples")
    delete.add_argument("ride_id", type=int)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    from ridelog.db.engine import get_engine
    from ridelog.errors import RideLogError
    from ridelog.rides.service import RideService

    service = RideService(get_engine())

    try:
        if args.command == "seed":
            from ridelog.rides.seed import insert_sample_ride
            insert_sample_ride(service)
        elif args.command == "list":
            for ride_id in service.list_ride_ids():
                print(ride_id)
        elif args.command == "summary":
            summary = service.get_ride_summary(args.ride_id, recompute=args.recompute)
            print(json.dumps(summary.as_dict(), default=str, indent=2))
        elif args.command == "delete":
            if not service.delete_ride(args.ride_id):
                logger.warning("Ride %d not found", args.ride_id)
                return 1
    except RideLogError as exc:
        logger.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
