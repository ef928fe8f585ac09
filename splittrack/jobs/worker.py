"""Command-line worker that performs deferred jobs.

    splittrack-worker            # drain due jobs once
    splittrack-worker --loop     # keep draining every --interval seconds
"""

import argparse
import logging
import time

from splittrack.core.config import settings
from splittrack.core import database
from splittrack.jobs.queue import DrainResult, default_handlers, drain
from splittrack.remote.analytics import AnalyticsClient
from splittrack.remote.client import get_client

logger = logging.getLogger(__name__)


def run_once(limit: int = 100) -> DrainResult:
    handlers = default_handlers(client=get_client(), analytics=AnalyticsClient())
    with database.SessionLocal() as db, db.begin():
        return drain(db, handlers=handlers, limit=limit)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="splittrack-worker", description=__doc__.splitlines()[0])
    parser.add_argument("--loop", action="store_true", help="keep draining until interrupted")
    parser.add_argument("--interval", type=float, default=5.0, help="seconds between drains with --loop")
    parser.add_argument("--limit", type=int, default=100, help="maximum jobs per drain")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )
    database.init_db()

    if not args.loop:
        result = run_once(args.limit)
        return 1 if result.failed else 0

    try:
        while True:
            run_once(args.limit)
            time.sleep(args.interval)
    except KeyboardInterrupt:
        logger.info("worker stopped")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
