"""
Unpaid Appointment Cleanup Runner
Run this as a separate process: python run_unpaid_cleanup.py [--once]
"""

import argparse
import logging
import sys
import time

from mribook.config import UNPAID_CLEANUP_INTERVAL_SECONDS
from mribook.database import SessionLocal
from mribook.services.unpaid_cleanup import cancel_stale_unpaid_appointments

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)


def run_once() -> dict:
    db = SessionLocal()
    try:
        return cancel_stale_unpaid_appointments(db)
    finally:
        db.close()


def run_forever(interval: int) -> None:
    while True:
        try:
            summary = run_once()
            logger.info(f"🧹 Cleanup pass finished: {summary}")
        except Exception as e:
            logger.error(f"❌ Cleanup pass failed: {e}")
        time.sleep(interval)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Cancel unpaid appointments past their payment window")
    parser.add_argument("--once", action="store_true", help="run a single pass and exit")
    parser.add_argument("--interval", type=int, default=UNPAID_CLEANUP_INTERVAL_SECONDS)
    args = parser.parse_args()

    if args.once:
        logger.info(f"🧹 Cleanup summary: {run_once()}")
        sys.exit(0)

    logger.info(f"🚀 Starting unpaid appointment cleanup (every {args.interval}s)...")
    try:
        run_forever(args.interval)
    except KeyboardInterrupt:
        logger.info("👋 Cleanup worker stopped by user")
