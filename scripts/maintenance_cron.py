"""
Trigger the daily maintenance notification checks over HTTP.

Usage:
    python scripts/maintenance_cron.py --once     # run once and exit (system cron / Task Scheduler)
    python scripts/maintenance_cron.py            # keep running, fire daily at CRON_HOUR:CRON_MINUTE

Equivalent crontab entry:
    0 8 * * * python /path/to/scripts/maintenance_cron.py --once
"""
import sys
import os
import time
import argparse
from datetime import datetime, timedelta
from typing import Optional

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

try:
    from dotenv import load_dotenv
    load_dotenv()
except Exception as e:
    print(f"WARNING: Could not load .env file: {e}")

import httpx
import structlog

from assettag.config import settings
from assettag.logging import setup_logging


logger = structlog.get_logger("maintenance_cron")


def next_run_at(now: datetime, hour: int, minute: int) -> datetime:
    """Next wall-clock occurrence of hour:minute strictly after now."""
    candidate = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if candidate <= now:
        candidate += timedelta(days=1)
    return candidate


def run_checks(base_url: str, cron_secret: Optional[str] = None, client: Optional[httpx.Client] = None) -> dict:
    headers = {"Content-Type": "application/json"}
    if cron_secret:
        headers["X-Cron-Secret"] = cron_secret
    url = f"{base_url.rstrip('/')}/cron/maintenance-notifications"
    own_client = client is None
    client = client or httpx.Client(timeout=60.0)
    try:
        resp = client.post(url, json={}, headers=headers)
        resp.raise_for_status()
        result = resp.json()
    finally:
        if own_client:
            client.close()
    results = result.get("results", {})
    logger.info(
        "maintenance_checks_completed",
        due_today=results.get("dueToday", {}).get("notified", 0),
        upcoming=results.get("upcoming", {}).get("reminded", 0),
        overdue_alerts=results.get("overdue", {}).get("alerted", 0),
    )
    return result


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Trigger maintenance notification checks")
    parser.add_argument("--once", action="store_true", help="Run once and exit")
    parser.add_argument("--url", default=settings.api_base_url, help="API base URL, e.g. http://localhost:8000/api")
    args = parser.parse_args(argv)
    setup_logging()

    if args.once:
        try:
            run_checks(args.url, settings.cron_secret)
        except httpx.HTTPError as e:
            logger.error("maintenance_checks_failed", error=str(e))
            return 1
        return 0

    logger.info("maintenance_cron_started", url=args.url, hour=settings.cron_hour, minute=settings.cron_minute)
    while True:
        try:
            run_checks(args.url, settings.cron_secret)
        except httpx.HTTPError as e:
            logger.error("maintenance_checks_failed", error=str(e))
        wake = next_run_at(datetime.now(), settings.cron_hour, settings.cron_minute)
        logger.info("maintenance_cron_sleeping", next_run=wake.isoformat())
        time.sleep(max((wake - datetime.now()).total_seconds(), 1))


if __name__ == "__main__":
    sys.exit(main())
