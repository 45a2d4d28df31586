"""Show the visit history from the booking proxy as a table or JSON.

Run with: python scripts/visit_history.py
Search:   python scripts/visit_history.py --search ปวดหัว
Periods:  python scripts/visit_history.py --period "คาบ 1" --period "คาบ 2"
Range:    python scripts/visit_history.py --range 1week
Oldest:   python scripts/visit_history.py --ascending
JSON:     python scripts/visit_history.py --json

Valid ranges: all, today, yesterday, 2-3days, 1week, 1month, 1year

Exit codes:
  0 = success (table or JSON on stdout)
  1 = error (message on stderr)
"""

import argparse
import json
import os
import sys

from dotenv import load_dotenv

load_dotenv()

# Add project root to path for src imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from src.nurse_visits.client import ProxyClient  # noqa: E402
from src.nurse_visits.config import get_config  # noqa: E402
from src.nurse_visits.fetch import BookingFeed  # noqa: E402
from src.nurse_visits.logging import setup_logging  # noqa: E402
from src.nurse_visits.pipeline import DateRange, VisitFilter  # noqa: E402
from src.nurse_visits.views.history import HistoryView, format_history_table  # noqa: E402


def _log(msg: str) -> None:
    """Write diagnostic messages to stderr so stdout stays clean for JSON."""
    print(msg, file=sys.stderr)


def _parse_args() -> argparse.Namespace:
    """Parse CLI arguments using argparse."""
    parser = argparse.ArgumentParser(
        description="Show nurse-room visit history.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--search",
        type=str,
        default="",
        help="Case-insensitive text to match in name, period, symptoms or treatment.",
    )
    parser.add_argument(
        "--period",
        action="append",
        default=[],
        help="Keep only this period (label or value); repeat for several.",
    )
    parser.add_argument(
        "--range",
        type=DateRange,
        choices=list(DateRange),
        default=DateRange.ALL,
        help="Relative date range (default: all).",
    )
    parser.add_argument(
        "--ascending",
        action="store_true",
        help="Oldest visits first (default: newest first).",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output JSON instead of a table.",
    )
    return parser.parse_args()


def main(args: argparse.Namespace) -> int:
    config = get_config()
    setup_logging(json_output=config.log_json, log_level=config.log_level)
    client = ProxyClient(config.proxy_url, timeout=config.fetch_timeout_seconds)

    with BookingFeed(
        client.get_bookings,
        max_retries=config.fetch_max_retries,
        retry_delay=config.fetch_retry_delay_seconds,
        timezone=config.zone,
    ) as feed:
        view = HistoryView(feed, timezone=config.zone)
        _log("visit_history: loading bookings")
        view.load()
        if view.error:
            _log(f"  ERROR: {view.error}")
            return 1

        visit_filter = VisitFilter(
            search=args.search,
            time_slots=frozenset(args.period),
            date_range=args.range,
        )
        rows = view.rows(visit_filter, descending=not args.ascending)

    _log(f"  {len(rows)} visit(s)")
    if args.json:
        payload = [r.model_dump(by_alias=True) for r in rows]
        print(json.dumps(payload, ensure_ascii=False, indent=2))
    else:
        print(format_history_table(rows))
    return 0


if __name__ == "__main__":
    args = _parse_args()
    try:
        sys.exit(main(args))
    except Exception as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)
