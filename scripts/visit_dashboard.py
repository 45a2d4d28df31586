"""Show the nurse-room dashboard: summary cards and chart data.

Run with: python scripts/visit_dashboard.py
JSON:     python scripts/visit_dashboard.py --json
Charts:   python scripts/visit_dashboard.py --charts --dark

--dark / --light also update the saved dark-mode preference.

Exit codes:
  0 = success (report or JSON on stdout)
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
from src.nurse_visits.preferences import PreferencesStore  # noqa: E402
from src.nurse_visits.views.dashboard import DashboardView, format_dashboard  # noqa: E402


def _log(msg: str) -> None:
    """Write diagnostic messages to stderr so stdout stays clean for JSON."""
    print(msg, file=sys.stderr)


def _parse_args() -> argparse.Namespace:
    """Parse CLI arguments using argparse."""
    parser = argparse.ArgumentParser(
        description="Show the nurse-room visit dashboard.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    output_group = parser.add_mutually_exclusive_group()
    output_group.add_argument(
        "--json",
        action="store_true",
        help="Output the summary as JSON.",
    )
    output_group.add_argument(
        "--charts",
        action="store_true",
        help="Output Chart.js datasets as JSON.",
    )

    theme_group = parser.add_mutually_exclusive_group()
    theme_group.add_argument("--dark", action="store_true", help="Use and save dark mode.")
    theme_group.add_argument("--light", action="store_true", help="Use and save light mode.")
    return parser.parse_args()


def main(args: argparse.Namespace) -> int:
    config = get_config()
    setup_logging(json_output=config.log_json, log_level=config.log_level)
    prefs = PreferencesStore(config.preferences_path)
    if args.dark or args.light:
        prefs.set_dark_mode(args.dark)

    client = ProxyClient(config.proxy_url, timeout=config.fetch_timeout_seconds)
    with BookingFeed(
        client.get_bookings,
        max_retries=config.fetch_max_retries,
        retry_delay=config.fetch_retry_delay_seconds,
        timezone=config.zone,
    ) as feed:
        view = DashboardView(feed, prefs, timezone=config.zone)
        _log("visit_dashboard: loading bookings")
        view.load()
        if view.error:
            _log(f"  ERROR: {view.error}")
            return 1

        if args.charts:
            print(json.dumps(view.charts(), ensure_ascii=False, indent=2))
        elif args.json:
            print(view.summary().model_dump_json(indent=2))
        else:
            print(format_dashboard(view.summary()))
    return 0


if __name__ == "__main__":
    args = _parse_args()
    try:
        sys.exit(main(args))
    except Exception as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)
