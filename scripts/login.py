"""Sign in through the booking proxy and remember the e-mail address.

The remembered address is attached to bookings made with record_visit.py.

Run with: python scripts/login.py --email nurse@school.ac.th
Logout:   python scripts/login.py --logout

Exit codes:
  0 = signed in (or signed out)
  1 = error (message on stderr)
"""

import argparse
import getpass
import os
import sys

from dotenv import load_dotenv

load_dotenv()

# Add project root to path for src imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from src.nurse_visits.catalog import MESSAGES  # noqa: E402
from src.nurse_visits.client import ProxyClient  # noqa: E402
from src.nurse_visits.config import get_config  # noqa: E402
from src.nurse_visits.logging import setup_logging  # noqa: E402
from src.nurse_visits.preferences import PreferencesStore  # noqa: E402


def _log(msg: str) -> None:
    """Write diagnostic messages to stderr."""
    print(msg, file=sys.stderr)


def _parse_args() -> argparse.Namespace:
    """Parse CLI arguments using argparse."""
    parser = argparse.ArgumentParser(
        description="Sign in to the nurse-visit booking system.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--email", type=str, help="Account e-mail; the password is prompted for.")
    group.add_argument("--logout", action="store_true", help="Forget the remembered e-mail.")
    return parser.parse_args()


def main(args: argparse.Namespace) -> int:
    config = get_config()
    setup_logging(json_output=config.log_json, log_level=config.log_level)
    prefs = PreferencesStore(config.preferences_path)

    if args.logout:
        prefs.forget_email()
        _log("login: signed out")
        return 0

    password = getpass.getpass("Password: ")
    client = ProxyClient(config.proxy_url, timeout=config.fetch_timeout_seconds)
    body = client.login(args.email, password)
    if not body.get("success"):
        _log(f"  ERROR: {body.get('message') or MESSAGES['login_failed']}")
        return 1

    prefs.remember_email(args.email)
    _log(f"login: signed in as {args.email}")
    return 0


if __name__ == "__main__":
    args = _parse_args()
    try:
        sys.exit(main(args))
    except Exception as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)
