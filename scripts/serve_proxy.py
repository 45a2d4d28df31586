"""Run the booking proxy (/api/proxy) in front of the Google Apps Script.

Run with: python scripts/serve_proxy.py
Port:     python scripts/serve_proxy.py --port 8080
Debug:    python scripts/serve_proxy.py --debug

Reads NEXT_PUBLIC_SCRIPT_URL and the Google service-account settings from .env.

Exit codes:
  0 = server stopped normally
  1 = error (message on stderr)
"""

import argparse
import os
import sys

from dotenv import load_dotenv

load_dotenv()

# Add project root to path for src imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from src.nurse_visits.config import get_config  # noqa: E402
from src.nurse_visits.logging import setup_logging  # noqa: E402
from src.nurse_visits.proxy import create_app  # noqa: E402


def _log(msg: str) -> None:
    """Write diagnostic messages to stderr."""
    print(msg, file=sys.stderr)


def _parse_args() -> argparse.Namespace:
    """Parse CLI arguments using argparse."""
    config = get_config()
    parser = argparse.ArgumentParser(
        description="Run the nurse-visit booking proxy.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--host",
        type=str,
        default=config.proxy_host,
        help=f"Interface to bind (default: {config.proxy_host}).",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=config.proxy_port,
        help=f"Port to listen on (default: {config.proxy_port}).",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable the Flask debugger and auto-reload.",
    )
    return parser.parse_args()


def main(args: argparse.Namespace) -> None:
    config = get_config()
    setup_logging(json_output=config.log_json, log_level="DEBUG" if args.debug else config.log_level)

    if not config.script_url:
        _log("  WARNING: NEXT_PUBLIC_SCRIPT_URL is not set; every request will fail with 500")
    if not config.drive_configured:
        _log("  WARNING: Google Drive credentials are not set; image uploads will fail")

    _log(f"serve_proxy: listening on http://{args.host}:{args.port}/api/proxy")
    app = create_app(config)
    app.run(host=args.host, port=args.port, debug=args.debug)


if __name__ == "__main__":
    args = _parse_args()
    try:
        main(args)
    except Exception as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)
