"""Record a nurse-room visit through the booking proxy.

Looks the student up first (grade and name are filled in from the student
record), validates the form and submits it as multipart/form-data.

Run with:
    python scripts/record_visit.py --student-id 12345 --period "คาบ 1" \\
        --symptom "ปวดหัว เป็นไข้" --treatment "ให้ยาพาราเซตามอล"
Other symptom:
    python scripts/record_visit.py --student-id 12345 --period "คาบ 3" \\
        --symptom อื่นๆ --custom-symptom "เจ็บคอ" --treatment "พักผ่อน"
With photo:
    python scripts/record_visit.py ... --image wound.jpg
Choices:
    python scripts/record_visit.py --list-choices

Exit codes:
  0 = visit recorded
  1 = error (message on stderr)
"""

import argparse
import json
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Add project root to path for src imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from src.nurse_visits.client import ProxyClient  # noqa: E402
from src.nurse_visits.config import get_config  # noqa: E402
from src.nurse_visits.logging import setup_logging  # noqa: E402
from src.nurse_visits.pipeline import today_in  # noqa: E402
from src.nurse_visits.preferences import PreferencesStore  # noqa: E402
from src.nurse_visits.views.booking import BookingForm, form_choices  # noqa: E402


def _log(msg: str) -> None:
    """Write diagnostic messages to stderr so stdout stays clean."""
    print(msg, file=sys.stderr)


def _parse_args() -> argparse.Namespace:
    """Parse CLI arguments using argparse."""
    parser = argparse.ArgumentParser(
        description="Record a nurse-room visit through the booking proxy.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--list-choices",
        action="store_true",
        help="Print the allowed periods, prefixes, grades and symptoms as JSON and exit.",
    )
    parser.add_argument(
        "--date",
        type=str,
        default=None,
        help="Visit date as YYYY-MM-DD (default: today in the configured time zone).",
    )
    parser.add_argument(
        "--period",
        type=str,
        help='Class period as a label ("คาบ 1") or its time range ("08:30-09:30").',
    )
    parser.add_argument("--student-id", type=str, help="Numeric student ID.")
    parser.add_argument(
        "--grade",
        type=str,
        default="",
        help="Grade, e.g. 4/2 (filled in by the lookup when omitted).",
    )
    parser.add_argument("--prefix", type=str, default="", help="Name prefix (filled in by the lookup).")
    parser.add_argument("--first-name", type=str, default="", help="First name (filled in by the lookup).")
    parser.add_argument("--last-name", type=str, default="", help="Last name (filled in by the lookup).")
    parser.add_argument("--symptom", type=str, help="Symptom category, or อื่นๆ with --custom-symptom.")
    parser.add_argument("--custom-symptom", type=str, default="", help="Free-text symptoms for อื่นๆ.")
    parser.add_argument("--treatment", type=str, help="Treatment given.")
    parser.add_argument("--notes", type=str, default="", help="Optional notes.")
    parser.add_argument("--image", type=Path, default=None, help="Optional JPEG/PNG photo (max 5MB).")
    return parser.parse_args()


def main(args: argparse.Namespace) -> int:
    if args.list_choices:
        print(json.dumps(form_choices(), ensure_ascii=False, indent=2))
        return 0

    config = get_config()
    setup_logging(json_output=config.log_json, log_level=config.log_level)
    prefs = PreferencesStore(config.preferences_path)
    client = ProxyClient(config.proxy_url, timeout=config.fetch_timeout_seconds)

    today = today_in(config.zone)
    form = BookingForm(
        date=args.date or today.isoformat(),
        period=args.period or "",
        student_id=args.student_id or "",
        grade=args.grade,
        prefix=args.prefix,
        first_name=args.first_name,
        last_name=args.last_name,
        symptom_category=args.symptom or "",
        custom_symptoms=args.custom_symptom,
        treatment=args.treatment or "",
        image_path=args.image,
        email=prefs.user_email or "",
        notes=args.notes,
    )

    _log(f"record_visit: looking up student {form.student_id}")
    profile = form.lookup(client.lookup_student)
    if profile is None:
        _log(f"  {form.error or 'Student lookup failed'}")
        return 1
    _log(f"  Found {form.prefix}{form.first_name} {form.last_name} ({form.grade})")

    result = form.submit(client.submit_visit, today)
    if not result.success:
        _log(f"  ERROR: {result.message}")
        return 1

    _log(f"  Recorded. {result.message}".rstrip())
    return 0


if __name__ == "__main__":
    args = _parse_args()
    try:
        sys.exit(main(args))
    except Exception as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)
