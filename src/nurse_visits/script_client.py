"""HTTP client for the Google Apps Script that stores the visit records.

The script is opaque: it answers JSON carrying at least ``success``. Anything
else (most often an HTML login or error page when the deployment URL or its
access settings are wrong) is turned into UpstreamFormatError here, so the
proxy never relays a non-JSON body.
"""

import json

import requests

from src.nurse_visits.errors import UpstreamFormatError, UpstreamUnavailableError
from src.nurse_visits.logging import get_logger
from src.nurse_visits.models import ScriptResponse

log = get_logger(__name__)

HTML_MESSAGE = (
    "Google Apps Script returned HTML instead of JSON. "
    "Check the script URL and deployment access."
)
FORMAT_MESSAGE = "Invalid response format from Google Apps Script"

# Upstream error codes meaning "this action is not routed for this HTTP method"
_METHOD_REJECTION_CODES = frozenset({"INVALID_ACTION", "INVALID_REQUEST"})
_DETAILS_LIMIT = 500


def looks_like_html(text: str) -> bool:
    head = text.lstrip()[:9].lower()
    return head.startswith("<!doctype") or "<html" in text.lower()


def is_method_rejection(body: dict) -> bool:
    """Whether a failed lookup should be retried with the other HTTP method.

    Prefers an explicit error code; without one, falls back to looking for
    "Invalid" in the message, which is what the script currently sends.
    """
    if body.get("success"):
        return False
    code = body.get("code") or body.get("errorCode")
    if code:
        return str(code).upper() in _METHOD_REJECTION_CODES
    return "Invalid" in str(body.get("message") or "")


class ScriptClient:
    """Thin requests wrapper around the script's GET/POST entry points."""

    def __init__(
        self,
        script_url: str,
        *,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize ScriptClient.

        Args:
            script_url: Deployed web app URL (``.../exec``).
            timeout: Seconds to wait for the script; None waits indefinitely.
            session: Optional requests session (tests pass a fake).
        """
        self.script_url = script_url
        self.timeout = timeout
        self.session = session or requests.Session()

    def get_bookings(self) -> ScriptResponse:
        """List every visit record (``GET ?action=getBookings``)."""
        return self._request("GET", params={"action": "getBookings"})

    def lookup_student(self, student_id: str) -> ScriptResponse:
        """Look a student up by ID, falling back from GET to POST once.

        The script does not route lookupStudent consistently for GET; when
        the GET answer is a method rejection the same payload is POSTed as
        JSON and that second answer is returned.
        """
        payload = {"action": "lookupStudent", "studentId": student_id}
        first = self._request("GET", params=payload)
        if first.success or not is_method_rejection(first.body):
            return first

        log.info(
            "lookup_retry_as_post",
            student_id=student_id,
            upstream_message=first.message,
        )
        return self._request("POST", json_body=payload)

    def submit_visit(self, payload: dict) -> ScriptResponse:
        """Create a visit record."""
        return self._request("POST", json_body=payload)

    def login(self, email: str, password: str) -> ScriptResponse:
        """Check an e-mail/password pair against the script's user sheet."""
        return self._request(
            "POST", json_body={"action": "login", "email": email, "password": password}
        )

    def forward(self, payload: dict) -> ScriptResponse:
        """POST an arbitrary JSON body unchanged."""
        return self._request("POST", json_body=payload)

    def _request(
        self,
        method: str,
        *,
        params: dict | None = None,
        json_body: dict | None = None,
    ) -> ScriptResponse:
        action = (params or json_body or {}).get("action")
        try:
            if method == "GET":
                resp = self.session.get(
                    self.script_url,
                    params=params,
                    headers={"Accept": "application/json"},
                    timeout=self.timeout,
                )
            else:
                resp = self.session.post(
                    self.script_url,
                    json=json_body,
                    headers={"Accept": "application/json"},
                    timeout=self.timeout,
                )
        except requests.RequestException as e:
            log.error("script_unreachable", method=method, action=action, error=str(e))
            raise UpstreamUnavailableError(f"Cannot reach Google Apps Script: {e}") from e

        body = decode_body(resp.text)
        log.debug(
            "script_responded",
            method=method,
            action=action,
            status=resp.status_code,
            success=body.get("success"),
        )
        return ScriptResponse(status_code=resp.status_code, body=body)


def decode_body(text: str) -> dict:
    """Parse a script response body.

    Raises:
        UpstreamFormatError: If the body is HTML (html=True) or not a JSON object.
    """
    details = text[:_DETAILS_LIMIT]
    if looks_like_html(text):
        log.error("script_returned_html", preview=text[:120])
        raise UpstreamFormatError(HTML_MESSAGE, html=True, details=details)
    try:
        body = json.loads(text)
    except ValueError as e:
        log.error("script_returned_invalid_json", error=str(e), preview=text[:120])
        raise UpstreamFormatError(FORMAT_MESSAGE, details=details) from e
    if not isinstance(body, dict):
        raise UpstreamFormatError(FORMAT_MESSAGE, details=details)
    return body
