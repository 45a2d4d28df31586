"""requests client the views use to talk to the proxy.

Maps transport failures onto the error hierarchy: a client-side timeout
becomes FetchTimeoutError, a refused or dropped connection NetworkError.
"""

from pathlib import Path

import requests

from src.nurse_visits.errors import (
    FetchTimeoutError,
    NetworkError,
    UpstreamError,
    UpstreamRejectedError,
)
from src.nurse_visits.logging import get_logger

log = get_logger(__name__)

_IMAGE_TYPES = {".jpg": "image/jpeg", ".jpeg": "image/jpeg", ".png": "image/png"}


def guess_image_type(path: Path) -> str:
    return _IMAGE_TYPES.get(path.suffix.lower(), "application/octet-stream")


class ProxyClient:
    """Calls /api/proxy with a client-side timeout on every request."""

    def __init__(
        self,
        proxy_url: str,
        *,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self.proxy_url = proxy_url
        self.timeout = timeout
        self.session = session or requests.Session()

    def get_bookings(self) -> list[dict]:
        """Fetch the raw booking list.

        Raises:
            FetchTimeoutError: If the proxy did not answer within the timeout.
            NetworkError: If the proxy could not be reached.
            UpstreamError: On a non-2xx status.
            UpstreamRejectedError: If the body reports success:false.
        """
        resp = self._send("GET", params={"action": "getBookings"})
        if not resp.ok:
            raise UpstreamError(f"HTTP error! status: {resp.status_code}")
        data = self._json(resp)
        if not data.get("success") or not isinstance(data.get("bookings"), list):
            raise UpstreamRejectedError(str(data.get("message") or "ไม่สามารถดึงข้อมูลได้"))
        return data["bookings"]

    def lookup_student(self, student_id: str) -> dict:
        resp = self._send("POST", json={"action": "lookupStudent", "studentId": student_id})
        return self._json(resp)

    def login(self, email: str, password: str) -> dict:
        resp = self._send("POST", json={"action": "login", "email": email, "password": password})
        return self._json(resp)

    def submit_visit(self, fields: dict[str, str], image_path: Path | None = None) -> dict:
        """POST a booking as multipart/form-data, attaching the image if given."""
        if image_path is None:
            # requests only sends multipart when files are present
            files = {name: (None, value) for name, value in fields.items()}
            resp = self._send("POST", files=files)
            return self._json(resp)

        with open(image_path, "rb") as fh:
            files = {name: (None, value) for name, value in fields.items()}
            files["image"] = (image_path.name, fh, guess_image_type(image_path))
            resp = self._send("POST", files=files)
        return self._json(resp)

    def _send(self, method: str, **kwargs) -> requests.Response:
        try:
            return self.session.request(method, self.proxy_url, timeout=self.timeout, **kwargs)
        except requests.Timeout as e:
            log.warning("proxy_timeout", method=method, timeout=self.timeout)
            raise FetchTimeoutError(f"Request timed out after {self.timeout}s") from e
        except requests.ConnectionError as e:
            log.warning("proxy_unreachable", method=method, error=str(e))
            raise NetworkError(f"Failed to fetch: {e}") from e

    @staticmethod
    def _json(resp: requests.Response) -> dict:
        try:
            data = resp.json()
        except ValueError as e:
            raise UpstreamError(
                f"HTTP error! status: {resp.status_code}", details=resp.text[:200]
            ) from e
        if not isinstance(data, dict):
            raise UpstreamError(f"HTTP error! status: {resp.status_code}")
        return data
