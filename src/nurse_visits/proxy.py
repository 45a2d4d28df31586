"""Flask proxy between the views and the Google Apps Script.

One route, /api/proxy, keeps the script URL and the Drive credentials on the
server. The proxy holds no state between requests: every request turns into
one call to the script (two for the lookup fallback) plus, for submissions
with a photo, the two Drive calls.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from flask import Blueprint, Flask, current_app, jsonify, request
from werkzeug.exceptions import HTTPException

from src.nurse_visits.catalog import (
    NO_IMAGE,
    NOT_AVAILABLE,
    OPTIONAL_FIELDS,
    REQUIRED_FIELDS,
)
from src.nurse_visits.config import ProxyConfig, get_config
from src.nurse_visits.drive import DriveUploader, validate_image
from src.nurse_visits.errors import (
    ConfigurationError,
    NurseVisitError,
    RequestValidationError,
    UpstreamError,
)
from src.nurse_visits.logging import get_logger
from src.nurse_visits.models import ImageUpload, ScriptResponse, VisitSubmission
from src.nurse_visits.script_client import ScriptClient

log = get_logger(__name__)

bp = Blueprint("proxy", __name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

EXTENSION_KEY = "nurse_visits"


@dataclass
class ProxyServices:
    """Collaborators of the proxy route, built once per app."""

    config: ProxyConfig
    script_client: ScriptClient | None
    uploader_factory: Callable[[], object]
    _uploader: object | None = field(default=None, repr=False)

    @property
    def script(self) -> ScriptClient:
        if self.script_client is None:
            raise ConfigurationError("Missing required environment variables")
        return self.script_client

    @property
    def uploader(self):
        # Drive credentials are only needed once a photo actually arrives
        if self._uploader is None:
            self._uploader = self.uploader_factory()
        return self._uploader


def _services() -> ProxyServices:
    return current_app.extensions[EXTENSION_KEY]


def _relay(result: ScriptResponse):
    return jsonify(result.body), result.status_code


@bp.after_request
def _add_cors_headers(response):
    response.headers.setdefault("Access-Control-Allow-Origin", "*")
    return response


@bp.route("/api/proxy", methods=["OPTIONS"])
def preflight():
    return "", 200, CORS_HEADERS


@bp.route("/api/proxy", methods=["GET"])
def proxy_get():
    action = request.args.get("action")
    if action != "getBookings":
        raise RequestValidationError("Invalid action")

    result = _services().script.get_bookings()
    if not 200 <= result.status_code < 300:
        raise UpstreamError(
            f"Google Apps Script responded with status {result.status_code}",
            details=result.message or None,
        )
    bookings = result.body.get("bookings")
    log.info(
        "bookings_forwarded",
        success=result.success,
        count=len(bookings) if isinstance(bookings, list) else 0,
    )
    return _relay(result)


@bp.route("/api/proxy", methods=["POST"])
def proxy_post():
    services = _services()
    content_type = request.content_type or ""

    if "application/json" in content_type:
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            raise RequestValidationError("Invalid JSON body")
        return _handle_json(services, payload)

    if "multipart/form-data" in content_type:
        return _handle_submission(services)

    raise RequestValidationError("Invalid content type")


def _handle_json(services: ProxyServices, payload: dict):
    action = payload.get("action")

    if action == "lookupStudent":
        student_id = str(payload.get("studentId") or "").strip()
        if not student_id:
            raise RequestValidationError("Missing studentId")
        result = services.script.lookup_student(student_id)
        log.info("student_lookup_forwarded", student_id=student_id, success=result.success)
        return _relay(result)

    if action == "login":
        email = str(payload.get("email") or "").strip()
        password = str(payload.get("password") or "")
        if not email or not password:
            raise RequestValidationError("Missing email or password")
        result = services.script.login(email, password)
        log.info("login_forwarded", email=email, success=result.success)
        return _relay(result)

    # Bookings that already carry an imageLink go through untouched
    result = services.script.forward(payload)
    log.info("json_forwarded", action=action, status=result.status_code)
    return _relay(result)


def _read_image() -> ImageUpload | None:
    file = request.files.get("image")
    if file is None or not file.filename:
        return None
    return ImageUpload(
        filename=file.filename,
        content_type=file.mimetype or "",
        data=file.read(),
    )


def _handle_submission(services: ProxyServices):
    form = request.form
    image = _read_image()
    if image is not None:
        validate_image(image, services.config.max_image_bytes)

    # Order: image checks, required fields, upload. Fields go before the
    # upload so a rejected form leaves no orphan file in Drive.
    for name in REQUIRED_FIELDS:
        if not form.get(name, "").strip():
            raise RequestValidationError(f"Missing required field: {name}")
    script = services.script

    image_link = NO_IMAGE
    if image is not None:
        image_link = services.uploader.upload(image)

    fields = {name: form[name].strip() for name in REQUIRED_FIELDS}
    for name in OPTIONAL_FIELDS:
        fields[name] = form.get(name, "").strip() or NOT_AVAILABLE
    submission = VisitSubmission.model_validate({**fields, "imageLink": image_link})

    result = script.submit_visit(submission.to_payload())
    log.info(
        "visit_forwarded",
        student_id=submission.student_id,
        has_image=image is not None,
        success=result.success,
        status=result.status_code,
    )
    return _relay(result)


def _handle_known_error(error: NurseVisitError):
    if error.status_code >= 500:
        log.error("proxy_error", error=error.message, type=type(error).__name__)
    else:
        log.info("proxy_rejected", error=error.message)
    return jsonify(error.to_dict()), error.status_code


def _handle_unexpected(error: Exception):
    if isinstance(error, HTTPException):
        return error
    log.exception("proxy_unhandled_error", error=str(error))
    return jsonify({"success": False, "message": f"Server error: {error}"}), 500


def create_app(
    config: ProxyConfig | None = None,
    *,
    script_client: ScriptClient | None = None,
    uploader=None,
) -> Flask:
    """Build the proxy application.

    Args:
        config: Settings; defaults to the environment singleton.
        script_client: Client for the external script; built from
            ``config.script_url`` when omitted.
        uploader: Object with ``upload(ImageUpload) -> str``; a DriveUploader
            is built from the GOOGLE_* settings on first use when omitted.

    Returns:
        Configured Flask app.
    """
    config = config or get_config()

    if script_client is None and config.script_url:
        script_client = ScriptClient(config.script_url, timeout=config.script_timeout_seconds)
    if script_client is None:
        log.warning("script_url_missing")

    def uploader_factory():
        if uploader is not None:
            return uploader
        return DriveUploader.from_config(config)

    app = Flask(__name__)
    app.json.ensure_ascii = False
    app.extensions[EXTENSION_KEY] = ProxyServices(
        config=config,
        script_client=script_client,
        uploader_factory=uploader_factory,
    )
    app.register_blueprint(bp)
    app.register_error_handler(NurseVisitError, _handle_known_error)
    app.register_error_handler(Exception, _handle_unexpected)

    log.info("proxy_app_created", script_configured=script_client is not None)
    return app
