"""Google Drive upload of visit photos.

Uses a service account (GOOGLE_CLIENT_EMAIL / GOOGLE_PRIVATE_KEY) to put the
image in one folder, share it with anyone holding the link, and return that
link for the spreadsheet's imageLink column.
"""

import io
import re
import time

from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseUpload

from src.nurse_visits.catalog import ALLOWED_IMAGE_TYPES
from src.nurse_visits.config import ProxyConfig
from src.nurse_visits.errors import ConfigurationError, RequestValidationError, UploadError
from src.nurse_visits.logging import get_logger
from src.nurse_visits.models import ImageUpload

log = get_logger(__name__)

DRIVE_SCOPES = ["https://www.googleapis.com/auth/drive.file"]
TOKEN_URI = "https://oauth2.googleapis.com/token"

_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def validate_image(image: ImageUpload, max_bytes: int) -> None:
    """Reject unsupported or oversized images before anything is uploaded.

    Raises:
        RequestValidationError: If the type is not JPEG/PNG or the file is too large.
    """
    if image.content_type not in ALLOWED_IMAGE_TYPES:
        raise RequestValidationError(
            "Invalid image type. Only JPEG and PNG images are allowed."
        )
    if image.size > max_bytes:
        limit_mb = max_bytes // (1024 * 1024)
        raise RequestValidationError(f"Image size exceeds the {limit_mb}MB limit.")


def drive_file_name(filename: str, now: float | None = None) -> str:
    """Timestamp-prefixed, ASCII-safe name for the stored file."""
    millis = int((time.time() if now is None else now) * 1000)
    safe = _UNSAFE_NAME_CHARS.sub("_", filename or "image") or "image"
    return f"{millis}_{safe}"


def build_drive_service(client_email: str, private_key: str):
    """Build a Drive v3 client authenticated as the service account."""
    info = {
        "type": "service_account",
        "client_email": client_email,
        "private_key": private_key,
        "token_uri": TOKEN_URI,
    }
    creds = service_account.Credentials.from_service_account_info(info, scopes=DRIVE_SCOPES)
    return build("drive", "v3", credentials=creds, cache_discovery=False)


class DriveUploader:
    """Uploads one image per call: create file, then open read access."""

    def __init__(self, folder_id: str, service) -> None:
        """Initialize DriveUploader.

        Args:
            folder_id: Parent folder of every uploaded file.
            service: Drive v3 client (googleapiclient resource).
        """
        self.folder_id = folder_id
        self.service = service

    @classmethod
    def from_config(cls, config: ProxyConfig) -> "DriveUploader":
        """Create an uploader from the GOOGLE_* settings.

        Raises:
            ConfigurationError: If any of the three Drive settings is empty.
        """
        if not config.drive_configured:
            raise ConfigurationError("Missing Google Drive credentials for image upload")
        service = build_drive_service(config.google_client_email, config.google_private_key)
        return cls(config.google_drive_folder_id, service)

    def upload(self, image: ImageUpload) -> str:
        """Store the image and return its shareable link.

        The permission change only runs once the upload succeeded; a failure
        in either step aborts the submission.

        Raises:
            UploadError: If Drive rejects the upload or the permission change.
        """
        name = drive_file_name(image.filename)
        media = MediaIoBaseUpload(io.BytesIO(image.data), mimetype=image.content_type)

        try:
            created = (
                self.service.files()
                .create(
                    body={"name": name, "parents": [self.folder_id]},
                    media_body=media,
                    fields="id, webViewLink",
                )
                .execute()
            )
        except HttpError as e:
            log.error("image_upload_failed", name=name, error=str(e))
            raise UploadError(f"Image upload failed: {e}") from e

        file_id = created["id"]
        try:
            self.service.permissions().create(
                fileId=file_id,
                body={"role": "reader", "type": "anyone"},
            ).execute()
        except HttpError as e:
            log.error("image_permission_failed", file_id=file_id, error=str(e))
            raise UploadError(f"Could not share uploaded image: {e}") from e

        link = created.get("webViewLink") or f"https://drive.google.com/uc?id={file_id}"
        log.info("image_uploaded", file_id=file_id, name=name, size=image.size)
        return link
