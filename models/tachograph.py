"""
Tachograph chart uploads and storage statistics.

Analog charts are scanned images or PDFs; digital downloads are the binary
files produced by a card reader or vehicle unit. Chart content is never
parsed here.
"""

import secrets
import string
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from pathlib import PurePosixPath
from typing import Dict, Iterable, List, Optional

from .calculations import DateLike, as_date, calc_usage_percent
from .errors import BackendError, RecordValidationError, UploadRejected
from .records import TachographFile
from .session import Session
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="tachograph")

UPLOAD_ROLES = ("admin", "driver", "compliance_officer")

MAX_FILE_BYTES = 50 * 1024 * 1024
STORAGE_QUOTA_BYTES = 10 * 1024 * 1024 * 1024

ACCEPTED_TYPES = {
    "image/*": (".jpg", ".jpeg", ".png", ".tiff", ".bmp"),
    "application/pdf": (".pdf",),
    "text/plain": (".txt",),
    "text/csv": (".csv",),
}
ACCEPTED_EXTENSIONS = tuple(ext for exts in ACCEPTED_TYPES.values() for ext in exts)

DIGITAL_FILE_TYPES = ("ddd", "tgd", "c1b", "v1b", "v2b", "esm")
MIN_DDD_BYTES = 100
DOWNLOAD_INTERVAL_DAYS = 28

_RAND_ALPHABET = string.ascii_lowercase + string.digits


@dataclass
class ChartFile:
    """A file received from a form or the command line, not yet stored."""

    name: str
    data: bytes
    content_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        return PurePosixPath(self.name).suffix.lower()


@dataclass
class StorageStats:
    total_files: int
    total_size: int
    available: int
    usage_percent: float
    oldest_upload: Optional[str] = None
    newest_upload: Optional[str] = None
    by_type: Dict[str, int] = field(default_factory=dict)


def _timestamp_token(now: datetime) -> str:
    # 2025-01-15T10-30-00-000Z
    now = now.astimezone(timezone.utc)
    return now.strftime("%Y-%m-%dT%H-%M-%S-") + f"{now.microsecond // 1000:03d}Z"


def generate_filename(original: str, now: Optional[datetime] = None) -> str:
    """Unique storage name: analog_tachograph_<timestamp>_<9 random chars>.<ext>"""
    now = now or datetime.now(timezone.utc)
    ext = original.rsplit(".", 1)[-1]
    rand = "".join(secrets.choice(_RAND_ALPHABET) for _ in range(9))
    return f"analog_tachograph_{_timestamp_token(now)}_{rand}.{ext}"


def _type_accepted(content_type: Optional[str]) -> bool:
    if not content_type:
        return True
    if content_type.startswith("image/"):
        return True
    return content_type in ACCEPTED_TYPES


def validate_chart_file(upload: ChartFile, max_bytes: int = MAX_FILE_BYTES) -> None:
    """Raise UploadRejected unless the file type and size are accepted."""
    if upload.extension not in ACCEPTED_EXTENSIONS or not _type_accepted(upload.content_type):
        raise UploadRejected(
            f"{upload.name}: unsupported file type (accepted: {', '.join(ACCEPTED_EXTENSIONS)})"
        )
    if upload.size > max_bytes:
        raise UploadRejected(
            f"{upload.name}: file is {format_file_size(upload.size)}, "
            f"limit is {format_file_size(max_bytes)}"
        )


def upload_charts(
    store,
    blobs,
    session: Session,
    files: Iterable[ChartFile],
    vehicle_id: Optional[str] = None,
    driver_id: Optional[str] = None,
    chart_date: Optional[DateLike] = None,
    max_bytes: int = MAX_FILE_BYTES,
    now: Optional[datetime] = None,
) -> List[TachographFile]:
    """
    Upload analog chart scans one after another.

    Every file is checked before the first upload. Each file is stored under
    '<organization_id>/<generated name>' and gets a metadata row. If a later
    file fails the earlier ones stay uploaded; the failed file's blob is
    removed when its metadata row cannot be written.
    """
    session.require_role(UPLOAD_ROLES)
    files = list(files)
    if not files:
        raise UploadRejected("No files selected")
    for upload in files:
        validate_chart_file(upload, max_bytes)

    uploaded = []
    for upload in files:
        moment = now or datetime.now(timezone.utc)
        filename = generate_filename(upload.name, moment)
        key = blobs.upload(f"{session.organization_id}/{filename}", upload.data, upload.content_type)

        try:
            record = store.insert(session, "tachograph_files", {
                "filename": filename,
                "original_name": upload.name,
                "file_size": upload.size,
                "file_type": upload.extension.lstrip(".") or "unknown",
                "upload_date": moment.isoformat(timespec="seconds"),
                "driver_id": driver_id,
                "vehicle_id": vehicle_id,
                "chart_date": as_date(chart_date or moment.date()).isoformat(),
                "chart_type": "analog",
                "status": "uploaded",
                "storage_path": key,
                "uploaded_by": session.user_id,
            })
        except (RecordValidationError, BackendError):
            logger.error("Could not record %s, removing uploaded file", key)
            blobs.remove([key])
            raise
        uploaded.append(record)

    logger.info("Uploaded %d analog chart(s) for %s", len(uploaded), session.organization_id)
    return uploaded


def upload_digital(
    store,
    blobs,
    session: Session,
    file_name: str,
    data: bytes,
    file_type: str,
    vehicle_id: str,
    driver_id: Optional[str] = None,
    download_date: Optional[DateLike] = None,
    download_method: str = "manual",
    now: Optional[datetime] = None,
) -> TachographFile:
    """
    Store a digital tachograph download for one of the organization's vehicles.

    A .ddd file under 100 bytes is kept but marked failed. The next download
    falls due 28 days after this one.
    """
    session.require_role(UPLOAD_ROLES)
    if file_type not in DIGITAL_FILE_TYPES:
        raise UploadRejected(
            f"Invalid file type '{file_type}' (expected one of: {', '.join(DIGITAL_FILE_TYPES)})"
        )
    file_name = PurePosixPath(file_name or "").name
    if not file_name:
        raise RecordValidationError("File name is required")

    vehicle = store.get(session, "vehicles", vehicle_id)

    now = now or datetime.now(timezone.utc)
    downloaded = as_date(download_date) if download_date else now.date()
    stored_name = f"{now.isoformat().replace(':', '-').replace('.', '-')}-{file_name}"
    key = f"{session.organization_id}/{vehicle.vehicle_number}/{stored_name}"
    blobs.upload(key, data, f"application/{file_type}")

    valid = not (file_type == "ddd" and len(data) < MIN_DDD_BYTES)
    try:
        record = store.insert(session, "tachograph_files", {
            "filename": stored_name,
            "original_name": file_name,
            "file_size": len(data),
            "file_type": file_type,
            "chart_type": "digital",
            "chart_date": downloaded.isoformat(),
            "upload_date": now.isoformat(timespec="seconds"),
            "storage_path": key,
            "status": "verified" if valid else "failed",
            "vehicle_id": vehicle.id,
            "driver_id": driver_id,
            "uploaded_by": session.user_id,
            "download_method": download_method,
            "next_download_due": next_download_due(downloaded).isoformat(),
        })
    except (RecordValidationError, BackendError):
        logger.error("Could not record %s, removing uploaded file", key)
        blobs.remove([key])
        raise

    if not valid:
        logger.warning("%s is too small to be a valid .ddd download", file_name)
    return record


def delete_chart(store, blobs, session: Session, file_id: str) -> None:
    """Remove a chart's stored file and then its metadata row."""
    record = store.get(session, "tachograph_files", file_id)
    blobs.remove([record.storage_path])
    store.delete(session, "tachograph_files", file_id)


def storage_stats(
    files: Iterable[TachographFile], available: int = STORAGE_QUOTA_BYTES
) -> StorageStats:
    files = list(files)
    total_size = sum(f.file_size for f in files)
    uploads = sorted(f.upload_date for f in files)

    by_type: Dict[str, int] = {}
    for f in files:
        by_type[f.file_type] = by_type.get(f.file_type, 0) + 1

    return StorageStats(
        total_files=len(files),
        total_size=total_size,
        available=available,
        usage_percent=calc_usage_percent(total_size, available),
        oldest_upload=uploads[0] if uploads else None,
        newest_upload=uploads[-1] if uploads else None,
        by_type=by_type,
    )


def format_file_size(num_bytes: int) -> str:
    """1536 -> '1.5 KB'"""
    if num_bytes <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    value = float(num_bytes)
    i = 0
    while value >= 1024 and i < len(units) - 1:
        value /= 1024
        i += 1
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {units[i]}"


def next_download_due(last_download: DateLike) -> date:
    return as_date(last_download) + timedelta(days=DOWNLOAD_INTERVAL_DAYS)
