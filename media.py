"""
Media acquisition.

Turns a browser file upload or a camera still into an ImagePayload:
raw bytes, their base64 text for transport, a source name and the sniffed
MIME type.  Everything here is local; a rejected photo never reaches the
remote model.
"""
import base64
import binascii
import io
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime

from PIL import Image, ImageOps, UnidentifiedImageError

from errors import AcquisitionError

log = logging.getLogger(__name__)

MAX_UPLOAD_BYTES   = 4 * 1024 * 1024   # 4 MiB
ALLOWED_MIME_TYPES = {"image/png", "image/jpeg"}

_SIZE_ERROR = "File size should not exceed 4MB."
_TYPE_ERROR = "Unsupported file type. Please upload a PNG or JPG image."
_DATA_URL   = re.compile(r"^data:(?P<mime>image/(?:png|jpeg));base64,(?P<data>.*)$", re.DOTALL)


@dataclass(frozen=True)
class ImagePayload:
    data:        bytes = field(repr=False)
    encoded:     str   = field(repr=False)
    source_name: str
    mime_type:   str

    @classmethod
    def from_bytes(cls, data: bytes, source_name: str) -> "ImagePayload":
        mime_type = sniff_mime(data)
        if mime_type is None:
            raise AcquisitionError(
                f"unrecognised image signature in {source_name!r}", _TYPE_ERROR
            )
        return cls(
            data=data,
            encoded=base64.b64encode(data).decode("ascii"),
            source_name=source_name,
            mime_type=mime_type,
        )

    @property
    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.encoded}"


@dataclass(frozen=True)
class GeneratedImage:
    """One candidate image returned by the generation model."""
    data: bytes = field(repr=False)

    @property
    def mime_type(self) -> str:
        return sniff_mime(self.data) or "image/png"

    @property
    def extension(self) -> str:
        return "jpg" if self.mime_type == "image/jpeg" else "png"

    @property
    def encoded(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    @property
    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.encoded}"


def sniff_mime(data: bytes) -> str | None:
    """Return the MIME type implied by the magic bytes, or None."""
    if data[:3] == b"\xff\xd8\xff":
        return "image/jpeg"
    if data[:8] == b"\x89PNG\r\n\x1a\n":
        return "image/png"
    return None


def _verify(data: bytes, source_name: str) -> None:
    """Raise AcquisitionError unless Pillow can parse the bytes as an image."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.verify()   # raises on corrupt / truncated files
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
        raise AcquisitionError(
            f"{source_name!r} failed image verification: {e}",
            "The uploaded file does not appear to be a valid image.",
        ) from e


# ── File upload ───────────────────────────────────────────────────────────────

def acquire_upload(file) -> ImagePayload:
    """Validate an uploaded file (Werkzeug FileStorage) and build its payload."""
    if file is None or not file.filename:
        raise AcquisitionError("empty upload", "No file received.")

    if (file.mimetype or "").lower() not in ALLOWED_MIME_TYPES:
        raise AcquisitionError(f"declared type {file.mimetype!r}", _TYPE_ERROR)

    # Read one byte past the limit so oversized files are caught without
    # pulling the whole stream into memory.
    data = file.read(MAX_UPLOAD_BYTES + 1)
    if len(data) > MAX_UPLOAD_BYTES:
        raise AcquisitionError(f"{file.filename!r} exceeds {MAX_UPLOAD_BYTES} bytes", _SIZE_ERROR)
    if not data:
        raise AcquisitionError(f"{file.filename!r} is empty", "The selected file is empty.")

    _verify(data, file.filename)
    payload = ImagePayload.from_bytes(data, file.filename)
    log.info("Accepted upload %s (%d bytes, %s)", payload.source_name, len(data), payload.mime_type)
    return payload


# ── Camera capture ────────────────────────────────────────────────────────────

def capture_name(now: datetime | None = None) -> str:
    now = now or datetime.now()
    return f"capture-{int(now.timestamp() * 1000)}.jpg"


def mirror_jpeg(data: bytes, source_name: str = "capture") -> bytes:
    """Flip a still horizontally so it matches the mirrored live preview."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            flipped = ImageOps.mirror(ImageOps.exif_transpose(img).convert("RGB"))
        out = io.BytesIO()
        flipped.save(out, format="JPEG", quality=95)
    except (OSError, ValueError) as e:
        # verify() does not decode pixel data, so truncated frames only fail here
        raise AcquisitionError(
            f"{source_name!r} could not be decoded: {e}", "The camera photo could not be read."
        ) from e
    return out.getvalue()


def acquire_capture(data_url: str, now: datetime | None = None, mirror: bool = True) -> ImagePayload:
    """Decode a camera still sent by the browser as a base64 data URL."""
    match = _DATA_URL.match((data_url or "").strip())
    if not match:
        raise AcquisitionError("capture is not a base64 image data URL", "The camera photo could not be read.")

    encoded = match.group("data")
    # Decoded length is ~3/4 of the base64 length; reject before decoding.
    if len(encoded) * 3 // 4 > MAX_UPLOAD_BYTES + 2:
        raise AcquisitionError("capture exceeds size limit", _SIZE_ERROR)

    try:
        raw = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise AcquisitionError(f"capture base64 invalid: {e}", "The camera photo could not be read.") from e
    if len(raw) > MAX_UPLOAD_BYTES:
        raise AcquisitionError("capture exceeds size limit", _SIZE_ERROR)

    name = capture_name(now)
    _verify(raw, name)
    data = mirror_jpeg(raw, name) if mirror else raw
    if len(data) > MAX_UPLOAD_BYTES:
        raise AcquisitionError("capture exceeds size limit after encoding", _SIZE_ERROR)

    payload = ImagePayload.from_bytes(data, name)
    log.info("Accepted camera capture %s (%d bytes)", name, len(data))
    return payload
