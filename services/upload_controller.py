from __future__ import annotations
import inspect
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Protocol, Union

from domain.dtos import ImageUpload, Palette, Preview
from domain.enums import ErrorKind
from domain.errors import ExtractionFailed, ValidationFailed
from services.palette_model import PaletteModel

log = logging.getLogger(__name__)

MAX_UPLOAD_BYTES = 10 * 1024 * 1024

MSG_NOT_IMAGE = "Please upload an image file (PNG, JPG, JPEG)"
MSG_TOO_LARGE = "Image must be smaller than 10MB"
MSG_EXTRACTION_FAILED = "Failed to extract colors. Please try again."

@dataclass(frozen=True)
class Idle:
    pass

@dataclass(frozen=True)
class Validating:
    pass

@dataclass(frozen=True)
class Uploading:
    generation: int

@dataclass(frozen=True)
class Ready:
    palette: Palette

@dataclass(frozen=True)
class Error:
    reason: ErrorKind
    message: str

UploadState = Union[Idle, Validating, Uploading, Ready, Error]

class Extractor(Protocol):
    async def extract(self, data: bytes, media_type: str, filename: str = "image") -> Palette:
        ...

# may be a plain function or a coroutine function (e.g. one that runs the decode in an executor)
PreviewFactory = Callable[[bytes, str], Union[Optional[Preview], Awaitable[Optional[Preview]]]]

def validate_upload(upload: ImageUpload, max_bytes: int = MAX_UPLOAD_BYTES) -> None:
    if not (upload.media_type or "").lower().startswith("image/"):
        raise ValidationFailed(MSG_NOT_IMAGE)
    if upload.size > max_bytes:
        raise ValidationFailed(MSG_TOO_LARGE)

class UploadController:
    """Drives one upload at a time: Idle -> Validating -> Uploading -> Ready | Error.

    Every submission takes a new generation number. A response whose generation
    is no longer current is dropped, so an older request finishing late can never
    overwrite the palette of a newer one.
    """

    def __init__(self, extractor: Extractor, model: Optional[PaletteModel] = None, *,
                 preview_factory: Optional[PreviewFactory] = None,
                 max_bytes: int = MAX_UPLOAD_BYTES) -> None:
        self.extractor = extractor
        self.model = model or PaletteModel()
        self.preview_factory = preview_factory
        self.max_bytes = max_bytes
        self.state: UploadState = Idle()
        self.preview: Optional[Preview] = None
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def error(self) -> Optional[Error]:
        return self.state if isinstance(self.state, Error) else None

    @property
    def busy(self) -> bool:
        return isinstance(self.state, (Validating, Uploading))

    async def submit(self, upload: ImageUpload) -> Optional[UploadState]:
        """Run one submission. Returns the resulting state, or None if a newer submission superseded it."""
        # a new submission neutralizes whatever is still in flight
        self._generation += 1
        generation = self._generation
        self.model.clear()
        self.preview = None
        self.state = Validating()

        try:
            validate_upload(upload, self.max_bytes)
        except ValidationFailed as e:
            log.info("Rejected %s (%s, %d bytes): %s", upload.filename, upload.media_type, upload.size, e)
            self.state = Error(ErrorKind.validation_failed, str(e))
            return self.state

        preview = await self._make_preview(upload)
        if generation != self._generation:
            log.debug("Dropping superseded generation %d before upload", generation)
            return None
        self.preview = preview
        self.state = Uploading(generation)

        try:
            palette = await self.extractor.extract(upload.data, upload.media_type, upload.filename)
        except ExtractionFailed:
            if generation != self._generation:
                log.debug("Dropping failure of superseded generation %d", generation)
                return None
            self.state = Error(ErrorKind.extraction_failed, MSG_EXTRACTION_FAILED)
            return self.state

        if generation != self._generation:
            log.debug("Dropping result of superseded generation %d (current %d)", generation, self._generation)
            return None

        self.model.replace(palette)
        self.state = Ready(palette)
        return self.state

    async def _make_preview(self, upload: ImageUpload) -> Optional[Preview]:
        if self.preview_factory is None:
            return None
        try:
            preview = self.preview_factory(upload.data, upload.media_type)
            if inspect.isawaitable(preview):
                preview = await preview
        except Exception as e:
            # the preview is cosmetic, the upload goes ahead without it
            log.warning("Preview failed for %s: %s", upload.filename, e)
            return None
        return preview

    def reset(self) -> None:
        self._generation += 1
        self.model.clear()
        self.preview = None
        self.state = Idle()

    def fail(self, kind: ErrorKind, message: str) -> Error:
        """Record a failure that happened outside submit(), e.g. while fetching the bytes."""
        self.model.clear()
        self.preview = None
        self.state = Error(kind, message)
        return self.state
