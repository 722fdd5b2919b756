from __future__ import annotations
from enum import Enum

class ExportFormat(str, Enum):
    css = "css"
    json = "json"
    tailwind = "tailwind"

    @staticmethod
    def parse(value: str) -> "ExportFormat":
        try:
            return ExportFormat(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unsupported export format: {value!r}") from None

class ErrorKind(str, Enum):
    validation_failed = "ValidationFailed"    # bad media type or oversize, no request sent
    extraction_failed = "ExtractionFailed"    # non-2xx or transport failure
