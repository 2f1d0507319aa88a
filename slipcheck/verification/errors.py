"""Exception hierarchy for slip verification."""


class SlipCheckError(Exception):
    """Base class for all slip verification errors."""


class InvalidJobError(SlipCheckError, ValueError):
    """A verification job was rejected at admission."""


class UnsupportedFileTypeError(InvalidJobError):
    """The uploaded file is neither an image nor a PDF."""

    def __init__(self, mime_type: str | None) -> None:
        super().__init__(f"Unsupported file type: {mime_type or 'unknown'}")
        self.mime_type = mime_type


class OCRError(SlipCheckError):
    """The OCR engine could not read the slip."""


class OCRTimeoutError(OCRError):
    """The OCR engine did not finish within the configured time limit."""

    def __init__(self, timeout: float) -> None:
        super().__init__(f"OCR timed out after {timeout:g}s")
        self.timeout = timeout
