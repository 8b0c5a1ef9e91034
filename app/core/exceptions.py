"""Error taxonomy shared by the study pipeline and the HTTP layer.

Lower layers (extraction, normalization, generation) raise these and do no
recovery. The document job turns anything into a ``failed`` status and the
API layer maps not-found / rejected uploads to HTTP errors.
"""


class ServiceError(Exception):
    """Base class for service-related errors."""


class ExtractionError(ServiceError):
    """Raised when an uploaded payload cannot be turned into text."""


class PdfParseError(ExtractionError):
    def __init__(self, cause: BaseException):
        detail = str(cause) or type(cause).__name__
        super().__init__(f"Failed to parse PDF: {detail}")


class UnsupportedContentError(ExtractionError):
    def __init__(self, mime_type: str):
        self.mime_type = mime_type
        super().__init__(
            "Image documents require OCR which is not yet implemented. "
            "Please upload a PDF or text file."
        )


class GenerationError(ServiceError):
    """Raised when study material could not be produced from model output."""


class ResponseParseError(GenerationError):
    def __init__(self, reason: str, text: str):
        self.reason = reason
        self.text = text
        super().__init__(
            f"Failed to parse AI response as JSON: {reason} "
            f"(starts with: {text[:100]!r})"
        )


class ProviderConfigError(GenerationError):
    """Unknown provider name or missing credentials."""


class DocumentNotFoundError(ServiceError):
    def __init__(self, document_id=None):
        self.document_id = document_id
        super().__init__("Document not found")


class StudyMaterialNotFoundError(ServiceError):
    def __init__(self, material_id=None):
        self.material_id = material_id
        super().__init__("Study material not found")


class UploadRejectedError(ServiceError):
    """Upload failed the acceptance policy (type, size or encoding)."""

    def __init__(self, message: str, *, status_code: int = 400):
        self.status_code = status_code
        super().__init__(message)
