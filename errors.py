"""
errors.py
Exception hierarchy for the acquisition pipeline.

Four families, each raised by a different layer:
  - StructuralError: the profile page no longer has the expected shape
  - TransportError:  an HTTP call failed or returned a non-2xx status
  - DecodeError:     a body (image, JSON) could not be decoded
  - ServiceError:    the OCR service answered but reported a failure

Some leaves belong to two families (MalformedJSON is both a broken page
and an undecodable body), so callers can catch whichever level they care
about.
"""


class DevRepError(Exception):
    """Base class for every pipeline failure."""


# ─────────────────────────────────────────────────────────────
# TAXONOMY
# ─────────────────────────────────────────────────────────────

class StructuralError(DevRepError):
    pass


class TransportError(DevRepError):
    pass


class DecodeError(DevRepError):
    pass


class ServiceError(DevRepError):
    pass


# ─────────────────────────────────────────────────────────────
# EMBEDDED-JSON EXTRACTION
# ─────────────────────────────────────────────────────────────

class ExtractionError(StructuralError):
    """The hydration payload is missing or a key on its path is absent."""
    key = None

    def __init__(self, message=None):
        super().__init__(message or f"Error extracting {self.key}")


class NoEmbeddedPayload(ExtractionError):
    key = "__NEXT_DATA__"

    def __init__(self, message=None):
        super().__init__(message or "No __NEXT_DATA__ script found in page")


class MalformedJSON(ExtractionError, DecodeError):
    key = "__NEXT_DATA__"

    def __init__(self, message=None):
        super().__init__(message or "JSON parse error")


class MissingProps(ExtractionError):
    key = "props"


class MissingPageProps(ExtractionError):
    key = "pageProps"


class MissingUser(ExtractionError):
    key = "user"


class MissingId(ExtractionError):
    key = "id"


class ProfileFetchError(TransportError):
    pass


# ─────────────────────────────────────────────────────────────
# CARD IMAGE
# ─────────────────────────────────────────────────────────────

class DownloadError(TransportError):
    pass


class ImageDecodeError(DecodeError):
    pass


class CropBoundsError(DecodeError):
    pass


# ─────────────────────────────────────────────────────────────
# RECOGNITION
# ─────────────────────────────────────────────────────────────

class RecognitionError(DevRepError):
    pass


class RecognitionTransportError(RecognitionError, TransportError):
    pass


class MalformedResponse(RecognitionError, DecodeError):
    pass


class RecognitionServiceError(RecognitionError, ServiceError):
    """OCR service reported a failure; ``body`` keeps the raw response."""

    def __init__(self, message, body=""):
        super().__init__(message)
        self.body = body
