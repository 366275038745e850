"""
ocr.py — Streak recognition from the devcard crop.

Two interchangeable backends implement recognize(png_bytes) -> text:
  - OCRSpaceRecognizer (default): one multipart POST to the OCR.space
    REST API. No local model, works with the free anonymous key.
  - EasyOCRRecognizer: local EasyOCR model. Heavy (torch) and loaded
    lazily on first use, so the default path never imports it.

parse_streak() then takes the first run of digits on the first line of
whatever came back. OCR noise is expected: an unreadable crop yields ""
instead of an error.
"""

import json
import logging
import re

import requests

from config import (
    EASYOCR_GPU, EASYOCR_LANGUAGES, HTTP_TIMEOUT,
    OCR_LANGUAGE, OCR_SPACE_API_KEY, OCR_SPACE_URL,
)
from errors import (
    MalformedResponse, RecognitionServiceError, RecognitionTransportError,
)

logger = logging.getLogger("ocr")

_DIGITS = re.compile(r"[0-9]+")


# ─────────────────────────────────────────────────────────────
# OCR.SPACE BACKEND
# ─────────────────────────────────────────────────────────────

class OCRSpaceRecognizer:
    """
    Client for the OCR.space parse/image endpoint.

    Response shape we rely on:
        {"ParsedResults": [{"ParsedText": "42\\r\\n..."}, ...],
         "IsErroredOnProcessing": false, "ErrorMessage": [...]}
    """

    def __init__(self, api_key=OCR_SPACE_API_KEY, language=OCR_LANGUAGE,
                 url=OCR_SPACE_URL, timeout=HTTP_TIMEOUT):
        self.api_key = api_key
        self.language = language
        self.url = url
        self.timeout = timeout

    def recognize(self, png_bytes):
        """
        Submit a PNG and return the raw recognized text.

        Raises:
            RecognitionTransportError: network failure or non-2xx status
            MalformedResponse: body is not the JSON shape above
            RecognitionServiceError: service reported a failure
        """
        files = {"file": ("cropped.png", png_bytes, "image/png")}
        data = {"language": self.language, "apikey": self.api_key}
        try:
            r = requests.post(self.url, files=files, data=data, timeout=self.timeout)
        except requests.RequestException as e:
            raise RecognitionTransportError(f"OCR request failed: {e}") from e

        body = r.text
        if not 200 <= r.status_code < 300:
            raise RecognitionTransportError(
                f"OCR request failed: HTTP {r.status_code}: {body[:200]}"
            )

        try:
            result = json.loads(body)
        except ValueError as e:
            raise MalformedResponse(f"OCR response is not JSON: {body[:200]}") from e
        if not isinstance(result, dict):
            raise MalformedResponse(f"OCR response is not an object: {body[:200]}")

        if result.get("IsErroredOnProcessing"):
            raise RecognitionServiceError(f"OCR failed: {body}", body=body)

        parsed = result.get("ParsedResults")
        if not parsed:
            raise RecognitionServiceError(f"OCR failed: {body}", body=body)
        if not isinstance(parsed, list) or not isinstance(parsed[0], dict):
            raise MalformedResponse(f"Unexpected ParsedResults: {parsed!r}")

        text = parsed[0].get("ParsedText")
        if not isinstance(text, str):
            raise MalformedResponse(f"Unexpected ParsedText: {text!r}")

        logger.debug("OCR.space text: %r", text)
        return text


# ─────────────────────────────────────────────────────────────
# EASYOCR BACKEND
# ─────────────────────────────────────────────────────────────

class EasyOCRRecognizer:
    """Local recognition with EasyOCR. Pass reader= to reuse a loaded model."""

    def __init__(self, reader=None, languages=None, gpu=EASYOCR_GPU):
        self._reader = reader
        self.languages = languages or list(EASYOCR_LANGUAGES)
        self.gpu = gpu

    @property
    def reader(self):
        if self._reader is None:
            import easyocr
            logger.info("Loading EasyOCR model (%s)...", ",".join(self.languages))
            self._reader = easyocr.Reader(self.languages, gpu=self.gpu, verbose=False)
        return self._reader

    def recognize(self, png_bytes):
        # detail=0 → list of strings, top-to-bottom
        lines = self.reader.readtext(png_bytes, detail=0)
        text = "\n".join(lines)
        logger.debug("EasyOCR text: %r", text)
        return text


def get_recognizer(backend):
    """Build the recognizer named by RECOGNITION_BACKEND."""
    if backend == "ocrspace":
        return OCRSpaceRecognizer()
    if backend == "easyocr":
        return EasyOCRRecognizer()
    raise ValueError(f"Unknown recognition backend: {backend!r}")


# ─────────────────────────────────────────────────────────────
# STREAK PARSING
# ─────────────────────────────────────────────────────────────

def parse_streak(text):
    """
    First run of digits on the first line of OCR text, or "".

    Never raises. Kept as a string: it is only displayed, and OCR may
    hand back leading zeros.
    """
    if not text:
        return ""
    first_line = text.split("\n", 1)[0]
    match = _DIGITS.search(first_line)
    return match.group(0) if match else ""
