"""
card_image.py
Devcard download and streak-region cropping.

The streak is not in the profile JSON; daily.dev only renders it onto the
user's devcard PNG. We download that card, cut out the fixed rectangle the
digits sit in and hand a PNG of the crop to OCR.

Images are OpenCV BGR arrays (H x W x 3, uint8) throughout.
"""

import logging

import cv2
import numpy as np
import requests

from config import (
    CARD_IMAGE_BASE, CARD_IMAGE_TOKEN, HTTP_TIMEOUT, USER_AGENT,
)
from errors import CropBoundsError, DownloadError, ImageDecodeError

logger = logging.getLogger("card_image")


def card_image_url(card_id):
    """Build the devcard URL for a daily.dev user id."""
    return f"{CARD_IMAGE_BASE}/{card_id}.png?type=default&r={CARD_IMAGE_TOKEN}"


def decode_image(data):
    """Decode raw PNG/JPEG bytes into a BGR array."""
    if not data:
        raise ImageDecodeError("Empty image body")
    img = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_COLOR)
    if img is None:
        raise ImageDecodeError("Unrecognized or corrupt image format")
    return img


def fetch_card_image(card_id):
    """
    Download and decode a user's devcard.

    Single attempt; the image itself is never cached, only the streak
    derived from it.

    Raises:
        DownloadError: transport failure or non-2xx status
        ImageDecodeError: body is not a decodable image
    """
    url = card_image_url(card_id)
    logger.debug("Downloading card %s", url)
    try:
        r = requests.get(url, headers={"User-Agent": USER_AGENT}, timeout=HTTP_TIMEOUT)
    except requests.RequestException as e:
        raise DownloadError(f"Error downloading image: {e}") from e

    if not 200 <= r.status_code < 300:
        raise DownloadError(f"Error downloading image: HTTP {r.status_code} for {url}")

    img = decode_image(r.content)
    h, w = img.shape[:2]
    logger.debug("Card decoded (%dx%d)", w, h)
    return img


def crop_region(img, x, y, width, height):
    """
    Cut the rectangle [x, x+width) x [y, y+height) out of img.

    Returns a new array of exactly height x width that does not share
    memory with the source.

    Raises CropBoundsError if the rectangle does not lie fully inside
    the image.
    """
    h, w = img.shape[:2]
    if width <= 0 or height <= 0:
        raise CropBoundsError(f"Crop size must be positive, got {width}x{height}")
    if x < 0 or y < 0 or x + width > w or y + height > h:
        raise CropBoundsError(
            f"Crop ({x}, {y}, {width}, {height}) outside {w}x{h} image; "
            f"card layout may have changed"
        )
    return img[y:y + height, x:x + width].copy()


def encode_png(img):
    """Encode an image as lossless PNG bytes."""
    ok, buf = cv2.imencode(".png", img)
    if not ok:
        raise ImageDecodeError("PNG encoding failed")
    return buf.tobytes()
